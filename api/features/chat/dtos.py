"""DTOs for the Chat feature."""
from typing import List, Optional

from pydantic import Field, field_validator

from api.features.conversation.models import ConversationModel, MessageModel
from api.shared.dtos import BaseDTO
from api.shared.utils import is_valid_uuid
from core.settings import SETTINGS


class ChatMessageRequest(BaseDTO):
    """Send a message, optionally continuing an existing session."""

    message: str = Field(description="User message text")
    session_id: Optional[str] = Field(
        default=None, alias="sessionId", description="Existing session identifier"
    )

    @field_validator("message")
    @classmethod
    def validate_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message cannot be empty")
        max_length = SETTINGS.CHAT.MAX_MESSAGE_LENGTH
        if len(value) > max_length:
            raise ValueError(f"Message is too long (max {max_length} characters)")
        return value

    @field_validator("session_id")
    @classmethod
    def validate_session_id(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_uuid(value):
            raise ValueError("Invalid session ID format")
        return value


class ChatMessageResponse(BaseDTO):
    """Reply to a chat message."""

    reply: str = Field(description="Assistant reply")
    session_id: str = Field(serialization_alias="sessionId", description="Session identifier")
    message_id: str = Field(
        serialization_alias="messageId", description="Stored assistant message identifier"
    )


class ConversationHistoryResponse(BaseDTO):
    """Conversation record and its messages in chronological order."""

    conversation: ConversationModel = Field(description="Conversation record")
    messages: List[MessageModel] = Field(description="Messages, oldest first")
