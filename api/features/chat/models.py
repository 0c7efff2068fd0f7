"""Models for the Chat feature."""
from typing import List

from pydantic import BaseModel, Field

from api.features.conversation.models import ConversationModel, MessageModel


class ChatTurnResult(BaseModel):
    """Outcome of one completed turn."""

    reply: str = Field(description="Assistant reply text")
    session_id: str = Field(description="Conversation the turn was stored in")
    message_id: str = Field(description="Identifier of the stored assistant message")


class ConversationHistory(BaseModel):
    """A conversation with its full chronological message list."""

    conversation: ConversationModel
    messages: List[MessageModel] = Field(default_factory=list)
