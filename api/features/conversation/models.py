"""Models for the Conversation feature."""
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from api.features.conversation.entities.conversation import (
    Conversation as ConversationEntity,
    Message as MessageEntity,
    MessageSender,
)


class ConversationModel(BaseModel):
    """Domain model for Conversation."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Conversation identifier, exposed as the session id")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Timestamp of the last completed turn")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Opaque metadata")

    @classmethod
    def from_entity(cls, entity: ConversationEntity) -> "ConversationModel":
        """Create model from database entity."""
        return cls(
            id=entity.id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            metadata=entity.meta or {},
        )


class MessageModel(BaseModel):
    """Domain model for Message."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Message identifier")
    conversation_id: str = Field(description="Owning conversation")
    sender: MessageSender = Field(description="Message author: user or ai")
    text: str = Field(description="Message text")
    created_at: datetime = Field(description="Insert timestamp, the ordering key")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Opaque metadata")

    @classmethod
    def from_entity(cls, entity: MessageEntity) -> "MessageModel":
        """Create model from database entity."""
        return cls(
            id=entity.id,
            conversation_id=entity.conversation_id,
            sender=MessageSender(entity.sender),
            text=entity.text,
            created_at=entity.created_at,
            metadata=entity.meta or {},
        )

    @property
    def role_label(self) -> str:
        """Speaker label used when the message is replayed into a prompt."""
        return "User" if self.sender == MessageSender.USER else "Assistant"
