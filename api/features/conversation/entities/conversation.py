"""Conversation and message entities."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.shared.entities.base import BaseEntity
from api.shared.utils import utc_now


class MessageSender(str, Enum):
    """Author of a message."""

    USER = "user"
    AI = "ai"


class Conversation(BaseEntity):
    """A support session: an ordered thread of user/assistant turns."""

    __tablename__ = "conversations"

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    # ``metadata`` is reserved on declarative classes
    meta: Mapped[Dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
        server_default=sql_text("'{}'"),
    )

    messages: Mapped[List["Message"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.created_at",
    )


class Message(BaseEntity):
    """A single append-only turn inside a conversation."""

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("sender IN ('user', 'ai')", name="ck_messages_sender"),
        Index("idx_messages_conversation_id", "conversation_id", "created_at"),
    )

    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender: Mapped[str] = mapped_column(String(10), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    meta: Mapped[Dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
        server_default=sql_text("'{}'"),
    )

    conversation: Mapped["Conversation"] = relationship(back_populates="messages")
