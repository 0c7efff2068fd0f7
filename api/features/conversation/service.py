"""Conversation and message stores.

Every write commits immediately: a stored user turn must survive whatever
happens later in the same request.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversation.entities.conversation import (
    Conversation,
    Message,
    MessageSender,
)
from api.features.conversation.models import ConversationModel, MessageModel
from api.features.conversation.repositories.conversation_repository import (
    ConversationRepository,
    MessageRepository,
)
from api.shared.exceptions import ConstraintViolationError, StorageError
from api.shared.utils import utc_now

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 10


@asynccontextmanager
async def storage_errors(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Roll back and re-raise SQLAlchemy failures as storage errors."""
    try:
        yield
    except IntegrityError as e:
        await session.rollback()
        logger.warning("Constraint violation", operation=operation, error=str(e.orig))
        raise ConstraintViolationError(
            f"Constraint violated during {operation}", {"operation": operation}
        ) from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Storage operation failed", operation=operation, error=str(e))
        raise StorageError(
            f"Storage failure during {operation}", {"operation": operation}
        ) from e


class ConversationStore:
    """Create, look up and touch conversations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = ConversationRepository(session)

    async def create(self) -> ConversationModel:
        async with storage_errors(self.session, "create_conversation"):
            now = utc_now()
            entity = await self.repository.create(
                Conversation(created_at=now, updated_at=now, meta={})
            )
            await self.session.commit()
        logger.info("Conversation created", conversation_id=entity.id)
        return ConversationModel.from_entity(entity)

    async def find_by_id(self, conversation_id: str) -> Optional[ConversationModel]:
        """Return the conversation, or ``None`` when the id does not resolve."""
        async with storage_errors(self.session, "find_conversation"):
            entity = await self.repository.get_by_id(conversation_id)
        return ConversationModel.from_entity(entity) if entity else None

    async def touch(self, conversation_id: str) -> ConversationModel:
        """Bump ``updated_at`` to now."""
        async with storage_errors(self.session, "touch_conversation"):
            entity = await self.repository.update_by_id(
                conversation_id, updated_at=utc_now()
            )
            if entity is None:
                await self.session.rollback()
                raise StorageError(
                    f"Cannot touch missing conversation '{conversation_id}'",
                    {"operation": "touch_conversation", "conversation_id": conversation_id},
                )
            await self.session.commit()
        return ConversationModel.from_entity(entity)


class MessageStore:
    """Append and list messages of a conversation."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = MessageRepository(session)

    async def append(
        self, conversation_id: str, sender: MessageSender, text: str
    ) -> MessageModel:
        """Store a message; the foreign key rejects unknown conversations."""
        async with storage_errors(self.session, "append_message"):
            entity = await self.repository.create(
                Message(
                    conversation_id=conversation_id,
                    sender=MessageSender(sender).value,
                    text=text,
                    meta={},
                )
            )
            await self.session.commit()
        return MessageModel.from_entity(entity)

    async def list_all(self, conversation_id: str) -> List[MessageModel]:
        async with storage_errors(self.session, "list_messages"):
            entities = await self.repository.list_by_conversation(conversation_id)
        return [MessageModel.from_entity(e) for e in entities]

    async def list_recent(
        self, conversation_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[MessageModel]:
        """The last ``limit`` messages in chronological order."""
        if limit <= 0:
            return []
        async with storage_errors(self.session, "list_recent_messages"):
            entities = await self.repository.list_recent(conversation_id, limit)
        return [MessageModel.from_entity(e) for e in entities]
