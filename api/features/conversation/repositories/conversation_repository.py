"""Repositories for conversations and their messages."""
from typing import List

from api.features.conversation.entities.conversation import Conversation, Message
from api.shared.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation rows."""

    model = Conversation


class MessageRepository(BaseRepository[Message]):
    """Repository for message rows, always read in ``created_at`` order."""

    model = Message

    async def list_by_conversation(self, conversation_id: str) -> List[Message]:
        """All messages of a conversation, oldest first."""
        return await self.get_by_field(
            "conversation_id", conversation_id, order_by="created_at"
        )

    async def list_recent(self, conversation_id: str, limit: int) -> List[Message]:
        """The newest ``limit`` messages of a conversation, oldest first."""
        entities = await self.get_by_field(
            "conversation_id", conversation_id, order_by="-created_at", limit=limit
        )
        entities.reverse()
        return entities
