"""Chat orchestration: one support turn from user text to stored reply.

A turn moves through session resolution, user turn storage, context
building, reply generation, assistant turn storage and a conversation touch.
A failure after the user turn is stored leaves that turn in place; the next
message on the same session simply continues the thread.
"""
from __future__ import annotations

import time
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chat.completion import CompletionClient
from api.features.chat.models import ChatTurnResult, ConversationHistory
from api.features.conversation.entities.conversation import MessageSender
from api.features.conversation.models import ConversationModel
from api.features.conversation.service import (
    DEFAULT_HISTORY_LIMIT,
    ConversationStore,
    MessageStore,
)
from api.shared.exceptions import NotFoundError, SupportChatException
from api.shared.utils import truncate_text

logger = structlog.get_logger(__name__)


class ChatService:
    """Service for support chat turns and history."""

    def __init__(
        self,
        completion_client: CompletionClient,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.completion_client = completion_client
        self.history_limit = history_limit

    async def process_message(
        self,
        message: str,
        session_id: Optional[str] = None,
        *,
        db_session: AsyncSession,
    ) -> ChatTurnResult:
        """Run one turn and return the reply with its session and message ids."""
        conversations = ConversationStore(db_session)
        messages = MessageStore(db_session)
        started = time.monotonic()

        conversation = await self._resolve_conversation(conversations, session_id)
        log = logger.bind(conversation_id=conversation.id)
        log.info("Processing chat message", preview=truncate_text(message, 80))

        await messages.append(conversation.id, MessageSender.USER, message)

        try:
            history = await messages.list_recent(conversation.id, self.history_limit)
            reply = await self.completion_client.generate_reply(history, message)
            ai_message = await messages.append(conversation.id, MessageSender.AI, reply)
            await conversations.touch(conversation.id)
        except SupportChatException as e:
            # the client needs the session that now holds its stored message
            e.details.setdefault("session_id", conversation.id)
            log.warning(
                "Chat turn failed after user message was stored",
                error_code=e.error_code,
                error=e.message,
            )
            raise

        log.info(
            "Chat turn completed",
            message_id=ai_message.id,
            history_size=len(history),
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return ChatTurnResult(
            reply=reply, session_id=conversation.id, message_id=ai_message.id
        )

    async def get_conversation_history(
        self, session_id: str, *, db_session: AsyncSession
    ) -> ConversationHistory:
        """Return the conversation and all of its messages, oldest first."""
        conversation = await ConversationStore(db_session).find_by_id(session_id)
        if conversation is None:
            raise NotFoundError("Conversation", session_id)

        messages = await MessageStore(db_session).list_all(conversation.id)
        return ConversationHistory(conversation=conversation, messages=messages)

    @staticmethod
    async def _resolve_conversation(
        conversations: ConversationStore, session_id: Optional[str]
    ) -> ConversationModel:
        if session_id:
            existing = await conversations.find_by_id(session_id)
            if existing is not None:
                return existing
            # Unknown ids start a new conversation instead of failing the request
            logger.info("Unknown session id, starting a new conversation", session_id=session_id)
        return await conversations.create()
