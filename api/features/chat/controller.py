"""Controller for the Chat feature."""
import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chat.dtos import (
    ChatMessageRequest,
    ChatMessageResponse,
    ConversationHistoryResponse,
)
from api.features.chat.exceptions import (
    CompletionTimeoutError,
    GenerationError,
    ServiceUnavailableError,
)
from api.features.chat.service import ChatService
from api.shared.exceptions import (
    NotFoundError,
    StorageError,
    SupportChatException,
    ValidationError,
)

logger = logging.getLogger("support.chat")

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (GenerationError, 502),
    (ServiceUnavailableError, 503),
    (CompletionTimeoutError, 504),
    (StorageError, 500),
)


def status_for(error: SupportChatException) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


def to_http_exception(
    error: SupportChatException, session_id: Optional[str] = None
) -> HTTPException:
    """Map a domain error to the HTTP error the client sees."""
    detail = {
        "error": error.message,
        "error_code": error.error_code,
        "sessionId": error.details.get("session_id", session_id),
    }
    if isinstance(error, StorageError):
        detail["error"] = "An error occurred processing your message"
    return HTTPException(status_code=status_for(error), detail=detail)


class ChatController:
    """Controller handling chat turns and history lookups."""

    def __init__(self, chat_service: ChatService):
        self.chat_service = chat_service

    async def send_message(
        self, request: ChatMessageRequest, *, db_session: AsyncSession
    ) -> ChatMessageResponse:
        try:
            result = await self.chat_service.process_message(
                request.message, request.session_id, db_session=db_session
            )
        except SupportChatException as e:
            logger.error(f"Chat turn failed [{e.error_code}]: {e.message}")
            raise to_http_exception(e, request.session_id)
        return ChatMessageResponse(
            reply=result.reply,
            session_id=result.session_id,
            message_id=result.message_id,
        )

    async def get_history(
        self, session_id: str, *, db_session: AsyncSession
    ) -> ConversationHistoryResponse:
        try:
            history = await self.chat_service.get_conversation_history(
                session_id, db_session=db_session
            )
        except NotFoundError as e:
            logger.info(f"History requested for unknown session {session_id}")
            raise HTTPException(
                status_code=404,
                detail={"error": "Conversation not found", "error_code": e.error_code},
            )
        except SupportChatException as e:
            logger.error(f"History lookup failed [{e.error_code}]: {e.message}")
            raise HTTPException(
                status_code=status_for(e),
                detail={
                    "error": "An error occurred fetching conversation history",
                    "error_code": e.error_code,
                },
            )
        return ConversationHistoryResponse(
            conversation=history.conversation, messages=history.messages
        )
