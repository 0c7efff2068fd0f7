"""Router for the Chat feature."""
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chat.controller import ChatController
from api.features.chat.dtos import (
    ChatMessageRequest,
    ChatMessageResponse,
    ConversationHistoryResponse,
)
from api.shared.db import get_db_session
from api.shared.dtos import ErrorResponse, HealthCheckResponse
from api.shared.utils import is_valid_uuid
from di.container import ApplicationContainer as DependencyContainer

router = APIRouter()

CHAT_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid message or session id"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
    502: {"model": ErrorResponse, "description": "Completion service returned no usable reply"},
    503: {"model": ErrorResponse, "description": "Completion service unreachable"},
    504: {"model": ErrorResponse, "description": "Completion service timed out"},
}


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    return HealthCheckResponse(status="ok")


@router.post(
    "/message", response_model=ChatMessageResponse, responses=CHAT_ERROR_RESPONSES
)
@inject
async def send_message(
    request: ChatMessageRequest,
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Store the user's message, generate a reply and store it too."""
    return await controller.send_message(request, db_session=db_session)


@router.get(
    "/history/{session_id}",
    response_model=ConversationHistoryResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid session id"},
        404: {"model": ErrorResponse, "description": "Unknown session"},
    },
)
@inject
async def get_history(
    session_id: str,
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Full chronological history of a session."""
    if not is_valid_uuid(session_id):
        raise HTTPException(status_code=400, detail={"error": "Invalid session ID format"})
    return await controller.get_history(session_id, db_session=db_session)
