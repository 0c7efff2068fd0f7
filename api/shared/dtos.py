"""Shared DTOs for the support chat API."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.shared.utils import utc_now


class BaseDTO(BaseModel):
    """Base DTO with common configuration."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class HealthCheckResponse(BaseDTO):
    """Health check response DTO."""
    status: str = Field(description="Service status")
    timestamp: datetime = Field(default_factory=utc_now)


class ErrorResponse(BaseDTO):
    """Error response DTO."""
    error: str = Field(description="User-facing error message")
    error_code: str = Field(description="Error code")
    status_code: int = Field(description="HTTP status code")
    session_id: Optional[str] = Field(
        default=None,
        serialization_alias="sessionId",
        description="Session holding any message stored before the failure",
    )
    details: Optional[Any] = Field(default=None, description="Additional error details")
