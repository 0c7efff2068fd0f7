"""Exceptions for the Chat feature."""
from typing import Any, Dict, Optional

from api.shared.exceptions import ExternalServiceError

COMPLETION_SERVICE = "completion"

OFFLINE_MESSAGE = "AI service is offline. Please make sure Ollama is running: https://ollama.ai"
GENERIC_FAILURE_MESSAGE = (
    "Sorry, I encountered an error processing your request. Please try again."
)


class CompletionError(ExternalServiceError):
    """Base exception for completion service failures."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(COMPLETION_SERVICE, message, error_code, details)


class ServiceUnavailableError(CompletionError):
    """Raised when the completion service cannot be reached."""

    def __init__(self, base_url: str, reason: str):
        super().__init__(
            OFFLINE_MESSAGE,
            "SERVICE_UNAVAILABLE",
            {"base_url": base_url, "reason": reason},
        )


class CompletionTimeoutError(CompletionError):
    """Raised when the completion service does not answer within the deadline."""

    def __init__(self, timeout_seconds: float):
        message = (
            f"The AI service did not respond within {timeout_seconds:g} seconds. "
            "Please try again."
        )
        super().__init__(
            message, "COMPLETION_TIMEOUT", {"timeout_seconds": timeout_seconds}
        )


class GenerationError(CompletionError):
    """Raised when the completion service answers without usable text."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        error_details = {"reason": reason}
        if details:
            error_details.update(details)
        super().__init__(GENERIC_FAILURE_MESSAGE, "GENERATION_ERROR", error_details)
