"""Shared exceptions for the support chat API."""
from typing import Any, Dict, Optional


class SupportChatException(Exception):
    """Base exception for the support chat API."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(SupportChatException):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(SupportChatException):
    """Raised when a resource is not found."""

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})


class StorageError(SupportChatException):
    """Raised when persistence operations fail."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "STORAGE_ERROR",
    ):
        super().__init__(message, error_code, details)


class ConstraintViolationError(StorageError):
    """Raised when a write breaks a schema constraint (foreign key, check, unique)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, "CONSTRAINT_VIOLATION")


class ExternalServiceError(SupportChatException):
    """Raised when external service calls fail."""

    def __init__(
        self,
        service: str,
        message: str,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.service = service
        super().__init__(message, error_code, {"service": service, **(details or {})})
