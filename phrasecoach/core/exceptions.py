"""
Custom exceptions for the Phrase Coach backend.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    # Input errors
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # External collaborator errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PROCESSING_TIMEOUT = "PROCESSING_TIMEOUT"

    # Generic errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class PhraseCoachException(Exception):
    """Base exception for the Phrase Coach backend."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code


class InvalidArgumentError(PhraseCoachException):
    """Raised when a required input is missing, empty or of the wrong type."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_ARGUMENT,
            details=details,
            status_code=400
        )


class NotFoundError(PhraseCoachException):
    """Raised when a referenced record does not exist."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            message=f"{resource} with id {resource_id} not found",
            error_code=ErrorCode.NOT_FOUND,
            details={"resource": resource, "id": resource_id},
            status_code=404
        )


class ExternalServiceError(PhraseCoachException):
    """
    Raised when the text-generation call fails or returns unparseable content.
    Practice operations recover from it locally with a fallback.
    """

    def __init__(self, message: str = "Text generation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.EXTERNAL_SERVICE_ERROR,
            details=details,
            status_code=503
        )
