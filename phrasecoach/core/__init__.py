"""
Core infrastructure for the Phrase Coach backend: database, errors, logging and metrics.
"""

from .exceptions import (
    ErrorCode,
    PhraseCoachException,
    InvalidArgumentError,
    NotFoundError,
    ExternalServiceError,
)

__all__ = [
    "ErrorCode",
    "PhraseCoachException",
    "InvalidArgumentError",
    "NotFoundError",
    "ExternalServiceError",
]
