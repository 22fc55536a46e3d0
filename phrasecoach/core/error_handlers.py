"""
Error handlers for the FastAPI application.
Every failure is rendered as the standard ``{success: false, error, ...}`` envelope.
"""

from collections import Counter
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from phrasecoach.core.exceptions import ErrorCode, PhraseCoachException
from phrasecoach.schemas.base import ErrorEnvelope

logger = logging.getLogger(__name__)

HTTP_STATUS_CODES = {
    400: ErrorCode.INVALID_ARGUMENT,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.PROCESSING_TIMEOUT,
    422: ErrorCode.VALIDATION_ERROR,
    503: ErrorCode.EXTERNAL_SERVICE_ERROR,
}


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        'request_id': getattr(request.state, 'request_id', None),
        'method': request.method,
        'path': request.url.path,
    }


class ErrorHandler:
    """
    Converts exceptions to error envelopes and counts them per error code.
    """

    def __init__(self):
        self.error_counts: Counter = Counter()

    def envelope(
        self,
        request: Request,
        status_code: int,
        error_code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        self.error_counts[error_code.value] += 1
        body = ErrorEnvelope(
            error=message,
            error_code=error_code.value,
            details=details or None,
            request_id=getattr(request.state, 'request_id', None),
        )
        return JSONResponse(
            status_code=status_code,
            content=jsonable_encoder(body.model_dump(by_alias=True)),
        )

    async def handle_app_exception(self, request: Request, exc: PhraseCoachException) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc.message}",
            extra={**_request_context(request), 'error_code': exc.error_code.value, 'status_code': exc.status_code},
        )
        return self.envelope(request, exc.status_code, exc.error_code, exc.message, exc.details)

    async def handle_validation_error(self, request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report each invalid field with its location, message and pydantic error type."""
        fields = [
            {
                'field': '.'.join(str(part) for part in error['loc']),
                'message': error['msg'],
                'type': error['type'],
            }
            for error in exc.errors()
        ]
        logger.warning(
            f"Request validation failed on {len(fields)} field(s)",
            extra={**_request_context(request), 'error_code': ErrorCode.VALIDATION_ERROR.value},
        )
        return self.envelope(
            request,
            422,
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            {'validation_errors': fields},
        )

    async def handle_http_exception(self, request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error_code = HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_SERVER_ERROR)
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail}",
            extra={**_request_context(request), 'status_code': exc.status_code},
        )
        return self.envelope(request, exc.status_code, error_code, str(exc.detail))

    async def handle_unexpected_exception(self, request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled {type(exc).__name__}: {exc}",
            exc_info=True,
            extra=_request_context(request),
        )
        return self.envelope(request, 500, ErrorCode.INTERNAL_SERVER_ERROR, "An internal server error occurred")

    def get_error_statistics(self) -> Dict[str, Any]:
        return {
            'error_counts': dict(self.error_counts),
            'total_errors': sum(self.error_counts.values()),
        }


# Shared by the app and the health endpoint
error_handler = ErrorHandler()


def setup_error_handlers(app: FastAPI) -> None:
    """
    Register the envelope handlers on the FastAPI application.
    FastAPI's HTTPException subclasses Starlette's, so one registration covers both.
    """
    app.add_exception_handler(PhraseCoachException, error_handler.handle_app_exception)
    app.add_exception_handler(RequestValidationError, error_handler.handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, error_handler.handle_http_exception)
    app.add_exception_handler(Exception, error_handler.handle_unexpected_exception)
