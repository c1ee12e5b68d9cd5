"""
Translation of analytics errors into HTTP responses.

Callers only ever see a generic "Analysis failed" message for unexpected
errors; the cause is logged with its traceback.
"""

import logging
import os
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from fastapi import HTTPException, Request

from ..exceptions import AnalysisCancelled, DataUnavailable, NotFoundError
from .error_responses import create_http_exception, get_correlation_id
from .logging_utils import log_service_error

logger = logging.getLogger(__name__)

T = TypeVar('T')

GENERIC_FAILURE = "Analysis failed"

TAXONOMY_ERRORS = (NotFoundError, DataUnavailable, AnalysisCancelled)


def _is_debug() -> bool:
    return os.getenv("DEBUG", "False").lower() == "true"


def _status_and_message(error: Exception) -> Tuple[int, str]:
    if isinstance(error, NotFoundError):
        return 404, error.message
    if isinstance(error, DataUnavailable):
        return 503, "Clinical data is temporarily unavailable"
    if isinstance(error, AnalysisCancelled):
        return 503, "Analysis cancelled because the service is shutting down"
    if _is_debug():
        return 500, f"{GENERIC_FAILURE}: {type(error).__name__}"
    return 500, GENERIC_FAILURE


def _public_error_type(error: Exception) -> Optional[str]:
    """Exception class name to expose; internal classes stay hidden outside debug."""
    if _is_debug() or isinstance(error, TAXONOMY_ERRORS):
        return type(error).__name__
    return None


class ServiceErrorHandler:
    """Maps the analytics error taxonomy onto ``ServiceHTTPException``."""

    @staticmethod
    def handle_service_error(
        error: Exception,
        context: Dict[str, Any],
        correlation_id: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> HTTPException:
        """
        Log ``error`` and return the HTTP exception the endpoint should raise.

        Args:
            error: Exception raised by an analytics service
            context: Operation name plus any identifiers worth logging
            correlation_id: Request correlation ID, looked up from ``request`` when omitted
            request: FastAPI request object
        """
        if correlation_id is None and request:
            correlation_id = get_correlation_id(request)

        log_service_error(error, context, correlation_id, request)

        status_code, message = _status_and_message(error)
        return create_http_exception(
            message=message,
            status_code=status_code,
            error_type=_public_error_type(error),
        )

    @staticmethod
    async def handle_async_service_call(
        func: Callable[..., Awaitable[T]],
        context: Dict[str, Any],
        correlation_id: Optional[str] = None,
        request: Optional[Request] = None,
        *args,
        **kwargs
    ) -> T:
        """Await ``func`` and convert any analytics error into an HTTP exception."""
        try:
            return await func(*args, **kwargs)
        except HTTPException:
            raise
        except Exception as exc:
            raise ServiceErrorHandler.handle_service_error(
                exc, context, correlation_id, request
            ) from exc
