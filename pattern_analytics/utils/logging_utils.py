"""
Logging utilities for consistent logging with correlation IDs.

Provides standardized logging functions that automatically include
correlation IDs from request context.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request


logger = logging.getLogger(__name__)


def get_correlation_id_from_request(request: Optional[Request]) -> str:
    """
    Extract correlation ID from request state or return empty string.

    Args:
        request: FastAPI request object (may be None)

    Returns:
        Correlation ID string or empty string if not available
    """
    if request is None:
        return ""
    return getattr(request.state, "correlation_id", "")


def _format(message: str, correlation_id: Optional[str], context: Dict[str, Any]) -> str:
    formatted_message = f"[{correlation_id}] {message}" if correlation_id else message
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        formatted_message = f"{formatted_message} ({context_str})"
    return formatted_message


def log_with_correlation(
    level: str,
    message: str,
    correlation_id: Optional[str] = None,
    request: Optional[Request] = None,
    exc_info: bool = False,
    **kwargs
) -> None:
    """
    Log a message with correlation ID.

    Args:
        level: Log level ('info', 'warning', 'error', 'debug')
        message: Log message
        correlation_id: Correlation ID (extracted from request if not provided)
        request: FastAPI request object (used to extract correlation ID)
        exc_info: Attach the active exception traceback
        **kwargs: Additional context to include in log message
    """
    if correlation_id is None:
        correlation_id = get_correlation_id_from_request(request)

    log_func = getattr(logger, level.lower(), logger.info)
    log_func(_format(message, correlation_id, kwargs), exc_info=exc_info)


def log_info(message: str, correlation_id: Optional[str] = None, request: Optional[Request] = None, **kwargs) -> None:
    """Log info message with correlation ID."""
    log_with_correlation("info", message, correlation_id, request, **kwargs)


def log_warning(message: str, correlation_id: Optional[str] = None, request: Optional[Request] = None, **kwargs) -> None:
    """Log warning message with correlation ID."""
    log_with_correlation("warning", message, correlation_id, request, **kwargs)


def log_error(message: str, correlation_id: Optional[str] = None, request: Optional[Request] = None, exc_info: bool = False, **kwargs) -> None:
    """Log error message with correlation ID."""
    log_with_correlation("error", message, correlation_id, request, exc_info=exc_info, **kwargs)


def log_service_error(
    error: Exception,
    context: Dict[str, Any],
    correlation_id: Optional[str] = None,
    request: Optional[Request] = None,
) -> None:
    """
    Log a failed service call with its operation context.

    Expected domain errors (unknown patient) log at warning without a
    traceback; everything else logs at error with the traceback attached.
    """
    from ..exceptions import NotFoundError

    message = f"Service error in {context.get('operation', 'unknown operation')}: {type(error).__name__}: {error}"
    extra = {k: v for k, v in context.items() if k != "operation"}

    if isinstance(error, NotFoundError):
        log_warning(message, correlation_id, request, **extra)
    else:
        log_error(message, correlation_id, request, exc_info=True, **extra)
