"""
Error payloads returned by the analytics API.

Every failure, whether raised by a service or by FastAPI itself, is rendered
with the same keys so clients can rely on ``status``/``message``/``hint``.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

STATUS_HINTS: Dict[int, str] = {
    400: "Bad request. Please check your input parameters.",
    404: "No patient matches that identifier. Check the patient ID.",
    409: "An analysis run is already in progress. Try again when it completes.",
    422: "Request validation failed. Check your input parameters.",
    500: "The analysis could not be completed. The cause has been logged.",
    503: "Clinical data is temporarily unavailable. Please try again in a moment.",
}


class ServiceHTTPException(HTTPException):
    """HTTPException that remembers which domain error produced it."""

    def __init__(self, status_code: int, message: str, error_type: Optional[str] = None):
        super().__init__(status_code=status_code, detail=message)
        self.error_type = error_type


def create_error_response(
    message: str,
    status_code: int = 500,
    correlation_id: Optional[str] = None,
    error_type: Optional[str] = None,
    hint: Optional[str] = None,
    detail: Optional[str] = None,
    path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the JSON body for an error response.

    ``detail`` is only passed in debug mode; optional keys are left out
    entirely when empty.
    """
    response: Dict[str, Any] = {
        "status": "error",
        "message": message,
        "correlation_id": correlation_id or uuid.uuid4().hex,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status_code": status_code,
    }

    optional = {"error_type": error_type, "hint": hint, "detail": detail, "path": path}
    response.update({key: value for key, value in optional.items() if value})
    return response


def get_hint_for_status_code(status_code: int) -> Optional[str]:
    return STATUS_HINTS.get(status_code)


def create_http_exception(
    message: str,
    status_code: int = 500,
    error_type: Optional[str] = None,
) -> ServiceHTTPException:
    return ServiceHTTPException(status_code=status_code, message=message, error_type=error_type)


def get_correlation_id(request: Request) -> str:
    """Correlation id set by the middleware, or a fresh one outside a request."""
    return getattr(request.state, "correlation_id", uuid.uuid4().hex)
