"""
Tests for error handling scenarios and exception handlers.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from pattern_analytics.exceptions import (
    AnalysisCancelled,
    DataUnavailable,
    DetectorFailure,
    NotFoundError,
)
from pattern_analytics.main import general_exception_handler, http_exception_handler
from pattern_analytics.utils.error_responses import ServiceHTTPException
from pattern_analytics.utils.service_error_handler import ServiceErrorHandler


@pytest.fixture
def mock_request():
    """Create a mock FastAPI request."""
    request = MagicMock(spec=Request)
    request.state.correlation_id = "test-correlation-123"
    request.method = "GET"
    request.url.path = "/api/v1/analytics/patterns"
    return request


def _body(response):
    return json.loads(response.body.decode())


@pytest.mark.anyio
async def test_http_exception_handler_404(mock_request):
    exc = HTTPException(status_code=404, detail="Not Found")

    response = await http_exception_handler(mock_request, exc)

    assert isinstance(response, JSONResponse)
    assert response.status_code == 404
    body = _body(response)
    assert body["message"] == "Not Found"
    assert "patient id" in body["hint"].lower()


@pytest.mark.anyio
async def test_http_exception_handler_409(mock_request):
    exc = HTTPException(status_code=409, detail="Analysis already in progress")

    response = await http_exception_handler(mock_request, exc)

    assert response.status_code == 409
    assert "in progress" in _body(response)["hint"]


@pytest.mark.anyio
async def test_http_exception_handler_503(mock_request):
    exc = HTTPException(status_code=503, detail="Service Unavailable")

    response = await http_exception_handler(mock_request, exc)

    assert response.status_code == 503
    assert "unavailable" in _body(response)["hint"].lower()


@pytest.mark.anyio
async def test_http_exception_handler_carries_error_type(mock_request):
    exc = ServiceHTTPException(status_code=404, message="Patient p-1 not found", error_type="NotFoundError")

    response = await http_exception_handler(mock_request, exc)

    body = _body(response)
    assert body["error_type"] == "NotFoundError"
    assert body["correlation_id"] == "test-correlation-123"


@pytest.mark.anyio
async def test_general_exception_handler_production_mode(mock_request):
    with patch.dict("os.environ", {"DEBUG": "False"}):
        exc = ValueError("Sensitive error details")

        response = await general_exception_handler(mock_request, exc)

    assert response.status_code == 500
    body = _body(response)
    assert body["message"] == "Analysis failed"
    # Internal details stay in the log
    assert "Sensitive error details" not in response.body.decode()
    assert "ValueError" not in response.body.decode()
    assert body["path"] == "/api/v1/analytics/patterns"


@pytest.mark.anyio
async def test_general_exception_handler_debug_mode(mock_request):
    with patch.dict("os.environ", {"DEBUG": "True"}):
        exc = ValueError("Test error message")

        response = await general_exception_handler(mock_request, exc)

    body = _body(response)
    assert body["error_type"] == "ValueError"
    assert body["detail"] == "Test error message"


@pytest.mark.anyio
async def test_general_exception_handler_logs_with_traceback(mock_request):
    with patch("pattern_analytics.main.logger") as mock_logger:
        await general_exception_handler(mock_request, Exception("Test error"))

    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.kwargs.get("exc_info") is True


@pytest.mark.anyio
async def test_http_exception_handler_log_levels(mock_request):
    with patch("pattern_analytics.main.logger") as mock_logger:
        await http_exception_handler(mock_request, HTTPException(status_code=500, detail="boom"))
        await http_exception_handler(mock_request, HTTPException(status_code=400, detail="bad"))

    mock_logger.error.assert_called_once()
    mock_logger.warning.assert_called_once()


@pytest.mark.anyio
async def test_error_response_format_consistency(mock_request):
    response = await http_exception_handler(mock_request, HTTPException(status_code=400, detail="x"))

    body = _body(response)
    for field in ("status", "message", "correlation_id", "timestamp", "status_code"):
        assert field in body


@pytest.mark.parametrize(
    "error, status_code, message, error_type",
    [
        (NotFoundError("p-9"), 404, "Patient p-9 not found", "NotFoundError"),
        (
            DataUnavailable("db down", detail="dsn=secret"),
            503,
            "Clinical data is temporarily unavailable",
            "DataUnavailable",
        ),
        (
            AnalysisCancelled("shutdown"),
            503,
            "Analysis cancelled because the service is shutting down",
            "AnalysisCancelled",
        ),
        (KeyError("visits"), 500, "Analysis failed", None),
    ],
)
def test_service_error_mapping(error, status_code, message, error_type, monkeypatch):
    monkeypatch.setenv("DEBUG", "False")

    exc = ServiceErrorHandler.handle_service_error(error, {"operation": "test"}, "corr-1")

    assert exc.status_code == status_code
    assert exc.detail == message
    assert exc.error_type == error_type


def test_unexpected_error_class_only_exposed_in_debug(monkeypatch):
    monkeypatch.setenv("DEBUG", "True")

    exc = ServiceErrorHandler.handle_service_error(KeyError("visits"), {"operation": "test"}, "corr-1")

    assert exc.status_code == 500
    assert exc.detail == "Analysis failed: KeyError"
    assert exc.error_type == "KeyError"


@pytest.mark.anyio
async def test_unexpected_service_error_body_hides_class(mock_request, monkeypatch):
    monkeypatch.setenv("DEBUG", "False")
    exc = ServiceErrorHandler.handle_service_error(KeyError("visits"), {"operation": "test"}, "corr-1")

    response = await http_exception_handler(mock_request, exc)

    body = _body(response)
    assert body["message"] == "Analysis failed"
    assert "error_type" not in body
    assert "KeyError" not in response.body.decode()


def test_detector_failure_keeps_cause():
    cause = ZeroDivisionError("division by zero")

    failure = DetectorFailure("lab_anomaly", cause)

    assert failure.detector_name == "lab_anomaly"
    assert failure.cause is cause
    assert failure.message == "Pattern detector lab_anomaly failed"
    assert "ZeroDivisionError" in failure.detail


@pytest.mark.anyio
async def test_handle_async_service_call_wraps_errors():
    async def failing():
        raise DataUnavailable("down")

    with pytest.raises(HTTPException) as exc_info:
        await ServiceErrorHandler.handle_async_service_call(failing, {"operation": "test"})

    assert exc_info.value.status_code == 503
