"""
Medical Pattern Analytics - Main Application Entry Point
Serves the pattern detection and risk analytics engine and runs periodic analysis
"""

# Load environment variables
import os
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from datetime import datetime, timezone
import logging

import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pattern_analytics.api.v1.api import api_router as v1_router
from pattern_analytics.config import settings
from pattern_analytics.di import ServiceContainer
from pattern_analytics.utils.error_responses import create_error_response, get_hint_for_status_code


container: Optional[ServiceContainer] = None

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle management - startup and shutdown
    """
    global container

    logger.info("Initializing %s...", settings.PROJECT_NAME)
    try:
        container = ServiceContainer(settings=settings)
        await container.startup()
        app.state.container = container
        logger.info("%s initialized successfully", settings.PROJECT_NAME)
    except Exception as e:
        logger.error("Initialization error: %s", e)
        raise

    yield

    logger.info("Shutting down %s...", settings.PROJECT_NAME)
    if container:
        await container.shutdown()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Population pattern detection and patient risk analytics",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.include_router(v1_router, prefix=settings.API_V1_STR)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.get("/health", include_in_schema=False)
async def root_health():
    """
    Lightweight health check for container orchestration.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
    }


# ==================== ERROR HANDLERS ====================

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled exceptions.
    The caller only sees a generic failure; the cause goes to the log.
    """
    correlation_id = getattr(request.state, "correlation_id", uuid.uuid4().hex)

    logger.error(
        "Unhandled exception [%s] at %s %s: %s",
        correlation_id,
        request.method,
        request.url.path,
        str(exc),
        exc_info=True
    )

    is_debug = os.getenv("DEBUG", "False").lower() == "true"
    payload = create_error_response(
        message="Analysis failed",
        status_code=500,
        correlation_id=correlation_id,
        error_type=type(exc).__name__ if is_debug else None,
        hint=get_hint_for_status_code(500),
        detail=str(exc) if is_debug else None,
        path=str(request.url.path),
    )
    return JSONResponse(status_code=500, content=payload)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    HTTP exception handler for FastAPI HTTPException.
    Provides consistent error response format with helpful hints.
    """
    correlation_id = getattr(request.state, "correlation_id", uuid.uuid4().hex)

    if exc.status_code >= 500:
        logger.error("HTTPException [%s] %s: %s", correlation_id, exc.status_code, exc.detail)
    elif exc.status_code >= 400:
        logger.warning("HTTPException [%s] %s: %s", correlation_id, exc.status_code, exc.detail)
    else:
        logger.info("HTTPException [%s] %s: %s", correlation_id, exc.status_code, exc.detail)

    payload = create_error_response(
        message=str(exc.detail) if exc.detail else "Request failed",
        status_code=exc.status_code,
        correlation_id=correlation_id,
        error_type=getattr(exc, "error_type", None),
        hint=get_hint_for_status_code(exc.status_code),
    )
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


# ==================== MAIN ====================

def run() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    logger.info("Starting %s on %s:%s", settings.PROJECT_NAME, host, port)

    uvicorn.run(
        "pattern_analytics.main:app",
        host=host,
        port=port,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
