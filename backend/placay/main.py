"""Placay FastAPI Application.

Main entry point for the planner API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from placay.api import router
from placay.api.routes import shutdown_services
from placay.config import get_settings
from placay.models import (
    AppError,
    ErrorCode,
    NotFoundError,
    PlacayError,
    TransientNetworkError,
    ValidationError,
)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    await shutdown_services()


app = FastAPI(
    title="Placay API",
    description="Tour planning, favorites and likes",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error.model_dump(mode="json")},
    )


def status_for(exc: PlacayError) -> int:
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, TransientNetworkError):
        return 502
    return 500


# Global exception handlers
@app.exception_handler(PlacayError)
async def placay_exception_handler(request: Request, exc: PlacayError):
    """Handle planner errors raised by the services."""
    status_code = status_for(exc)
    log = logger.warning if status_code >= 500 else logger.info
    log(f"[API] {request.method} {request.url.path} -> {exc.code.value}: {exc.message}")
    return _error_response(status_code, exc.to_app_error())


@app.exception_handler(PydanticValidationError)
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: Exception):
    """Handle request and model validation errors."""
    return _error_response(
        422,
        AppError(
            code=ErrorCode.VALIDATION_ERROR,
            message=str(exc),
            user_message="Invalid request format. Please check your input.",
        ),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception(f"[API] Unhandled error on {request.method} {request.url.path}")
    return _error_response(
        500,
        AppError(
            code=ErrorCode.API_ERROR,
            message=str(exc),
            user_message="Something went wrong. Please try again.",
        ),
    )


# Include API routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
