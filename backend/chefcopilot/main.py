"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from chefcopilot.api import api_router
from chefcopilot.core.config import settings
from chefcopilot.core.exceptions import (
    ConfigurationError,
    DependencyUnavailableError,
    GenerationError,
    InvalidInputError,
)
from chefcopilot.core.logging import get_logger, setup_logging
from chefcopilot.db.session import check_db_health, close_db
from chefcopilot.schemas.common import invalid_input_from_errors
from chefcopilot.services.processors.embedder import shutdown_embedding_service

# Setup logging
setup_logging()
logger = get_logger(__name__)

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events.
    Handles startup and shutdown tasks.
    """
    # Startup
    logger.info(
        f"Starting {settings.APP_NAME} v{APP_VERSION} (environment={settings.APP_ENV})"
    )

    yield

    # Shutdown
    logger.info("Shutting down application")

    await shutdown_embedding_service()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Catalog chatbot for a kitchenware store - Backend API",
    version=APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check() -> JSONResponse:
    """
    Health check endpoint for monitoring.
    Includes database connectivity check.
    """
    db_healthy = await check_db_health()

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "app_name": settings.APP_NAME,
            "environment": settings.APP_ENV,
            "version": APP_VERSION,
            "database": "connected" if db_healthy else "disconnected",
        }
    )


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# ========================================
# Exception Handlers
# ========================================

def _error_body(message: str, **extra) -> dict:
    return {"success": False, "error": message, **extra}


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    """Report every missing or invalid field at once."""
    logger.info(f"Invalid request to {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=400,
        content=_error_body(exc.message, missing_fields=exc.missing_fields),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """FastAPI's own parameter validation, reported in the same shape."""
    error = invalid_input_from_errors(exc.errors())
    return await invalid_input_handler(request, error)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Configuration error on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=500,
        content=_error_body("Service is not configured correctly"),
    )


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    logger.error(f"Answer generation failed on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=502,
        content=_error_body("Answer generation is temporarily unavailable"),
    )


@app.exception_handler(DependencyUnavailableError)
async def dependency_unavailable_handler(
    request: Request, exc: DependencyUnavailableError
) -> JSONResponse:
    logger.error(f"Dependency unavailable on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=503,
        content=_error_body(str(exc)),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled errors.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred. Please try again later."),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chefcopilot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
