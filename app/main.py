"""Main application module for the face enrollment and recognition service."""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import router as api_v1_router
from app.core.config import settings
from app.core.container import ServiceContainer
from app.core.exceptions import ServiceUnavailableError
from app.core.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[Any, None]:
    """Handle application startup and shutdown events.

    Args:
        app: FastAPI application instance

    Returns:
        AsyncGenerator[Any, None]: Async context manager for app lifecycle
    """
    logger.info(
        "Starting up face recognition service",
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
    )

    container = ServiceContainer()
    await container.initialize()
    app.state.container = container
    logger.info("Initialized application services")

    try:
        yield
    finally:
        logger.info("Shutting down face recognition service")
        await container.cleanup()
        app.state.container = None
        logger.info("Cleaned up application resources")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.exception_handler(ServiceUnavailableError)
async def service_unavailable_handler(request: Request, exc: ServiceUnavailableError) -> JSONResponse:
    """Report services that are not ready yet as 503."""
    logger.warning("Service unavailable", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=503, content={"detail": exc.message})


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint.

    Returns:
        dict: Health status
    """
    logger.info("Health check requested")
    return {"status": "healthy"}
