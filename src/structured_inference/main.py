"""
FastAPI application entry point for the structured inference service.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from structured_inference.api.dependencies import close_delivery_layer
from structured_inference.api.error_handlers import EXCEPTION_HANDLERS
from structured_inference.api.middleware import RequestTracingMiddleware
from structured_inference.api.routes import router
from structured_inference.config import settings
from structured_inference.logging_config import configure_logging

configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        providers=[p.provider_id for p in settings.PROVIDERS],
        delivery_max_retries=settings.DELIVERY_MAX_RETRIES,
        generation_max_attempts=settings.GENERATION_MAX_ATTEMPTS,
    )
    if not settings.PROVIDERS:
        logger.warning("No providers configured; generation endpoints will fail until PROVIDERS is set")

    yield

    await close_delivery_layer()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Structured output from unreliable LLM providers: classification and feedback",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(RequestTracingMiddleware)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router)

if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "structured_inference.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
    )
