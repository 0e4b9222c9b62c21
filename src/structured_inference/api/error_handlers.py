"""
FastAPI exception handlers for structured error responses.

Maps terminal pipeline failures to HTTP status codes:
    GenerationFailed         -> 422 (model never produced parseable output)
    AllProvidersExhausted    -> 503 (every provider failed)
    DeliveryDeadlineExceeded -> 504 (request budget elapsed)
    anything else            -> 500
"""

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from structured_inference.api.models import ErrorResponse
from structured_inference.llm.exceptions import AllProvidersExhausted, DeliveryDeadlineExceeded
from structured_inference.retry.exceptions import GenerationFailed

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, error: str, message: str, details: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def generation_failed_handler(request: Request, exc: GenerationFailed) -> JSONResponse:
    logger.warning(
        "Generation failed",
        task=exc.task_name,
        attempts=exc.attempts,
        reason=exc.reason,
    )
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "generation_failed",
        str(exc),
        details={
            "task": exc.task_name,
            "attempts": exc.attempts,
            "reason": exc.reason,
            "history": [
                {"attempt": h["attempt"], "provider": h["provider"], "error_type": h["error_type"]}
                for h in exc.history
            ],
        },
    )


async def providers_exhausted_handler(request: Request, exc: AllProvidersExhausted) -> JSONResponse:
    logger.error(
        "All providers exhausted",
        total_attempts=exc.total_attempts,
        causes=exc.details["causes"],
    )
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "providers_exhausted",
        "No model provider could answer the request",
        details={"total_attempts": exc.total_attempts, "causes": exc.details["causes"]},
    )


async def deadline_exceeded_handler(request: Request, exc: DeliveryDeadlineExceeded) -> JSONResponse:
    logger.error("Request deadline exceeded", details=exc.details)
    return _error_response(
        status.HTTP_504_GATEWAY_TIMEOUT,
        "deadline_exceeded",
        exc.message,
        details=exc.details,
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error", error_type=type(exc).__name__)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    GenerationFailed: generation_failed_handler,
    AllProvidersExhausted: providers_exhausted_handler,
    DeliveryDeadlineExceeded: deadline_exceeded_handler,
    Exception: generic_error_handler,
}
