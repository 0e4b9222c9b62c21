"""
API routes for classification and feedback generation.

Failures are not caught here: GenerationFailed, AllProvidersExhausted and
DeliveryDeadlineExceeded propagate to the handlers in error_handlers.py.
"""

import time

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from structured_inference.api.dependencies import (
    get_classification_task,
    get_delivery_layer,
    get_feedback_task,
    get_settings,
)
from structured_inference.api.models import (
    ClassifyRequest,
    ClassifyResponse,
    ErrorResponse,
    FeedbackRequest,
    FeedbackResponse,
    HealthResponse,
)
from structured_inference.config import Settings
from structured_inference.llm.delivery import DeliveryLayer
from structured_inference.tasks.classification import ClassificationTask
from structured_inference.tasks.feedback import FeedbackTask

logger = structlog.get_logger(__name__)

router = APIRouter()

FAILURE_RESPONSES = {
    422: {"model": ErrorResponse, "description": "Model output never passed parsing"},
    503: {"model": ErrorResponse, "description": "Every provider failed"},
    504: {"model": ErrorResponse, "description": "Request deadline exceeded"},
}


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    summary="Route a customer message to support, sales or billing",
    responses=FAILURE_RESPONSES,
)
async def classify(
    request: ClassifyRequest,
    task: ClassificationTask = Depends(get_classification_task),
) -> ClassifyResponse:
    start = time.perf_counter()
    category = await task.classify(request.text, request.context or None)
    logger.info(
        "Classification request completed",
        category=category.value,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return ClassifyResponse(category=category)


@router.post(
    "/feedback",
    response_model=FeedbackResponse,
    summary="Generate feedback and scores for a practice conversation",
    responses=FAILURE_RESPONSES,
)
async def feedback(
    request: FeedbackRequest,
    task: FeedbackTask = Depends(get_feedback_task),
) -> FeedbackResponse:
    report = await task.generate_feedback(request.conversation, request.scenario)
    return FeedbackResponse(feedback=report.feedback, scores=report.scores)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Per-provider health check",
    responses={503: {"description": "No provider is healthy"}},
)
async def health_check(
    delivery: DeliveryLayer = Depends(get_delivery_layer),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    results = await delivery.health()
    providers = {pid: "ok" if healthy else "unreachable" for pid, healthy in results.items()}

    if all(results.values()):
        health_status, status_code = "healthy", status.HTTP_200_OK
    elif any(results.values()):
        health_status, status_code = "degraded", status.HTTP_200_OK
    else:
        health_status, status_code = "unhealthy", status.HTTP_503_SERVICE_UNAVAILABLE

    logger.info("Health check", status=health_status, providers=providers)

    response = HealthResponse(
        status=health_status,
        version=settings.APP_VERSION,
        providers=providers,
    )
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))
