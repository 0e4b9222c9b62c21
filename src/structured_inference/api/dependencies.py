"""
FastAPI dependency injection for the structured inference service.

The delivery layer holds the provider HTTP clients and is built once per
process; the engine and tasks are cheap and built per request on top of it.
"""

from functools import lru_cache

from fastapi import Depends

from structured_inference.config import Settings, settings
from structured_inference.llm.delivery import DeliveryLayer
from structured_inference.llm.factory import build_delivery_layer
from structured_inference.retry.engine import GenerationEngine
from structured_inference.tasks.classification import ClassificationTask
from structured_inference.tasks.classification import build_task_config as build_classification_config
from structured_inference.tasks.feedback import FeedbackTask
from structured_inference.tasks.feedback import build_task_config as build_feedback_config


@lru_cache()
def get_settings() -> Settings:
    return settings


@lru_cache()
def get_delivery_layer() -> DeliveryLayer:
    """
    Get the singleton delivery layer with one pooled client per provider.

    Raises:
        ValueError: If no provider is configured
    """
    return build_delivery_layer(get_settings())


def get_engine(
    delivery: DeliveryLayer = Depends(get_delivery_layer),
    settings: Settings = Depends(get_settings),
) -> GenerationEngine:
    return GenerationEngine.from_settings(delivery, settings)


def get_classification_task(
    engine: GenerationEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
) -> ClassificationTask:
    return ClassificationTask(
        engine,
        build_classification_config(model_hint=settings.MODEL_HINT),
    )


def get_feedback_task(
    engine: GenerationEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
) -> FeedbackTask:
    return FeedbackTask(
        engine,
        build_feedback_config(
            score_max=settings.FEEDBACK_SCORE_MAX,
            require_feedback=settings.FEEDBACK_REQUIRE_ITEMS,
            require_scores=settings.FEEDBACK_REQUIRE_SCORES,
            model_hint=settings.MODEL_HINT,
        ),
    )


async def close_delivery_layer() -> None:
    """Close provider clients if the delivery layer was ever built."""
    if get_delivery_layer.cache_info().currsize:
        await get_delivery_layer().aclose()
        get_delivery_layer.cache_clear()
