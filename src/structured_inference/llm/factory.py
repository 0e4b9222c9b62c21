"""Build provider adapters and the delivery layer from settings."""

from typing import Optional

import httpx

from structured_inference.config import ProviderConfig, Settings
from structured_inference.llm.base_client import ProviderAdapter
from structured_inference.llm.delivery import DeliveryLayer
from structured_inference.llm.ollama_client import OllamaAdapter
from structured_inference.llm.openai_compatible import OpenAICompatibleAdapter

ADAPTER_CLASSES: dict[str, type[ProviderAdapter]] = {
    "openai": OpenAICompatibleAdapter,
    "ollama": OllamaAdapter,
}


def build_adapter(
    config: ProviderConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderAdapter:
    """
    Factory for provider adapters.

    Extend by adding a ProviderAdapter subclass and mapping its kind here.
    """
    try:
        adapter_class = ADAPTER_CLASSES[config.kind]
    except KeyError:
        raise ValueError(f"Unknown provider kind: {config.kind}") from None
    return adapter_class(config, transport=transport)


def build_delivery_layer(settings: Settings) -> DeliveryLayer:
    """
    Build the delivery layer for the configured providers, primary first.

    Raises:
        ValueError: If no provider is configured
    """
    if not settings.PROVIDERS:
        raise ValueError("No providers configured (set the PROVIDERS environment variable)")
    return DeliveryLayer(
        [build_adapter(config) for config in settings.PROVIDERS],
        max_retries=settings.DELIVERY_MAX_RETRIES,
        backoff_base=settings.DELIVERY_BACKOFF_BASE,
    )
