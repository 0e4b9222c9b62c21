"""
Provider adapters and the delivery layer.

Components:
- ProviderAdapter: Abstract base class for provider adapters
- OpenAICompatibleAdapter: Chat-completions protocol (OpenAI, Groq, OpenRouter, ...)
- OllamaAdapter: Ollama /api/chat
- DeliveryLayer: Ordered fallback with per-provider retry
- PromptBuilder: Builds RequestSpecs from conversations and task configs
- text_utils: Completion normalization and truncation
- exceptions: Provider error taxonomy
"""

from structured_inference.llm.base_client import ProviderAdapter, classify_status
from structured_inference.llm.delivery import DeliveryLayer, DeliveryState
from structured_inference.llm.exceptions import (
    AllProvidersExhausted,
    DeliveryDeadlineExceeded,
    PermanentProviderError,
    ProviderError,
    TransientProviderError,
)
from structured_inference.llm.factory import build_adapter, build_delivery_layer
from structured_inference.llm.ollama_client import OllamaAdapter
from structured_inference.llm.openai_compatible import OpenAICompatibleAdapter
from structured_inference.llm.prompt_builder import PromptBuilder

__all__ = [
    "ProviderAdapter",
    "classify_status",
    "OpenAICompatibleAdapter",
    "OllamaAdapter",
    "DeliveryLayer",
    "DeliveryState",
    "PromptBuilder",
    "build_adapter",
    "build_delivery_layer",
    "ProviderError",
    "TransientProviderError",
    "PermanentProviderError",
    "AllProvidersExhausted",
    "DeliveryDeadlineExceeded",
]
