"""
Adapter for OpenAI-compatible chat-completions providers.

Covers OpenAI, Groq, Together, OpenRouter, Mistral and self-hosted servers
exposing POST {base_url}/chat/completions.
"""

from typing import Any

from structured_inference.llm.base_client import ProviderAdapter
from structured_inference.llm.exceptions import TransientProviderError
from structured_inference.models.llm_models import RequestSpec


class OpenAICompatibleAdapter(ProviderAdapter):
    """
    Chat-completions adapter.

    Request:
    {
        "model": "gpt-4o-mini",
        "messages": [{"role": "system", "content": "..."}, ...],
        "response_format": {"type": "json_object"}   # only when requested and supported
    }

    Response:
    {
        "choices": [{"message": {"role": "assistant", "content": "..."}}],
        ...
    }
    """

    endpoint_path = "/chat/completions"
    health_path = "/models"

    def build_payload(self, request: RequestSpec) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **self.config.extra_body,
            "model": self.config.resolve_model(request.model_hint),
            "messages": [m.as_payload() for m in request.conversation],
        }
        if self.wants_structured_output(request):
            payload["response_format"] = {"type": "json_object"}
        return payload

    def extract_text(self, body: Any) -> str:
        choices = body.get("choices") if isinstance(body, dict) else None
        if not isinstance(choices, list) or not choices:
            raise TransientProviderError(
                "Malformed response envelope: no choices",
                details={"provider": self.provider_id, "missing": "choices[0]"},
            )
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise TransientProviderError(
                "Malformed response envelope: no message content",
                details={"provider": self.provider_id, "missing": "choices[0].message.content"},
            )
        return content
