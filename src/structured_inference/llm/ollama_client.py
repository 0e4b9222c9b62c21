"""
Ollama adapter for self-hosted models.

Communicates with the Ollama chat API. Supports:
- JSON output mode (format="json") when structured output is requested
- Generation options passed through ProviderConfig.extra_body["options"]
- Health checks via GET /api/tags
"""

from typing import Any

import structlog

from structured_inference.llm.base_client import ProviderAdapter
from structured_inference.llm.exceptions import TransientProviderError
from structured_inference.models.llm_models import RequestSpec


logger = structlog.get_logger(__name__)


class OllamaAdapter(ProviderAdapter):
    """
    Ollama-specific adapter.

    POST /api/chat with payload:
    {
        "model": "qwen2.5:7b",
        "messages": [{"role": "user", "content": "..."}],
        "stream": false,
        "format": "json",              # only when requested and supported
        "options": {"temperature": 0.1}
    }

    Response:
    {
        "model": "qwen2.5:7b",
        "message": {"role": "assistant", "content": "..."},
        "done": true,
        "eval_count": 150,
        "prompt_eval_count": 50
    }
    """

    endpoint_path = "/api/chat"
    health_path = "/api/tags"

    def build_payload(self, request: RequestSpec) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **self.config.extra_body,
            "model": self.config.resolve_model(request.model_hint),
            "messages": [m.as_payload() for m in request.conversation],
            "stream": False,  # Always False: one complete message per attempt
        }
        if self.wants_structured_output(request):
            payload["format"] = "json"
        return payload

    def extract_text(self, body: Any) -> str:
        message = body.get("message") if isinstance(body, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise TransientProviderError(
                "Malformed Ollama response: no message content",
                details={"provider": self.provider_id, "missing": "message.content"},
            )

        if not body.get("done", True):
            logger.warning("Ollama reported incomplete generation", provider=self.provider_id)

        logger.debug(
            "Ollama generation finished",
            provider=self.provider_id,
            model=body.get("model"),
            prompt_tokens=body.get("prompt_eval_count"),
            completion_tokens=body.get("eval_count"),
        )
        return content
