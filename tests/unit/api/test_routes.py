"""
Unit tests for API routes and error mapping.

Task and delivery dependencies are overridden with scripted stand-ins, so
no provider configuration or network is needed.
"""

import pytest
from fastapi.testclient import TestClient

from structured_inference.api.dependencies import (
    get_classification_task,
    get_delivery_layer,
    get_feedback_task,
)
from structured_inference.llm.exceptions import (
    AllProvidersExhausted,
    DeliveryDeadlineExceeded,
    PermanentProviderError,
)
from structured_inference.llm.prompt_builder import PromptBuilder
from structured_inference.main import app
from structured_inference.models.enums import FailureKind
from structured_inference.models.llm_models import ProviderFailure
from structured_inference.parsing.exceptions import NoCategoryMatch
from structured_inference.retry.context import RetryContext
from structured_inference.retry.engine import GenerationEngine
from structured_inference.retry.exceptions import GenerationFailed
from structured_inference.tasks.classification import ClassificationTask
from structured_inference.tasks.feedback import FeedbackTask
from tests.unit.conftest import ScriptedAdapter


class RaisingTask:
    """Task stand-in raising a fixed error from every entry point."""

    def __init__(self, error: Exception):
        self.error = error

    async def classify(self, text, context=None):
        raise self.error

    async def generate_feedback(self, conversation, scenario):
        raise self.error


def generation_failed() -> GenerationFailed:
    context = RetryContext(max_attempts=2)
    for _ in range(2):
        context.start_attempt()
        context.record(NoCategoryMatch("banana", ["support", "sales", "billing"]), provider_id="primary")
    return GenerationFailed("classification", context)


def providers_exhausted() -> AllProvidersExhausted:
    return AllProvidersExhausted(
        [ProviderFailure("primary", FailureKind.PERMANENT, PermanentProviderError("HTTP 401"), attempts=1)]
    )


@pytest.fixture
def client():
    app.dependency_overrides.clear()
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def scripted_engine(make_delivery, clock):
    def _make(*script) -> GenerationEngine:
        delivery = make_delivery(ScriptedAdapter("primary", list(script)), backoff_base=0.0)
        return GenerationEngine(delivery, PromptBuilder(), retry_delay=0.0, sleep=clock.sleep)

    return _make


def override_task(dependency, task) -> None:
    app.dependency_overrides[dependency] = lambda: task


class TestClassifyEndpoint:
    """Test POST /classify."""

    def test_success(self, client, scripted_engine):
        override_task(get_classification_task, ClassificationTask(scripted_engine("Billing")))

        response = client.post("/classify", json={"text": "I was charged twice"})

        assert response.status_code == 200
        assert response.json() == {"status": "success", "category": "billing"}

    def test_generation_failed_maps_to_422(self, client):
        override_task(get_classification_task, RaisingTask(generation_failed()))

        response = client.post("/classify", json={"text": "???"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "generation_failed"
        assert body["details"]["attempts"] == 2
        assert body["details"]["task"] == "classification"
        assert body["details"]["reason"].startswith("Response must be exactly one of")
        assert [h["error_type"] for h in body["details"]["history"]] == ["NoCategoryMatch"] * 2

    def test_providers_exhausted_maps_to_503(self, client):
        override_task(get_classification_task, RaisingTask(providers_exhausted()))

        response = client.post("/classify", json={"text": "hello"})

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "providers_exhausted"
        assert body["details"]["causes"][0]["provider_id"] == "primary"
        assert body["details"]["total_attempts"] == 1

    def test_deadline_maps_to_504(self, client):
        override_task(
            get_classification_task,
            RaisingTask(DeliveryDeadlineExceeded("Delivery deadline exceeded", {"overrun_seconds": 0.2})),
        )

        response = client.post("/classify", json={"text": "hello"})

        assert response.status_code == 504
        assert response.json()["error"] == "deadline_exceeded"

    def test_unexpected_error_maps_to_500(self, client):
        override_task(get_classification_task, RaisingTask(RuntimeError("boom")))

        response = client.post("/classify", json={"text": "hello"})

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"
        assert "boom" not in response.text

    def test_empty_text_rejected(self, client, scripted_engine):
        override_task(get_classification_task, ClassificationTask(scripted_engine("support")))

        response = client.post("/classify", json={"text": ""})

        assert response.status_code == 422

    def test_whitespace_only_text_rejected(self, client, scripted_engine):
        override_task(get_classification_task, ClassificationTask(scripted_engine("support")))

        response = client.post("/classify", json={"text": "   "})

        assert response.status_code == 422

    def test_request_id_echoed(self, client, scripted_engine):
        override_task(get_classification_task, ClassificationTask(scripted_engine("support")))

        response = client.post("/classify", json={"text": "help"}, headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"


class TestFeedbackEndpoint:
    """Test POST /feedback."""

    def test_success(self, client, scripted_engine):
        engine = scripted_engine("1. Greet the customer.\n2. Be specific.\nGrammar: 80/100 - clear but minor errors")
        override_task(get_feedback_task, FeedbackTask(engine))

        response = client.post(
            "/feedback",
            json={
                "conversation": [
                    {"role": "user", "content": "hi"},
                    {"role": "assistant", "content": "Hello! How can I help?"},
                    {"role": "user", "content": "my order is late"},
                ],
                "scenario": "Late order",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert [item["index"] for item in body["feedback"]] == [1, 2]
        assert body["scores"] == [
            {"label": "Grammar", "score": 80, "max": 100, "justification": "clear but minor errors"}
        ]

    def test_misplaced_system_turn_rejected(self, client):
        override_task(get_feedback_task, RaisingTask(RuntimeError("should not be called")))

        response = client.post(
            "/feedback",
            json={
                "conversation": [
                    {"role": "user", "content": "hi"},
                    {"role": "system", "content": "late instructions"},
                ],
                "scenario": "Late order",
            },
        )

        assert response.status_code == 422

    def test_system_only_conversation_rejected(self, client, scripted_engine):
        override_task(get_feedback_task, FeedbackTask(scripted_engine("Grammar: 80/100 - fine")))

        response = client.post(
            "/feedback",
            json={"conversation": [{"role": "system", "content": "x"}], "scenario": "Greeting"},
        )

        assert response.status_code == 422

    def test_generation_failed_maps_to_422(self, client):
        override_task(get_feedback_task, RaisingTask(generation_failed()))

        response = client.post(
            "/feedback",
            json={"conversation": [{"role": "user", "content": "hi"}], "scenario": "Greeting"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "generation_failed"


class TestHealthEndpoint:
    """Test GET /health."""

    @pytest.mark.parametrize(
        "health, expected_status, expected_code",
        [
            ((True, True), "healthy", 200),
            ((True, False), "degraded", 200),
            ((False, False), "unhealthy", 503),
        ],
    )
    def test_health(self, client, make_delivery, health, expected_status, expected_code):
        delivery = make_delivery(
            ScriptedAdapter("primary", ["x"], healthy=health[0]),
            ScriptedAdapter("backup", ["x"], healthy=health[1]),
        )
        app.dependency_overrides[get_delivery_layer] = lambda: delivery

        response = client.get("/health")

        assert response.status_code == expected_code
        body = response.json()
        assert body["status"] == expected_status
        assert list(body["providers"]) == ["primary", "backup"]
        assert body["providers"]["primary"] == ("ok" if health[0] else "unreachable")

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/health"
