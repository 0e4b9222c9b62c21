"""
Unit tests for GenerationEngine.

Tests the corrective-feedback retry loop: attempt budget, corrective turns,
delays between attempts and propagation of delivery failures.
"""

import pytest
from prometheus_client import REGISTRY

from structured_inference.llm.exceptions import AllProvidersExhausted, DeliveryDeadlineExceeded
from structured_inference.llm.prompt_builder import PromptBuilder
from structured_inference.models.enums import Role
from structured_inference.models.messages import Message
from structured_inference.models.task_models import TaskConfig
from structured_inference.parsing.classification import CategoryParser
from structured_inference.parsing.exceptions import NoCategoryMatch
from structured_inference.retry.context import RetryContext
from structured_inference.retry.engine import GenerationEngine
from structured_inference.retry.exceptions import GenerationFailed
from tests.unit.conftest import PERMANENT, ScriptedAdapter


def category_task(name: str = "classification", **overrides) -> TaskConfig:
    values = {
        "name": name,
        "instructions": "Answer with one category.",
        "parser": CategoryParser(["support", "sales", "billing"]),
    }
    values.update(overrides)
    return TaskConfig(**values)


@pytest.fixture
def make_engine(make_delivery, clock):
    """Factory building an engine over scripted adapters; delays go to the fake clock."""

    def _make(*adapters: ScriptedAdapter, **kwargs) -> GenerationEngine:
        kwargs.setdefault("max_attempts", 3)
        kwargs.setdefault("retry_delay", 0.5)
        return GenerationEngine(
            make_delivery(*adapters, backoff_base=0.0),
            PromptBuilder(),
            sleep=clock.sleep,
            **kwargs,
        )

    return _make


def sample_value(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestGenerationEngine:
    """Test the retry loop."""

    @pytest.mark.asyncio
    async def test_first_output_accepted(self, make_engine, clock):
        primary = ScriptedAdapter("primary", ["Billing"])
        engine = make_engine(primary)

        assert await engine.run([Message.user("my invoice is wrong")], category_task()) == "billing"
        assert primary.calls == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_rejected_output_gets_corrective_turn(self, make_engine, clock):
        primary = ScriptedAdapter("primary", ["banana", "sales"])
        engine = make_engine(primary)

        result = await engine.run([Message.user("how much is it?")], category_task())

        assert result == "sales"
        assert primary.calls == 2
        first, second = primary.requests
        assert len(first.conversation) == 2
        assert len(second.conversation) == 3
        assert second.conversation[:2] == first.conversation
        correction = second.conversation[2]
        assert correction.role == Role.USER
        assert "Response must be exactly one of: support, sales, billing" in correction.content
        assert "banana" in correction.content
        assert clock.sleeps == [0.5]

    @pytest.mark.asyncio
    async def test_stops_after_exactly_max_attempts(self, make_engine, clock):
        primary = ScriptedAdapter("primary", ["banana"])
        engine = make_engine(primary, max_attempts=3)

        with pytest.raises(GenerationFailed) as exc_info:
            await engine.run([Message.user("hello")], category_task())

        error = exc_info.value
        assert primary.calls == 3
        assert error.attempts == 3
        assert isinstance(error.last_error, NoCategoryMatch)
        assert [h["attempt"] for h in error.history] == [1, 2, 3]
        assert all(h["provider"] == "primary" for h in error.history)
        assert "classification" in str(error)
        assert "NoCategoryMatch" in str(error)
        # Each retry extends the conversation by one corrective turn
        assert [len(r.conversation) for r in primary.requests] == [2, 3, 4]
        # Delay grows with the attempt number; none after the final attempt
        assert clock.sleeps == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_task_budget_overrides_default(self, make_engine):
        primary = ScriptedAdapter("primary", ["banana"])
        engine = make_engine(primary, max_attempts=5)

        with pytest.raises(GenerationFailed) as exc_info:
            await engine.run([Message.user("hello")], category_task(max_attempts=1))

        assert primary.calls == 1
        assert exc_info.value.attempts == 1

    @pytest.mark.asyncio
    async def test_provider_exhaustion_propagates_unchanged(self, make_engine):
        primary = ScriptedAdapter("primary", [PERMANENT])
        backup = ScriptedAdapter("backup", [PERMANENT])
        engine = make_engine(primary, backup)

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await engine.run([Message.user("hello")], category_task())

        assert [c.provider_id for c in exc_info.value.causes] == ["primary", "backup"]

    @pytest.mark.asyncio
    async def test_fallback_provider_used_by_engine(self, make_engine):
        primary = ScriptedAdapter("primary", [PERMANENT])
        backup = ScriptedAdapter("backup", ["support"])
        engine = make_engine(primary, backup)

        assert await engine.run([Message.user("it crashes")], category_task()) == "support"

    @pytest.mark.asyncio
    async def test_deadline_stops_retry_delay(self, make_engine, clock):
        primary = ScriptedAdapter("primary", ["banana", "support"])
        engine = make_engine(primary, retry_delay=5.0, deadline_seconds=2.0)

        with pytest.raises(DeliveryDeadlineExceeded):
            await engine.run([Message.user("hello")], category_task())

        assert primary.calls == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, make_engine):
        task = category_task(name="metrics-check")
        labels_rejected = {"task": "metrics-check", "outcome": "rejected"}
        labels_parsed = {"task": "metrics-check", "outcome": "parsed"}
        labels_failure = {"task": "metrics-check", "error_type": "NoCategoryMatch"}
        before = (
            sample_value("generation_attempts_total", labels_rejected),
            sample_value("generation_attempts_total", labels_parsed),
            sample_value("parse_failures_total", labels_failure),
        )

        engine = make_engine(ScriptedAdapter("primary", ["banana", "sales"]))
        await engine.run([Message.user("hello")], task)

        assert sample_value("generation_attempts_total", labels_rejected) == before[0] + 1
        assert sample_value("generation_attempts_total", labels_parsed) == before[1] + 1
        assert sample_value("parse_failures_total", labels_failure) == before[2] + 1

    def test_invalid_budget(self, make_delivery):
        with pytest.raises(ValueError):
            GenerationEngine(make_delivery(ScriptedAdapter("a", ["x"])), max_attempts=0)

    def test_from_settings(self, make_delivery, test_settings):
        test_settings.GENERATION_MAX_ATTEMPTS = 5
        test_settings.MODEL_HINT = "fast"

        engine = GenerationEngine.from_settings(make_delivery(ScriptedAdapter("a", ["x"])), test_settings)

        assert engine.max_attempts == 5
        assert engine.prompt_builder.default_model_hint == "fast"


class TestRetryContext:
    """Test attempt bookkeeping."""

    def test_records_history(self):
        context = RetryContext(max_attempts=2)
        error = NoCategoryMatch("banana", ["support"])

        context.start_attempt()
        context.record(error, provider_id="primary")

        assert context.last_error is error
        assert context.history[0]["error_type"] == "NoCategoryMatch"
        assert context.history[0]["content_snippet"] == "banana"
        assert not context.exhausted

        context.start_attempt()
        assert context.exhausted

    def test_invalid_budget(self):
        with pytest.raises(ValueError):
            RetryContext(max_attempts=0)
