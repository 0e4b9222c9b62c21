"""Fixtures for unit tests: scripted provider adapters and a fake clock.

No test here touches the network or sleeps for real: adapters replay a
script of outcomes and the fake clock advances only when slept on.
"""

from typing import Optional, Sequence, Union

import pytest

from structured_inference.llm.delivery import DeliveryLayer
from structured_inference.llm.exceptions import PermanentProviderError, TransientProviderError
from structured_inference.models.enums import FailureKind
from structured_inference.models.llm_models import DeliveryOutcome, Failure, RequestSpec, Success
from structured_inference.models.messages import Message

Step = Union[str, FailureKind]

TRANSIENT = FailureKind.TRANSIENT
PERMANENT = FailureKind.PERMANENT


class ScriptedAdapter:
    """Provider adapter stand-in replaying a fixed script of outcomes.

    Each step is either the completion text or a FailureKind. The last step
    repeats once the script runs out.
    """

    def __init__(self, provider_id: str, script: Sequence[Step], healthy: bool = True):
        self.provider_id = provider_id
        self.script = list(script)
        self.healthy = healthy
        self.requests: list[RequestSpec] = []
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def invoke(self, request: RequestSpec) -> DeliveryOutcome:
        self.requests.append(request)
        step = self.script[min(self.calls, len(self.script)) - 1]
        if step == TRANSIENT:
            return Failure(TRANSIENT, self.provider_id, TransientProviderError("HTTP 503", {"status": 503}))
        if step == PERMANENT:
            return Failure(PERMANENT, self.provider_id, PermanentProviderError("HTTP 401", {"status": 401}))
        return Success(text=step, provider_id=self.provider_id)

    async def health_check(self) -> bool:
        return self.healthy

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Deterministic clock whose sleep() advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_delivery(clock: FakeClock):
    """Factory building a DeliveryLayer over scripted adapters on the fake clock.

    Usage:
        def test_something(make_delivery):
            primary = ScriptedAdapter("primary", [TRANSIENT, "ok"])
            delivery = make_delivery(primary)
    """

    def _make(*adapters: ScriptedAdapter, max_retries: int = 3, backoff_base: float = 1.0) -> DeliveryLayer:
        return DeliveryLayer(
            list(adapters),
            max_retries=max_retries,
            backoff_base=backoff_base,
            sleep=clock.sleep,
            clock=clock,
        )

    return _make


def make_request(text: str = "hello", provider_order: Optional[tuple[str, ...]] = None, **kwargs) -> RequestSpec:
    return RequestSpec(
        conversation=(Message.user(text),),
        provider_order=provider_order or (),
        **kwargs,
    )
