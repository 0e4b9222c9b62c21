"""
Delivery layer: ordered provider fallback with per-provider retry.

Policy:
    1. Try providers in RequestSpec.provider_order (or the layer's default order)
    2. Transient failure: linear backoff (backoff_base x attempt), retry same provider
    3. Permanent failure: move to the next provider immediately
    4. max_retries attempts used up: move to the next provider, reset the counter
    5. Every provider failed: raise AllProvidersExhausted with per-provider causes

Total attempts are bounded by len(providers) x max_retries. Providers are never
raced: fallback is sequential so the caller always knows which provider
produced the final success or failure.

Usage:
    delivery = DeliveryLayer([primary_adapter, backup_adapter], max_retries=3)
    text = await delivery.send(request_spec)
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Optional, Sequence

import structlog

from structured_inference.llm.base_client import ProviderAdapter
from structured_inference.llm.exceptions import AllProvidersExhausted, DeliveryDeadlineExceeded
from structured_inference.models.llm_models import (
    DeliveryOutcome,
    Failure,
    ProviderFailure,
    RequestSpec,
    Success,
)
from structured_inference.monitoring.metrics import (
    delivery_exhausted_total,
    provider_attempts_total,
    provider_failures_total,
)

logger = structlog.get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class DeliveryState:
    """
    Retry/fallback state for a single delivery.

    Created per call and discarded on return, which keeps DeliveryLayer
    itself free of mutable state and safe to share between concurrent calls.

    Attributes:
        provider_order: Provider ids in fallback order
        max_retries: Attempts allowed per provider
        backoff_base: Seconds of delay per attempt number
        provider_index: Index of the provider currently being tried
        attempt: Attempts made on the current provider
        total_attempts: Attempts made across all providers
        causes: Final failure of each provider already given up on
    """

    provider_order: tuple[str, ...]
    max_retries: int
    backoff_base: float
    provider_index: int = 0
    attempt: int = 0
    total_attempts: int = 0
    causes: list[ProviderFailure] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.provider_index >= len(self.provider_order)

    @property
    def current_provider(self) -> str:
        return self.provider_order[self.provider_index]

    def start_attempt(self) -> int:
        """Count a new attempt on the current provider and return its number (1-indexed)."""
        self.attempt += 1
        self.total_attempts += 1
        return self.attempt

    def record_failure(self, failure: Failure) -> Optional[float]:
        """
        Apply a failed attempt to the state.

        Returns:
            Backoff delay in seconds before retrying the same provider, or None
            when the state advanced to the next provider.
        """
        if failure.is_transient and self.attempt < self.max_retries:
            return self.backoff_base * self.attempt

        self.causes.append(
            ProviderFailure(
                provider_id=failure.provider_id,
                kind=failure.kind,
                error=failure.error,
                attempts=self.attempt,
            )
        )
        self.provider_index += 1
        self.attempt = 0
        return None


class DeliveryLayer:
    """
    Sends a normalized request to the first provider able to answer it.

    Attributes:
        adapters: Provider adapters keyed by provider_id
        default_order: Provider order used when a request does not specify one
        max_retries: Attempts per provider
        backoff_base: Linear backoff unit in seconds
    """

    def __init__(
        self,
        adapters: Sequence[ProviderAdapter],
        max_retries: int = 3,
        backoff_base: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize delivery layer.

        Args:
            adapters: Provider adapters, primary first
            max_retries: Attempts per provider (>= 1)
            backoff_base: Seconds of delay per attempt number on transient failures
            sleep: Awaitable sleep (tests inject a no-op to skip real delays)
            clock: Time source for deadlines (default: running event loop time)
        """
        if not adapters:
            raise ValueError("DeliveryLayer needs at least one provider adapter")
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")

        self.adapters: dict[str, ProviderAdapter] = {}
        for adapter in adapters:
            if adapter.provider_id in self.adapters:
                raise ValueError(f"Duplicate provider id: {adapter.provider_id}")
            self.adapters[adapter.provider_id] = adapter

        self.default_order = tuple(self.adapters)
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._sleep = sleep
        self._clock = clock

        logger.info(
            "DeliveryLayer initialized",
            providers=list(self.default_order),
            max_retries=max_retries,
            backoff_base=backoff_base,
        )

    def resolve_order(self, request: RequestSpec) -> tuple[str, ...]:
        """
        Provider order for a request.

        Raises:
            ValueError: If the request names a provider that is not configured
        """
        order = request.provider_order or self.default_order
        unknown = [p for p in order if p not in self.adapters]
        if unknown:
            raise ValueError(f"Unknown provider id(s): {', '.join(unknown)}")
        return order

    async def send(self, request: RequestSpec, *, deadline: Optional[float] = None) -> str:
        """
        Deliver the request and return the completion text.

        Raises:
            AllProvidersExhausted: Every provider failed
            DeliveryDeadlineExceeded: The deadline passed at a suspension point
        """
        success = await self.deliver(request, deadline=deadline)
        return success.text

    async def deliver(self, request: RequestSpec, *, deadline: Optional[float] = None) -> Success:
        """
        Deliver the request and return the Success with provider attribution.

        Args:
            request: Normalized request
            deadline: Absolute deadline on the clock's timeline (seconds), or None

        Returns:
            Success carrying text, provider_id and attempts spent on that provider
        """
        state = DeliveryState(
            provider_order=self.resolve_order(request),
            max_retries=self.max_retries,
            backoff_base=self.backoff_base,
        )

        while not state.exhausted:
            provider_id = state.current_provider
            attempt = state.start_attempt()

            outcome = await self._invoke(self.adapters[provider_id], request, deadline)

            if isinstance(outcome, Success):
                provider_attempts_total.labels(provider=provider_id, outcome="success").inc()
                logger.info(
                    "Delivery succeeded",
                    provider=provider_id,
                    attempt=attempt,
                    total_attempts=state.total_attempts,
                )
                return replace(outcome, attempts=attempt)

            self._report_failure(outcome, attempt)
            delay = state.record_failure(outcome)
            if delay is not None:
                await self._backoff(delay, deadline)
            elif not state.exhausted:
                logger.warning(
                    "Falling back to next provider",
                    failed_provider=provider_id,
                    next_provider=state.current_provider,
                )

        delivery_exhausted_total.inc()
        logger.error(
            "All providers exhausted",
            total_attempts=state.total_attempts,
            causes=[c.as_dict() for c in state.causes],
        )
        raise AllProvidersExhausted(state.causes)

    def now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    def remaining(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        remaining = deadline - self.now()
        if remaining <= 0:
            raise DeliveryDeadlineExceeded(
                "Delivery deadline exceeded",
                details={"overrun_seconds": round(-remaining, 3)},
            )
        return remaining

    async def _invoke(
        self,
        adapter: ProviderAdapter,
        request: RequestSpec,
        deadline: Optional[float],
    ) -> DeliveryOutcome:
        remaining = self.remaining(deadline)
        if remaining is None:
            return await adapter.invoke(request)
        try:
            return await asyncio.wait_for(adapter.invoke(request), timeout=remaining)
        except asyncio.TimeoutError as e:
            raise DeliveryDeadlineExceeded(
                "Delivery deadline exceeded during provider call",
                details={"provider": adapter.provider_id},
            ) from e

    async def _backoff(self, delay: float, deadline: Optional[float]) -> None:
        remaining = self.remaining(deadline)
        if remaining is not None and delay >= remaining:
            raise DeliveryDeadlineExceeded(
                "Delivery deadline would pass during backoff",
                details={"backoff_seconds": delay, "remaining_seconds": round(remaining, 3)},
            )
        logger.debug("Applying linear backoff", backoff_seconds=delay)
        await self._sleep(delay)

    def _report_failure(self, failure: Failure, attempt: int) -> None:
        provider_attempts_total.labels(provider=failure.provider_id, outcome=failure.kind.value).inc()
        provider_failures_total.labels(provider=failure.provider_id, kind=failure.kind.value).inc()
        logger.warning(
            "Provider attempt failed",
            provider=failure.provider_id,
            attempt=attempt,
            max_retries=self.max_retries,
            kind=failure.kind.value,
            error=failure.error.message,
            details=failure.error.details,
        )

    async def health(self) -> dict[str, bool]:
        """Health of each configured provider, in default order."""
        return {pid: await self.adapters[pid].health_check() for pid in self.default_order}

    async def aclose(self) -> None:
        for adapter in self.adapters.values():
            await adapter.aclose()
