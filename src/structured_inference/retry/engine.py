"""
Generation engine with corrective-feedback retry.

This module implements the GenerationEngine that turns a conversation and a
TaskConfig into the task's typed result. It is the single entry point that
ties prompt assembly, delivery and parsing together.

Retry Policy:
    1. Build the request (task system turn + consolidated conversation turn)
    2. Deliver it and parse the completion with the task parser
    3. Ok: return the value immediately
    4. Err: append one corrective user turn (reason + rejected output),
       wait retry_delay x attempt and deliver again
    5. Budget spent: raise GenerationFailed with the full attempt history

Delivery failures are terminal here: AllProvidersExhausted and
DeliveryDeadlineExceeded propagate unchanged.

Usage:
    engine = GenerationEngine(delivery, PromptBuilder(), max_attempts=3)
    category = await engine.run(conversation, classification_task_config)
"""

import asyncio
from typing import Optional, Sequence, TypeVar

import structlog

from structured_inference.config import Settings
from structured_inference.llm.delivery import DeliveryLayer, SleepFn
from structured_inference.llm.exceptions import DeliveryDeadlineExceeded
from structured_inference.llm.prompt_builder import PromptBuilder
from structured_inference.models.messages import Message
from structured_inference.models.task_models import TaskConfig
from structured_inference.monitoring.metrics import generation_attempts_total, parse_failures_total
from structured_inference.parsing.result import Ok
from structured_inference.retry.context import RetryContext
from structured_inference.retry.exceptions import GenerationFailed

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class GenerationEngine:
    """
    Orchestrator running one task to a parsed result.

    Stateless between calls: the evolving conversation and the RetryContext
    live on the stack of run(), so one engine can serve concurrent requests.

    Attributes:
        delivery: Delivery layer used for every attempt
        prompt_builder: Builds the initial request and corrective turns
        max_attempts: Default attempt budget (TaskConfig.max_attempts overrides)
        retry_delay: Seconds of delay per attempt number between attempts
        deadline_seconds: Default per-call budget when run() gets no deadline
    """

    def __init__(
        self,
        delivery: DeliveryLayer,
        prompt_builder: Optional[PromptBuilder] = None,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
        deadline_seconds: Optional[float] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.delivery = delivery
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.deadline_seconds = deadline_seconds
        self._sleep = sleep

        logger.info(
            "GenerationEngine initialized",
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            deadline_seconds=deadline_seconds,
        )

    @classmethod
    def from_settings(
        cls,
        delivery: DeliveryLayer,
        settings: Settings,
        sleep: SleepFn = asyncio.sleep,
    ) -> "GenerationEngine":
        return cls(
            delivery,
            PromptBuilder(default_model_hint=settings.MODEL_HINT),
            max_attempts=settings.GENERATION_MAX_ATTEMPTS,
            retry_delay=settings.GENERATION_RETRY_DELAY,
            deadline_seconds=settings.REQUEST_DEADLINE_SECONDS,
            sleep=sleep,
        )

    async def run(
        self,
        conversation: Sequence[Message],
        task: TaskConfig[T],
        *,
        deadline: Optional[float] = None,
    ) -> T:
        """
        Run the task against the conversation until its parser accepts an output.

        Args:
            conversation: Caller turns (an optional leading system turn is replaced)
            task: Task configuration carrying instructions and parser
            deadline: Absolute deadline on the delivery layer's clock, or None

        Returns:
            Parsed value of the first accepted output

        Raises:
            GenerationFailed: Every attempt was rejected by the parser
            AllProvidersExhausted: Every provider failed on some attempt
            DeliveryDeadlineExceeded: The deadline passed
            ValueError: The conversation is malformed
        """
        if deadline is None and self.deadline_seconds is not None:
            deadline = self.delivery.now() + self.deadline_seconds

        request = self.prompt_builder.build_request(conversation, task)
        context = RetryContext(max_attempts=task.max_attempts or self.max_attempts)

        while True:
            attempt = context.start_attempt()
            success = await self.delivery.deliver(request, deadline=deadline)
            result = task.parser(success.text)

            if isinstance(result, Ok):
                generation_attempts_total.labels(task=task.name, outcome="parsed").inc()
                logger.info(
                    "Generation succeeded",
                    task=task.name,
                    attempt=attempt,
                    provider=success.provider_id,
                )
                return result.value

            error = result.error
            context.record(error, provider_id=success.provider_id)
            parse_failures_total.labels(task=task.name, error_type=type(error).__name__).inc()
            generation_attempts_total.labels(task=task.name, outcome="rejected").inc()
            logger.warning(
                "Model output rejected",
                task=task.name,
                attempt=attempt,
                max_attempts=context.max_attempts,
                provider=success.provider_id,
                error_type=type(error).__name__,
                reason=error.message,
            )

            if context.exhausted:
                break

            request = request.with_message(
                self.prompt_builder.build_corrective_message(error.message, success.text)
            )
            await self._pause(self.retry_delay * attempt, deadline)

        generation_attempts_total.labels(task=task.name, outcome="failed").inc()
        logger.error(
            "Generation attempts exhausted",
            task=task.name,
            attempts=context.attempts_made,
            failures=[entry["error_type"] for entry in context.history],
        )
        raise GenerationFailed(task.name, context)

    async def _pause(self, delay: float, deadline: Optional[float]) -> None:
        if delay <= 0:
            return
        remaining = self.delivery.remaining(deadline)
        if remaining is not None and delay >= remaining:
            raise DeliveryDeadlineExceeded(
                "Deadline would pass before the next generation attempt",
                details={"retry_delay_seconds": delay, "remaining_seconds": round(remaining, 3)},
            )
        await self._sleep(delay)
