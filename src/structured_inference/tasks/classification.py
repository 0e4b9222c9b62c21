"""
Support-queue classification task.

Routes an inbound customer message to one of the SupportCategory queues.
Downstream routing consumes the returned category; the task itself has no
knowledge of what happens next.
"""

from dataclasses import replace
from typing import Any, Mapping, Optional

import structlog

from structured_inference.models.enums import SupportCategory
from structured_inference.models.messages import Message
from structured_inference.models.task_models import FewShotExample, TaskConfig
from structured_inference.parsing.classification import CategoryParser
from structured_inference.parsing.result import Err, Ok, ParseResult
from structured_inference.retry.engine import GenerationEngine

logger = structlog.get_logger(__name__)

CATEGORY_DESCRIPTIONS = {
    SupportCategory.SUPPORT: "technical problems, errors, login or account access, how-to questions",
    SupportCategory.SALES: "pricing, quotes, plans, discounts, demos, buying new products",
    SupportCategory.BILLING: "invoices, charges, refunds, payment methods, subscription payments",
}

# Related term -> category, checked in this order after the labels themselves
SYNONYMS: tuple[tuple[str, SupportCategory], ...] = (
    ("refund", SupportCategory.BILLING),
    ("charge", SupportCategory.BILLING),
    ("invoice", SupportCategory.BILLING),
    ("payment", SupportCategory.BILLING),
    ("receipt", SupportCategory.BILLING),
    ("price", SupportCategory.SALES),
    ("pricing", SupportCategory.SALES),
    ("quote", SupportCategory.SALES),
    ("purchase", SupportCategory.SALES),
    ("discount", SupportCategory.SALES),
    ("demo", SupportCategory.SALES),
    ("technical", SupportCategory.SUPPORT),
    ("error", SupportCategory.SUPPORT),
    ("bug", SupportCategory.SUPPORT),
    ("broken", SupportCategory.SUPPORT),
    ("not working", SupportCategory.SUPPORT),
    ("crash", SupportCategory.SUPPORT),
    ("login", SupportCategory.SUPPORT),
    ("password", SupportCategory.SUPPORT),
    ("help", SupportCategory.SUPPORT),
)

EXAMPLES = (
    FewShotExample(input="The app crashes every time I open settings.", output="support"),
    FewShotExample(input="Do you offer a discount for annual plans?", output="sales"),
    FewShotExample(input="I was charged twice for my subscription this month.", output="billing"),
)

INSTRUCTIONS = (
    "You route customer messages to the team that should handle them. "
    "Read the customer's message and answer with exactly one category name "
    "and nothing else."
)


class SupportCategoryParser:
    """CategoryParser over SupportCategory, returning enum members instead of labels."""

    def __init__(self):
        self.labels = CategoryParser(
            [category.value for category in SupportCategory],
            [(term, category.value) for term, category in SYNONYMS],
        )

    def __call__(self, raw_text: str) -> ParseResult[SupportCategory]:
        result = self.labels.parse(raw_text)
        if isinstance(result, Err):
            return result
        return Ok(SupportCategory(result.value))


def build_task_config(
    model_hint: Optional[str] = None,
    max_attempts: Optional[int] = None,
) -> TaskConfig[SupportCategory]:
    output_description = "Categories:\n" + "\n".join(
        f"- {category.value}: {description}"
        for category, description in CATEGORY_DESCRIPTIONS.items()
    )
    return TaskConfig(
        name="classification",
        instructions=INSTRUCTIONS,
        parser=SupportCategoryParser(),
        output_description=output_description,
        examples=EXAMPLES,
        model_hint=model_hint,
        max_attempts=max_attempts,
    )


class ClassificationTask:
    """
    Entry point for support-queue classification.

    Usage:
        task = ClassificationTask(engine)
        category = await task.classify("My invoice is wrong")
    """

    def __init__(self, engine: GenerationEngine, config: Optional[TaskConfig[SupportCategory]] = None):
        self.engine = engine
        self.config = config or build_task_config()

    async def classify(
        self,
        text: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> SupportCategory:
        """
        Classify a customer message.

        Args:
            text: Customer message
            context: Optional facts shown to the model (e.g. {"plan": "enterprise"})

        Returns:
            The category the message belongs to

        Raises:
            GenerationFailed: No attempt produced a recognizable category
            AllProvidersExhausted: No provider could answer
        """
        if not text.strip():
            raise ValueError("Cannot classify an empty message")

        config = replace(self.config, context=dict(context or {}))
        category = await self.engine.run([Message.user(text)], config)
        logger.info("Message classified", category=category.value, text_length=len(text))
        return category
