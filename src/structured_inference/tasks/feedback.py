"""
Conversation feedback task.

Reviews the user's side of a role-play conversation and returns numbered
feedback points plus a score per category on a fixed scale.
"""

from dataclasses import replace
from typing import Optional, Sequence

import structlog

from structured_inference.models.messages import Message
from structured_inference.models.task_models import FeedbackReport, FewShotExample, TaskConfig
from structured_inference.parsing.feedback import FeedbackParser
from structured_inference.retry.engine import GenerationEngine

logger = structlog.get_logger(__name__)

DEFAULT_SCORE_CATEGORIES = ("Grammar", "Clarity", "Tone")

INSTRUCTIONS = (
    "You are a communication coach. The conversation below is a practice "
    "session: each 'User response #n' was written by the learner. Review only "
    "the learner's responses in light of the scenario and give concrete, "
    "actionable feedback."
)


def build_output_description(score_categories: Sequence[str], score_max: int) -> str:
    score_lines = "\n".join(
        f"{label}: <score>/{score_max} - <one sentence justification>" for label in score_categories
    )
    return (
        "Answer in plain text using exactly this layout:\n"
        "1. <first feedback point>\n"
        "2. <second feedback point>\n"
        "(as many numbered points as needed)\n"
        f"{score_lines}\n"
        f"Scores are whole numbers from 0 to {score_max}."
    )


EXAMPLES = (
    FewShotExample(
        input="User response #1: hi i want know why my order late",
        output=(
            "1. Start with a greeting and a full sentence.\n"
            "2. Include the order number so the agent can help faster.\n"
            "Grammar: 55/100 - missing verb and capitalization\n"
            "Clarity: 70/100 - the request is understandable\n"
            "Tone: 75/100 - neutral and polite enough"
        ),
    ),
)


def build_task_config(
    score_max: int = 100,
    require_feedback: bool = False,
    require_scores: bool = True,
    score_categories: Sequence[str] = DEFAULT_SCORE_CATEGORIES,
    model_hint: Optional[str] = None,
    max_attempts: Optional[int] = None,
) -> TaskConfig[FeedbackReport]:
    return TaskConfig(
        name="feedback",
        instructions=INSTRUCTIONS,
        parser=FeedbackParser(
            score_max=score_max,
            require_feedback=require_feedback,
            require_scores=require_scores,
        ),
        output_description=build_output_description(score_categories, score_max),
        examples=EXAMPLES if score_max == 100 else (),
        model_hint=model_hint,
        max_attempts=max_attempts,
    )


class FeedbackTask:
    """Entry point for conversation feedback generation."""

    def __init__(self, engine: GenerationEngine, config: Optional[TaskConfig[FeedbackReport]] = None):
        self.engine = engine
        self.config = config or build_task_config()

    async def generate_feedback(
        self,
        conversation: Sequence[Message],
        scenario: str,
    ) -> FeedbackReport:
        """
        Generate feedback for the learner's turns of a conversation.

        Args:
            conversation: Practice conversation (user turns are the learner's)
            scenario: Description of the practice scenario

        Returns:
            FeedbackReport with numbered feedback and category scores

        Raises:
            GenerationFailed: No attempt produced output in the required layout
            AllProvidersExhausted: No provider could answer
        """
        config = replace(self.config, context={"Scenario": scenario.strip()})
        report = await self.engine.run(conversation, config)
        logger.info(
            "Feedback generated",
            feedback_items=len(report.feedback),
            scores=len(report.scores),
        )
        return report
