"""
Caller-facing task entry points.

- classification.py: ClassificationTask.classify(text, context) -> SupportCategory
- feedback.py: FeedbackTask.generate_feedback(conversation, scenario) -> FeedbackReport
"""

from structured_inference.tasks.classification import ClassificationTask
from structured_inference.tasks.feedback import FeedbackTask

__all__ = [
    "ClassificationTask",
    "FeedbackTask",
]
