"""
Prompt builder for model requests.

Responsible for:
- Rendering the task's system turn (instructions, output description, few-shot examples)
- Dropping any caller-supplied leading system turn
- Renumbering user turns ("User response #1", "#2", ...)
- Flattening the remaining turns into one consolidated user turn
- Rendering the corrective turn appended after a rejected output
"""

from typing import Optional, Sequence

import structlog
from jinja2 import DictLoader, Environment

from structured_inference.llm.text_utils import truncate_at_sentence_boundary
from structured_inference.models.enums import Role
from structured_inference.models.llm_models import RequestSpec
from structured_inference.models.messages import Message, split_system_message
from structured_inference.models.task_models import TaskConfig


logger = structlog.get_logger(__name__)

TEMPLATES = {
    "system_prompt.txt": (
        "{{ instructions }}\n"
        "{% if output_description %}\n\n"
        "{{ output_description }}\n"
        "{% endif %}"
        "{% if context %}\n\n"
        "Context:\n"
        "{% for key, value in context.items() %}\n"
        "- {{ key }}: {{ value }}\n"
        "{% endfor %}"
        "{% endif %}"
        "{% if examples %}\n\n"
        "Examples:\n"
        "{% for example in examples %}\n"
        "Input: {{ example.input }}\n"
        "Output: {{ example.output }}\n"
        "{% endfor %}"
        "{% endif %}"
    ),
    "conversation.txt": (
        "{% for turn in turns %}\n"
        "{{ turn.label }}: {{ turn.content }}\n"
        "{% endfor %}"
    ),
    "correction.txt": (
        "Your previous response was rejected: {{ reason }}\n"
        "\n"
        "Previous response:\n"
        "{{ previous }}\n"
        "\n"
        "Answer again and follow the required output format exactly."
    ),
}


class PromptBuilder:
    """
    Build RequestSpecs from conversations and task configs.

    Handles:
    - Template rendering (Jinja2)
    - Turn renumbering and flattening
    - Corrective feedback turns (rejected output echoed back, truncated)
    """

    def __init__(
        self,
        default_model_hint: Optional[str] = None,
        rejected_output_limit: int = 2000,
    ):
        """
        Initialize prompt builder.

        Args:
            default_model_hint: Model hint used when a task does not set one
            rejected_output_limit: Max characters of a rejected output echoed back
        """
        self.default_model_hint = default_model_hint
        self.rejected_output_limit = rejected_output_limit

        self.jinja_env = Environment(
            loader=DictLoader(TEMPLATES),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,  # We're generating prompts, not HTML
        )
        self.system_template = self.jinja_env.get_template("system_prompt.txt")
        self.conversation_template = self.jinja_env.get_template("conversation.txt")
        self.correction_template = self.jinja_env.get_template("correction.txt")

    def build_system_message(self, task: TaskConfig) -> Message:
        """Render the system turn from the task config."""
        rendered = self.system_template.render(
            instructions=task.instructions.strip(),
            output_description=task.output_description.strip(),
            context=task.context,
            examples=task.examples,
        ).strip()
        return Message.system(rendered)

    def consolidate_turns(self, turns: Sequence[Message]) -> Message:
        """
        Flatten turns into one user turn, numbering user turns from 1.

        Raises:
            ValueError: If there are no turns
        """
        if not turns:
            raise ValueError("Conversation has no turns to send")

        labelled = []
        user_number = 0
        for turn in turns:
            if turn.role == Role.USER:
                user_number += 1
                label = f"User response #{user_number}"
            else:
                label = "Assistant"
            labelled.append({"label": label, "content": turn.content.strip()})

        return Message.user(self.conversation_template.render(turns=labelled).strip())

    def build_request(self, conversation: Sequence[Message], task: TaskConfig) -> RequestSpec:
        """
        Build the initial RequestSpec: [task system turn, consolidated turn].

        Args:
            conversation: Caller conversation (optional leading system turn is dropped)
            task: Task configuration

        Returns:
            RequestSpec ready for the delivery layer
        """
        caller_system, turns = split_system_message(conversation)
        if caller_system is not None:
            logger.debug("Replacing caller system turn with task system turn", task=task.name)

        system_message = self.build_system_message(task)
        consolidated = self.consolidate_turns(turns)

        request = RequestSpec(
            conversation=(system_message, consolidated),
            model_hint=task.model_hint or self.default_model_hint,
            structured_output_requested=task.structured_output,
            provider_order=task.provider_order,
        )

        logger.info(
            "Request built",
            task=task.name,
            turns=len(turns),
            system_prompt_length=len(system_message.content),
            user_prompt_length=len(consolidated.content),
            examples=len(task.examples),
        )
        return request

    def build_corrective_message(self, reason: str, rejected_text: str) -> Message:
        """Render the user turn telling the model why its output was rejected."""
        previous = truncate_at_sentence_boundary(rejected_text, self.rejected_output_limit)
        return Message.user(
            self.correction_template.render(reason=reason, previous=previous or "(empty)")
        )
