"""Thread classification, summarization and task extraction.

``ThreadClassifier`` turns a ``ThreadContext`` into typed results through the
language model. Every model answer must be a JSON object matching a pydantic
schema; anything else is a ``ClassificationError``. The only leniency is a
Markdown code fence around the object.
"""

from __future__ import annotations

import json
from typing import Any, Literal, TypeVar

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from threadwise.core.prompts import CATEGORIZING_PROMPT, TASK_EXTRACTION_PROMPT, summary_prompt_for
from threadwise.interfaces.llm import LLMProvider
from threadwise.models.analysis import (
    CategorizationResult,
    Category,
    ExtractedTask,
    ExtractedTaskSet,
    Resolution,
    SummaryResult,
    SummaryStatus,
    Tone,
)
from threadwise.models.llm import LLMMessage
from threadwise.models.thread import ThreadContext
from threadwise.utils.async_helpers import ClassificationError

log = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


# Pydantic models for LLM output validation
class CategorizationResponse(BaseModel):
    """Validated three-axis classification from the LLM."""

    category: Category
    tone: Tone
    resolution: Resolution


class SummaryResponse(BaseModel):
    """Validated category summary from the LLM."""

    summary: str = Field(min_length=1, max_length=4000)
    status: SummaryStatus
    confidence: float = Field(ge=0.0, le=1.0)


class ADFDocument(BaseModel):
    """Top level of an Atlassian Document Format document."""

    type: Literal["doc"]
    version: Literal[1]
    content: list[dict[str, Any]]


class TaskResponse(BaseModel):
    """One validated task from the LLM."""

    summary: str = Field(min_length=1, max_length=255)
    description: ADFDocument

    @field_validator("summary")
    @classmethod
    def strip_summary(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("summary must not be blank")
        return v.strip()

    @field_validator("description", mode="before")
    @classmethod
    def wrap_plain_text(cls, v: Any) -> Any:
        """Accept a plain-text description as a single paragraph."""
        if isinstance(v, str):
            return text_to_adf(v)
        return v


class TaskSetResponse(BaseModel):
    """Validated task extraction result from the LLM."""

    tasks: list[TaskResponse]


def text_to_adf(text: str) -> dict[str, Any]:
    """Wrap plain text into a one-paragraph ADF document."""
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
    }


def _context_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


class ThreadClassifier:
    """Classifies, summarizes and mines tasks from chat threads.

    Example:
        classifier = ThreadClassifier(llm)
        result = await classifier.classify(context)
        if result.category is not Category.CASUAL_CHAT:
            summary = await classifier.summarize(result.category, context, result)
    """

    def __init__(self, llm: LLMProvider) -> None:
        self._llm = llm

    async def classify(self, context: ThreadContext) -> CategorizationResult:
        """Assign category, tone and resolution to a thread.

        Raises:
            ClassificationError: If the model answer violates the JSON contract.
        """
        content = await self._ask(
            CATEGORIZING_PROMPT,
            f"Classify this Slack thread:\nThread data: {_context_json(context.to_prompt_dict())}",
        )
        parsed = parse_and_validate_json(content, CategorizationResponse)
        result = CategorizationResult(
            category=parsed.category,
            tone=parsed.tone,
            resolution=parsed.resolution,
        )
        log.info(
            "thread_classified",
            thread_ts=context.thread.ts,
            category=result.category.value,
            tone=result.tone.value,
            resolution=result.resolution.value,
        )
        return result

    async def summarize(
        self,
        category: Category,
        context: ThreadContext,
        classification: CategorizationResult,
    ) -> SummaryResult:
        """Summarize a thread with the template for its category.

        Raises:
            ValueError: If called with ``casual_chat``.
            ClassificationError: If the model answer violates the JSON contract.
        """
        system_prompt = summary_prompt_for(category)
        content = await self._ask(
            system_prompt,
            "Analyze this thread:\n"
            f"Thread Data: {_context_json(context.to_prompt_dict())}\n"
            f"Filter Results: {_context_json(classification.to_prompt_dict())}",
        )
        parsed = parse_and_validate_json(content, SummaryResponse)
        log.info(
            "thread_summarized",
            thread_ts=context.thread.ts,
            status=parsed.status.value,
            confidence=parsed.confidence,
        )
        return SummaryResult(
            summary=parsed.summary,
            status=parsed.status,
            confidence=parsed.confidence,
        )

    async def extract_tasks(self, context: ThreadContext) -> ExtractedTaskSet:
        """Extract actionable tasks with ADF descriptions.

        Raises:
            ClassificationError: If the model answer violates the JSON contract.
        """
        content = await self._ask(
            TASK_EXTRACTION_PROMPT,
            "Extract tasks from this thread:\n"
            f"Thread Data: {_context_json(context.to_prompt_dict())}",
        )
        parsed = parse_and_validate_json(content, TaskSetResponse)
        tasks = tuple(
            ExtractedTask(summary=t.summary, description=t.description.model_dump())
            for t in parsed.tasks
        )
        log.info("tasks_extracted", thread_ts=context.thread.ts, count=len(tasks))
        return ExtractedTaskSet(tasks=tasks)

    async def _ask(self, system_prompt: str, user_content: str) -> str:
        response = await self._llm.complete(
            [
                LLMMessage(role="system", content=system_prompt),
                LLMMessage(role="user", content=user_content),
            ]
        )
        return response.content


def parse_and_validate_json(response_text: str, model: type[ModelT]) -> ModelT:
    """Parse and validate JSON response against Pydantic model.

    Args:
        response_text: Raw response text from LLM.
        model: Pydantic model class to validate against.

    Returns:
        Validated model instance.

    Raises:
        ClassificationError: If parsing or validation fails.
    """
    text = response_text.strip()

    # Handle markdown code blocks
    if text.startswith("```"):
        lines = text.split("\n")
        end = len(lines)
        for i in range(len(lines) - 1, 0, -1):
            if lines[i].strip() == "```":
                end = i
                break
        text = "\n".join(lines[1:end])

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        log.error("json_parse_error", error=str(e), response_preview=text[:200])
        raise ClassificationError(f"Invalid JSON in LLM response: {e}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        log.error("validation_error", schema=model.__name__, error=str(e))
        raise ClassificationError(f"LLM response failed validation: {e}") from e
