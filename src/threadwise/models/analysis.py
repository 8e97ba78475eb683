"""Data models for thread classification results."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Category(StrEnum):
    """What a thread is about."""

    TECHNICAL_ISSUE = "technical_issue"
    DECISION_DISCUSSION = "decision_discussion"
    QUESTION_ANSWER = "question_answer"
    STATUS_UPDATE = "status_update"
    CASUAL_CHAT = "casual_chat"


class Tone(StrEnum):
    """Conversational tone of a thread."""

    SERIOUS = "serious"
    NEUTRAL = "neutral"
    PLAYFUL = "playful"
    SARCASTIC = "sarcastic"


class Resolution(StrEnum):
    """Whether the thread's issue appears resolved at classification time."""

    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    NOT_APPLICABLE = "not_applicable"


class SummaryStatus(StrEnum):
    """Status reported by the category summary."""

    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    IN_PROGRESS = "in_progress"


@dataclass(frozen=True)
class CategorizationResult:
    """Three-axis classification of a thread."""

    category: Category
    tone: Tone
    resolution: Resolution

    def to_prompt_dict(self) -> dict[str, str]:
        return {
            "category": self.category.value,
            "tone": self.tone.value,
            "resolution": self.resolution.value,
        }


@dataclass(frozen=True)
class SummaryResult:
    """Category-specific summary of a thread."""

    summary: str
    status: SummaryStatus
    confidence: float  # 0.0 to 1.0


@dataclass(frozen=True)
class ExtractedTask:
    """An actionable work item found in a thread.

    ``description`` is an Atlassian Document Format document.
    """

    summary: str
    description: dict[str, Any]


@dataclass(frozen=True)
class ExtractedTaskSet:
    """All tasks extracted from one thread (possibly none)."""

    tasks: tuple[ExtractedTask, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.tasks)
