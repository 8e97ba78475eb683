"""Data models and transfer objects."""

from .analysis import (
    CategorizationResult,
    Category,
    ExtractedTask,
    ExtractedTaskSet,
    Resolution,
    SummaryResult,
    SummaryStatus,
    Tone,
)
from .dispatch import DispatchResult
from .llm import LLMMessage, LLMResponse
from .thread import Reaction, ResolvedMessage, ThreadContext, ThreadMessage, ThreadRoot
from .workspace import AnalysisResult, ThreadOutcome, Workspace, WorkspaceSettings

__all__ = [
    # Thread models
    "Reaction",
    "ThreadRoot",
    "ThreadMessage",
    "ResolvedMessage",
    "ThreadContext",
    # Classification models
    "Category",
    "Tone",
    "Resolution",
    "SummaryStatus",
    "CategorizationResult",
    "SummaryResult",
    "ExtractedTask",
    "ExtractedTaskSet",
    # Workspace models
    "Workspace",
    "WorkspaceSettings",
    "AnalysisResult",
    "ThreadOutcome",
    # Dispatch models
    "DispatchResult",
    # LLM models
    "LLMMessage",
    "LLMResponse",
]
