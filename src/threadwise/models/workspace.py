"""Data models for workspaces and analysis runs."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class WorkspaceSettings:
    """Per-workspace processing settings."""

    thread_threshold: int = 2  # Threads need strictly more replies than this


@dataclass(frozen=True)
class Workspace:
    """A chat workspace and the channels monitored in it."""

    id: str
    channels: tuple[str, ...]
    settings: WorkspaceSettings = field(default_factory=WorkspaceSettings)


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one workspace analysis."""

    workspace_id: str
    processed_threads: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    failed_threads: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspaceId": self.workspace_id,
            "processedThreads": self.processed_threads,
            "failedThreads": self.failed_threads,
            "timestamp": self.timestamp.isoformat(),
        }


class ThreadOutcome(Enum):
    """Outcome of running the pipeline on one thread."""

    SKIPPED = "skipped"
    SUMMARIZED = "summarized"
    ERROR = "error"
