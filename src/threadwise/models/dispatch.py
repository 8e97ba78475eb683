"""Data models for execution dispatch."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DispatchResult:
    """Whether a workspace analysis was dispatched (and, for direct runs, completed)."""

    workspace_id: str
    success: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"workspaceId": self.workspace_id, "success": self.success}
        if self.error is not None:
            result["error"] = self.error
        return result
