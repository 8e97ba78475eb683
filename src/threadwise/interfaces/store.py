"""Abstract interface for workspace lookup."""

from typing import Protocol

from ..models.workspace import Workspace


class WorkspaceStore(Protocol):
    """Source of the workspaces threadwise analyzes."""

    async def get(self, workspace_id: str) -> Workspace | None:
        """Return the workspace with this id, or None if unknown."""
        ...

    async def list_all(self) -> list[Workspace]:
        """Return every workspace, in a stable order."""
        ...
