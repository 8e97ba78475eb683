"""Abstract interface for issue tracker integrations."""

from typing import Protocol

from ..models.analysis import ExtractedTask


class TicketProvider(Protocol):
    """Abstract interface for issue tracker integrations."""

    async def create_issue(self, workspace_id: str, task: ExtractedTask) -> str:
        """
        Create a tracking ticket for an extracted task.

        Args:
            workspace_id: Workspace whose tracker credentials are used
            task: Task summary and description

        Returns:
            Key of the created issue (e.g., "OPS-42")

        Raises:
            TicketCreateError: If no credentials apply or creation fails
        """
        ...
