"""Abstract interface for job orchestration backends."""

from typing import Protocol


class JobBackend(Protocol):
    """Abstract interface for running workspace analyses as isolated jobs."""

    async def submit_job(self, workspace_id: str) -> str:
        """
        Submit a job that analyzes one workspace.

        Args:
            workspace_id: Workspace to analyze

        Returns:
            Name of the submitted job

        Raises:
            JobSubmitError: If the backend rejects the job
        """
        ...

    async def reclaim_completed(self) -> int:
        """
        Delete finished jobs (best effort).

        Returns:
            Number of jobs deleted
        """
        ...
