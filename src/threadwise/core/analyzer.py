"""Workspace analysis.

This module implements the WorkspaceAnalyzer, which walks every monitored
channel of a workspace, selects threads that are busy enough to summarize
and runs each through the ThreadPipeline.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from threadwise.core.selection import should_process
from threadwise.core.user_cache import UserNameCache
from threadwise.models.workspace import AnalysisResult, ThreadOutcome
from threadwise.utils.async_helpers import WorkspaceAnalysisError, WorkspaceNotFoundError
from threadwise.utils.logging import workspace_scope

if TYPE_CHECKING:
    from threadwise.core.pipeline import ThreadPipeline
    from threadwise.interfaces.chat import ChatProvider
    from threadwise.interfaces.store import WorkspaceStore
    from threadwise.models.workspace import Workspace

log = structlog.get_logger()

DEFAULT_CHUNK_SIZE = 5


class WorkspaceAnalyzer:
    """Analyzes workspaces one at a time or in bounded concurrent batches.

    Within a workspace, channels and threads are processed sequentially in the
    order the chat platform lists them. ``analyze_all`` runs up to
    ``chunk_size`` workspaces at once and never fails as a whole.

    Example:
        analyzer = WorkspaceAnalyzer(store, chat, pipeline)
        result = await analyzer.analyze("T01ABC")
        print(result.processed_threads)
    """

    def __init__(
        self,
        store: WorkspaceStore,
        chat: ChatProvider,
        pipeline: ThreadPipeline,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._store = store
        self._chat = chat
        self._pipeline = pipeline
        self._chunk_size = chunk_size

    async def analyze(self, workspace_id: str) -> AnalysisResult:
        """Analyze one workspace.

        Args:
            workspace_id: Workspace to analyze

        Returns:
            Counts of processed and failed threads

        Raises:
            WorkspaceNotFoundError: If the store does not know the workspace
            WorkspaceAnalysisError: If users or channel threads cannot be listed
        """
        workspace = await self._store.get(workspace_id)
        if workspace is None:
            raise WorkspaceNotFoundError(
                f"Workspace not found: {workspace_id}", workspace_id=workspace_id
            )

        start_time = time.time()
        with workspace_scope(workspace.id):
            log.info("workspace_analysis_started", channels=len(workspace.channels))
            processed, failed = await self._analyze_channels(workspace)

        log.info(
            "workspace_analysis_complete",
            workspace_id=workspace.id,
            processed_threads=processed,
            failed_threads=failed,
            duration_seconds=round(time.time() - start_time, 2),
        )
        return AnalysisResult(
            workspace_id=workspace.id,
            processed_threads=processed,
            failed_threads=failed,
        )

    async def _analyze_channels(self, workspace: Workspace) -> tuple[int, int]:
        try:
            user_names = await UserNameCache.for_workspace(self._chat, workspace.id)
        except Exception as e:
            raise WorkspaceAnalysisError(
                f"Failed to list users of workspace {workspace.id}: {e}",
                workspace_id=workspace.id,
            ) from e

        processed = 0
        failed = 0
        for channel_id in workspace.channels:
            try:
                roots = await self._chat.list_thread_roots(channel_id, workspace.id)
            except Exception as e:
                raise WorkspaceAnalysisError(
                    f"Failed to list threads of channel {channel_id}: {e}",
                    workspace_id=workspace.id,
                ) from e

            selected = [root for root in roots if should_process(root, workspace.settings)]
            log.debug(
                "channel_threads_selected",
                channel_id=channel_id,
                listed=len(roots),
                selected=len(selected),
            )

            for root in selected:
                outcome = await self._pipeline.process(root, channel_id, workspace, user_names)
                processed += 1
                if outcome is ThreadOutcome.ERROR:
                    failed += 1

        return processed, failed

    async def analyze_all(self) -> list[AnalysisResult]:
        """Analyze every workspace in the store.

        Workspaces run concurrently in chunks of ``chunk_size``; chunks run one
        after another. A workspace that fails yields a zero-processed result.

        Returns:
            One result per workspace, in store order
        """
        workspaces = await self._store.list_all()
        results: list[AnalysisResult] = []

        for start in range(0, len(workspaces), self._chunk_size):
            chunk = workspaces[start : start + self._chunk_size]
            outcomes = await asyncio.gather(
                *(self.analyze(w.id) for w in chunk),
                return_exceptions=True,
            )
            for workspace, outcome in zip(chunk, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    log.error(
                        "workspace_analysis_failed",
                        workspace_id=workspace.id,
                        error=str(outcome),
                        exception_type=type(outcome).__name__,
                    )
                    results.append(AnalysisResult(workspace_id=workspace.id, processed_threads=0))
                else:
                    results.append(outcome)

        return results
