"""Execution dispatchers for scheduled workspace analyses.

A dispatcher decides where an analysis runs:

- ``DirectDispatcher``: POSTs to this service's own analyze endpoint and
  waits for the result.
- ``InProcessDispatcher``: calls the WorkspaceAnalyzer directly.
- ``DelegatedDispatcher``: submits one job per workspace to a JobBackend and
  reports success once the job is accepted.

The mode is chosen once at startup by ``create_dispatcher``.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from threadwise.models.dispatch import DispatchResult
from threadwise.utils.async_helpers import with_timeout
from threadwise.utils.security import validate_workspace_id

if TYPE_CHECKING:
    from threadwise.config.schema import ThreadwiseConfig
    from threadwise.core.analyzer import WorkspaceAnalyzer
    from threadwise.interfaces.jobs import JobBackend

log = structlog.get_logger()

DEFAULT_DIRECT_TIMEOUT = 60.0


class ExecutionDispatcher(Protocol):
    """Runs (or hands off) workspace analyses."""

    async def dispatch(self, workspace_id: str) -> DispatchResult:
        """Dispatch one workspace. Never raises; failures are in the result."""
        ...

    async def dispatch_all(self, workspace_ids: list[str]) -> list[DispatchResult]:
        """Dispatch concurrently; results are positional to ``workspace_ids``."""
        ...

    async def reclaim(self) -> None:
        """Release resources left by finished dispatches (best effort)."""
        ...


class _SettlingDispatcher(ABC):
    """Shared fan-out for dispatchers."""

    @abstractmethod
    async def dispatch(self, workspace_id: str) -> DispatchResult:
        """Dispatch one workspace. Must not raise."""

    async def dispatch_all(self, workspace_ids: list[str]) -> list[DispatchResult]:
        outcomes = await asyncio.gather(
            *(self.dispatch(workspace_id) for workspace_id in workspace_ids),
            return_exceptions=True,
        )
        results: list[DispatchResult] = []
        for workspace_id, outcome in zip(workspace_ids, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                results.append(
                    DispatchResult(workspace_id=workspace_id, success=False, error=str(outcome))
                )
            else:
                results.append(outcome)
        return results

    async def reclaim(self) -> None:
        return None


class DirectDispatcher(_SettlingDispatcher):
    """Analyzes workspaces through the service's own HTTP endpoint.

    Example:
        dispatcher = DirectDispatcher("http://localhost:3000")
        result = await dispatcher.dispatch("T01ABC")
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = DEFAULT_DIRECT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            api_url: Base URL of the threadwise API
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def dispatch(self, workspace_id: str) -> DispatchResult:
        if not validate_workspace_id(workspace_id):
            log.warning("direct_dispatch_rejected", workspace_id=workspace_id)
            return DispatchResult(
                workspace_id=workspace_id,
                success=False,
                error=f"Invalid workspace id: {workspace_id!r}",
            )
        url = f"{self._api_url}/api/workspaces/{workspace_id}/analyze"
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(url, json={})
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("direct_dispatch_failed", workspace_id=workspace_id, error=str(e))
            return DispatchResult(workspace_id=workspace_id, success=False, error=str(e))

        if not isinstance(body, dict):
            body = {}
        if body.get("success") is True:
            return DispatchResult(workspace_id=workspace_id, success=True)

        error = body.get("error") or f"HTTP {response.status_code}"
        log.warning("direct_dispatch_failed", workspace_id=workspace_id, error=str(error))
        return DispatchResult(workspace_id=workspace_id, success=False, error=str(error))


class InProcessDispatcher(_SettlingDispatcher):
    """Analyzes workspaces by calling the analyzer in this process."""

    def __init__(self, analyzer: WorkspaceAnalyzer, timeout: float | None = None) -> None:
        self._analyzer = analyzer
        self._timeout = timeout

    async def dispatch(self, workspace_id: str) -> DispatchResult:
        try:
            if self._timeout:
                result = await with_timeout(
                    self._analyzer.analyze(workspace_id),
                    self._timeout,
                    detach=True,
                    label=f"analyze:{workspace_id}",
                )
            else:
                result = await self._analyzer.analyze(workspace_id)
        except Exception as e:
            log.warning("in_process_dispatch_failed", workspace_id=workspace_id, error=str(e))
            return DispatchResult(workspace_id=workspace_id, success=False, error=str(e))

        log.debug(
            "in_process_dispatch_complete",
            workspace_id=workspace_id,
            processed_threads=result.processed_threads,
        )
        return DispatchResult(workspace_id=workspace_id, success=True)


class DelegatedDispatcher(_SettlingDispatcher):
    """Hands each workspace to a job backend; acceptance counts as success."""

    def __init__(self, job_backend: JobBackend) -> None:
        self._job_backend = job_backend

    async def dispatch(self, workspace_id: str) -> DispatchResult:
        try:
            job_name = await self._job_backend.submit_job(workspace_id)
        except Exception as e:
            log.warning("delegated_dispatch_failed", workspace_id=workspace_id, error=str(e))
            return DispatchResult(workspace_id=workspace_id, success=False, error=str(e))

        log.debug("delegated_dispatch_submitted", workspace_id=workspace_id, job_name=job_name)
        return DispatchResult(workspace_id=workspace_id, success=True)

    async def reclaim(self) -> None:
        try:
            await self._job_backend.reclaim_completed()
        except Exception as e:
            log.warning("job_reclaim_failed", error=str(e))


def create_dispatcher(
    config: ThreadwiseConfig,
    analyzer: WorkspaceAnalyzer | None = None,
    job_backend: JobBackend | None = None,
) -> ExecutionDispatcher:
    """Create the dispatcher selected by ``execution.mode``.

    Args:
        config: Application configuration
        analyzer: Required for in-process direct execution
        job_backend: Job backend for delegated execution (built from config if None)

    Returns:
        The configured dispatcher

    Raises:
        ValueError: If the selected mode is missing a collaborator
    """
    execution = config.execution

    if execution.mode == "delegated":
        if job_backend is None:
            from threadwise.adapters.jobs.kubernetes import KubernetesJobBackend

            job_backend = KubernetesJobBackend(execution.kubernetes)
        log.info("dispatcher_selected", mode="delegated", namespace=execution.kubernetes.namespace)
        return DelegatedDispatcher(job_backend)

    if execution.direct_transport == "in_process":
        if analyzer is None:
            raise ValueError("In-process execution requires a WorkspaceAnalyzer")
        log.info("dispatcher_selected", mode="direct", transport="in_process")
        return InProcessDispatcher(analyzer, timeout=config.runtime.analysis_timeout)

    log.info("dispatcher_selected", mode="direct", transport="http", api_url=config.server.base_url)
    return DirectDispatcher(config.server.base_url, timeout=execution.direct_timeout)
