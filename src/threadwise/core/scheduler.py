"""Cron-driven analysis cycles.

The AnalysisScheduler lists every known workspace on a crontab schedule and
hands the batch to the configured ExecutionDispatcher.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

if TYPE_CHECKING:
    from threadwise.core.dispatch import ExecutionDispatcher
    from threadwise.interfaces.store import WorkspaceStore

log = structlog.get_logger()

CYCLE_JOB_ID = "workspace-analysis"


class AnalysisScheduler:
    """Runs analysis cycles on a schedule, never more than one at a time.

    Example:
        scheduler = AnalysisScheduler(dispatcher, store)
        scheduler.start("*/15 * * * *")
        ...
        scheduler.shutdown()
    """

    def __init__(self, dispatcher: ExecutionDispatcher, store: WorkspaceStore) -> None:
        self._dispatcher = dispatcher
        self._store = store
        self._running = False
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def is_running(self) -> bool:
        """True while a cycle is in progress."""
        return self._running

    @property
    def is_started(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def trigger_cycle(self) -> None:
        """Dispatch every workspace once.

        A trigger that arrives while a cycle is running is skipped. Failures
        are logged; nothing propagates to the caller.
        """
        if self._running:
            log.info("analysis_cycle_skipped", reason="previous cycle still running")
            return

        self._running = True
        start_time = time.time()
        try:
            workspaces = await self._store.list_all()
            workspace_ids = [w.id for w in workspaces]
            log.info("analysis_cycle_started", workspaces=len(workspace_ids))

            results = await self._dispatcher.dispatch_all(workspace_ids)
            failures = [r for r in results if not r.success]
            for failure in failures:
                log.warning(
                    "workspace_dispatch_failed",
                    workspace_id=failure.workspace_id,
                    error=failure.error,
                )

            log.info(
                "analysis_cycle_complete",
                successful=len(results) - len(failures),
                failed=len(failures),
                duration_seconds=round(time.time() - start_time, 2),
            )

            await self._dispatcher.reclaim()
        except Exception:
            log.exception("analysis_cycle_failed")
        finally:
            self._running = False

    async def run_once(self) -> None:
        """Run a single cycle immediately."""
        await self.trigger_cycle()

    def start(self, schedule: str, run_on_start: bool = False) -> None:
        """Register the cycle on a crontab schedule and start the scheduler.

        Must be called from within a running event loop.

        Args:
            schedule: Five-field crontab expression
            run_on_start: Also run one cycle right away

        Raises:
            ValueError: If the expression is not a valid crontab
            RuntimeError: If the scheduler is already started
        """
        if self.is_started:
            raise RuntimeError("Scheduler already started")

        trigger = CronTrigger.from_crontab(schedule)

        self._scheduler = AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self._scheduler.add_job(self.trigger_cycle, trigger, id=CYCLE_JOB_ID)
        if run_on_start:
            self._scheduler.add_job(self.trigger_cycle, id=f"{CYCLE_JOB_ID}-startup")
        self._scheduler.start()

        log.info("scheduler_started", schedule=schedule, run_on_start=run_on_start)

    def shutdown(self) -> None:
        """Stop the scheduler; a cycle in progress is not interrupted."""
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            log.info("scheduler_stopped")
        self._scheduler = None
