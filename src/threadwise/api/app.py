"""HTTP surface of the service.

Routes:
- ``GET /health``: liveness probe
- ``POST /api/workspaces/{workspace_id}/analyze``: analyze one workspace and
  wait for the result (used by direct dispatch and delegated jobs)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from threadwise._version import __version__
from threadwise.api.error_handlers import EXCEPTION_HANDLERS, error_response
from threadwise.core.application import Application
from threadwise.utils.async_helpers import with_timeout

log = structlog.get_logger()

router = APIRouter()


def get_application(request: Request) -> Application:
    application: Application = request.app.state.application
    return application


@router.get("/health")
async def health(application: Application = Depends(get_application)) -> dict[str, Any]:
    return {
        "status": "ok",
        "environment": application.config.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.post("/api/workspaces/{workspace_id}/analyze", response_model=None)
async def analyze_workspace(
    workspace_id: str,
    application: Application = Depends(get_application),
) -> dict[str, Any] | JSONResponse:
    """Run a full analysis of one workspace.

    Returns 200 with the AnalysisResult, or 500 with the error message when
    the workspace is unknown, a listing fails or the run exceeds
    ``runtime.analysis_timeout``. A run past the timeout is not cancelled; it
    finishes in the background so no thread is left half processed.
    """
    log.info("analyze_request_received", workspace_id=workspace_id)
    try:
        result = await with_timeout(
            application.analyzer.analyze(workspace_id),
            application.config.runtime.analysis_timeout,
            error_message=f"Analysis of workspace {workspace_id} timed out",
            detach=True,
            label=f"analyze:{workspace_id}",
        )
    except Exception as e:
        log.error(
            "analyze_request_failed",
            workspace_id=workspace_id,
            error=str(e),
            exception_type=type(e).__name__,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return {"success": True, "result": result.to_dict()}


def create_app(application: Application) -> FastAPI:
    """Build the FastAPI app around an assembled Application.

    The analysis scheduler is started with the app when
    ``scheduler.enabled`` is set and stopped on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        scheduler_config = application.config.scheduler
        log.info(
            "api_starting",
            version=__version__,
            environment=application.config.environment,
            scheduler_enabled=scheduler_config.enabled,
        )
        if scheduler_config.enabled:
            application.scheduler.start(
                scheduler_config.cron_schedule,
                run_on_start=scheduler_config.run_on_start,
            )
        try:
            yield
        finally:
            application.scheduler.shutdown()
            log.info("api_stopped")

    app = FastAPI(
        title="threadwise",
        description="Slack thread classification and summarization service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.application = application

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    app.include_router(router)
    return app
