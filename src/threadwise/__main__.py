"""Entry point for running threadwise.

Subcommands:
- serve: HTTP API, with the analysis scheduler when enabled
- cron: analysis scheduler only, until SIGINT/SIGTERM
- analyze: analyze one workspace through the API (delegated job worker)
- check-config: load and validate configuration
"""

import argparse
import asyncio
import json
import os
import signal
import sys
from pathlib import Path
from typing import Any

import httpx
import structlog

from threadwise._version import __version__

log = structlog.get_logger()

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_WORKER_TIMEOUT = 300


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure logging before the configuration is loaded.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from threadwise.utils.logging import configure_logging

    configure_logging(level="DEBUG" if debug else "INFO", log_format=log_format)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="threadwise",
        description="threadwise - Slack thread classification and summarization",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: read environment variables)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the HTTP API (and scheduler when enabled)")
    subparsers.add_parser("cron", help="Run the analysis scheduler only")
    subparsers.add_parser("check-config", help="Validate configuration and exit")

    analyze = subparsers.add_parser("analyze", help="Analyze one workspace through the API")
    analyze.add_argument("workspace_id", help="Workspace to analyze")
    analyze.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_WORKER_TIMEOUT,
        help=f"Request timeout in seconds (default: {DEFAULT_WORKER_TIMEOUT})",
    )
    analyze.add_argument(
        "--api-url",
        default=None,
        help=f"API base URL (default: $API_URL or {DEFAULT_API_URL})",
    )

    return parser.parse_args(argv)


def load_configuration(config_path: Path | None) -> Any:
    """Load configuration from YAML when a path is given, else from the environment."""
    from threadwise.config.loader import load_config, load_config_from_env

    if config_path is not None:
        log.info("loading_configuration", path=str(config_path))
        return load_config(config_path)

    log.info("loading_configuration", source="environment")
    return load_config_from_env()


def apply_logging_config(config: Any, debug: bool) -> None:
    """Reconfigure logging from the loaded settings.

    The configured credentials are scrubbed from log output from here on.
    """
    from threadwise.utils.logging import configure_logging

    configure_logging(
        level="DEBUG" if debug else config.logging.level,
        log_format=config.logging.format,
        known_secrets=config.secret_values(),
    )


def run_serve(config: Any) -> int:
    """Run the FastAPI app under uvicorn."""
    import uvicorn

    from threadwise.api.app import create_app
    from threadwise.core.application import create_application

    application = create_application(config)
    app = create_app(application)

    log.info("server_starting", host=config.server.host, port=config.server.port)
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_config=None)
    return 0


async def run_cron(config: Any) -> int:
    """Run the scheduler until a shutdown signal arrives."""
    from threadwise.core.application import create_application

    application = create_application(config)
    scheduler = application.scheduler

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_event.set)
        log.debug("signal_handler_registered", signal=sig.name)

    scheduler.start(config.scheduler.cron_schedule, run_on_start=config.scheduler.run_on_start)
    try:
        await shutdown_event.wait()
        log.info("shutdown_signal_received")
    finally:
        scheduler.shutdown()

    return 0


async def run_analyze(
    workspace_id: str,
    api_url: str,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Ask the API to analyze one workspace and wait for the result.

    Returns:
        0 if the API reported success, 1 otherwise
    """
    from threadwise.utils.security import validate_workspace_id

    if not validate_workspace_id(workspace_id):
        log.error("invalid_workspace_id", workspace_id=workspace_id)
        return 1

    url = f"{api_url.rstrip('/')}/api/workspaces/{workspace_id}/analyze"
    log.info("worker_analysis_started", workspace_id=workspace_id, url=url)

    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport) as client:
            response = await client.post(url, json={})
        body = response.json()
    except (httpx.HTTPError, ValueError) as e:
        log.error("worker_analysis_failed", workspace_id=workspace_id, error=str(e))
        return 1

    print(json.dumps(body, indent=2))

    if isinstance(body, dict) and body.get("success") is True:
        log.info("worker_analysis_complete", workspace_id=workspace_id)
        return 0

    error = body.get("error") if isinstance(body, dict) else None
    log.error(
        "worker_analysis_failed",
        workspace_id=workspace_id,
        status_code=response.status_code,
        error=error,
    )
    return 1


def _flatten(data: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    items: list[tuple[str, Any]] = []
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            items.extend(_flatten(value, path))
        else:
            items.append((path, value))
    return items


def run_check_config(config: Any) -> int:
    """Print the effective configuration with secrets masked."""
    from threadwise.utils.security import mask_config_value

    for key, value in _flatten(config.model_dump(mode="json")):
        if value is None:
            continue
        print(f"{key} = {mask_config_value(key, str(value))}")

    log.info("configuration_valid")
    return 0


def run(args: argparse.Namespace) -> int:
    """Run the selected command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    log.info("starting_threadwise", version=__version__, command=args.command)

    if args.command == "analyze":
        api_url = args.api_url or os.environ.get("API_URL") or DEFAULT_API_URL
        return asyncio.run(run_analyze(args.workspace_id, api_url, args.timeout))

    try:
        config = load_configuration(args.config)
        log.info("configuration_loaded")
        apply_logging_config(config, args.debug)

        if args.command == "check-config":
            return run_check_config(config)
        if args.command == "cron":
            return asyncio.run(run_cron(config))
        return run_serve(config)

    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(args.config), error=str(e))
        return 1
    except ValueError as e:
        log.error("configuration_invalid", error=str(e))
        return 1
    except Exception as e:
        log.exception("fatal_error", error=str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(
        debug=args.debug,
        log_format=args.format,
    )

    try:
        return run(args)
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


if __name__ == "__main__":
    sys.exit(main())
