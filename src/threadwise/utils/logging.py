"""Structured logging for threadwise.

Every log line is JSON (or colored console output in development) on stderr
and passes through ``SecretScrubber`` before rendering. Thread text regularly
contains pasted credentials, and the service itself holds Slack, Anthropic and
Jira tokens, so both pattern matches and the configured credential values are
replaced.

Log lines emitted while a workspace or a thread is being analyzed carry its
identifiers through ``workspace_scope`` and ``thread_scope``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Iterator, MutableMapping
from contextlib import contextmanager
from enum import StrEnum
from typing import Any

import structlog
from structlog.typing import Processor

from threadwise.utils.security import SecretRedactor

SERVICE_NAME = "threadwise"

# Credentials shorter than this are not scrubbed by value; they would match
# ordinary words.
MIN_SECRET_LENGTH = 8

# Libraries that log every request at INFO.
CHATTY_LOGGERS = ("httpx", "httpcore", "kubernetes.client.rest", "apscheduler.executors")


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class SecretScrubber:
    """Structlog processor that removes secrets from every value of an entry.

    Values are scrubbed recursively through dicts, lists and tuples. Known
    credential values are replaced first, then the redactor patterns apply.
    """

    def __init__(
        self,
        known_secrets: Iterable[str] = (),
        redactor: SecretRedactor | None = None,
    ) -> None:
        self._redactor = redactor or SecretRedactor()
        # Longest first so a token is never partly replaced by a shorter one.
        self._known = sorted(
            {s for s in known_secrets if s and len(s) >= MIN_SECRET_LENGTH},
            key=len,
            reverse=True,
        )

    def scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            for secret in self._known:
                value = value.replace(secret, self._redactor.placeholder)
            return self._redactor.redact(value)
        if isinstance(value, dict):
            return {k: self.scrub(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.scrub(v) for v in value)
        return value

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key, value in event_dict.items():
            event_dict[key] = self.scrub(value)
        return event_dict


def add_thread_key(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add ``thread`` (``<channel_id>/<thread_ts>``) when both ids are present.

    A thread ts is only unique within its channel; the combined key lets log
    queries follow one thread across the pipeline steps.
    """
    channel_id = event_dict.get("channel_id")
    thread_ts = event_dict.get("thread_ts")
    if channel_id and thread_ts and "thread" not in event_dict:
        event_dict["thread"] = f"{channel_id}/{thread_ts}"
    return event_dict


def _service_context(version: str | None) -> Processor:
    def add_service(
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        event_dict["service"] = SERVICE_NAME
        if version:
            event_dict["version"] = version
        return event_dict

    return add_service


def configure_logging(
    level: str = "INFO",
    log_format: LogFormat | str = LogFormat.JSON,
    known_secrets: Iterable[str] = (),
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: ``json`` for aggregation, ``console`` for development
        known_secrets: Credential values to scrub wherever they appear

    Example:
        configure_logging("DEBUG", "console")
        configure_logging("INFO", "json", known_secrets=config.secret_values())
    """
    log_format = LogFormat(str(log_format).lower())
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    try:
        from threadwise._version import __version__ as version
    except (ImportError, RuntimeError):
        version = None

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _service_context(version),
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_thread_key,
        structlog.processors.format_exc_info,
        SecretScrubber(known_secrets),
    ]
    if log_format is LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True, exception_formatter=structlog.dev.plain_traceback
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


@contextmanager
def workspace_scope(workspace_id: str) -> Iterator[None]:
    """Attach ``workspace_id`` to log lines emitted inside the block."""
    with structlog.contextvars.bound_contextvars(workspace_id=workspace_id):
        yield


@contextmanager
def thread_scope(channel_id: str, thread_ts: str) -> Iterator[None]:
    """Attach ``channel_id`` and ``thread_ts`` to log lines emitted inside the block.

    Example:
        with thread_scope("C456", "1700000000.000100"):
            log.info("ticket_filed", issue_key="OPS-1")
    """
    with structlog.contextvars.bound_contextvars(channel_id=channel_id, thread_ts=thread_ts):
        yield
