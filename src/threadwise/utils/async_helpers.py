"""Async utility functions for resilient collaborator calls.

This module provides:
- The exception hierarchy shared by the pipeline and the adapters
- Retry decorators with exponential backoff for transient HTTP failures
- Timeout wrappers for async operations, optionally leaving the operation
  running past the deadline
"""

from __future__ import annotations

import asyncio
import builtins
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class ThreadwiseError(Exception):
    """Base exception for all threadwise errors."""


class ClassificationError(ThreadwiseError):
    """Model output did not satisfy the expected JSON contract."""


class WorkspaceAnalysisError(ThreadwiseError):
    """A workspace could not be analyzed.

    Attributes:
        workspace_id: The workspace whose analysis failed.
    """

    def __init__(self, message: str, workspace_id: str | None = None) -> None:
        super().__init__(message)
        self.workspace_id = workspace_id


class WorkspaceNotFoundError(WorkspaceAnalysisError):
    """The workspace id is not known to the workspace store."""


class TicketCreateError(ThreadwiseError):
    """Failed to create a tracking ticket."""


class JobSubmitError(ThreadwiseError):
    """Failed to submit a job to the orchestration backend."""


class LLMError(ThreadwiseError):
    """Language model request failed."""


class RateLimitError(LLMError):
    """Rate limit exceeded.

    Attributes:
        retry_after: Number of seconds to wait before retrying, if known.
    """

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TimeoutError(ThreadwiseError):
    """Operation timed out."""


# =============================================================================
# Retry Decorator
# =============================================================================


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging."""
    if retry_state.outcome is None:
        return

    exception = retry_state.outcome.exception()
    if exception:
        log.warning(
            "retrying_operation",
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
            exception_message=str(exception),
            wait_time=retry_state.next_action.sleep if retry_state.next_action else 0,
        )


TRANSIENT_HTTP_ERRORS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)

# Failures raised before the request reached the server. Safe to retry for
# non-idempotent calls.
UNSENT_HTTP_ERRORS: tuple[type[Exception], ...] = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.PoolTimeout,
)


def create_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 30.0,
    retry_on: tuple[type[Exception], ...] = TRANSIENT_HTTP_ERRORS,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Create a customized retry decorator.

    Args:
        max_attempts: Maximum number of attempts, including the first.
        min_wait: Minimum wait time between retries (seconds).
        max_wait: Maximum wait time between retries (seconds).
        retry_on: Tuple of exception types to retry on.

    Returns:
        A retry decorator configured with the given parameters.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )


# =============================================================================
# Timeout Utilities
# =============================================================================


# Operations left running past their deadline. Held here so they are not
# garbage collected before they finish.
_detached: set[asyncio.Future[Any]] = set()


def _log_detached_outcome(label: str, task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        log.warning("detached_operation_cancelled", operation=label)
        return
    exception = task.exception()
    if exception is not None:
        log.error(
            "detached_operation_failed",
            operation=label,
            error=str(exception),
            exception_type=type(exception).__name__,
        )
    else:
        log.info("detached_operation_completed", operation=label)


async def with_timeout(
    coro: Awaitable[T],
    timeout: float,
    error_message: str | None = None,
    *,
    detach: bool = False,
    label: str = "operation",
) -> T:
    """Execute an awaitable with a timeout.

    By default the operation is cancelled when the timeout fires. With
    ``detach=True`` only the wait is bounded: the operation keeps running to
    completion and its outcome is logged under ``label``.

    Args:
        coro: The coroutine to execute.
        timeout: Timeout in seconds.
        error_message: Custom error message for timeout.
        detach: Leave the operation running when the timeout fires.
        label: Name used when logging a detached operation.

    Returns:
        The result of the coroutine.

    Raises:
        TimeoutError: If the operation times out.
    """
    if not detach:
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except builtins.TimeoutError as e:
            msg = error_message or f"Operation timed out after {timeout}s"
            log.warning("operation_timeout", timeout=timeout)
            raise TimeoutError(msg) from e

    task = asyncio.ensure_future(coro)
    _detached.add(task)
    task.add_done_callback(_detached.discard)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
    except builtins.TimeoutError as e:
        task.add_done_callback(lambda done: _log_detached_outcome(label, done))
        msg = error_message or f"Operation timed out after {timeout}s"
        log.warning("operation_detached", operation=label, timeout=timeout)
        raise TimeoutError(msg) from e
