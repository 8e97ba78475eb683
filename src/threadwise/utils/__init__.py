"""Utility functions and helpers.

This module provides various utilities for threadwise:
- security: Secret redaction, identifier validation
- async_helpers: Exception hierarchy, async retry, timeouts
- logging: Structured logging with secret scrubbing and thread scopes
"""

from threadwise.utils.async_helpers import (
    ClassificationError,
    JobSubmitError,
    LLMError,
    RateLimitError,
    ThreadwiseError,
    TicketCreateError,
    TimeoutError,
    WorkspaceAnalysisError,
    WorkspaceNotFoundError,
    create_retry,
    with_timeout,
)
from threadwise.utils.logging import (
    LogFormat,
    SecretScrubber,
    configure_logging,
    thread_scope,
    workspace_scope,
)
from threadwise.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
    to_dns_label,
    validate_workspace_id,
)

__all__ = [
    # Errors
    "ClassificationError",
    "JobSubmitError",
    "LLMError",
    "RateLimitError",
    "ThreadwiseError",
    "TicketCreateError",
    "TimeoutError",
    "WorkspaceAnalysisError",
    "WorkspaceNotFoundError",
    # Logging
    "LogFormat",
    "SecretScrubber",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "configure_logging",
    "create_retry",
    "thread_scope",
    "to_dns_label",
    "validate_workspace_id",
    "with_timeout",
    "workspace_scope",
]
