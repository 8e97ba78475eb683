"""Security utilities for secret redaction and identifier validation.

Conversation threads routinely contain pasted tokens, connection strings and
keys. Everything that leaves the process towards the language model, and
every log line, goes through ``SecretRedactor`` first. Redaction fails
closed: if a pattern cannot be applied the operation is blocked instead of
letting the raw text through.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from .async_helpers import ThreadwiseError

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()


class SecurityError(ThreadwiseError):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """Raised when secret redaction fails."""


# Workspace ids end up in URL paths and Kubernetes object names.
WORKSPACE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,62}$")

# RFC 1123 label limit for Kubernetes object names
DNS_LABEL_MAX_LENGTH = 63


class SecretRedactor:
    """Detects and redacts secrets from text.

    Usage:
        redactor = SecretRedactor()
        safe_text = redactor.redact(thread_text)

    Attributes:
        placeholder: The string secrets are replaced with.
    """

    DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
        (
            r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
            "Generic secret",
        ),
        # Slack
        (r"xox[baprs]-[\w-]+", "Slack token"),
        (r"xapp-[\w-]+", "Slack app token"),
        (r"https://hooks\.slack\.com/services/[\w/]+", "Slack webhook URL"),
        # Atlassian
        (r"ATATT[\w=-]{20,}", "Atlassian API token"),
        # Model providers
        (r"sk-ant-[\w-]{20,}", "Anthropic API key"),
        (r"sk-proj-[a-zA-Z0-9]{20,}", "OpenAI project API key"),
        (r"sk-or-v1-[a-f0-9]{32,}", "OpenRouter API key"),
        # GitHub
        (r"gh[pousr]_[a-zA-Z0-9]{36}", "GitHub token"),
        (r"github_pat_[a-zA-Z0-9_]{22,}", "GitHub fine-grained PAT"),
        # Cloud
        (r"AKIA[0-9A-Z]{16}", "AWS access key ID"),
        (r"AIza[0-9A-Za-z\-_]{35}", "Google API key"),
        (
            r"(?i)(postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://[^:\s]+:[^@\s]+@[^\s]+",
            "Database connection string",
        ),
        (
            r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----",
            "Private key header",
        ),
        (r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*", "JWT token"),
    )

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize the SecretRedactor.

        Args:
            placeholder: String to replace detected secrets with.
            custom_patterns: Additional (pattern, name) tuples to detect.

        Raises:
            RedactionError: If any pattern fails to compile.
        """
        self.placeholder = placeholder
        self._pattern_names: dict[re.Pattern[str], str] = {}

        all_patterns = list(self.DEFAULT_PATTERNS)
        if custom_patterns:
            all_patterns.extend(custom_patterns)

        try:
            for pattern_str, name in all_patterns:
                self._pattern_names[re.compile(pattern_str)] = name
        except re.error as e:
            log.error("pattern_compilation_failed", pattern=pattern_str, error=str(e))
            raise RedactionError(f"Failed to compile secret pattern '{pattern_str}': {e}") from e

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        """Return the list of compiled patterns."""
        return list(self._pattern_names.keys())

    def redact(self, text: str) -> str:
        """Redact all secrets from the given text.

        Raises:
            RedactionError: If redaction fails for any reason.
        """
        if not text:
            return text

        try:
            result = text
            for pattern in self._pattern_names:
                result = pattern.sub(self.placeholder, result)
            return result
        except Exception as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e

    def has_secrets(self, text: str) -> bool:
        """Check if text contains any secrets."""
        if not text:
            return False

        try:
            return any(pattern.search(text) for pattern in self._pattern_names)
        except Exception as e:
            log.error("has_secrets_check_failed", error=str(e))
            raise RedactionError(f"Secret check failed: {e}") from e


def validate_workspace_id(workspace_id: str) -> bool:
    """Check that a workspace id is safe to embed in URLs and object names."""
    if not workspace_id:
        return False
    return bool(WORKSPACE_ID_PATTERN.match(workspace_id))


def to_dns_label(*parts: str) -> str:
    """Join parts into a lowercase RFC 1123 label.

    Characters outside ``[a-z0-9-]`` become hyphens and the result is cut to
    63 characters from the left, so a trailing timestamp part survives.

    Example:
        to_dns_label("workspace-analyzer", "T01_ABC", "1700000000000")
        # "workspace-analyzer-t01-abc-1700000000000"
    """
    label = "-".join(parts).lower()
    label = re.sub(r"[^a-z0-9-]", "-", label)
    label = re.sub(r"-{2,}", "-", label)
    if len(label) > DNS_LABEL_MAX_LENGTH:
        label = label[-DNS_LABEL_MAX_LENGTH:]
    return label.strip("-")


def mask_config_value(key: str, value: str) -> str:
    """Mask sensitive config values for logging."""
    sensitive_keys = {"token", "key", "secret", "password", "credential"}

    key_lower = key.lower()
    if any(s in key_lower for s in sensitive_keys):
        if len(value) > 8:
            return f"{value[:4]}...{value[-4:]}"
        return "***"

    return value
