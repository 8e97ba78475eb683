"""Jira Cloud ticket adapter using httpx.

This module implements the TicketProvider protocol against the Jira Cloud
REST API v3. Each workspace may point at its own Jira site; workspaces
without their own credentials use the default site.

Features:
- Per-workspace credentials with a default fallback
- Basic auth (account email + API token)
- ADF descriptions passed through unchanged
- Retry with exponential backoff on failures that never reached Jira
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ...config.schema import JiraConfig, JiraCredentials, RetryConfig
from ...models.analysis import ExtractedTask
from ...utils.async_helpers import UNSENT_HTTP_ERRORS, TicketCreateError, create_retry

log = structlog.get_logger()

ISSUE_ENDPOINT = "/rest/api/3/issue"


class JiraAdapterError(TicketCreateError):
    """Base exception for Jira adapter errors."""


class CredentialsNotFoundError(JiraAdapterError):
    """Raised when neither workspace nor default credentials exist."""


class JiraCredentialRegistry:
    """Maps workspace ids to the Jira site their tickets go to.

    Example:
        registry = JiraCredentialRegistry(default=default_creds)
        registry.register("T01ABC", team_creds)
        registry.resolve("T01ABC")   # team_creds
        registry.resolve("T99XYZ")   # default_creds
    """

    def __init__(
        self,
        default: JiraCredentials | None = None,
        workspaces: dict[str, JiraCredentials] | None = None,
    ) -> None:
        self._default = default
        self._workspaces: dict[str, JiraCredentials] = dict(workspaces or {})

    @classmethod
    def from_config(cls, config: JiraConfig) -> JiraCredentialRegistry:
        return cls(default=config.default, workspaces=config.workspaces)

    def register(self, workspace_id: str, credentials: JiraCredentials) -> None:
        """Register (or replace) the credentials of a workspace."""
        self._workspaces[workspace_id] = credentials

    def resolve(self, workspace_id: str) -> JiraCredentials:
        """Return the credentials a workspace's tickets are created with.

        Raises:
            CredentialsNotFoundError: If no workspace or default credentials exist.
        """
        credentials = self._workspaces.get(workspace_id) or self._default
        if credentials is None:
            raise CredentialsNotFoundError(
                f"Jira config not found for workspace {workspace_id} "
                "and no default config available"
            )
        return credentials


class JiraAdapter:
    """Jira ticket adapter implementing the TicketProvider protocol.

    Example:
        adapter = JiraAdapter(JiraCredentialRegistry(default=creds))
        key = await adapter.create_issue("T01ABC", task)
        print(key)  # "OPS-42"
    """

    def __init__(
        self,
        registry: JiraCredentialRegistry,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Jira adapter.

        Args:
            registry: Credential lookup per workspace.
            timeout: Request timeout in seconds.
            retry_config: Backoff settings for transient failures.
            transport: Optional httpx transport (used by tests).
        """
        self._registry = registry
        self._timeout = timeout
        self._transport = transport
        retry_config = retry_config or RetryConfig()
        # Issue creation is not idempotent; a lost response must not be resent.
        self._retry = create_retry(
            max_attempts=retry_config.max_attempts,
            min_wait=retry_config.initial_delay,
            max_wait=retry_config.max_delay,
            retry_on=UNSENT_HTTP_ERRORS,
        )

    def _build_payload(self, credentials: JiraCredentials, task: ExtractedTask) -> dict[str, Any]:
        return {
            "fields": {
                "project": {"key": credentials.project_key},
                "summary": task.summary,
                "description": task.description,
                "issuetype": {"name": credentials.issue_type},
            }
        }

    async def _post_issue(
        self,
        credentials: JiraCredentials,
        payload: dict[str, Any],
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=credentials.base_url,
            auth=httpx.BasicAuth(credentials.email, credentials.api_token),
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
            headers={"Accept": "application/json"},
        ) as client:
            return await client.post(ISSUE_ENDPOINT, json=payload)

    async def create_issue(self, workspace_id: str, task: ExtractedTask) -> str:
        """Create a Jira issue for an extracted task.

        Returns:
            The created issue key.

        Raises:
            CredentialsNotFoundError: If no credentials apply to the workspace.
            JiraAdapterError: If the Jira API rejects the request or is unreachable.
        """
        credentials = self._registry.resolve(workspace_id)
        payload = self._build_payload(credentials, task)

        try:
            response = await self._retry(self._post_issue)(credentials, payload)
        except httpx.HTTPError as e:
            log.error("jira_request_failed", workspace_id=workspace_id, error=str(e))
            raise JiraAdapterError(f"Failed to create Jira issue: {e}") from e

        if response.is_error:
            log.error(
                "jira_issue_rejected",
                workspace_id=workspace_id,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise JiraAdapterError(
                f"Failed to create Jira issue: HTTP {response.status_code}: {response.text[:500]}"
            )

        try:
            key = str(response.json()["key"])
        except (ValueError, KeyError) as e:
            raise JiraAdapterError(f"Unexpected Jira response: {response.text[:200]}") from e

        log.info(
            "jira_issue_created",
            workspace_id=workspace_id,
            issue_key=key,
            project_key=credentials.project_key,
        )
        return key
