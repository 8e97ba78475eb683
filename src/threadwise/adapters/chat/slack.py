"""Slack chat adapter using the slack-sdk Web API client.

This module implements the ChatProvider protocol for Slack. Threads are read
by polling the Web API; nothing is received over Socket Mode.

Features:
- One AsyncWebClient per workspace (single bot token or per-workspace tokens)
- Cursor pagination for users, channel history and thread replies
- Threaded replies with Block Kit content
- Resolution marker reaction on thread roots
"""

from __future__ import annotations

from typing import Any

import structlog
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ...config.schema import SlackConfig
from ...models.thread import ThreadMessage, ThreadRoot
from ...utils.async_helpers import ThreadwiseError

log = structlog.get_logger()

# Page size for cursor-paginated Web API calls
PAGE_LIMIT = 200


class SlackAdapterError(ThreadwiseError):
    """Base exception for Slack adapter errors."""


class WorkspaceTokenError(SlackAdapterError):
    """Raised when no bot token is configured for a workspace."""


class ListError(SlackAdapterError):
    """Raised when listing users, threads or messages fails."""


class SendError(SlackAdapterError):
    """Raised when sending a message fails."""


class ReactionError(SlackAdapterError):
    """Raised when adding a reaction fails."""


class SlackAdapter:
    """Slack chat adapter implementing the ChatProvider protocol.

    Example:
        config = SlackConfig(bot_token="xoxb-...", channel_id="C0123")
        adapter = SlackAdapter(config)

        users = await adapter.list_users("default")
        for root in await adapter.list_thread_roots("C0123", "default"):
            print(root.ts, root.reply_count)
    """

    def __init__(self, config: SlackConfig) -> None:
        """Initialize the Slack adapter.

        Args:
            config: Slack-specific configuration.
        """
        self._config = config
        self._clients: dict[str, AsyncWebClient] = {}

    def _client_for(self, workspace_id: str) -> AsyncWebClient:
        """Return (and cache) the Web API client for a workspace.

        Raises:
            WorkspaceTokenError: If no token is configured for the workspace.
        """
        client = self._clients.get(workspace_id)
        if client is not None:
            return client

        token = self._config.workspace_tokens.get(workspace_id)
        if token is None and self._config.deployment_mode == "single":
            token = self._config.bot_token
        if not token:
            raise WorkspaceTokenError(f"No Slack bot token configured for workspace {workspace_id}")

        client = AsyncWebClient(token=token, timeout=self._config.request_timeout)
        self._clients[workspace_id] = client
        return client

    async def _paginate(
        self,
        method: str,
        key: str,
        workspace_id: str,
        **kwargs: Any,
    ) -> list[dict[str, Any]]:
        """Collect every item of a cursor-paginated Web API listing."""
        client = self._client_for(workspace_id)
        call = getattr(client, method)
        items: list[dict[str, Any]] = []
        cursor: str | None = None

        while True:
            if cursor:
                kwargs["cursor"] = cursor
            result = await call(limit=PAGE_LIMIT, **kwargs)
            items.extend(result.get(key, []))
            cursor = (result.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return items

    async def list_users(self, workspace_id: str) -> dict[str, str]:
        """List workspace members as a user id -> display name mapping.

        Raises:
            ListError: If the Slack API call fails.
        """
        try:
            members = await self._paginate("users_list", "members", workspace_id)
        except SlackApiError as e:
            log.error("list_users_failed", workspace_id=workspace_id, error=str(e))
            raise ListError(f"Failed to list users: {e}") from e

        users = {m["id"]: _display_name(m) for m in members if m.get("id")}
        log.debug("users_listed", workspace_id=workspace_id, count=len(users))
        return users

    async def list_thread_roots(self, channel_id: str, workspace_id: str) -> list[ThreadRoot]:
        """List the messages of a channel that started a thread.

        Raises:
            ListError: If the Slack API call fails.
        """
        try:
            messages = await self._paginate(
                "conversations_history",
                "messages",
                workspace_id,
                channel=channel_id,
            )
        except SlackApiError as e:
            log.error(
                "list_thread_roots_failed",
                channel_id=channel_id,
                workspace_id=workspace_id,
                error=str(e),
            )
            raise ListError(f"Failed to list channel history: {e}") from e

        roots = [
            ThreadRoot.from_api(m)
            for m in messages
            if m.get("ts") and (m.get("reply_count") or m.get("thread_ts") == m.get("ts"))
        ]
        log.debug("thread_roots_listed", channel_id=channel_id, count=len(roots))
        return roots

    async def list_messages(
        self,
        channel_id: str,
        root_ts: str,
        workspace_id: str,
    ) -> list[ThreadMessage]:
        """List every message of a thread, oldest first.

        Raises:
            ListError: If the Slack API call fails.
        """
        try:
            replies = await self._paginate(
                "conversations_replies",
                "messages",
                workspace_id,
                channel=channel_id,
                ts=root_ts,
            )
        except SlackApiError as e:
            log.error(
                "list_messages_failed",
                channel_id=channel_id,
                root_ts=root_ts,
                error=str(e),
            )
            raise ListError(f"Failed to list thread replies: {e}") from e

        return [
            ThreadMessage(ts=r.get("ts", ""), user=r.get("user", ""), text=r.get("text", ""))
            for r in replies
        ]

    async def resolve_user_name(self, user_id: str, workspace_id: str) -> str:
        """Get display name for a user.

        Returns:
            User display name, or the id if lookup fails.
        """
        if not user_id:
            return "unknown"

        try:
            result = await self._client_for(workspace_id).users_info(user=user_id)
        except SlackApiError as e:
            log.warning("user_lookup_failed", user_id=user_id, error=str(e))
            return user_id

        return _display_name(result.get("user", {})) or user_id

    async def post_reply(
        self,
        channel_id: str,
        root_ts: str,
        workspace_id: str,
        blocks: list[dict[str, Any]],
        fallback_text: str,
    ) -> str:
        """Send a threaded reply.

        Returns:
            Message ID (ts) of the sent message.

        Raises:
            SendError: If message delivery fails.
        """
        try:
            result = await self._client_for(workspace_id).chat_postMessage(
                channel=channel_id,
                thread_ts=root_ts,
                text=fallback_text,
                blocks=blocks,
            )
        except SlackApiError as e:
            log.error("send_reply_failed", channel_id=channel_id, root_ts=root_ts, error=str(e))
            raise SendError(f"Failed to send message: {e}") from e

        message_ts: str = result.get("ts", "")
        log.debug("reply_posted", channel_id=channel_id, root_ts=root_ts, message_ts=message_ts)
        return message_ts

    async def add_resolution_marker(
        self,
        channel_id: str,
        root_ts: str,
        workspace_id: str,
    ) -> None:
        """Add the configured resolution reaction to a thread root.

        Raises:
            ReactionError: If adding reaction fails.
        """
        reaction = self._config.resolution_reaction
        try:
            await self._client_for(workspace_id).reactions_add(
                channel=channel_id,
                timestamp=root_ts,
                name=reaction,
            )
        except SlackApiError as e:
            # Ignore "already_reacted" error
            if e.response.get("error") == "already_reacted":
                return

            log.error(
                "add_reaction_failed",
                channel_id=channel_id,
                root_ts=root_ts,
                reaction=reaction,
                error=str(e),
            )
            raise ReactionError(f"Failed to add reaction: {e}") from e

        log.debug("resolution_marker_added", channel_id=channel_id, root_ts=root_ts)


def _display_name(user: dict[str, Any]) -> str:
    """Prefer display_name, fall back to real_name, then name."""
    profile = user.get("profile") or {}
    return str(
        profile.get("display_name")
        or profile.get("real_name")
        or user.get("real_name")
        or user.get("name")
        or user.get("id", "")
    )
