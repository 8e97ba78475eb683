"""Abstract interface for chat platform integrations."""

from typing import Any, Protocol

from ..models.thread import ThreadMessage, ThreadRoot


class ChatProvider(Protocol):
    """Abstract interface for chat platform integrations.

    Every call is scoped to a workspace so that one provider instance can
    serve several installed workspaces with their own credentials.
    """

    async def list_users(self, workspace_id: str) -> dict[str, str]:
        """
        List the members of a workspace.

        Args:
            workspace_id: Workspace to list

        Returns:
            Mapping of user id to display name

        Raises:
            ChatProviderError: If the listing fails
        """
        ...

    async def list_thread_roots(self, channel_id: str, workspace_id: str) -> list[ThreadRoot]:
        """
        List the thread roots of a channel in the order the platform returns them.

        Args:
            channel_id: Channel to scan
            workspace_id: Workspace the channel belongs to

        Returns:
            Messages that started a thread

        Raises:
            ChatProviderError: If the listing fails
        """
        ...

    async def list_messages(
        self,
        channel_id: str,
        root_ts: str,
        workspace_id: str,
    ) -> list[ThreadMessage]:
        """
        List every message of a thread in chronological order.

        Args:
            channel_id: Channel containing the thread
            root_ts: Timestamp of the thread root
            workspace_id: Workspace the channel belongs to

        Returns:
            Thread messages, oldest first

        Raises:
            ChatProviderError: If the listing fails
        """
        ...

    async def resolve_user_name(self, user_id: str, workspace_id: str) -> str:
        """
        Look up the display name of a single user.

        Args:
            user_id: User identifier
            workspace_id: Workspace the user belongs to

        Returns:
            Display name (falls back to the id when the platform has none)
        """
        ...

    async def post_reply(
        self,
        channel_id: str,
        root_ts: str,
        workspace_id: str,
        blocks: list[dict[str, Any]],
        fallback_text: str,
    ) -> str:
        """
        Post a threaded reply with rich blocks.

        Args:
            channel_id: Channel containing the thread
            root_ts: Timestamp of the thread root
            workspace_id: Workspace the channel belongs to
            blocks: Rich content blocks (platform-specific)
            fallback_text: Plain text shown where blocks cannot render

        Returns:
            Timestamp of the posted reply

        Raises:
            ChatProviderError: If message delivery fails
        """
        ...

    async def add_resolution_marker(
        self,
        channel_id: str,
        root_ts: str,
        workspace_id: str,
    ) -> None:
        """
        Mark a thread root as resolved (e.g., with a :white_check_mark: reaction).

        Args:
            channel_id: Channel containing the thread
            root_ts: Timestamp of the thread root
            workspace_id: Workspace the channel belongs to

        Raises:
            ChatProviderError: If adding the marker fails
        """
        ...
