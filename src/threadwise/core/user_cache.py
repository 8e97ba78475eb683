"""Per-run cache of chat user display names."""

from __future__ import annotations

import asyncio

import structlog

from threadwise.interfaces.chat import ChatProvider

log = structlog.get_logger()


class UserNameCache:
    """Resolves user ids to display names, at most one lookup per id.

    The cache is seeded from the workspace member listing. Ids missing from
    the listing are looked up individually; concurrent requests for the same
    id share one in-flight lookup.
    """

    def __init__(
        self,
        chat: ChatProvider,
        workspace_id: str,
        names: dict[str, str] | None = None,
    ) -> None:
        self._chat = chat
        self._workspace_id = workspace_id
        self._names: dict[str, str] = dict(names or {})
        self._pending: dict[str, asyncio.Task[str]] = {}

    @classmethod
    async def for_workspace(cls, chat: ChatProvider, workspace_id: str) -> UserNameCache:
        """Build a cache seeded with every member of the workspace."""
        names = await chat.list_users(workspace_id)
        log.debug("user_cache_seeded", workspace_id=workspace_id, count=len(names))
        return cls(chat, workspace_id, names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._names

    async def resolve(self, user_id: str) -> str:
        """Return the display name of a user."""
        name = self._names.get(user_id)
        if name is not None:
            return name

        task = self._pending.get(user_id)
        if task is None:
            task = asyncio.ensure_future(
                self._chat.resolve_user_name(user_id, self._workspace_id)
            )
            self._pending[user_id] = task

        try:
            name = await task
        finally:
            self._pending.pop(user_id, None)

        self._names[user_id] = name
        return name
