"""Configuration-backed workspace store."""

from __future__ import annotations

import structlog

from ...config.schema import ThreadwiseConfig, WorkspaceConfig
from ...models.workspace import Workspace, WorkspaceSettings

log = structlog.get_logger()

DEFAULT_WORKSPACE_ID = "default"


class StaticWorkspaceStore:
    """WorkspaceStore over a fixed list of workspaces.

    Workspaces keep the order they were configured in.
    """

    def __init__(self, workspaces: list[Workspace]) -> None:
        self._workspaces = {w.id: w for w in workspaces}

    @classmethod
    def from_config(cls, config: ThreadwiseConfig) -> StaticWorkspaceStore:
        """Build the store from configuration.

        In single deployment mode with no workspaces listed, a ``default``
        workspace watching ``slack.channel_id`` is used.
        """
        entries: list[WorkspaceConfig] = list(config.workspaces)
        if not entries and config.slack.deployment_mode == "single" and config.slack.channel_id:
            entries = [WorkspaceConfig(id=DEFAULT_WORKSPACE_ID, channels=[config.slack.channel_id])]

        if not entries:
            log.warning("no_workspaces_configured")

        return cls(
            [
                Workspace(
                    id=entry.id,
                    channels=tuple(entry.channels),
                    settings=WorkspaceSettings(thread_threshold=entry.thread_threshold),
                )
                for entry in entries
            ]
        )

    async def get(self, workspace_id: str) -> Workspace | None:
        return self._workspaces.get(workspace_id)

    async def list_all(self) -> list[Workspace]:
        return list(self._workspaces.values())
