"""End-to-end analysis through the assembled application.

Only the chat platform, model and ticket system are replaced; the classifier,
pipeline, analyzer, store and dispatcher are the real components.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock

from tests.helpers import ScriptedLLM, categorization_json, summary_json, tasks_json
from threadwise.config.schema import ExecutionConfig, ThreadwiseConfig, WorkspaceConfig
from threadwise.core.application import create_application
from threadwise.core.prompts import CATEGORIZING_PROMPT
from threadwise.models.thread import ThreadRoot


def _config(base_config: ThreadwiseConfig) -> ThreadwiseConfig:
    return base_config.model_copy(
        update={
            "workspaces": [WorkspaceConfig(id="T01", channels=["C1"], thread_threshold=2)],
            "execution": ExecutionConfig(direct_transport="in_process"),
        }
    )


class TestEndToEnd:
    """Scheduled cycle through in-process dispatch."""

    async def test_unresolved_technical_issue(
        self,
        base_config: ThreadwiseConfig,
        mock_chat: AsyncMock,
        mock_tickets: AsyncMock,
        make_root: Callable[..., ThreadRoot],
    ) -> None:
        """An unresolved issue files one ticket and posts one unresolved reply."""
        mock_chat.list_thread_roots.return_value = [make_root(reply_count=5)]
        llm = ScriptedLLM(
            categorize=categorization_json("technical_issue", "serious", "unresolved"),
            summarize=summary_json("unresolved", "Staging deploys still fail."),
            extract=tasks_json(1),
        )
        application = create_application(
            _config(base_config), chat=mock_chat, llm=llm, tickets=mock_tickets
        )

        await application.scheduler.run_once()

        mock_tickets.create_issue.assert_awaited_once()
        workspace_id, task = mock_tickets.create_issue.await_args.args
        assert workspace_id == "T01"
        assert task.summary == "Task 1"

        mock_chat.post_reply.assert_awaited_once()
        blocks = mock_chat.post_reply.await_args.args[3]
        assert any("Issue Still Unresolved" in b["text"]["text"] for b in blocks)
        mock_chat.add_resolution_marker.assert_not_awaited()

    async def test_casual_chat(
        self,
        base_config: ThreadwiseConfig,
        mock_chat: AsyncMock,
        mock_tickets: AsyncMock,
        make_root: Callable[..., ThreadRoot],
    ) -> None:
        """Casual chat costs one classification call and nothing else."""
        mock_chat.list_thread_roots.return_value = [make_root(reply_count=5)]
        llm = ScriptedLLM(
            categorize=categorization_json("casual_chat", "playful", "not_applicable")
        )
        application = create_application(
            _config(base_config), chat=mock_chat, llm=llm, tickets=mock_tickets
        )

        result = await application.analyzer.analyze("T01")

        assert result.processed_threads == 1
        assert result.failed_threads == 0
        assert len(llm.calls) == 1
        assert llm.answered(CATEGORIZING_PROMPT) == 1
        mock_chat.post_reply.assert_not_awaited()
        mock_chat.add_resolution_marker.assert_not_awaited()
        mock_tickets.create_issue.assert_not_awaited()

    async def test_quiet_thread_untouched(
        self,
        base_config: ThreadwiseConfig,
        mock_chat: AsyncMock,
        mock_tickets: AsyncMock,
        make_root: Callable[..., ThreadRoot],
    ) -> None:
        """A thread at the threshold never reaches the model."""
        mock_chat.list_thread_roots.return_value = [make_root(reply_count=2)]
        llm = ScriptedLLM()
        application = create_application(
            _config(base_config), chat=mock_chat, llm=llm, tickets=mock_tickets
        )

        result = await application.analyzer.analyze("T01")

        assert result.processed_threads == 0
        assert llm.calls == []
