"""Tests for thread selection and summary rendering."""

import pytest

from threadwise.core.formatter import (
    FOLLOW_UP_PROMPT,
    RESOLVED_HEADER,
    UNRESOLVED_HEADER,
    build_resolved_summary,
)
from threadwise.core.selection import should_process
from threadwise.models.analysis import SummaryStatus
from threadwise.models.thread import ThreadRoot
from threadwise.models.workspace import WorkspaceSettings


def _root(reply_count: int | None) -> ThreadRoot:
    return ThreadRoot(ts="1.0", text="hello", user="U1", reply_count=reply_count)


class TestShouldProcess:
    """Tests for the reply-count filter."""

    @pytest.mark.parametrize(
        "reply_count,threshold,expected",
        [
            (3, 2, True),
            (2, 2, False),
            (1, 2, False),
            (0, 0, False),
            (1, 0, True),
            (50, 10, True),
            (10, 10, False),
        ],
    )
    def test_strictly_greater_than_threshold(
        self, reply_count: int, threshold: int, expected: bool
    ) -> None:
        """A thread is selected only with more replies than the threshold."""
        settings = WorkspaceSettings(thread_threshold=threshold)
        assert should_process(_root(reply_count), settings) is expected

    def test_missing_reply_count_means_zero(self) -> None:
        """A root without reply_count is never selected at threshold >= 0."""
        assert should_process(_root(None), WorkspaceSettings(thread_threshold=0)) is False


class TestBuildResolvedSummary:
    """Tests for Block Kit rendering."""

    def test_resolved_has_two_sections(self) -> None:
        """Resolved threads get a header and the summary."""
        result = build_resolved_summary("Fixed by rolling back.", SummaryStatus.RESOLVED)

        blocks = result["blocks"]
        assert len(blocks) == 2
        assert all(b["type"] == "section" for b in blocks)
        assert all(b["text"]["type"] == "mrkdwn" for b in blocks)
        assert blocks[0]["text"]["text"] == RESOLVED_HEADER
        assert blocks[1]["text"]["text"] == "*Summary:*\nFixed by rolling back."

    @pytest.mark.parametrize("status", [SummaryStatus.UNRESOLVED, SummaryStatus.IN_PROGRESS])
    def test_open_statuses_have_three_sections(self, status: SummaryStatus) -> None:
        """Unresolved and in-progress threads end with a call for updates."""
        blocks = build_resolved_summary("Still failing.", status)["blocks"]

        assert len(blocks) == 3
        assert blocks[0]["text"]["text"] == UNRESOLVED_HEADER
        assert blocks[1]["text"]["text"] == "*Summary:*\nStill failing."
        assert blocks[2]["text"]["text"] == FOLLOW_UP_PROMPT

    def test_accepts_status_string(self) -> None:
        """Plain status strings are accepted."""
        assert len(build_resolved_summary("ok", "resolved")["blocks"]) == 2

    def test_unknown_status_raises(self) -> None:
        """Unknown statuses are rejected instead of rendered."""
        with pytest.raises(ValueError):
            build_resolved_summary("?", "archived")

    def test_summary_text_is_not_escaped(self) -> None:
        """mrkdwn in the summary is passed through verbatim."""
        blocks = build_resolved_summary("*bold* <@U1>", SummaryStatus.RESOLVED)["blocks"]
        assert blocks[1]["text"]["text"].endswith("*bold* <@U1>")
