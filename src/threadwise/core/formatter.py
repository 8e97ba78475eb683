"""Slack Block Kit rendering of thread summaries."""

from __future__ import annotations

from typing import Any

from threadwise.models.analysis import SummaryStatus

RESOLVED_HEADER = "✅ *Thread Resolved!*"
UNRESOLVED_HEADER = "⚠️ *Issue Still Unresolved*"
FOLLOW_UP_PROMPT = "_Anyone have an update on this?_"


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def build_resolved_summary(summary: str, status: SummaryStatus | str) -> dict[str, Any]:
    """Render a summary as the status reply posted into the thread.

    Args:
        summary: Summary text (Slack mrkdwn).
        status: Summary status.

    Returns:
        ``{"blocks": [...]}``: two sections for resolved threads; three for
        unresolved or in-progress ones, ending with a call for updates.

    Raises:
        ValueError: If the status is not a known summary status.
    """
    status = SummaryStatus(status)
    summary_block = _section(f"*Summary:*\n{summary}")

    if status is SummaryStatus.RESOLVED:
        return {"blocks": [_section(RESOLVED_HEADER), summary_block]}
    return {
        "blocks": [
            _section(UNRESOLVED_HEADER),
            summary_block,
            _section(FOLLOW_UP_PROMPT),
        ]
    }
