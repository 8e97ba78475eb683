"""Thread selection filter."""

from threadwise.models.thread import ThreadRoot
from threadwise.models.workspace import WorkspaceSettings


def should_process(thread: ThreadRoot, settings: WorkspaceSettings) -> bool:
    """Return True if a thread has strictly more replies than the workspace threshold.

    A thread without a reply count is treated as having no replies.
    """
    return (thread.reply_count or 0) > settings.thread_threshold
