"""Per-thread processing pipeline.

This module implements the ThreadPipeline class that runs one selected
thread through classification and its side effects:
1. Fetch the thread messages
2. Resolve author names
3. Classify (casual chat stops here)
4. Extract tasks, unless the thread is already resolved
5. File one ticket per task
6. Summarize and post the status reply
7. Mark resolved threads
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from threadwise.core.formatter import build_resolved_summary
from threadwise.models.analysis import Category, Resolution, SummaryStatus
from threadwise.models.thread import ResolvedMessage, ThreadContext
from threadwise.models.workspace import ThreadOutcome
from threadwise.utils.logging import thread_scope

if TYPE_CHECKING:
    from threadwise.core.classifier import ThreadClassifier
    from threadwise.core.user_cache import UserNameCache
    from threadwise.interfaces.chat import ChatProvider
    from threadwise.interfaces.tickets import TicketProvider
    from threadwise.models.thread import ThreadRoot
    from threadwise.models.workspace import Workspace

log = structlog.get_logger()


class ThreadPipeline:
    """Runs a single thread through classification and its side effects.

    A thread yields at most one status reply, at most one resolution marker
    and one ticket per extracted task. Faults never escape ``process``: they
    are logged and reported as ``ThreadOutcome.ERROR``.

    Example:
        pipeline = ThreadPipeline(chat, tickets, classifier)
        outcome = await pipeline.process(root, "C0123", workspace, user_names)
    """

    def __init__(
        self,
        chat: ChatProvider,
        tickets: TicketProvider,
        classifier: ThreadClassifier,
    ) -> None:
        """Initialize the pipeline.

        Args:
            chat: Chat provider for reading threads and posting replies
            tickets: Ticket provider for filing extracted tasks
            classifier: Classification engine
        """
        self._chat = chat
        self._tickets = tickets
        self._classifier = classifier

    async def process(
        self,
        thread: ThreadRoot,
        channel_id: str,
        workspace: Workspace,
        user_names: UserNameCache,
    ) -> ThreadOutcome:
        """Process one thread.

        Args:
            thread: Root of the thread to process
            channel_id: Channel containing the thread
            workspace: Workspace the channel belongs to
            user_names: Workspace user-name cache for this run

        Returns:
            SKIPPED for casual chat, SUMMARIZED when a reply was posted,
            ERROR when any step failed
        """
        with thread_scope(channel_id, thread.ts):
            return await self._run(thread, channel_id, workspace, user_names)

    async def _run(
        self,
        thread: ThreadRoot,
        channel_id: str,
        workspace: Workspace,
        user_names: UserNameCache,
    ) -> ThreadOutcome:
        start_time = time.time()
        try:
            context = await self._build_context(thread, channel_id, workspace, user_names)

            classification = await self._classifier.classify(context)
            if classification.category is Category.CASUAL_CHAT:
                log.info("thread_skipped_casual_chat")
                return ThreadOutcome.SKIPPED

            if classification.resolution is not Resolution.RESOLVED:
                task_set = await self._classifier.extract_tasks(context)
                for task in task_set.tasks:
                    issue_key = await self._tickets.create_issue(workspace.id, task)
                    log.info("ticket_filed", issue_key=issue_key)

            summary = await self._classifier.summarize(
                classification.category, context, classification
            )
            reply = build_resolved_summary(summary.summary, summary.status)
            await self._chat.post_reply(
                channel_id,
                thread.ts,
                workspace.id,
                reply["blocks"],
                summary.summary,
            )

            if summary.status is SummaryStatus.RESOLVED:
                await self._chat.add_resolution_marker(channel_id, thread.ts, workspace.id)

            log.info(
                "thread_processing_complete",
                category=classification.category.value,
                status=summary.status.value,
                duration_seconds=round(time.time() - start_time, 2),
            )
            return ThreadOutcome.SUMMARIZED

        except Exception as e:
            log.exception("thread_processing_failed", error=str(e))
            return ThreadOutcome.ERROR

    async def _build_context(
        self,
        thread: ThreadRoot,
        channel_id: str,
        workspace: Workspace,
        user_names: UserNameCache,
    ) -> ThreadContext:
        messages = await self._chat.list_messages(channel_id, thread.ts, workspace.id)
        names = await asyncio.gather(*(user_names.resolve(m.user) for m in messages))
        return ThreadContext(
            thread=thread,
            messages=tuple(
                ResolvedMessage(user=m.user, user_name=name, text=m.text, timestamp=m.ts)
                for m, name in zip(messages, names, strict=True)
            ),
        )
