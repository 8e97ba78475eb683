"""Application assembly.

This module wires configuration into concrete adapters and core components.
Every collaborator is constructed explicitly here and passed down; there are
no module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from threadwise.core.analyzer import WorkspaceAnalyzer
from threadwise.core.classifier import ThreadClassifier
from threadwise.core.dispatch import create_dispatcher
from threadwise.core.pipeline import ThreadPipeline
from threadwise.core.scheduler import AnalysisScheduler

if TYPE_CHECKING:
    from threadwise.config.schema import ThreadwiseConfig
    from threadwise.core.dispatch import ExecutionDispatcher
    from threadwise.interfaces.chat import ChatProvider
    from threadwise.interfaces.jobs import JobBackend
    from threadwise.interfaces.llm import LLMProvider
    from threadwise.interfaces.store import WorkspaceStore
    from threadwise.interfaces.tickets import TicketProvider

log = structlog.get_logger()


@dataclass
class Application:
    """Fully assembled component graph."""

    config: ThreadwiseConfig
    chat: ChatProvider
    llm: LLMProvider
    tickets: TicketProvider
    store: WorkspaceStore
    classifier: ThreadClassifier
    pipeline: ThreadPipeline
    analyzer: WorkspaceAnalyzer
    dispatcher: ExecutionDispatcher
    scheduler: AnalysisScheduler


def create_application(
    config: ThreadwiseConfig,
    *,
    chat: ChatProvider | None = None,
    llm: LLMProvider | None = None,
    tickets: TicketProvider | None = None,
    store: WorkspaceStore | None = None,
    job_backend: JobBackend | None = None,
) -> Application:
    """Factory function to create the application with all dependencies.

    Adapters are built from configuration unless supplied.

    Args:
        config: Application configuration
        chat: Chat provider override
        llm: LLM provider override
        tickets: Ticket provider override
        store: Workspace store override
        job_backend: Job backend override (delegated mode only)

    Returns:
        Assembled Application

    Raises:
        ValueError: If configuration is invalid
    """
    chat = chat or _create_chat_adapter(config)
    llm = llm or _create_llm_adapter(config)
    tickets = tickets or _create_ticket_adapter(config)
    store = store or _create_workspace_store(config)

    classifier = ThreadClassifier(llm)
    pipeline = ThreadPipeline(chat, tickets, classifier)
    analyzer = WorkspaceAnalyzer(store, chat, pipeline, chunk_size=config.runtime.chunk_size)
    dispatcher = create_dispatcher(config, analyzer=analyzer, job_backend=job_backend)
    scheduler = AnalysisScheduler(dispatcher, store)

    log.info(
        "application_created",
        environment=config.environment,
        execution_mode=config.execution.mode,
        deployment_mode=config.slack.deployment_mode,
        llm_model=llm.model_name,
    )

    return Application(
        config=config,
        chat=chat,
        llm=llm,
        tickets=tickets,
        store=store,
        classifier=classifier,
        pipeline=pipeline,
        analyzer=analyzer,
        dispatcher=dispatcher,
        scheduler=scheduler,
    )


def _create_chat_adapter(config: ThreadwiseConfig) -> ChatProvider:
    from threadwise.adapters.chat.slack import SlackAdapter

    return SlackAdapter(config.slack)


def _create_llm_adapter(config: ThreadwiseConfig) -> LLMProvider:
    """Create an LLM adapter based on configuration.

    Raises:
        ValueError: If provider is not supported
    """
    provider = config.llm.provider

    if provider == "anthropic":
        if not config.llm.anthropic:
            raise ValueError("Anthropic configuration required when provider is 'anthropic'")
        from threadwise.adapters.llm.anthropic import AnthropicAdapter

        return AnthropicAdapter(config.llm.anthropic)

    raise ValueError(f"Unsupported LLM provider: {provider}")


def _create_ticket_adapter(config: ThreadwiseConfig) -> TicketProvider:
    from threadwise.adapters.tickets.jira import JiraAdapter, JiraCredentialRegistry

    registry = JiraCredentialRegistry.from_config(config.jira)
    return JiraAdapter(
        registry,
        timeout=config.jira.request_timeout,
        retry_config=config.retry,
    )


def _create_workspace_store(config: ThreadwiseConfig) -> WorkspaceStore:
    from threadwise.adapters.store.static import StaticWorkspaceStore

    return StaticWorkspaceStore.from_config(config)
