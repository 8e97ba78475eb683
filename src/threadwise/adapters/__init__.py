"""Concrete implementations of provider interfaces."""

from .chat.slack import SlackAdapter
from .jobs.kubernetes import KubernetesJobBackend
from .llm.anthropic import AnthropicAdapter
from .store.static import StaticWorkspaceStore
from .tickets.jira import JiraAdapter, JiraCredentialRegistry

__all__ = [
    "AnthropicAdapter",
    "JiraAdapter",
    "JiraCredentialRegistry",
    "KubernetesJobBackend",
    "SlackAdapter",
    "StaticWorkspaceStore",
]
