"""Protocol definitions for pluggable adapters."""

from .chat import ChatProvider
from .jobs import JobBackend
from .llm import LLMProvider
from .store import WorkspaceStore
from .tickets import TicketProvider

__all__ = ["ChatProvider", "JobBackend", "LLMProvider", "TicketProvider", "WorkspaceStore"]
