"""Core business logic components.

This module exports the main business logic classes:
- ThreadClassifier: Categorizes, summarizes and extracts tasks from threads
- ThreadPipeline: Runs one thread through classification and its side effects
- WorkspaceAnalyzer: Walks a workspace's channels and selects threads
- ExecutionDispatcher implementations: Direct, in-process and delegated runs
- AnalysisScheduler: Cron-driven analysis cycles
- create_application: Wires configuration into the component graph
"""

from threadwise.core.analyzer import WorkspaceAnalyzer
from threadwise.core.application import Application, create_application
from threadwise.core.classifier import ThreadClassifier
from threadwise.core.dispatch import (
    DelegatedDispatcher,
    DirectDispatcher,
    ExecutionDispatcher,
    InProcessDispatcher,
    create_dispatcher,
)
from threadwise.core.pipeline import ThreadPipeline
from threadwise.core.scheduler import AnalysisScheduler

__all__ = [
    "AnalysisScheduler",
    "Application",
    "DelegatedDispatcher",
    "DirectDispatcher",
    "ExecutionDispatcher",
    "InProcessDispatcher",
    "ThreadClassifier",
    "ThreadPipeline",
    "WorkspaceAnalyzer",
    "create_application",
    "create_dispatcher",
]
