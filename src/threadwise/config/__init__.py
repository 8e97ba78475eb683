"""Configuration loading and validation."""

from .loader import load_config, load_config_from_env, validate_config
from .schema import (
    AnthropicConfig,
    ExecutionConfig,
    JiraConfig,
    JiraCredentials,
    KubernetesConfig,
    LLMConfig,
    LoggingConfig,
    RetryConfig,
    RuntimeConfig,
    SchedulerConfig,
    ServerConfig,
    SlackConfig,
    ThreadwiseConfig,
    WorkspaceConfig,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_from_env",
    "validate_config",
    # Root config
    "ThreadwiseConfig",
    # Top-level configs
    "SlackConfig",
    "LLMConfig",
    "JiraConfig",
    "ServerConfig",
    "ExecutionConfig",
    "SchedulerConfig",
    "WorkspaceConfig",
    "RuntimeConfig",
    "RetryConfig",
    "LoggingConfig",
    # Provider-specific configs
    "AnthropicConfig",
    "JiraCredentials",
    "KubernetesConfig",
]
