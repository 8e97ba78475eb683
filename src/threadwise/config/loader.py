"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
import yaml

from .schema import ThreadwiseConfig

log = structlog.get_logger()

# Execution mode names used by earlier deployments
EXECUTION_MODE_ALIASES = {
    "in-memory": "direct",
    "kubernetes": "delegated",
}


def substitute_env_vars(text: str, environ: Mapping[str, str] | None = None) -> str:
    """
    Replace ${VAR_NAME} patterns with environment variable values.

    Args:
        text: Text containing ${VAR_NAME} patterns
        environ: Variables to substitute from (defaults to os.environ)

    Returns:
        Text with environment variables substituted

    Raises:
        ValueError: If a referenced environment variable is not found
    """
    env = os.environ if environ is None else environ

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = env.get(var_name)
        if value is None:
            raise ValueError(f"Environment variable {var_name} not found")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def load_config(path: Path) -> ThreadwiseConfig:
    """
    Load configuration from YAML file with environment variable substitution.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated ThreadwiseConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If environment variables are missing or config is invalid
        ValidationError: If config doesn't match schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open() as f:
        raw_yaml = f.read()

    yaml_with_env = substitute_env_vars(raw_yaml)
    config_dict = yaml.safe_load(yaml_with_env) or {}

    config = ThreadwiseConfig.model_validate(config_dict)
    validate_config(config)

    return config


def _set(target: dict[str, Any], dotted: str, value: Any) -> None:
    """Assign ``value`` at a dotted path, creating intermediate dicts."""
    *parents, leaf = dotted.split(".")
    for key in parents:
        target = target.setdefault(key, {})
    target[leaf] = value


# Flat variable name -> dotted config path
ENV_VAR_MAP: dict[str, str] = {
    "DEPLOYMENT_MODE": "slack.deployment_mode",
    "SLACK_BOT_TOKEN": "slack.bot_token",
    "SLACK_CHANNEL_ID": "slack.channel_id",
    "SLACK_CLIENT_ID": "slack.client_id",
    "SLACK_CLIENT_SECRET": "slack.client_secret",
    "SLACK_REDIRECT_URI": "slack.redirect_uri",
    "LLM_API_KEY": "llm.anthropic.api_key",
    "LLM_MODEL": "llm.anthropic.model",
    "LLM_TEMPERATURE": "llm.anthropic.temperature",
    "LLM_MAX_TOKENS": "llm.anthropic.max_tokens",
    "HOST": "server.host",
    "PORT": "server.port",
    "API_URL": "server.api_url",
    "K8S_NAMESPACE": "execution.kubernetes.namespace",
    "K8S_SECRET_NAME": "execution.kubernetes.secret_name",
    "K8S_TTL_SECONDS": "execution.kubernetes.ttl_seconds_after_finished",
    "K8S_BACKOFF_LIMIT": "execution.kubernetes.backoff_limit",
    "K8S_API_URL": "execution.kubernetes.api_url",
    "K8S_MEMORY_REQUEST": "execution.kubernetes.requests.memory",
    "K8S_CPU_REQUEST": "execution.kubernetes.requests.cpu",
    "K8S_MEMORY_LIMIT": "execution.kubernetes.limits.memory",
    "K8S_CPU_LIMIT": "execution.kubernetes.limits.cpu",
    "JIRA_BASE_URL": "jira.default.base_url",
    "JIRA_EMAIL": "jira.default.email",
    "JIRA_API_TOKEN": "jira.default.api_token",
    "JIRA_PROJECT_KEY": "jira.default.project_key",
    "JIRA_BOARD_ID": "jira.default.board_id",
    "CRON_SCHEDULE": "scheduler.cron_schedule",
    "RUN_ON_START": "scheduler.run_on_start",
    "LOG_LEVEL": "logging.level",
    "LOG_FORMAT": "logging.format",
}


def load_config_from_env(environ: Mapping[str, str] | None = None) -> ThreadwiseConfig:
    """
    Build configuration from flat environment variables.

    This is how containerised deployments (and delegated worker jobs) are
    configured. Missing credentials are fatal; an unknown environment or
    execution mode falls back to the default with a warning.

    Args:
        environ: Variables to read (defaults to os.environ)

    Returns:
        Validated ThreadwiseConfig instance

    Raises:
        ValueError: If required variables are missing or config is invalid
        ValidationError: If config doesn't match schema
    """
    env = os.environ if environ is None else environ
    config_dict: dict[str, Any] = {}

    environment = env.get("THREADWISE_ENV") or env.get("NODE_ENV")
    if environment:
        config_dict["environment"] = environment

    for var_name, dotted in ENV_VAR_MAP.items():
        value = env.get(var_name)
        if value not in (None, ""):
            _set(config_dict, dotted, value)

    # Cron stays off unless explicitly enabled
    _set(config_dict, "scheduler.enabled", env.get("ENABLE_CRON") or "false")

    execution_mode = env.get("EXECUTION_MODE")
    if execution_mode:
        _set(
            config_dict,
            "execution.mode",
            EXECUTION_MODE_ALIASES.get(execution_mode, execution_mode),
        )

    image_name = env.get("K8S_IMAGE_NAME")
    if image_name:
        image_tag = env.get("K8S_IMAGE_TAG") or "latest"
        _set(config_dict, "execution.kubernetes.image", f"{image_name}:{image_tag}")

    workspace_id = env.get("WORKSPACE_ID")
    channel_id = env.get("SLACK_CHANNEL_ID")
    if workspace_id and channel_id:
        config_dict["workspaces"] = [{"id": workspace_id, "channels": [channel_id]}]

    if "llm" not in config_dict:
        raise ValueError("LLM_API_KEY is required")

    # Let SlackConfig report which credential is missing
    config_dict.setdefault("slack", {})

    config = ThreadwiseConfig.model_validate(config_dict)
    validate_config(config)

    return config


def validate_config(config: ThreadwiseConfig) -> None:
    """
    Perform additional cross-field validation.

    Ensures that provider-specific configuration is present when a provider
    or execution mode is selected.

    Args:
        config: Configuration to validate

    Raises:
        ValueError: If provider-specific config is missing or inconsistent
    """
    if config.llm.provider == "anthropic" and config.llm.anthropic is None:
        raise ValueError("Anthropic provider selected but anthropic config missing")

    seen: set[str] = set()
    for workspace in config.workspaces:
        if workspace.id in seen:
            raise ValueError(f"Duplicate workspace id: {workspace.id}")
        seen.add(workspace.id)

    if config.slack.deployment_mode == "multi":
        missing = [w.id for w in config.workspaces if w.id not in config.slack.workspace_tokens]
        if missing:
            raise ValueError(f"No bot token configured for workspaces: {', '.join(missing)}")

    if config.jira.default is None and not config.jira.workspaces:
        log.warning("jira_not_configured", detail="tickets will not be created")
