"""Pydantic models for configuration schema."""

from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "staging", "production")
EXECUTION_MODES = ("direct", "delegated")

log = structlog.get_logger()


class SlackConfig(BaseModel):
    """Slack-specific configuration.

    In ``single`` deployment mode one bot token serves every workspace. In
    ``multi`` mode the app is distributed through OAuth; tokens for installed
    workspaces are listed in ``workspace_tokens``.
    """

    deployment_mode: Literal["single", "multi"] = "single"
    bot_token: str | None = None
    channel_id: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str = "http://localhost:3000/oauth/callback"
    workspace_tokens: dict[str, str] = {}
    resolution_reaction: str = "white_check_mark"
    request_timeout: int = Field(30, ge=1, le=300)

    @field_validator("bot_token")
    @classmethod
    def validate_bot_token(cls, v: str | None) -> str | None:
        """Validate Slack bot token format."""
        if v is not None and not v.startswith("xoxb-"):
            raise ValueError("Bot token must start with xoxb-")
        return v

    @field_validator("workspace_tokens")
    @classmethod
    def validate_workspace_tokens(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate per-workspace bot tokens."""
        for workspace_id, token in v.items():
            if not token.startswith("xoxb-"):
                raise ValueError(f"Bot token for workspace {workspace_id} must start with xoxb-")
        return v

    @model_validator(mode="after")
    def check_mode_credentials(self) -> "SlackConfig":
        """Require the credentials the deployment mode depends on."""
        if self.deployment_mode == "single":
            if not self.bot_token:
                raise ValueError("SLACK_BOT_TOKEN is required in single deployment mode")
        elif not self.client_id or not self.client_secret:
            raise ValueError(
                "SLACK_CLIENT_ID and SLACK_CLIENT_SECRET are required in multi deployment mode"
            )
        return self


class AnthropicConfig(BaseModel):
    """Anthropic-specific configuration."""

    api_key: str
    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 4096
    temperature: float = Field(0.3, ge=0.0, le=1.0)
    timeout: float = Field(60.0, ge=1.0, le=600.0)


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: Literal["anthropic"] = "anthropic"
    anthropic: AnthropicConfig | None = None


class JiraCredentials(BaseModel):
    """Credentials and target project for one Jira site."""

    base_url: str
    email: str
    api_token: str
    project_key: str
    board_id: str | None = None
    issue_type: str = "Task"

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL without a trailing slash."""
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"Invalid Jira base URL: {v}")
        return v.rstrip("/")


class JiraConfig(BaseModel):
    """Ticketing configuration.

    ``workspaces`` maps a workspace id to its own Jira site. Workspaces without
    an entry fall back to ``default``.
    """

    default: JiraCredentials | None = None
    workspaces: dict[str, JiraCredentials] = {}
    request_timeout: int = Field(30, ge=1, le=300)


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "localhost"
    port: int = Field(3000, ge=1, le=65535)
    api_url: str | None = None

    @property
    def base_url(self) -> str:
        """URL the service reaches itself on."""
        return (self.api_url or f"http://{self.host}:{self.port}").rstrip("/")


class ResourceQuantities(BaseModel):
    """Kubernetes resource quantities for one container."""

    memory: str
    cpu: str


class KubernetesConfig(BaseModel):
    """Delegated execution backend configuration."""

    namespace: str = "default"
    image: str = "threadwise:latest"
    secret_name: str = "threadwise-secrets"
    ttl_seconds_after_finished: int = Field(3600, ge=0)
    backoff_limit: int = Field(3, ge=0, le=10)
    api_url: str | None = None
    job_timeout: int = Field(300, ge=10, le=3600)
    requests: ResourceQuantities = ResourceQuantities(memory="64Mi", cpu="50m")
    limits: ResourceQuantities = ResourceQuantities(memory="128Mi", cpu="100m")
    in_cluster: bool = True

    @property
    def service_url(self) -> str:
        """URL jobs use to reach the API service inside the cluster."""
        if self.api_url:
            return self.api_url.rstrip("/")
        return f"http://threadwise-api.{self.namespace}.svc.cluster.local:3000"


class ExecutionConfig(BaseModel):
    """How scheduled workspace analyses are executed."""

    mode: str = "direct"
    direct_transport: Literal["http", "in_process"] = "http"
    direct_timeout: float = Field(60.0, ge=1.0, le=600.0)
    kubernetes: KubernetesConfig = KubernetesConfig()

    @field_validator("mode", mode="before")
    @classmethod
    def fallback_mode(cls, v: Any) -> str:
        """Fall back to direct execution on unknown modes."""
        if v not in EXECUTION_MODES:
            log.warning("invalid_execution_mode", mode=v, fallback="direct")
            return "direct"
        return str(v)


class SchedulerConfig(BaseModel):
    """Cron scheduler configuration."""

    enabled: bool = True
    cron_schedule: str = "*/15 * * * *"
    run_on_start: bool = False

    @field_validator("cron_schedule")
    @classmethod
    def validate_cron_schedule(cls, v: str) -> str:
        """Require a five-field crontab expression."""
        if len(v.split()) != 5:
            raise ValueError(f"Invalid cron schedule: {v}")
        return v


class WorkspaceConfig(BaseModel):
    """A statically configured workspace."""

    id: str
    channels: list[str] = []
    thread_threshold: int = Field(2, ge=0)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate workspace id format."""
        from ..utils.security import validate_workspace_id

        if not validate_workspace_id(v):
            raise ValueError(f"Invalid workspace id: {v}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration. Output always goes to stderr."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"


class RuntimeConfig(BaseModel):
    """Runtime configuration."""

    chunk_size: int = Field(5, ge=1, le=50, description="Workspaces analyzed concurrently")
    analysis_timeout: int = Field(300, ge=30, le=3600, description="Per-workspace timeout")


class RetryConfig(BaseModel):
    """Retry configuration for transient failures."""

    max_attempts: int = Field(3, ge=1, le=10)
    initial_delay: float = Field(1.0, ge=0.1, le=10.0)
    max_delay: float = Field(30.0, ge=1.0, le=300.0)


class ThreadwiseConfig(BaseSettings):
    """Root configuration for threadwise."""

    environment: str = "development"
    slack: SlackConfig
    llm: LLMConfig
    jira: JiraConfig = JiraConfig()
    server: ServerConfig = ServerConfig()
    execution: ExecutionConfig = ExecutionConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    workspaces: list[WorkspaceConfig] = []
    runtime: RuntimeConfig = RuntimeConfig()
    retry: RetryConfig = RetryConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="THREADWISE_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def fallback_environment(cls, v: Any) -> str:
        """Fall back to development on unknown environments."""
        if v not in ENVIRONMENTS:
            log.warning("invalid_environment", environment=v, fallback="development")
            return "development"
        return str(v)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def secret_values(self) -> list[str]:
        """Credential values held by this configuration, for log scrubbing."""
        values = [
            self.slack.bot_token,
            self.slack.client_secret,
            *self.slack.workspace_tokens.values(),
        ]
        if self.llm.anthropic is not None:
            values.append(self.llm.anthropic.api_key)
        jira_sites = [self.jira.default, *self.jira.workspaces.values()]
        values.extend(site.api_token for site in jira_sites if site is not None)
        return [value for value in values if value]
