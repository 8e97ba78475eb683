"""Tests for Anthropic LLM adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from threadwise.adapters.llm.anthropic import MAX_RESPONSE_LENGTH, AnthropicAdapter
from threadwise.config.schema import AnthropicConfig
from threadwise.models.llm import LLMMessage
from threadwise.utils.async_helpers import LLMError, RateLimitError, TimeoutError
from threadwise.utils.security import RedactionError, SecretRedactor, SecurityError

API_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


@pytest.fixture
def anthropic_config() -> AnthropicConfig:
    """Create a test Anthropic configuration."""
    return AnthropicConfig(
        api_key="sk-ant-test-key-123",
        model="claude-3-sonnet-20240229",
        max_tokens=4096,
        temperature=0.3,
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock AsyncAnthropic client returning one text block."""
    client = MagicMock()
    block = MagicMock()
    block.text = '{"category": "casual_chat"}'
    response = MagicMock()
    response.content = [block]
    response.model = "claude-3-sonnet-20240229"
    client.messages.create = AsyncMock(return_value=response)
    return client


@pytest.fixture
def messages() -> list[LLMMessage]:
    return [
        LLMMessage(role="system", content="Reply in JSON."),
        LLMMessage(role="user", content="Classify this Slack thread: ..."),
    ]


class TestAnthropicAdapterInit:
    """Test AnthropicAdapter initialization."""

    def test_builds_client_from_config(self, anthropic_config: AnthropicConfig) -> None:
        """Test that the SDK client is built with the key and timeout."""
        with patch("threadwise.adapters.llm.anthropic.anthropic.AsyncAnthropic") as mock_sdk:
            AnthropicAdapter(anthropic_config)

            mock_sdk.assert_called_once_with(api_key="sk-ant-test-key-123", timeout=60.0)

    def test_model_name_property(
        self, anthropic_config: AnthropicConfig, mock_client: MagicMock
    ) -> None:
        """Test model_name property."""
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)
        assert adapter.model_name == "claude-3-sonnet-20240229"

    def test_creates_redactor(
        self, anthropic_config: AnthropicConfig, mock_client: MagicMock
    ) -> None:
        """Test that initialization creates secret redactor."""
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)
        assert isinstance(adapter._redactor, SecretRedactor)


class TestAnthropicAdapterComplete:
    """Test chat completions."""

    async def test_complete(
        self,
        anthropic_config: AnthropicConfig,
        mock_client: MagicMock,
        messages: list[LLMMessage],
    ) -> None:
        """Test that system messages become the system prompt."""
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)

        response = await adapter.complete(messages)

        assert response.content == '{"category": "casual_chat"}'
        assert response.model == "claude-3-sonnet-20240229"
        kwargs = mock_client.messages.create.await_args.kwargs
        assert kwargs["system"] == "Reply in JSON."
        assert kwargs["messages"] == [
            {"role": "user", "content": "Classify this Slack thread: ..."}
        ]
        assert kwargs["model"] == "claude-3-sonnet-20240229"
        assert kwargs["max_tokens"] == 4096
        assert kwargs["temperature"] == 0.3

    async def test_secrets_redacted_before_sending(
        self, anthropic_config: AnthropicConfig, mock_client: MagicMock
    ) -> None:
        """Test that secrets pasted into a thread never reach the API."""
        secret = "xoxb" + "-1234567890-1234567890-FAKEnotreal0123456789"
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)

        await adapter.complete([LLMMessage(role="user", content=f"my token is {secret}")])

        sent = mock_client.messages.create.await_args.kwargs["messages"][0]["content"]
        assert secret not in sent
        assert "[REDACTED]" in sent
        assert "system" not in mock_client.messages.create.await_args.kwargs

    async def test_redaction_failure_blocks_call(
        self,
        anthropic_config: AnthropicConfig,
        mock_client: MagicMock,
        messages: list[LLMMessage],
    ) -> None:
        """Test that a failing redactor fails closed."""
        redactor = MagicMock()
        redactor.redact.side_effect = RedactionError("pattern exploded")
        adapter = AnthropicAdapter(anthropic_config, redactor=redactor, client=mock_client)

        with pytest.raises(SecurityError):
            await adapter.complete(messages)
        mock_client.messages.create.assert_not_awaited()

    async def test_requires_user_message(
        self, anthropic_config: AnthropicConfig, mock_client: MagicMock
    ) -> None:
        """Test that a system-only request is rejected."""
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)
        with pytest.raises(LLMError):
            await adapter.complete([LLMMessage(role="system", content="Reply in JSON.")])

    async def test_empty_response(
        self,
        anthropic_config: AnthropicConfig,
        mock_client: MagicMock,
        messages: list[LLMMessage],
    ) -> None:
        """Test that an answer without text is an error."""
        mock_client.messages.create.return_value.content = []
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)
        with pytest.raises(LLMError, match="empty"):
            await adapter.complete(messages)

    async def test_oversized_response(
        self,
        anthropic_config: AnthropicConfig,
        mock_client: MagicMock,
        messages: list[LLMMessage],
    ) -> None:
        """Test that overly long answers are rejected."""
        mock_client.messages.create.return_value.content[0].text = "x" * (
            MAX_RESPONSE_LENGTH + 1
        )
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)
        with pytest.raises(LLMError, match="maximum length"):
            await adapter.complete(messages)


class TestAnthropicAdapterErrors:
    """Test SDK error mapping."""

    async def test_rate_limit(
        self,
        anthropic_config: AnthropicConfig,
        mock_client: MagicMock,
        messages: list[LLMMessage],
    ) -> None:
        """Test that rate limits carry the retry-after hint."""
        response = httpx.Response(429, headers={"retry-after": "12"}, request=API_REQUEST)
        mock_client.messages.create.side_effect = anthropic.RateLimitError(
            "rate limited", response=response, body=None
        )
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)

        with pytest.raises(RateLimitError) as exc_info:
            await adapter.complete(messages)
        assert exc_info.value.retry_after == 12

    async def test_timeout(
        self,
        anthropic_config: AnthropicConfig,
        mock_client: MagicMock,
        messages: list[LLMMessage],
    ) -> None:
        """Test that SDK timeouts become TimeoutError."""
        mock_client.messages.create.side_effect = anthropic.APITimeoutError(request=API_REQUEST)
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)

        with pytest.raises(TimeoutError):
            await adapter.complete(messages)

    async def test_api_error(
        self,
        anthropic_config: AnthropicConfig,
        mock_client: MagicMock,
        messages: list[LLMMessage],
    ) -> None:
        """Test that other API failures become LLMError."""
        mock_client.messages.create.side_effect = anthropic.APIConnectionError(
            request=API_REQUEST
        )
        adapter = AnthropicAdapter(anthropic_config, client=mock_client)

        with pytest.raises(LLMError, match="Anthropic API error"):
            await adapter.complete(messages)
