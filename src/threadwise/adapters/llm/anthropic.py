"""Anthropic Claude LLM adapter.

This module implements the LLMProvider protocol for Anthropic's Claude models.

Security features:
- Secret redaction BEFORE all API calls (fail-closed)
- Structured prompts with clear system/user boundaries
- Output length limits enforced
"""

from __future__ import annotations

import anthropic
import structlog

from ...config.schema import AnthropicConfig
from ...models.llm import LLMMessage, LLMResponse
from ...utils.async_helpers import LLMError, RateLimitError, TimeoutError
from ...utils.security import RedactionError, SecretRedactor, SecurityError

log = structlog.get_logger()

# Maximum response length in characters
MAX_RESPONSE_LENGTH = 50000


class AnthropicAdapter:
    """Anthropic LLM adapter implementing the LLMProvider protocol.

    ``system`` messages are joined into the request's system prompt; the rest
    are sent as the conversation. Every message is redacted first.

    Example:
        config = AnthropicConfig(api_key="sk-ant-...")
        adapter = AnthropicAdapter(config)

        response = await adapter.complete([
            LLMMessage(role="system", content="Reply in JSON."),
            LLMMessage(role="user", content="Classify this Slack thread: ..."),
        ])
        print(response.content)
    """

    def __init__(
        self,
        config: AnthropicConfig,
        redactor: SecretRedactor | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        """Initialize the Anthropic adapter.

        Args:
            config: Anthropic-specific configuration.
            redactor: Secret redactor. If None, creates default.
            client: SDK client. If None, one is built from the config.
        """
        self._config = config
        self._redactor = redactor or SecretRedactor()
        self._client = client or anthropic.AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.timeout,
        )

    @property
    def model_name(self) -> str:
        """Return the model identifier being used."""
        return self._config.model

    def _redact_text(self, text: str) -> str:
        """Redact secrets from text, failing closed on error.

        Raises:
            SecurityError: If redaction fails.
        """
        try:
            return self._redactor.redact(text)
        except RedactionError as e:
            log.error("redaction_failed_blocking_llm_call", error=str(e))
            raise SecurityError(f"Cannot send to LLM: redaction failed: {e}") from e

    async def complete(self, messages: list[LLMMessage]) -> LLMResponse:
        """Run a chat completion.

        Security: All message content is redacted before sending to the API.

        Raises:
            LLMError: If the request fails or the response is unusable.
            SecurityError: If redaction fails.
            RateLimitError: If rate limit exceeded.
            TimeoutError: If request times out.
        """
        system_parts = [self._redact_text(m.content) for m in messages if m.role == "system"]
        conversation = [
            {"role": m.role, "content": self._redact_text(m.content)}
            for m in messages
            if m.role != "system"
        ]
        if not conversation:
            raise LLMError("At least one user message is required")

        kwargs: dict[str, object] = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
            "messages": conversation,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        try:
            response = await self._client.messages.create(**kwargs)  # type: ignore[call-overload]
        except anthropic.RateLimitError as e:
            log.warning("anthropic_rate_limit", error=str(e))
            retry_after = e.response.headers.get("retry-after") if e.response else None
            raise RateLimitError(
                f"Anthropic rate limit exceeded: {e}",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            ) from e
        except anthropic.APITimeoutError as e:
            log.error("anthropic_timeout", error=str(e))
            raise TimeoutError(f"Anthropic request timed out: {e}") from e
        except anthropic.APIError as e:
            log.error("anthropic_api_error", error=str(e))
            raise LLMError(f"Anthropic API error: {e}") from e

        # Extract text from response
        response_text = ""
        for block in response.content:
            if hasattr(block, "text"):
                response_text += block.text

        if not response_text:
            raise LLMError("Anthropic returned an empty response")
        if len(response_text) > MAX_RESPONSE_LENGTH:
            raise LLMError(f"Response exceeds maximum length: {len(response_text)}")

        log.debug(
            "llm_completion",
            model=self._config.model,
            response_chars=len(response_text),
        )
        return LLMResponse(content=response_text, model=getattr(response, "model", None))
