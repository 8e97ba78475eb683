"""Abstract interface for LLM integrations."""

from typing import Protocol

from ..models.llm import LLMMessage, LLMResponse


class LLMProvider(Protocol):
    """Abstract interface for LLM integrations.

    Implementations are responsible for redacting secrets from every message
    before it leaves the process.
    """

    @property
    def model_name(self) -> str:
        """Return the model identifier being used."""
        ...

    async def complete(self, messages: list[LLMMessage]) -> LLMResponse:
        """
        Run a chat completion.

        Args:
            messages: Ordered conversation; ``system`` messages carry instructions

        Returns:
            The model's text response

        Raises:
            LLMError: If the request fails
            RateLimitError: If rate limit exceeded
            TimeoutError: If the request times out
            SecurityError: If secret redaction fails
        """
        ...
