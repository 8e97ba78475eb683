"""Data models for language model requests."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class LLMMessage:
    """One message of a chat-style completion request."""

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class LLMResponse:
    """Text returned by the language model."""

    content: str
    model: str | None = None
