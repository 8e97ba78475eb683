"""Data models for chat threads."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Reaction:
    """An emoji reaction on a message."""

    name: str
    users: tuple[str, ...] = ()
    count: int = 0


@dataclass(frozen=True)
class ThreadRoot:
    """The first message of a conversation thread, as listed by the chat client."""

    ts: str
    text: str
    user: str
    reply_count: int | None = None
    reply_users_count: int | None = None
    reply_users: tuple[str, ...] = ()
    reactions: tuple[Reaction, ...] = ()
    is_locked: bool = False

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "ThreadRoot":
        """Build a thread root from a raw chat API message."""
        return cls(
            ts=payload["ts"],
            text=payload.get("text", ""),
            user=payload.get("user", ""),
            reply_count=payload.get("reply_count"),
            reply_users_count=payload.get("reply_users_count"),
            reply_users=tuple(payload.get("reply_users", ())),
            reactions=tuple(
                Reaction(
                    name=r.get("name", ""),
                    users=tuple(r.get("users", ())),
                    count=r.get("count", 0),
                )
                for r in payload.get("reactions", ())
            ),
            is_locked=bool(payload.get("is_locked", False)),
        )

    def to_prompt_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "user": self.user,
            "reply_count": self.reply_count,
            "reply_users_count": self.reply_users_count,
            "reply_users": list(self.reply_users),
            "reactions": [
                {"name": r.name, "users": list(r.users), "count": r.count} for r in self.reactions
            ],
            "is_locked": self.is_locked,
        }


@dataclass(frozen=True)
class ThreadMessage:
    """A raw reply inside a thread."""

    ts: str
    user: str
    text: str


@dataclass(frozen=True)
class ResolvedMessage:
    """A thread message with its author's display name resolved."""

    user: str
    user_name: str
    text: str
    timestamp: str


@dataclass(frozen=True)
class ThreadContext:
    """Everything the language model sees about one thread.

    Messages keep the chronological order the chat client returned them in.
    """

    thread: ThreadRoot
    messages: tuple[ResolvedMessage, ...]

    def to_prompt_dict(self) -> dict[str, Any]:
        """Serialise the context into the JSON structure sent to the model."""
        return {
            "thread": self.thread.to_prompt_dict(),
            "messages": [
                {
                    "user": m.user,
                    "userName": m.user_name,
                    "text": m.text,
                    "timestamp": m.timestamp,
                }
                for m in self.messages
            ],
        }
