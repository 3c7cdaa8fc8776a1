"""
Chat message model shared by the history store, the session, and the assistant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

ChatRole = Literal["user", "assistant"]

_ROLE_ALIASES: dict[str, ChatRole] = {
    "user": "user",
    "assistant": "assistant",
    # Histories saved by the browser app used Gemini's naming.
    "model": "assistant",
}


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str

    def __post_init__(self) -> None:
        if self.role not in ("user", "assistant"):
            raise ValueError(f"Unsupported chat role {self.role!r}.")

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ChatMessage":
        try:
            raw_role = str(payload["role"]).strip().lower()
            content = payload["content"]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Invalid chat message entry: {payload!r}") from exc

        role = _ROLE_ALIASES.get(raw_role)
        if role is None or not isinstance(content, str):
            raise ValueError(f"Invalid chat message entry: {payload!r}")
        return cls(role=role, content=content)
