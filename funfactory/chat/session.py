"""
In-memory chat conversation that is flushed to the history store on every change.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from funfactory.common import RemoteGenerationError, ValidationError

from .messages import ChatMessage
from .storage import ChatHistoryStore

ChatClient = Callable[[Sequence[ChatMessage], str], str]

logger = logging.getLogger(__name__)


class ChatSession:
    """
    Ordered, append-only conversation between the child and the assistant.

    The history is loaded from ``store`` when the session is created and the full
    sequence is persisted after each change.
    """

    def __init__(self, *, client: ChatClient, store: ChatHistoryStore) -> None:
        self._client = client
        self._store = store
        self._messages: list[ChatMessage] = store.load()

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        self._store.save(self._messages)

    def clear(self) -> None:
        self._messages.clear()
        self._store.save(self._messages)

    def send_turn(self, text: str) -> ChatMessage:
        """
        Send ``text`` to the assistant and record both sides of the turn.

        On failure the user's message stays in the history and
        :class:`RemoteGenerationError` is raised.
        """
        if not text or not text.strip():
            raise ValidationError("Please type a message before sending.")

        prior_history = list(self._messages)
        self.append(ChatMessage.user(text))

        try:
            reply = self._client(prior_history, text)
        except RemoteGenerationError:
            raise
        except Exception as exc:
            raise RemoteGenerationError(f"Failed to get response: {exc}") from exc

        if not reply:
            raise RemoteGenerationError("No text response received from the chatbot.")

        response = ChatMessage.assistant(reply)
        self.append(response)
        logger.debug("Chat history now holds %d messages.", len(self._messages))
        return response
