"""
Persistence of the chat history as a single JSON record under a fixed key.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Sequence

from funfactory.common import PersistenceError, resolve_state_dir

from .messages import ChatMessage

logger = logging.getLogger(__name__)

CHAT_HISTORY_STORAGE_KEY = "geminiFunFactoryChatHistory"


class ChatHistoryStore:
    """
    Reads and writes the ordered chat history kept for this installation.

    The record lives at ``<state_dir>/<key>.json``. A missing record means an empty
    history, and saving an empty history removes the record. Read and write failures
    are logged and degrade to a session-only history instead of being raised; use
    :meth:`read` / :meth:`write` to get the underlying :class:`PersistenceError`.
    """

    def __init__(
        self,
        state_dir: str | Path | None = None,
        *,
        key: str = CHAT_HISTORY_STORAGE_KEY,
    ) -> None:
        self._state_dir = resolve_state_dir(state_dir)
        self._key = key

    @property
    def path(self) -> Path:
        return self._state_dir / f"{self._key}.json"

    def load(self) -> list[ChatMessage]:
        try:
            return self.read()
        except PersistenceError:
            logger.exception("Failed to load chat history from %s.", self.path)
            return []

    def save(self, messages: Sequence[ChatMessage]) -> None:
        try:
            self.write(messages)
        except PersistenceError:
            logger.exception("Failed to save chat history to %s.", self.path)

    def clear(self) -> None:
        self.save([])

    def read(self) -> list[ChatMessage]:
        path = self.path
        if not path.exists():
            return []

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read chat history: {exc}") from exc

        if not isinstance(data, list):
            raise PersistenceError("Stored chat history must be a list of messages.")
        try:
            return [ChatMessage.from_dict(entry) for entry in data]
        except ValueError as exc:
            raise PersistenceError(f"Stored chat history is malformed: {exc}") from exc

    def write(self, messages: Sequence[ChatMessage]) -> None:
        path = self.path
        try:
            if not messages:
                path.unlink(missing_ok=True)
                return

            path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps([message.to_dict() for message in messages], ensure_ascii=False)
            temp_path = path.with_name(f"{path.name}.tmp")
            temp_path.write_text(payload, encoding="utf-8")
            os.replace(temp_path, path)
        except OSError as exc:
            raise PersistenceError(f"Could not write chat history: {exc}") from exc
