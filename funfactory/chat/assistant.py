"""
LiteLLM-backed chat assistant with a fixed, child-friendly persona.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

from funfactory.common import (
    ChatResult,
    CompletionCallable,
    RemoteGenerationError,
    call_chat_completion,
    resolve_timeout,
)

from .messages import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "gemini/gemini-2.5-flash"
DEFAULT_CHAT_TIMEOUT = 60.0

KID_SAFE_PERSONA = (
    "You are a friendly, helpful, and imaginative assistant designed to chat with children. "
    "Keep your responses positive, encouraging, and easy to understand. "
    "Avoid complex topics and always prioritize safety and appropriateness for young audiences. "
    "Use simple language and fun imagery."
)


class KidChatAssistant:
    """
    Sends a conversation to the configured chat model and returns the assistant's reply.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        top_p: float = 0.95,
        timeout: float | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = (
            api_key
            or os.getenv("FUNFACTORY_CHAT_API_KEY")
            or os.getenv("GEMINI_API_KEY")
            or os.getenv("LITELLM_API_KEY")
        )
        self._model = (
            model
            or os.getenv("FUNFACTORY_CHAT_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_CHAT_MODEL
        )
        self._temperature = temperature
        self._top_p = top_p
        self._timeout = resolve_timeout(timeout, DEFAULT_CHAT_TIMEOUT)
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    def __call__(self, history: Sequence[ChatMessage], new_message: str) -> str:
        return self.converse(history, new_message)

    def converse(
        self,
        history: Sequence[ChatMessage],
        new_message: str,
        **response_kwargs: Any,
    ) -> str:
        """
        Reply to ``new_message`` given the earlier turns in ``history``.

        ``history`` must not already contain ``new_message``.
        """
        messages = [{"role": "system", "content": KID_SAFE_PERSONA}]
        messages.extend(message.to_dict() for message in history)
        messages.append({"role": "user", "content": new_message})

        try:
            result: ChatResult = self._completion_fn(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                top_p=self._top_p,
                api_key=self._api_key,
                timeout=self._timeout,
                **response_kwargs,
            )
        except Exception as exc:
            logger.warning("Chat completion with %s failed: %s", self._model, exc)
            raise RemoteGenerationError(f"Failed to get chat response: {exc}") from exc

        if not result.text:
            raise RemoteGenerationError("No text response received from the chatbot.")
        return result.text
