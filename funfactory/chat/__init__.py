"""
Kid-safe chat: message model, persisted history, and the LiteLLM assistant.
"""

from .assistant import DEFAULT_CHAT_MODEL, KID_SAFE_PERSONA, KidChatAssistant
from .messages import ChatMessage, ChatRole
from .session import ChatClient, ChatSession
from .storage import CHAT_HISTORY_STORAGE_KEY, ChatHistoryStore

__all__ = [
    "CHAT_HISTORY_STORAGE_KEY",
    "DEFAULT_CHAT_MODEL",
    "KID_SAFE_PERSONA",
    "ChatClient",
    "ChatHistoryStore",
    "ChatMessage",
    "ChatRole",
    "ChatSession",
    "KidChatAssistant",
]
