"""
Common utilities shared across funfactory modules.
"""

from .config import resolve_state_dir, resolve_timeout
from .errors import (
    AssemblyError,
    FunFactoryError,
    PageNotFoundError,
    PageStateError,
    PersistenceError,
    RemoteGenerationError,
    ValidationError,
)
from .llm import ChatResult, CompletionCallable, call_chat_completion

__all__ = [
    "AssemblyError",
    "ChatResult",
    "CompletionCallable",
    "FunFactoryError",
    "PageNotFoundError",
    "PageStateError",
    "PersistenceError",
    "RemoteGenerationError",
    "ValidationError",
    "call_chat_completion",
    "resolve_state_dir",
    "resolve_timeout",
]
