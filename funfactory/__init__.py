"""
Fun Factory package exposing coloring book generation, PDF export, and kid-safe chat.
"""

from .chat import ChatHistoryStore, ChatMessage, ChatSession, KidChatAssistant
from .coloring_book import ColoringBook, ColoringBookController, ColoringPage, PageStatus
from .pdf_generation import ColoringBookPDFBuilder, coloring_book_filename

__all__ = [
    "ChatHistoryStore",
    "ChatMessage",
    "ChatSession",
    "ColoringBook",
    "ColoringBookController",
    "ColoringBookPDFBuilder",
    "ColoringPage",
    "KidChatAssistant",
    "PageStatus",
    "coloring_book_filename",
]
