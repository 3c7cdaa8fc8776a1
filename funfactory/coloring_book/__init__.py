"""
Coloring book state: pages, books, and the generation controller.
"""

from .book import ColoringBook, ColoringPage, PageStatus
from .controller import ColoringBookController, ProgressCallback

__all__ = [
    "ColoringBook",
    "ColoringBookController",
    "ColoringPage",
    "PageStatus",
    "ProgressCallback",
]
