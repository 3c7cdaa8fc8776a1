"""
Printable PDF export for coloring books.
"""

from .builder import (
    COVER_TITLE,
    DEFAULT_LAYOUT,
    PAGE_SIZES,
    ColoringBookPDFBuilder,
    PageLayoutConfig,
    coloring_book_filename,
    fit_image_within_box,
)

__all__ = [
    "COVER_TITLE",
    "DEFAULT_LAYOUT",
    "PAGE_SIZES",
    "ColoringBookPDFBuilder",
    "PageLayoutConfig",
    "coloring_book_filename",
    "fit_image_within_box",
]
