"""
AI image generation package for funfactory coloring books.
"""

from .prompting import (
    COLORING_STYLE_SUFFIX,
    NUMBER_OF_COLORING_PAGES,
    PAGE_PROMPT_TEMPLATES,
    ColoringPagePrompt,
    apply_coloring_style,
    build_page_prompt,
    build_page_prompts,
)
from .replicate_service import ImageGenerator, ReplicateImageGenerator

__all__ = [
    "COLORING_STYLE_SUFFIX",
    "NUMBER_OF_COLORING_PAGES",
    "PAGE_PROMPT_TEMPLATES",
    "ColoringPagePrompt",
    "ImageGenerator",
    "ReplicateImageGenerator",
    "apply_coloring_style",
    "build_page_prompt",
    "build_page_prompts",
]
