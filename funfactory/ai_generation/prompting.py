"""
Prompt construction utilities for coloring page image generation.
"""

from __future__ import annotations

from dataclasses import dataclass

NUMBER_OF_COLORING_PAGES = 5

COLORING_STYLE_SUFFIX = (
    "black and white, thick lines, coloring book style, simple, clear, no shading"
)

PAGE_PROMPT_TEMPLATES: tuple[str, ...] = (
    "A {theme} character waving, for {name} to color",
    "A fun scene with a {theme} creature playing, for {name} to color",
    "A simple landscape featuring {theme} elements, for {name} to color",
    "A vehicle or object related to {theme}, for {name} to color",
    "A group of cute {theme} characters, for {name} to color",
)


@dataclass(frozen=True)
class ColoringPagePrompt:
    """Container for the caption shown to the child and the text sent to the image model."""

    caption: str

    @property
    def full_prompt(self) -> str:
        return apply_coloring_style(self.caption)


def apply_coloring_style(prompt: str) -> str:
    """Append the fixed line-art style suffix to a page prompt."""
    return f"{prompt.strip()}, {COLORING_STYLE_SUFFIX}"


def build_page_prompt(child_name: str, theme: str, slot_index: int) -> ColoringPagePrompt:
    """
    Build the prompt for one slot of a coloring book.

    Parameters
    ----------
    child_name:
        Name of the child the page is made for.
    theme:
        Theme chosen for the whole book (e.g., "space dinosaurs").
    slot_index:
        Zero-based position of the page in the book. Indexes past the last
        template wrap around to the first one.
    """
    if not child_name or not child_name.strip():
        raise ValueError("child_name must be a non-empty string.")

    if not theme or not theme.strip():
        raise ValueError("theme must be a non-empty string.")

    if slot_index < 0:
        raise ValueError(f"slot_index must be zero or positive, got {slot_index}.")

    template = PAGE_PROMPT_TEMPLATES[slot_index % len(PAGE_PROMPT_TEMPLATES)]
    caption = template.format(theme=theme.strip(), name=child_name.strip())
    return ColoringPagePrompt(caption=caption)


def build_page_prompts(
    child_name: str,
    theme: str,
    page_count: int = NUMBER_OF_COLORING_PAGES,
) -> list[ColoringPagePrompt]:
    """Build prompts for every slot of a book, in slot order."""
    return [build_page_prompt(child_name, theme, index) for index in range(page_count)]
