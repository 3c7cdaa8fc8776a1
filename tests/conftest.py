"""
Shared fixtures: real PNG payloads and a scripted stand-in for the image client.
"""

from __future__ import annotations

import io
from typing import Any, Callable, Iterable

import pytest
from PIL import Image

from funfactory.coloring_book import ColoringBook, PageStatus


def make_png(width: int = 64, height: int = 64) -> bytes:
    image = Image.new("RGB", (width, height), color="white")
    for x in range(width):
        image.putpixel((x, height // 2), (0, 0, 0))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class ScriptedImageGenerator:
    """
    Callable image client that replays queued outcomes, then falls back to a PNG.

    An outcome is bytes (returned), an exception (raised), or a callable taking the
    prompt (its return value is used).
    """

    def __init__(self, outcomes: Iterable[Any] = (), default: bytes | None = None) -> None:
        self.calls: list[str] = []
        self._outcomes = list(outcomes)
        self._default = default if default is not None else make_png()

    def queue(self, *outcomes: Any) -> None:
        self._outcomes.extend(outcomes)

    def __call__(self, prompt: str) -> bytes:
        self.calls.append(prompt)
        outcome = self._outcomes.pop(0) if self._outcomes else self._default
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(prompt)
        return outcome


def assert_page_invariants(book: ColoringBook) -> None:
    for page in book.pages:
        if page.status is PageStatus.READY:
            assert page.image and page.error_message is None
        elif page.status is PageStatus.FAILED:
            assert page.error_message and page.image is None
        else:
            assert page.image is None and page.error_message is None


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return make_png


@pytest.fixture
def scripted_generator() -> ScriptedImageGenerator:
    return ScriptedImageGenerator()


@pytest.fixture
def ready_book(png_factory: Callable[..., bytes]) -> ColoringBook:
    """A five-page book whose pages all carry images."""
    book = ColoringBook.create("space dinosaurs", "Ava", 5)
    for page in book.pages:
        page.mark_generating()
        page.mark_ready(png_factory(64 + page.slot * 16, 48))
    return book
