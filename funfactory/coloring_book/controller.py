"""
Drives sequential page generation and per-page retries for the current coloring book.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from funfactory.ai_generation import (
    NUMBER_OF_COLORING_PAGES,
    ImageGenerator,
    ReplicateImageGenerator,
)
from funfactory.common import (
    PageNotFoundError,
    PageStateError,
    RemoteGenerationError,
    ValidationError,
)

from .book import ColoringBook, ColoringPage, PageStatus

ProgressCallback = Callable[[str, dict[str, Any]], None]

logger = logging.getLogger(__name__)

_RETRYABLE_STATUSES = (PageStatus.FAILED, PageStatus.READY)
_GENERATABLE_STATUSES = (PageStatus.PENDING, PageStatus.FAILED, PageStatus.READY)


class ColoringBookController:
    """
    Owns the single active :class:`ColoringBook` and every mutation of its pages.

    Pages are generated strictly one at a time in slot order. A failed page never
    stops the pages after it, and can be retried on its own later. Starting or adopting
    a book (even the current one again) supersedes every earlier adoption: results
    of calls issued before it are discarded when they come back.

    Observers receive ``(stage, payload)`` notifications through ``progress_callback``:
    ``book:created``, ``page:generating``, ``page:ready``, ``page:failed``,
    ``page:discarded``, ``book:complete`` and ``book:incomplete``.
    """

    def __init__(
        self,
        *,
        image_generator: ImageGenerator | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._image_generator: ImageGenerator = image_generator or ReplicateImageGenerator()
        self._progress_callback = progress_callback
        self._lock = threading.RLock()
        self._book: ColoringBook | None = None
        self._generation = 0

    @property
    def current_book(self) -> ColoringBook | None:
        return self._book

    @property
    def is_ready_for_assembly(self) -> bool:
        book = self._book
        return book is not None and book.is_complete

    def start_book(
        self,
        theme: str,
        child_name: str,
        page_count: int = NUMBER_OF_COLORING_PAGES,
    ) -> ColoringBook:
        """
        Validate the request, replace the current book, and generate every page in order.
        """
        book = self._new_book(theme, child_name, page_count)
        generation = self._install(book)
        self._generate_book(book, generation)
        return book

    def create_book(
        self,
        theme: str,
        child_name: str,
        page_count: int = NUMBER_OF_COLORING_PAGES,
    ) -> ColoringBook:
        """
        Replace the current book with a fresh one whose pages are all pending.
        """
        return self.adopt_book(self._new_book(theme, child_name, page_count))

    def adopt_book(self, book: ColoringBook) -> ColoringBook:
        """
        Make ``book`` the current book, e.g. one loaded from a saved YAML package.

        Pages left generating by an interrupted run are reset to pending. Calls still
        in flight for an earlier adoption, even of the same book, are discarded when
        they return.
        """
        self._install(book)
        return book

    def generate_all(self) -> ColoringBook:
        """Generate every still-pending page of the current book, in slot order."""
        with self._lock:
            book = self._require_book()
            generation = self._generation
        return self._generate_book(book, generation)

    def generate_page(self, page_id: str) -> ColoringPage:
        """Generate (or regenerate) a single page of the current book."""
        with self._lock:
            book = self._require_book()
            page = self._require_page(book, page_id)
            generation = self._generation
        return self._generate(book, generation, page, allowed=_GENERATABLE_STATUSES)

    def retry_page(self, page_id: str) -> ColoringPage:
        """
        Regenerate one failed (or ready) page without touching its siblings.

        Raises :class:`PageStateError` if the page is pending or already generating.
        """
        with self._lock:
            book = self._require_book()
            page = self._require_page(book, page_id)
            generation = self._generation
        logger.info("Retrying %s of book %s.", page.id, book.book_id)
        return self._generate(book, generation, page, allowed=_RETRYABLE_STATUSES)

    @staticmethod
    def _new_book(theme: str, child_name: str, page_count: int) -> ColoringBook:
        theme = (theme or "").strip()
        child_name = (child_name or "").strip()
        if not theme or not child_name:
            raise ValidationError("Please provide both a theme and a child's name.")
        if page_count < 1:
            raise ValidationError(f"A coloring book needs at least one page, got {page_count}.")
        return ColoringBook.create(theme, child_name, page_count)

    def _install(self, book: ColoringBook) -> int:
        if not book.pages:
            raise ValidationError("A coloring book needs at least one page.")

        with self._lock:
            for page in book.pages_with_status(PageStatus.GENERATING):
                page.status = PageStatus.PENDING
            previous = self._book
            self._book = book
            self._generation += 1
            generation = self._generation
            pending = len(book.pages_with_status(PageStatus.PENDING))

        if previous is not None and previous is not book:
            logger.info("Book %s superseded by %s.", previous.book_id, book.book_id)
        logger.info(
            "Active book %s for %s (theme %r, %d pages).",
            book.book_id,
            book.child_name,
            book.theme,
            len(book.pages),
        )
        self._notify(
            "book:created",
            book_id=book.book_id,
            theme=book.theme,
            child_name=book.child_name,
            total_pages=len(book.pages),
            pending=pending,
        )
        return generation

    def _is_current(self, book: ColoringBook, generation: int) -> bool:
        return self._book is book and self._generation == generation

    def _generate_book(self, book: ColoringBook, generation: int) -> ColoringBook:
        total_pages = len(book.pages)
        for index, page in enumerate(list(book.pages), start=1):
            with self._lock:
                if not self._is_current(book, generation):
                    logger.info("Stopping generation for superseded book %s.", book.book_id)
                    return book
                if page.status is not PageStatus.PENDING:
                    continue
            try:
                self._generate(
                    book,
                    generation,
                    page,
                    allowed=(PageStatus.PENDING,),
                    page_index=index,
                    total_pages=total_pages,
                )
            except PageStateError:
                # The book was replaced, or another caller claimed the page first.
                if not self._is_current(book, generation):
                    return book
                continue

        with self._lock:
            if not self._is_current(book, generation):
                return book
            counts = book.status_counts()
            complete = book.is_complete

        stage = "book:complete" if complete else "book:incomplete"
        self._notify(
            stage,
            book_id=book.book_id,
            ready=counts[PageStatus.READY],
            failed=counts[PageStatus.FAILED],
            total_pages=total_pages,
        )
        return book

    def _generate(
        self,
        book: ColoringBook,
        generation: int,
        page: ColoringPage,
        *,
        allowed: tuple[PageStatus, ...],
        page_index: int | None = None,
        total_pages: int | None = None,
    ) -> ColoringPage:
        with self._lock:
            if not self._is_current(book, generation):
                raise PageStateError(f"Book {book.book_id} is no longer the current book.")
            if page.status not in allowed:
                raise PageStateError(
                    f"Page '{page.id}' cannot be generated while '{page.status.value}'."
                )
            page.mark_generating()
            prompt = page.prompt

        progress = {
            "book_id": book.book_id,
            "page_id": page.id,
            "slot": page.slot,
            "prompt": prompt,
        }
        if page_index is not None:
            progress.update(page_index=page_index, total_pages=total_pages)

        image: bytes | None = None
        error_message: str | None = None
        try:
            self._notify("page:generating", **progress)
            image = self._image_generator(prompt)
            if not image:
                raise RemoteGenerationError("No image data received from the model.")
        except Exception as exc:
            error_message = _describe_failure(exc)
        except BaseException:
            with self._lock:
                if self._is_current(book, generation):
                    page.mark_failed("Image generation was interrupted.")
            raise

        with self._lock:
            if not self._is_current(book, generation):
                logger.info(
                    "Discarding result for %s of superseded book %s.", page.id, book.book_id
                )
                stale = True
            else:
                stale = False
                if error_message is None:
                    page.mark_ready(image)
                else:
                    page.mark_failed(error_message)

        if stale:
            self._notify("page:discarded", **progress)
        elif error_message is None:
            self._notify("page:ready", **progress)
        else:
            logger.warning(
                "Page %s of book %s failed: %s", page.id, book.book_id, error_message
            )
            self._notify("page:failed", error_message=error_message, **progress)
        return page

    def _require_book(self) -> ColoringBook:
        if self._book is None:
            raise PageStateError("No coloring book has been started yet.")
        return self._book

    @staticmethod
    def _require_page(book: ColoringBook, page_id: str) -> ColoringPage:
        page = book.get_page(page_id)
        if page is None:
            raise PageNotFoundError(f"Page '{page_id}' does not exist in the current book.")
        return page

    def _notify(self, stage: str, **payload: Any) -> None:
        if self._progress_callback is None:
            return
        try:
            self._progress_callback(stage, payload)
        except Exception:
            logger.exception("Progress callback failed for stage %s.", stage)


def _describe_failure(exc: Exception) -> str:
    message = str(exc).strip() or exc.__class__.__name__
    if isinstance(exc, RemoteGenerationError):
        return message
    return f"Failed to generate image: {message}"
