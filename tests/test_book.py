"""
Tests for the coloring book data model and YAML book packages.
"""

from pathlib import Path

import pytest

from funfactory.coloring_book import ColoringBook, ColoringPage, PageStatus
from funfactory.common import PageStateError

from .conftest import assert_page_invariants


def test_create_builds_pending_pages_in_slot_order() -> None:
    book = ColoringBook.create("space dinosaurs", "Ava", 5)

    assert [page.id for page in book.pages] == [f"page-{i}" for i in range(1, 6)]
    assert [page.slot for page in book.pages] == list(range(5))
    assert all(page.status is PageStatus.PENDING for page in book.pages)
    assert all("space dinosaurs" in page.prompt and "Ava" in page.prompt for page in book.pages)
    assert not book.is_complete
    assert_page_invariants(book)


def test_books_get_distinct_ids() -> None:
    first = ColoringBook.create("robots", "Sam", 1)
    second = ColoringBook.create("robots", "Sam", 1)

    assert first.book_id != second.book_id


def test_page_transitions_keep_fields_consistent(png_bytes: bytes) -> None:
    page = ColoringPage(id="page-1", slot=0, prompt="A cat")

    page.mark_generating()
    assert page.status is PageStatus.GENERATING
    assert page.image is None and page.error_message is None

    page.mark_failed("quota exceeded")
    assert page.status is PageStatus.FAILED
    assert page.error_message == "quota exceeded"
    assert page.image is None

    page.mark_generating()
    assert page.error_message is None

    page.mark_ready(png_bytes)
    assert page.status is PageStatus.READY
    assert page.image == png_bytes
    assert page.error_message is None


def test_page_rejects_results_outside_generating(png_bytes: bytes) -> None:
    page = ColoringPage(id="page-1", slot=0, prompt="A cat")

    with pytest.raises(PageStateError):
        page.mark_ready(png_bytes)
    with pytest.raises(PageStateError):
        page.mark_failed("boom")

    page.mark_generating()
    with pytest.raises(PageStateError):
        page.mark_generating()
    with pytest.raises(ValueError):
        page.mark_ready(b"")


def test_status_counts_and_filters(ready_book: ColoringBook) -> None:
    ready_book.pages[2].mark_generating()
    ready_book.pages[2].mark_failed("network down")

    counts = ready_book.status_counts()

    assert counts[PageStatus.READY] == 4
    assert counts[PageStatus.FAILED] == 1
    assert [page.id for page in ready_book.pages_with_status(PageStatus.FAILED)] == ["page-3"]
    assert not ready_book.is_complete


def test_yaml_package_preserves_book(ready_book: ColoringBook, tmp_path: Path) -> None:
    ready_book.pages[4].mark_generating()
    ready_book.pages[4].mark_failed("No image data received from the model.")

    path = ready_book.save_yaml(tmp_path / "packages" / "book.yaml")
    loaded = ColoringBook.from_yaml(path)

    assert loaded.book_id == ready_book.book_id
    assert loaded.theme == "space dinosaurs"
    assert loaded.child_name == "Ava"
    assert loaded.created_at == ready_book.created_at
    assert [page.prompt for page in loaded.pages] == [page.prompt for page in ready_book.pages]
    assert [page.image for page in loaded.pages[:4]] == [page.image for page in ready_book.pages[:4]]
    assert loaded.pages[4].status is PageStatus.FAILED
    assert loaded.pages[4].error_message == "No image data received from the model."
    assert_page_invariants(loaded)


def test_from_dict_resets_interrupted_pages_to_pending() -> None:
    book = ColoringBook.from_dict(
        {
            "theme": "robots",
            "child_name": "Sam",
            "pages": [
                {"id": "page-2", "slot": 1, "prompt": "B", "status": "generating"},
                {"id": "page-1", "slot": 0, "prompt": "A", "status": "pending"},
            ],
        }
    )

    assert [page.id for page in book.pages] == ["page-1", "page-2"]
    assert all(page.status is PageStatus.PENDING for page in book.pages)


def test_from_dict_rejects_ready_page_without_image() -> None:
    with pytest.raises(ValueError):
        ColoringBook.from_dict(
            {
                "theme": "robots",
                "child_name": "Sam",
                "pages": [{"id": "page-1", "slot": 0, "prompt": "A", "status": "ready"}],
            }
        )


def test_from_dict_requires_metadata() -> None:
    with pytest.raises(ValueError, match="child_name"):
        ColoringBook.from_dict({"theme": "robots", "pages": []})


@pytest.mark.parametrize(
    ("pages", "message"),
    [
        (
            [
                {"id": "page-1", "slot": 0, "prompt": "A", "status": "pending"},
                {"id": "page-1", "slot": 1, "prompt": "B", "status": "pending"},
            ],
            "duplicate page ids",
        ),
        (
            [
                {"id": "page-1", "slot": 0, "prompt": "A", "status": "pending"},
                {"id": "page-2", "slot": 0, "prompt": "B", "status": "pending"},
            ],
            "duplicate page slots",
        ),
    ],
)
def test_from_dict_rejects_duplicate_pages(pages: list[dict[str, object]], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        ColoringBook.from_dict({"theme": "robots", "child_name": "Sam", "pages": pages})
