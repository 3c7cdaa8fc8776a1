"""
Coloring book data model: pages, their generation status, and YAML book packages.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from funfactory.ai_generation import build_page_prompts
from funfactory.common import PageStateError


class PageStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


@dataclass
class ColoringPage:
    """
    One image-generation unit within a book.

    ``image`` is only set while the page is ready and ``error_message`` only while it
    failed. The ``mark_*`` methods are the only way the status changes, and each one
    keeps the three fields consistent.
    """

    id: str
    slot: int
    prompt: str
    status: PageStatus = PageStatus.PENDING
    image: bytes | None = None
    error_message: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.status is PageStatus.READY

    def mark_generating(self) -> None:
        if self.status is PageStatus.GENERATING:
            raise PageStateError(f"Page '{self.id}' is already generating.")
        self.status = PageStatus.GENERATING
        self.image = None
        self.error_message = None

    def mark_ready(self, image: bytes) -> None:
        if self.status is not PageStatus.GENERATING:
            raise PageStateError(
                f"Page '{self.id}' cannot become ready from status '{self.status.value}'."
            )
        if not image:
            raise ValueError("A ready page requires non-empty image data.")
        self.status = PageStatus.READY
        self.image = bytes(image)
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        if self.status is not PageStatus.GENERATING:
            raise PageStateError(
                f"Page '{self.id}' cannot fail from status '{self.status.value}'."
            )
        self.status = PageStatus.FAILED
        self.image = None
        self.error_message = error_message.strip() or "Image generation failed."

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slot": self.slot,
            "prompt": self.prompt,
            "status": self.status.value,
            "image_base64": (
                base64.b64encode(self.image).decode("ascii") if self.image is not None else None
            ),
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ColoringPage":
        try:
            page_id = str(payload["id"]).strip()
            slot = int(payload["slot"])
            prompt = str(payload["prompt"]).strip()
            status = PageStatus(str(payload.get("status", PageStatus.PENDING.value)))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid page entry: {payload}") from exc

        image: bytes | None = None
        encoded = payload.get("image_base64")
        if encoded:
            try:
                image = base64.b64decode(str(encoded), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError(f"Page '{page_id}' carries invalid base64 image data.") from exc
        error_message = payload.get("error_message")

        # Interrupted generations are stored as pending so they can be regenerated.
        if status is PageStatus.GENERATING:
            status = PageStatus.PENDING
        if status is PageStatus.READY and image is None:
            raise ValueError(f"Page '{page_id}' is marked ready but has no image data.")
        if status is PageStatus.FAILED:
            error_message = str(error_message or "Image generation failed.")

        return cls(
            id=page_id,
            slot=slot,
            prompt=prompt,
            status=status,
            image=image if status is PageStatus.READY else None,
            error_message=error_message if status is PageStatus.FAILED else None,
        )


@dataclass
class ColoringBook:
    """A themed, personalized set of coloring pages kept in slot order."""

    theme: str
    child_name: str
    pages: list[ColoringPage]
    book_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, theme: str, child_name: str, page_count: int) -> "ColoringBook":
        """Create a book whose pages are all pending, one per prompt slot."""
        prompts = build_page_prompts(child_name, theme, page_count)
        pages = [
            ColoringPage(id=f"page-{index + 1}", slot=index, prompt=prompt.caption)
            for index, prompt in enumerate(prompts)
        ]
        return cls(theme=theme.strip(), child_name=child_name.strip(), pages=pages)

    @property
    def is_complete(self) -> bool:
        """True when every page has an image and the book can be exported."""
        return bool(self.pages) and all(page.is_ready for page in self.pages)

    def get_page(self, page_id: str) -> ColoringPage | None:
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def pages_with_status(self, *statuses: PageStatus) -> list[ColoringPage]:
        return [page for page in self.pages if page.status in statuses]

    def status_counts(self) -> dict[PageStatus, int]:
        counts = {status: 0 for status in PageStatus}
        for page in self.pages:
            counts[page.status] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "book_id": self.book_id,
            "theme": self.theme,
            "child_name": self.child_name,
            "created_at": self.created_at.isoformat(),
            "pages": [page.to_dict() for page in self.pages],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    def save_yaml(self, output_path: Path | str) -> Path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_yaml(), encoding="utf-8")
        return path

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ColoringBook":
        for required in ("theme", "child_name", "pages"):
            if required not in payload:
                raise ValueError(f"Book package payload must include '{required}'.")

        pages_payload: Sequence[Mapping[str, Any]] = payload.get("pages") or []
        pages = sorted(
            (ColoringPage.from_dict(entry) for entry in pages_payload),
            key=lambda page: page.slot,
        )
        for attribute in ("id", "slot"):
            values = [getattr(page, attribute) for page in pages]
            duplicates = sorted({value for value in values if values.count(value) > 1})
            if duplicates:
                raise ValueError(f"Book package has duplicate page {attribute}s: {duplicates}.")

        created_raw = payload.get("created_at")
        if isinstance(created_raw, datetime):
            created_at = created_raw
        elif created_raw:
            created_at = datetime.fromisoformat(str(created_raw))
        else:
            created_at = datetime.now(timezone.utc)

        return cls(
            theme=str(payload["theme"]).strip(),
            child_name=str(payload["child_name"]).strip(),
            pages=pages,
            book_id=str(payload.get("book_id") or uuid.uuid4().hex),
            created_at=created_at,
        )

    @classmethod
    def from_yaml(cls, source: str | Path) -> "ColoringBook":
        path = Path(source)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError("Book package YAML must deserialize to a mapping.")
        return cls.from_dict(data)
