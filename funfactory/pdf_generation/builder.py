"""
High-level utilities for rendering coloring books into printable PDFs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph

from funfactory.coloring_book import ColoringBook, ColoringPage
from funfactory.common import AssemblyError

logger = logging.getLogger(__name__)

COVER_TITLE = "Coloring Adventures!"
MIN_FONT_SIZE = 8.0

PAGE_SIZES = {
    "a4": A4,
    "letter": LETTER,
}


@dataclass(frozen=True)
class PageLayoutConfig:
    title_color: colors.Color
    text_color: colors.Color
    caption_color: colors.Color
    cover_border_color: colors.Color
    content_border_color: colors.Color
    cover_border_width: float = 2.0
    content_border_width: float = 0.75


DEFAULT_LAYOUT = PageLayoutConfig(
    title_color=colors.HexColor("#323232"),
    text_color=colors.HexColor("#323232"),
    caption_color=colors.HexColor("#646464"),
    cover_border_color=colors.HexColor("#6464C8"),
    content_border_color=colors.HexColor("#A0A0D8"),
)


def fit_image_within_box(
    image_width: float,
    image_height: float,
    box_width: float,
    box_height: float,
    caption_reserve: float = 0.0,
) -> tuple[float, float]:
    """
    Scale an image to the box width, falling back to the available height if it is too tall.

    The available height is ``box_height - caption_reserve``. The returned size never
    exceeds ``box_width`` by ``box_height - caption_reserve`` and keeps the image's
    aspect ratio.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image size must be positive, got {image_width}x{image_height}.")

    available_height = box_height - caption_reserve
    if box_width <= 0 or available_height <= 0:
        raise ValueError(
            f"Content box {box_width}x{box_height} leaves no room below a "
            f"{caption_reserve} caption reservation."
        )

    draw_width = float(box_width)
    draw_height = image_height / image_width * draw_width
    if draw_height > available_height:
        draw_height = float(available_height)
        draw_width = min(image_width / image_height * draw_height, float(box_width))
    return draw_width, draw_height


def coloring_book_filename(child_name: str, theme: str) -> str:
    """Deterministic download name: ``{child_name}-{theme}-coloring-book.pdf``."""

    def _clean(value: str) -> str:
        return re.sub(r"[\\/]+", "_", value.strip())

    return f"{_clean(child_name)}-{_clean(theme)}-coloring-book.pdf"


class ColoringBookPDFBuilder:
    """
    Render a completed :class:`ColoringBook` into a printable portrait PDF.

    The builder creates:
      * A cover page with the title, the child's name, the theme, and a border.
      * One page per coloring page in slot order: the prompt as a caption at the
        top and the illustration fitted below it inside a thin border.

    The whole document is rendered in memory; nothing is written unless every page
    rendered successfully.
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = A4,
        margin_mm: float = 10.0,
        caption_reserve_mm: float = 20.0,
        layout: PageLayoutConfig = DEFAULT_LAYOUT,
    ) -> None:
        width, height = page_size
        if width > height:
            page_size = (height, width)
        self.page_size = page_size
        self.margin = margin_mm * mm
        self.caption_reserve = caption_reserve_mm * mm
        self.layout = layout

        self.caption_style = ParagraphStyle(
            name="PageCaption",
            fontName="Helvetica",
            fontSize=14,
            leading=17,
            alignment=TA_CENTER,
            textColor=self.layout.caption_color,
        )

    @property
    def content_box(self) -> tuple[float, float]:
        width, height = self.page_size
        return width - 2 * self.margin, height - 2 * self.margin

    def build(self, book: ColoringBook, output_path: Path | str) -> Path:
        """
        Render ``book`` and write it to ``output_path``.

        When ``output_path`` is an existing directory the file is named with
        :func:`coloring_book_filename`.
        """
        document = self.build_bytes(book)

        output_file = Path(output_path)
        if output_file.is_dir():
            output_file = output_file / coloring_book_filename(book.child_name, book.theme)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(document)
        logger.info("Wrote %d-page coloring book to %s.", len(book.pages) + 1, output_file)
        return output_file

    def build_bytes(self, book: ColoringBook) -> bytes:
        self._ensure_complete(book)

        readers = [self._decode_image(page) for page in book.pages]
        captions = [self._layout_caption(page) for page in book.pages]

        buffer = BytesIO()
        try:
            pdf = canvas.Canvas(buffer, pagesize=self.page_size)
            pdf.setTitle(f"{COVER_TITLE} for {book.child_name}")
            pdf.setSubject(f"Theme: {book.theme}")

            self._draw_cover_page(pdf, book)
            for page, reader, caption in zip(book.pages, readers, captions):
                self._draw_coloring_page(pdf, page, reader, caption)

            pdf.save()
        except Exception as exc:
            logger.exception("Failed to render coloring book %s.", book.book_id)
            raise AssemblyError(f"Failed to create PDF: {exc}") from exc

        return buffer.getvalue()

    # ------------------------------------------------------------------ validation

    @staticmethod
    def _ensure_complete(book: ColoringBook) -> None:
        if not book.pages:
            raise AssemblyError("The coloring book has no pages to export.")

        not_ready = [page for page in book.pages if not page.is_ready]
        if not_ready:
            details = ", ".join(f"{page.id} ({page.status.value})" for page in not_ready)
            raise AssemblyError(
                f"All pages must be ready before exporting the PDF. Not ready: {details}."
            )

    @staticmethod
    def _decode_image(page: ColoringPage) -> ImageReader:
        if not page.image:
            raise AssemblyError(f"Page '{page.id}' has no image to export.")
        try:
            reader = ImageReader(BytesIO(page.image))
            reader.getSize()
        except Exception as exc:
            raise AssemblyError(
                f"Failed to create PDF: the image for '{page.id}' could not be decoded ({exc})."
            ) from exc
        return reader

    def _layout_caption(self, page: ColoringPage) -> tuple[Paragraph, float]:
        """
        Wrap the page prompt into the caption reserve, shrinking the font as needed.

        Returns the wrapped paragraph and its height. Raises :class:`AssemblyError`
        when the text does not fit even at the minimum font size.
        """
        content_width, _ = self.content_box
        text = escape(page.prompt)
        size = float(self.caption_style.fontSize)
        while size >= MIN_FONT_SIZE:
            style = ParagraphStyle(
                name=f"PageCaption{size:g}",
                parent=self.caption_style,
                fontSize=size,
                leading=size + 3,
            )
            paragraph = Paragraph(text, style)
            _, caption_height = paragraph.wrap(content_width, self.caption_reserve)
            if caption_height <= self.caption_reserve:
                return paragraph, caption_height
            size -= 1

        raise AssemblyError(
            f"Failed to create PDF: the caption for '{page.id}' does not fit on the page."
        )

    # ------------------------------------------------------------------ cover rendering

    def _draw_cover_page(self, pdf: canvas.Canvas, book: ColoringBook) -> None:
        width, height = self.page_size
        content_width, content_height = self.content_box
        text_width = content_width - 2 * self.margin

        pdf.saveState()
        pdf.setFillColor(self.layout.title_color)
        title_size = self._fit_font_size(COVER_TITLE, "Helvetica-Bold", 48, text_width)
        pdf.setFont("Helvetica-Bold", title_size)
        pdf.drawCentredString(width / 2, height * 2 / 3, COVER_TITLE)

        pdf.setFillColor(self.layout.text_color)
        for offset, line in enumerate((f"for {book.child_name}", f"Theme: {book.theme}")):
            size = self._fit_font_size(line, "Helvetica", 24, text_width)
            pdf.setFont("Helvetica", size)
            pdf.drawCentredString(width / 2, height / 2 - offset * 15 * mm, line)

        pdf.setStrokeColor(self.layout.cover_border_color)
        pdf.setLineWidth(self.layout.cover_border_width)
        pdf.rect(self.margin, self.margin, content_width, content_height, stroke=1, fill=0)
        pdf.restoreState()
        pdf.showPage()

    # ------------------------------------------------------------------ coloring pages

    def _draw_coloring_page(
        self,
        pdf: canvas.Canvas,
        page: ColoringPage,
        reader: ImageReader,
        caption: tuple[Paragraph, float],
    ) -> None:
        width, height = self.page_size
        content_width, content_height = self.content_box

        paragraph, caption_height = caption
        caption_y = height - self.margin - (self.caption_reserve + caption_height) / 2
        paragraph.drawOn(pdf, self.margin, caption_y)

        img_width, img_height = reader.getSize()
        draw_width, draw_height = fit_image_within_box(
            img_width,
            img_height,
            content_width,
            content_height,
            self.caption_reserve,
        )
        available_height = content_height - self.caption_reserve
        x = (width - draw_width) / 2
        y = self.margin + (available_height - draw_height) / 2
        pdf.drawImage(reader, x, y, draw_width, draw_height, mask="auto")

        pdf.saveState()
        pdf.setStrokeColor(self.layout.content_border_color)
        pdf.setLineWidth(self.layout.content_border_width)
        pdf.rect(self.margin, self.margin, content_width, content_height, stroke=1, fill=0)
        pdf.restoreState()
        pdf.showPage()

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _fit_font_size(text: str, font_name: str, preferred: float, max_width: float) -> float:
        text_width = stringWidth(text, font_name, preferred)
        if text_width <= max_width:
            return preferred
        return max(MIN_FONT_SIZE, preferred * max_width / text_width)
