"""
Render a saved coloring book package YAML into a printable PDF.

Usage:
    python scripts/render_coloring_book_pdf.py \
        --package "coloring_books/Ava-space dinosaurs-coloring-book.yaml" \
        --output coloring_books/
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from funfactory import ColoringBook, ColoringBookPDFBuilder  # noqa: E402
from funfactory.common import AssemblyError  # noqa: E402
from funfactory.pdf_generation import PAGE_SIZES  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert a coloring book package YAML into a printable PDF."
    )
    parser.add_argument(
        "--package",
        required=True,
        help="Path to the book package YAML (output of run_coloring_book.py).",
    )
    parser.add_argument(
        "--output",
        required=True,
        help="Destination PDF file path, or a directory to use the default file name.",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="a4",
        help="Page size to render (default: a4).",
    )
    parser.add_argument(
        "--margin-mm",
        type=float,
        default=10.0,
        help="Page margin in millimetres (default: 10).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    page_size: tuple[float, float] = PAGE_SIZES[args.page_size]
    book = ColoringBook.from_yaml(args.package)

    builder = ColoringBookPDFBuilder(page_size=page_size, margin_mm=args.margin_mm)
    try:
        output_path = builder.build(book, args.output)
    except AssemblyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Rendered coloring book PDF to {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
