"""
CLI to generate a personalized coloring book end-to-end.

Usage:
    python scripts/run_coloring_book.py \
        --theme "space dinosaurs" \
        --name "Ava" \
        --output-dir coloring_books

    python scripts/run_coloring_book.py --resume "coloring_books/Ava-space dinosaurs-coloring-book.yaml"

Environment variables:
    REPLICATE_API_TOKEN  - required unless you pass --api-token
    REPLICATE_MODEL      - optional image model override
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from funfactory import (  # noqa: E402
    ColoringBook,
    ColoringBookController,
    ColoringBookPDFBuilder,
    PageStatus,
)
from funfactory.ai_generation import NUMBER_OF_COLORING_PAGES, ReplicateImageGenerator  # noqa: E402
from funfactory.common import AssemblyError, ValidationError  # noqa: E402
from funfactory.pdf_generation import PAGE_SIZES, coloring_book_filename  # noqa: E402


class ProgressTracker:
    """
    Provides user-friendly command-line progress updates while pages are generated.
    """

    def __init__(self) -> None:
        self._page_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "book:created":
                total = payload.get("total_pages", 0)
                pending = payload.get("pending", total)
                self._write(
                    f"Working on a {payload.get('theme')} coloring book for "
                    f"{payload.get('child_name')} ({total} pages)..."
                )
                self.close()
                self._page_bar = tqdm(total=pending, desc="Coloring pages", unit="page")
            case "page:generating":
                prompt = payload.get("prompt") or ""
                truncated = (prompt[:45] + "…") if len(prompt) > 45 else prompt
                if self._page_bar is not None:
                    self._page_bar.set_description(f"{payload.get('page_id')}: {truncated}")
                else:
                    self._write(f"Retrying {payload.get('page_id')}: {truncated}")
            case "page:ready":
                if self._page_bar is not None:
                    self._page_bar.update(1)
                else:
                    self._write(f"  {payload.get('page_id')} is ready.")
            case "page:failed":
                self._write(f"  {payload.get('page_id')} failed: {payload.get('error_message')}")
                if self._page_bar is not None:
                    self._page_bar.update(1)
            case "book:complete" | "book:incomplete":
                self.close()
                self._write(
                    f"Generation finished: {payload.get('ready')} ready, "
                    f"{payload.get('failed')} failed."
                )

    def close(self) -> None:
        if self._page_bar is not None:
            self._page_bar.close()
            self._page_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a personalized coloring book PDF.")
    parser.add_argument("--theme", help='Book theme, e.g. "space dinosaurs".')
    parser.add_argument("--name", help="Name of the child the book is for.")
    parser.add_argument(
        "--resume",
        default=None,
        help="Book package YAML from an earlier run; pending or failed pages are regenerated.",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=NUMBER_OF_COLORING_PAGES,
        help=f"Number of coloring pages (default: {NUMBER_OF_COLORING_PAGES}).",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=1,
        help="Rounds of automatic retries for failed pages (default: 1).",
    )
    parser.add_argument(
        "--output-dir",
        default="coloring_books",
        help="Directory for the book package YAML and the PDF.",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="a4",
        help="Page size to render (default: a4).",
    )
    parser.add_argument(
        "--package-only",
        action="store_true",
        help="Only save the YAML book package; skip PDF rendering.",
    )
    parser.add_argument(
        "--api-token",
        default=None,
        help="Optional Replicate API token override (otherwise uses environment variable).",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Optional Replicate model identifier override.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)
    if not args.resume and not (args.theme and args.name):
        parser.error("--theme and --name are required unless --resume is given.")
    return args


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    tracker = ProgressTracker()
    generator = ReplicateImageGenerator(api_token=args.api_token, model_identifier=args.model)
    controller = ColoringBookController(image_generator=generator, progress_callback=tracker)

    try:
        if args.resume:
            book = controller.adopt_book(ColoringBook.from_yaml(args.resume))
            controller.generate_all()
        else:
            book = controller.start_book(args.theme, args.name, args.pages)
        for round_number in range(1, max(0, args.retries) + 1):
            failed = book.pages_with_status(PageStatus.FAILED)
            if not failed:
                break
            tqdm.write(f"Retry round {round_number}: {len(failed)} page(s).")
            for page in failed:
                controller.retry_page(page.id)
    except ValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        tracker.close()

    output_dir = Path(args.output_dir)
    stem = coloring_book_filename(book.child_name, book.theme).removesuffix(".pdf")
    package_path = book.save_yaml(output_dir / f"{stem}.yaml")
    print(f"Saved book package to {package_path}")

    if args.package_only:
        return 0

    builder = ColoringBookPDFBuilder(page_size=PAGE_SIZES[args.page_size])
    try:
        pdf_path = builder.build(book, output_dir)
    except AssemblyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print(f"Run again with --resume {package_path} to retry the missing pages.", file=sys.stderr)
        return 1

    print(f"Rendered coloring book PDF to {pdf_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
