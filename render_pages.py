#!/usr/bin/env python3
"""
render_pages.py - Lay text files out as paginated PDF.

Each input file becomes one logical page: its lines run down a single
canvas and break onto as many physical pages as they need.

Usage:
    python render_pages.py notes.txt -o notes.pdf
    python render_pages.py *.txt -o all.pdf --portrait --image logo.png
    python render_pages.py notes.txt --base letterhead.pdf --overwrite -o out.pdf
"""

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional

# Add parent to path when running as script
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent))

import pikepdf
from PIL import Image

from pdf_pagebuffer import (
    ImageEmbeddingError,
    LineStyle,
    Orientation,
    PAGE_SIZE_A4,
    PAGE_SIZE_LETTER,
    PageStateError,
    PdfLayoutManager,
    ScaledJpeg,
    ScaledPng,
    TextStyle,
)
from pdf_pagebuffer.pdf_writer import PDFWriter

logger = logging.getLogger(__name__)

PAGE_SIZES = {
    "letter": PAGE_SIZE_LETTER,
    "a4": PAGE_SIZE_A4,
}

LINE_SPACING = 1.2
BORDER_STYLE = LineStyle(color=(160, 160, 160), width=0.5)
RULE_STYLE = LineStyle(color=(0, 0, 0), width=1.0)


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Lay out text files as a paginated PDF.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python render_pages.py notes.txt -o notes.pdf
  python render_pages.py *.txt -o all.pdf --portrait --image logo.png
  python render_pages.py notes.txt --base letterhead.pdf --overwrite -o out.pdf

Each input file starts on a new page. Long files continue onto as many
pages as needed. A repeated --image is embedded only once.
"""
    )

    parser.add_argument(
        "input",
        nargs="+",
        type=Path,
        help="Input text file(s)"
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        required=True,
        help="Output PDF file"
    )

    parser.add_argument(
        "--base",
        type=Path,
        help="Existing PDF to add pages to"
    )

    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Draw over the pages of --base instead of appending after them"
    )

    parser.add_argument(
        "--portrait",
        action="store_true",
        help="Portrait pages (default: landscape)"
    )

    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES),
        default="letter",
        help="Page size (default: letter)"
    )

    parser.add_argument(
        "--font",
        default="Courier",
        help="Standard Type1 font (default: Courier)"
    )

    parser.add_argument(
        "--font-size",
        type=float,
        default=10.0,
        help="Font size in points (default: 10)"
    )

    parser.add_argument(
        "--wrap",
        type=int,
        default=0,
        help="Wrap lines longer than this many characters (0 = no wrapping)"
    )

    parser.add_argument(
        "--image",
        type=Path,
        help="Image drawn at the top of every file (.jpg/.jpeg embed as JPEG, others losslessly)"
    )

    parser.add_argument(
        "-q", "--quality",
        type=int,
        default=85,
        help="JPEG quality 1-100 (default: 85)"
    )

    parser.add_argument(
        "--border",
        action="store_true",
        help="Frame the printable area of every page"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(argv)


def load_image(path: Path):
    """Decode an image file into a ScaledJpeg or ScaledPng."""
    with Image.open(path) as img:
        img.load()
        decoded = img.copy()
    if path.suffix.lower() in (".jpg", ".jpeg"):
        return ScaledJpeg(decoded)
    return ScaledPng(decoded)


def render_file(mgr: PdfLayoutManager, path: Path, args, image=None) -> int:
    """
    Lay one text file out as one logical page.

    Returns the number of physical pages written.
    """
    orientation = Orientation.PORTRAIT if args.portrait else Orientation.LANDSCAPE
    lp = mgr.logical_page_start(orientation, PAGE_SIZES[args.page_size])
    if args.border:
        lp.add_border(BORDER_STYLE)

    style = TextStyle(font=args.font, font_size=args.font_size)
    heading = TextStyle(font="Helvetica-Bold", font_size=args.font_size * 1.4)
    leading = args.font_size * LINE_SPACING
    left = lp.margin + 4

    y = lp.y_page_top
    if image is not None:
        y -= image.height
        if isinstance(image, ScaledPng):
            lp.put_png(left, y, image)
        else:
            lp.put_jpeg(left, y, image)
        y -= leading

    y -= heading.font_size
    lp.put_text(left, y, path.name, heading)
    y -= leading / 2
    lp.put_line(lp.margin, y, lp.page_width - lp.margin, y, RULE_STYLE)

    text = path.read_text(encoding="utf-8", errors="replace")
    for raw_line in text.splitlines():
        raw_line = raw_line.expandtabs(4)
        lines = textwrap.wrap(raw_line, args.wrap) if args.wrap > 0 and raw_line else [raw_line]
        for line in lines:
            y -= leading
            if line:
                lp.put_text(left, y, line, style)

    return lp.commit()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    # Validate inputs
    valid_inputs = []
    for p in args.input:
        if not p.exists():
            print(f"Error: File not found: {p}", file=sys.stderr)
            continue
        valid_inputs.append(p)

    if not valid_inputs:
        print("Error: No valid input files", file=sys.stderr)
        return 1

    if args.overwrite and not args.base:
        print("Error: --overwrite needs --base", file=sys.stderr)
        return 1

    try:
        if args.base:
            writer = PDFWriter.open(args.base, jpeg_quality=args.quality)
        else:
            writer = PDFWriter(jpeg_quality=args.quality)

        with PdfLayoutManager(writer, overwrite_existing=args.overwrite) as mgr:
            image = load_image(args.image) if args.image else None

            total_pages = 0
            for i, input_path in enumerate(valid_inputs):
                pages = render_file(mgr, input_path, args, image)
                total_pages += pages
                logger.info(f"[{i+1}/{len(valid_inputs)}] {input_path.name}: {pages} page(s)")

            mgr.save(args.output)
    except (OSError, ValueError, pikepdf.PdfError, PageStateError, ImageEmbeddingError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {total_pages} page(s) to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
