"""Positioned text → ordered text lines.

Statement PDFs are machine generated: every word carries an (x, y) position and
rows of the printed table share (almost) the same baseline. Words are bucketed
by their rounded baseline, each bucket becomes one line, and lines come out in
reading order: page by page, top to bottom (y is measured from the bottom-left
corner, so higher y first).
"""
from __future__ import annotations

import io
import math
from collections.abc import Iterable, Sequence

import pdfplumber

from compasso.domain.statement.entities import PositionedFragment
from compasso.logging_setup import get_logger

logger = get_logger(__name__)


class StatementReadError(Exception):
    """The document could not be opened or decoded as a PDF."""


def _line_key(y: float) -> int:
    # half-up, so 99.5 and 100.4 land on the same line
    return math.floor(y + 0.5)


def reconstruct_page(fragments: Iterable[PositionedFragment]) -> list[str]:
    buckets: dict[int, list[PositionedFragment]] = {}
    for fragment in fragments:
        buckets.setdefault(_line_key(fragment.y), []).append(fragment)

    lines: list[str] = []
    for key in sorted(buckets, reverse=True):
        ordered = sorted(buckets[key], key=lambda f: f.x)
        text = " ".join(f.text for f in ordered).strip()
        if text:
            lines.append(text)
    return lines


def reconstruct_lines(pages: Sequence[Iterable[PositionedFragment]]) -> list[str]:
    """Rebuild the text lines of a whole document, pages in order."""
    lines: list[str] = []
    for page in pages:
        lines.extend(reconstruct_page(page))
    return lines


def extract_fragments(pdf_bytes: bytes) -> list[list[PositionedFragment]]:
    """Read every word of every page with pdfplumber.

    Each word is keyed on the baseline of its first character (the ``f`` term
    of the text matrix, bottom-left origin), so words of different font sizes
    printed on one row share a line.
    """
    pages: list[list[PositionedFragment]] = []
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                words = page.extract_words(keep_blank_chars=False, return_chars=True) or []
                pages.append([
                    PositionedFragment(
                        text=word["text"],
                        x=float(word["x0"]),
                        y=float(word["chars"][0]["matrix"][5]),
                    )
                    for word in words
                ])
    except Exception as exc:
        raise StatementReadError(f"Could not read statement document: {exc}") from exc

    logger.debug("extracted %d page(s), %d fragment(s)", len(pages), sum(len(p) for p in pages))
    return pages


def extract_lines(pdf_bytes: bytes) -> list[str]:
    return reconstruct_lines(extract_fragments(pdf_bytes))
