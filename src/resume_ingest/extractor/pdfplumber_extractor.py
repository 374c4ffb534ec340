"""Layout-preserving PDF text extraction using pdfplumber.

Line-positioned extractor: characters are placed on lines by their
coordinates, so multi-column resume layouts keep their visual rows.
Tables (skills matrices, education grids) are detected and rendered as
pipe-delimited markdown so cell text is not interleaved with body text.
"""

from __future__ import annotations

import logging

import pandas as pd
import pdfplumber
from pdfplumber.utils import get_bbox_overlap, obj_to_bbox

from resume_ingest.extractor.source import as_pdf_input
from resume_ingest.extractor.types import DocumentSource

logger = logging.getLogger(__name__)


def _clamp_bbox(
    bbox: tuple[float, float, float, float],
    page_width: float,
    page_height: float,
) -> tuple[float, float, float, float]:
    """Clamp a bounding box to page boundaries.

    pdfplumber can detect table regions that extend slightly beyond page
    edges, causing ValueError during filtering.
    """
    x0, top, x1, bottom = bbox
    return (
        max(0, x0),
        max(0, top),
        min(page_width, x1),
        min(page_height, bottom),
    )


def _table_to_markdown(table_data: list[list[str | None]]) -> str | None:
    """Convert pdfplumber table data to a pipe-delimited markdown table.

    Args:
        table_data: List of rows, where the first row is the header.

    Returns:
        Markdown table string, or None if the table is empty or malformed.
    """
    if not table_data or len(table_data) < 2:
        return None

    header = [str(cell) if cell is not None else "" for cell in table_data[0]]
    rows = [
        [str(cell) if cell is not None else "" for cell in row]
        for row in table_data[1:]
    ]

    try:
        df = pd.DataFrame(rows, columns=header)
        return df.to_markdown(index=False)
    except Exception:
        # Mismatched column counts and similar: fall back to plain text
        return None


def _page_text(page) -> str:
    """Text of one page with tables rendered separately."""
    tables = page.find_tables()
    if not tables:
        return (page.extract_text(layout=True) or "").strip()

    parts: list[str] = []
    filtered_page = page
    for table in tables:
        clamped = _clamp_bbox(table.bbox, page.width, page.height)
        filtered_page = filtered_page.filter(
            lambda obj, bbox=clamped: get_bbox_overlap(obj_to_bbox(obj), bbox)
            is None
        )

    text = filtered_page.extract_text(layout=True)
    if text and text.strip():
        parts.append(text.strip())

    for table in tables:
        md_table = _table_to_markdown(table.extract())
        if md_table:
            parts.append(md_table)

    return "\n\n".join(parts)


def read_with_pdfplumber(source: DocumentSource) -> tuple[str, int]:
    """Extract layout text (and tables) from every page.

    Returns:
        Tuple of (text, page_count).
    """
    page_texts: list[str] = []
    with pdfplumber.open(as_pdf_input(source)) as pdf:
        page_count = len(pdf.pages)
        for page in pdf.pages:
            text = _page_text(page)
            if text:
                page_texts.append(text)

    return "\n\n".join(page_texts), page_count
