"""PDF text extraction using PyMuPDF.

Two engines share this module:

- ``pymupdf``: plain per-page text, pages concatenated. This is the first
  tier of the default fallback chain because MuPDF repairs broken xref
  tables and malformed object streams instead of rejecting the file.
- ``pymupdf4llm``: markdown conversion with header detection and table
  formatting. Highest structure, but the slowest of the digital engines.
"""

from __future__ import annotations

import logging

import pymupdf4llm

from resume_ingest.extractor.source import open_pdf
from resume_ingest.extractor.types import DocumentSource

logger = logging.getLogger(__name__)


def read_with_pymupdf(source: DocumentSource) -> tuple[str, int]:
    """Extract plain text from every page with ``page.get_text()``.

    Returns:
        Tuple of (text, page_count). Pages are separated by a blank line.
    """
    doc = open_pdf(source)
    try:
        if doc.needs_pass:
            raise ValueError("encrypted")
        page_texts = [page.get_text("text").strip() for page in doc]
        page_count = len(doc)
    finally:
        doc.close()

    return "\n\n".join(t for t in page_texts if t), page_count


def read_with_pymupdf4llm(
    source: DocumentSource,
    table_strategy: str = "lines_strict",
) -> tuple[str, int]:
    """Convert the document to GitHub-compatible markdown.

    The ``force_text=True`` parameter extracts text even from areas
    overlapping images, which is common in designed resume templates.

    Returns:
        Tuple of (markdown_text, page_count).
    """
    doc = open_pdf(source)
    try:
        if doc.needs_pass:
            raise ValueError("encrypted")
        md_text = pymupdf4llm.to_markdown(
            doc,
            pages=None,
            table_strategy=table_strategy,
            page_chunks=False,
            show_progress=False,
            embed_images=False,
            write_images=False,
            force_text=True,
        )
        page_count = len(doc)
    finally:
        doc.close()

    return md_text, page_count
