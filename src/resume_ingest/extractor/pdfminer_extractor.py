"""PDF text extraction using pdfminer.six layout analysis.

Stream-reconstructed extractor: text boxes are rebuilt from the content
stream by pdfminer's layout analyser and emitted in reading order. Slower
and less tolerant of malformed files than MuPDF, but independent of it,
which makes it a useful fallback when MuPDF rejects a document.
"""

from __future__ import annotations

from pdfminer.high_level import extract_pages
from pdfminer.layout import LTTextContainer

from resume_ingest.extractor.source import as_pdf_input
from resume_ingest.extractor.types import DocumentSource


def read_with_pdfminer(source: DocumentSource) -> tuple[str, int]:
    """Extract text boxes page by page.

    Returns:
        Tuple of (text, page_count).
    """
    page_texts: list[str] = []
    page_count = 0
    for page_layout in extract_pages(as_pdf_input(source)):
        page_count += 1
        boxes = [
            element.get_text().strip()
            for element in page_layout
            if isinstance(element, LTTextContainer)
        ]
        text = "\n".join(b for b in boxes if b)
        if text:
            page_texts.append(text)

    return "\n\n".join(page_texts), page_count
