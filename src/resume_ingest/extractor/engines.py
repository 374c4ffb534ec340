"""Registry of the built-in extraction engines."""

from __future__ import annotations

from functools import partial

from resume_ingest.config.settings import ExtractionSettings
from resume_ingest.extractor.base import ExtractionEngine
from resume_ingest.extractor.pdfminer_extractor import read_with_pdfminer
from resume_ingest.extractor.pdfplumber_extractor import read_with_pdfplumber
from resume_ingest.extractor.pymupdf_extractor import (
    read_with_pymupdf,
    read_with_pymupdf4llm,
)

PYMUPDF = "pymupdf"
PDFPLUMBER = "pdfplumber"
PDFMINER = "pdfminer"
PYMUPDF4LLM = "pymupdf4llm"


def build_default_engines(
    settings: ExtractionSettings | None = None,
) -> dict[str, ExtractionEngine]:
    """Create the built-in engines keyed by identifier.

    Args:
        settings: Extraction settings (table strategy for pymupdf4llm).

    Returns:
        Mapping of engine identifier to ExtractionEngine.
    """
    settings = settings or ExtractionSettings()
    engines = [
        ExtractionEngine(
            PYMUPDF,
            read_with_pymupdf,
            "MuPDF plain text, pages concatenated; repairs malformed files",
        ),
        ExtractionEngine(
            PDFPLUMBER,
            read_with_pdfplumber,
            "line-positioned layout text with markdown tables",
        ),
        ExtractionEngine(
            PDFMINER,
            read_with_pdfminer,
            "stream-reconstructed text boxes in reading order",
        ),
        ExtractionEngine(
            PYMUPDF4LLM,
            partial(read_with_pymupdf4llm, table_strategy=settings.table_strategy),
            "markdown with header and table detection",
        ),
    ]
    return {engine.name: engine for engine in engines}
