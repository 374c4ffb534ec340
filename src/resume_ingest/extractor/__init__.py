"""Digital text extraction: engine adapters, fallback selection, scan detection.

Public API:
    build_default_engines(settings) -> dict[str, ExtractionEngine]
    extract_with_fallback(source, engines, order) -> SelectionResult
    needs_recognition(text, page_count, settings) -> bool
"""

from resume_ingest.extractor.base import ExtractionEngine
from resume_ingest.extractor.engines import build_default_engines
from resume_ingest.extractor.quality import (
    ScanAssessment,
    ScanVerdict,
    assess_scan,
    needs_recognition,
)
from resume_ingest.extractor.selector import (
    EngineComparison,
    SelectionResult,
    compare_engines,
    extract_with_fallback,
    resolve_engine_order,
)
from resume_ingest.extractor.types import DocumentSource, ExtractionResult

__all__ = [
    "DocumentSource",
    "EngineComparison",
    "ExtractionEngine",
    "ExtractionResult",
    "ScanAssessment",
    "ScanVerdict",
    "SelectionResult",
    "assess_scan",
    "build_default_engines",
    "compare_engines",
    "extract_with_fallback",
    "needs_recognition",
    "resolve_engine_order",
]
