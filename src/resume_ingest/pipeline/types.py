"""Result types for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from resume_ingest.exceptions import InvalidInputError
from resume_ingest.extractor.types import ExtractionResult
from resume_ingest.recognition.types import RecognitionResult


class Strategy(Enum):
    """How digital extraction and recognition are combined.

    SMART: fallback extraction, OCR only when the text looks scanned.
    HYBRID: always extract and recognize, then merge both.
    """

    SMART = "smart"
    HYBRID = "hybrid"

    @classmethod
    def parse(cls, value: str | Strategy) -> Strategy:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise InvalidInputError(
                f"unknown strategy {value!r} (expected one of: {choices})"
            ) from None


@dataclass(frozen=True)
class MergedResult:
    """Digital text plus the recognition lines it did not already contain.

    Attributes:
        combined_text: Digital text, then any unique recognition lines.
        digital_text_length: Trimmed length of the digital input.
        recognized_text_length: Trimmed length of the recognition input.
        duplicate_lines_removed: Recognition lines dropped as duplicates.
    """

    combined_text: str
    digital_text_length: int
    recognized_text_length: int
    duplicate_lines_removed: int = 0


@dataclass(frozen=True)
class PipelineOutcome:
    """Final result of one pipeline run.

    ``error`` is set only when the run produced no transcript at all.
    Partial degradation, such as a failed OCR pass on a document whose
    digital text was usable, leaves ``success`` True and is reported via
    ``used_recognition`` and ``warning``.

    Attributes:
        success: Whether a transcript was produced.
        text: The transcript.
        page_count: Pages in the document.
        used_recognition: Whether OCR output contributed to ``text``.
        engines_attempted: Engines invoked, in order. The recognition
            engine is listed last when OCR ran.
        final_engine: Engine (or "digital+recognition" pair) behind ``text``.
        total_elapsed_ms: Wall time for the whole run.
        error: Reason for total failure.
        warning: Non-fatal degradation notice.
        strategy: Strategy that produced this outcome.
        requested_engine: First engine of the effective extraction order.
        average_confidence: Mean OCR confidence, when OCR ran.
        merge: Merge statistics (hybrid strategy only).
        extraction: Digital extraction result, when extraction ran.
        recognition: Recognition result, when OCR ran.
        timings: Per-phase wall times in milliseconds.
    """

    success: bool
    text: str = ""
    page_count: int = 0
    used_recognition: bool = False
    engines_attempted: tuple[str, ...] = ()
    final_engine: str = "none"
    total_elapsed_ms: int = 0
    error: str | None = None
    warning: str | None = None
    strategy: str = Strategy.SMART.value
    requested_engine: str | None = None
    average_confidence: float | None = None
    merge: MergedResult | None = None
    extraction: ExtractionResult | None = None
    recognition: RecognitionResult | None = None
    timings: dict[str, int] = field(default_factory=dict)

    @property
    def char_count(self) -> int:
        return len(self.text.strip())

    def summary(self) -> dict[str, Any]:
        """JSON-friendly view without the transcript itself."""
        data: dict[str, Any] = {
            "success": self.success,
            "strategy": self.strategy,
            "final_engine": self.final_engine,
            "requested_engine": self.requested_engine,
            "engines_attempted": list(self.engines_attempted),
            "used_recognition": self.used_recognition,
            "page_count": self.page_count,
            "char_count": self.char_count,
            "total_elapsed_ms": self.total_elapsed_ms,
            "timings": dict(self.timings),
        }
        if self.average_confidence is not None:
            data["average_confidence"] = round(self.average_confidence, 2)
        if self.merge is not None:
            data["merge"] = {
                "digital_text_length": self.merge.digital_text_length,
                "recognized_text_length": self.merge.recognized_text_length,
                "combined_text_length": len(self.merge.combined_text),
                "duplicate_lines_removed": self.merge.duplicate_lines_removed,
            }
        if self.recognition is not None and self.recognition.failed_pages:
            data["failed_pages"] = [p.page_index for p in self.recognition.failed_pages]
        if self.warning:
            data["warning"] = self.warning
        if self.error:
            data["error"] = self.error
        return data
