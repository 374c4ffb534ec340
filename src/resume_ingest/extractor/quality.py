"""Scan detection for digitally extracted resume text.

Decides whether a document is probably undigitized (a scan or an image
export) so that optical recognition is worth its cost. Two heuristics:

1. Minimum content: fewer than ``min_chars_per_page`` characters per page
   on average is typical of scanned pages with no text layer.
2. Meaningful ratio: when non-whitespace characters make up less than
   ``min_meaningful_ratio`` of the extracted text, the "text" is mostly
   layout artifacts rather than legible content.

Both thresholds were tuned on resumes and are configurable policy.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from resume_ingest.config.settings import ExtractionSettings

logger = logging.getLogger(__name__)

_WHITESPACE_PATTERN = re.compile(r"\s")

DEFAULT_MIN_CHARS_PER_PAGE = 50
DEFAULT_MIN_MEANINGFUL_RATIO = 0.3


class ScanVerdict(Enum):
    """Whether recognition is recommended for a document."""

    RECOMMENDED = "recommended"
    NOT_RECOMMENDED = "not_recommended"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class ScanAssessment:
    """Detector verdict plus the measurements behind it."""

    verdict: ScanVerdict
    reason: str
    chars_per_page: float | None = None
    meaningful_ratio: float | None = None

    @property
    def recommended(self) -> bool:
        return self.verdict is ScanVerdict.RECOMMENDED


def assess_scan(
    text: str,
    page_count: int,
    min_chars_per_page: float = DEFAULT_MIN_CHARS_PER_PAGE,
    min_meaningful_ratio: float = DEFAULT_MIN_MEANINGFUL_RATIO,
) -> ScanAssessment:
    """Measure extracted text against the scan thresholds.

    A page count of zero gives no basis for a per-page average, so the
    verdict is INDETERMINATE (recognition not recommended).

    Args:
        text: Digitally extracted text.
        page_count: Number of pages reported by the extraction engine.
        min_chars_per_page: Average characters per page below which the
            document is treated as scanned.
        min_meaningful_ratio: Non-whitespace share below which the text is
            treated as layout noise.

    Returns:
        ScanAssessment with the verdict and measurements.
    """
    if page_count <= 0:
        return ScanAssessment(
            verdict=ScanVerdict.INDETERMINATE,
            reason="no pages reported",
        )

    trimmed = (text or "").strip()
    total_chars = len(trimmed)
    chars_per_page = total_chars / page_count

    if chars_per_page < min_chars_per_page:
        return ScanAssessment(
            verdict=ScanVerdict.RECOMMENDED,
            reason=(
                f"{chars_per_page:.1f} chars/page < {min_chars_per_page} minimum"
            ),
            chars_per_page=chars_per_page,
        )

    meaningful_chars = len(_WHITESPACE_PATTERN.sub("", trimmed))
    meaningful_ratio = meaningful_chars / total_chars

    if meaningful_ratio < min_meaningful_ratio:
        return ScanAssessment(
            verdict=ScanVerdict.RECOMMENDED,
            reason=(
                f"meaningful ratio {meaningful_ratio:.2f} < "
                f"{min_meaningful_ratio} minimum"
            ),
            chars_per_page=chars_per_page,
            meaningful_ratio=meaningful_ratio,
        )

    return ScanAssessment(
        verdict=ScanVerdict.NOT_RECOMMENDED,
        reason="text layer looks complete",
        chars_per_page=chars_per_page,
        meaningful_ratio=meaningful_ratio,
    )


def needs_recognition(
    text: str,
    page_count: int,
    settings: ExtractionSettings | None = None,
) -> bool:
    """Return True when the document should go through OCR.

    Args:
        text: Digitally extracted text.
        page_count: Number of pages in the document.
        settings: Extraction settings supplying the thresholds. Defaults
            to the built-in thresholds when omitted.
    """
    if settings is None:
        assessment = assess_scan(text, page_count)
    else:
        assessment = assess_scan(
            text,
            page_count,
            min_chars_per_page=settings.min_chars_per_page,
            min_meaningful_ratio=settings.min_meaningful_ratio,
        )

    if assessment.verdict is ScanVerdict.INDETERMINATE:
        logger.warning("Scan detection indeterminate: %s", assessment.reason)
    elif assessment.recommended:
        logger.info("Recognition recommended: %s", assessment.reason)
    else:
        logger.debug("Recognition not needed: %s", assessment.reason)

    return assessment.recommended
