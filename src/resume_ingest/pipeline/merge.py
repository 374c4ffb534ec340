"""Merge digital text with OCR text, dropping lines already present.

The digital text is authoritative and kept whole. OCR lines are compared
to it line by line after normalization (case, punctuation and whitespace
runs ignored) and only lines with no match are appended, in their
original order, after a fixed separator.
"""

from __future__ import annotations

import logging
import re

from resume_ingest.pipeline.types import MergedResult

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n--- Additional text from images ---\n\n"

_PUNCTUATION_PATTERN = re.compile(r"[^\w\s]")
_WHITESPACE_RUN_PATTERN = re.compile(r"\s+")


def normalize_line(line: str) -> str:
    """Comparison key for a line: lowercase, no punctuation, single spaces."""
    line = _PUNCTUATION_PATTERN.sub("", line.lower())
    return _WHITESPACE_RUN_PATTERN.sub(" ", line).strip()


def _content_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def merge_texts(digital_text: str, recognized_text: str) -> MergedResult:
    """Combine digital and recognized text into one transcript.

    If either side is empty after trimming, the other is returned as is
    with nothing removed. When every OCR line duplicates a digital line the
    separator is omitted, so merging a text with itself returns it
    unchanged.

    Args:
        digital_text: Text from the extraction engine.
        recognized_text: Text from optical recognition.

    Returns:
        MergedResult with the combined transcript and dedup statistics.
    """
    digital = (digital_text or "").strip()
    recognized = (recognized_text or "").strip()

    if not digital or not recognized:
        return MergedResult(
            combined_text=digital or recognized,
            digital_text_length=len(digital),
            recognized_text_length=len(recognized),
        )

    seen = {normalize_line(line) for line in _content_lines(digital)}

    unique: list[str] = []
    duplicates = 0
    for line in _content_lines(recognized):
        if normalize_line(line) in seen:
            duplicates += 1
        else:
            unique.append(line)

    combined = digital
    if unique:
        combined = digital + SECTION_SEPARATOR + "\n".join(unique)

    logger.info(
        "Merged %d digital chars with %d recognized chars: "
        "%d unique lines added, %d duplicates removed",
        len(digital),
        len(recognized),
        len(unique),
        duplicates,
    )
    return MergedResult(
        combined_text=combined,
        digital_text_length=len(digital),
        recognized_text_length=len(recognized),
        duplicate_lines_removed=duplicates,
    )
