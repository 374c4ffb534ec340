"""
Unit tests for scan detection.
"""

import pytest

from resume_ingest.config import ExtractionSettings
from resume_ingest.extractor import ScanVerdict, assess_scan, needs_recognition

DIGITAL_PAGE = (
    "Jane Smith\nSenior Software Engineer\n"
    "Experience: Acme Corp 2018-2024, built data pipelines in Python.\n"
)


@pytest.mark.unit
class TestAssessScan:
    """assess_scan applies the chars-per-page and meaningful-ratio thresholds."""

    def test_rich_text_not_recommended(self):
        assessment = assess_scan(DIGITAL_PAGE, page_count=1)
        assert assessment.verdict is ScanVerdict.NOT_RECOMMENDED
        assert assessment.recommended is False

    def test_empty_text_recommended(self):
        assessment = assess_scan("", page_count=2)
        assert assessment.recommended is True
        assert assessment.chars_per_page == 0

    def test_sparse_text_recommended(self):
        # 2 pages, ~30 chars total
        assessment = assess_scan("Page 1 of 2\nPage 2 of 2", page_count=2)
        assert assessment.recommended is True

    def test_threshold_is_strict_less_than(self):
        text = "x" * 50
        assert assess_scan(text, page_count=1).recommended is False
        assert assess_scan(text[:-1], page_count=1).recommended is True

    def test_whitespace_dominated_text_recommended(self):
        # Interior whitespace dominates; outer whitespace is trimmed first
        text = "a" + " " * 200 + "b" + "\n" * 100 + "c"
        assessment = assess_scan(text, page_count=1)
        assert assessment.recommended is True
        assert assessment.meaningful_ratio is not None
        assert assessment.meaningful_ratio < 0.3

    def test_zero_pages_is_indeterminate(self):
        assessment = assess_scan("some text", page_count=0)
        assert assessment.verdict is ScanVerdict.INDETERMINATE
        assert assessment.recommended is False

    def test_zero_pages_empty_text(self):
        assert assess_scan("", page_count=0).recommended is False

    def test_custom_thresholds(self):
        text = "John Doe\nSoftware Engineer"
        assert assess_scan(text, 1).recommended is True
        assert assess_scan(text, 1, min_chars_per_page=20).recommended is False

    def test_monotonic_in_chars_per_page(self):
        verdicts = [
            assess_scan("w" * n, page_count=3).recommended for n in range(400, -1, -10)
        ]
        # Once recommended, fewer characters never flips it back
        first = verdicts.index(True)
        assert all(verdicts[first:])
        assert not any(verdicts[:first])


@pytest.mark.unit
class TestNeedsRecognition:
    """needs_recognition reads thresholds from ExtractionSettings."""

    def test_default_thresholds(self):
        assert needs_recognition("", 1) is True
        assert needs_recognition(DIGITAL_PAGE, 1) is False

    def test_settings_thresholds(self):
        settings = ExtractionSettings(min_chars_per_page=500, min_meaningful_ratio=0.3)
        assert needs_recognition(DIGITAL_PAGE, 1, settings) is True

    def test_zero_pages_defaults_to_false(self):
        assert needs_recognition("", 0) is False
