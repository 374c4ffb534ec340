"""
Pytest configuration and shared fakes for resume_ingest tests.

Extraction and recognition engines are replaced by scripted in-memory
fakes, so no real PDFs or tesseract binary are needed.
"""

from __future__ import annotations

import time

import pytest

from resume_ingest.config import ExtractionSettings, RecognitionSettings
from resume_ingest.extractor import ExtractionEngine
from resume_ingest.recognition import PageText, RecognitionWorker

# Any non-empty bytes pass input validation; fakes never parse them
PDF_BYTES = b"%PDF-1.7 fake resume"


class ScriptedExtractor:
    """Extraction function returning fixed text, or raising a fixed error."""

    def __init__(self, text: str = "", page_count: int = 1, error: Exception | None = None):
        self.text = text
        self.page_count = page_count
        self.error = error
        self.calls = 0

    def __call__(self, source) -> tuple[str, int]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text, self.page_count


def make_engine(
    name: str,
    text: str = "",
    page_count: int = 1,
    error: Exception | None = None,
) -> ExtractionEngine:
    return ExtractionEngine(name, ScriptedExtractor(text, page_count, error))


class FakeSession:
    def __init__(self, language: str, serial: int):
        self.language = language
        self.serial = serial
        self.closed = False


class BrokenPage:
    """Page placeholder whose rendering fails."""

    def __init__(self, error: Exception):
        self.error = error


class FakePageImages:
    def __init__(self, pages: list, render_delay: float = 0.0):
        self.pages = pages
        self.render_delay = render_delay
        self.closed = False
        self.closed_during_render = False
        self.rendering = 0
        self.rendered: list[int] = []

    def __len__(self) -> int:
        return len(self.pages)

    def render(self, page_index: int):
        if self.closed:
            raise ValueError("document is closed")
        self.rendering += 1
        try:
            time.sleep(self.render_delay)
        finally:
            self.rendering -= 1
        self.rendered.append(page_index)
        page = self.pages[page_index - 1]
        if isinstance(page, BrokenPage):
            raise page.error
        return page

    def close(self) -> None:
        if self.rendering:
            self.closed_during_render = True
        self.closed = True


class FakeRecognitionEngine:
    """Recognition engine over scripted pages.

    Each page is a string (recognized with ``confidence``), a
    ``(text, confidence)`` tuple, an Exception (raised by ``recognize``) or
    a BrokenPage (raised by ``render``).
    """

    name = "tesseract"

    def __init__(
        self,
        pages: list | None = None,
        confidence: float = 90.0,
        rasterize_error: Exception | None = None,
        unsupported_languages: tuple[str, ...] = (),
        create_delay: float = 0.0,
        render_delay: float = 0.0,
        recognize_delay: float = 0.0,
    ):
        self.create_delay = create_delay
        self.render_delay = render_delay
        self.recognize_delay = recognize_delay
        self.pages = list(pages) if pages is not None else []
        self.confidence = confidence
        self.rasterize_error = rasterize_error
        self.unsupported_languages = unsupported_languages
        self.events: list[str] = []
        self.scales: list[float] = []
        self.images: list[FakePageImages] = []
        self.live_sessions = 0
        self.max_live_sessions = 0
        self.torn_down_in_use = False
        self._serial = 0

    def create_session(self, language: str) -> FakeSession:
        if language in self.unsupported_languages:
            raise ValueError(f"Tesseract language data not installed: {language}")
        time.sleep(self.create_delay)
        self._serial += 1
        self.live_sessions += 1
        self.max_live_sessions = max(self.max_live_sessions, self.live_sessions)
        self.events.append(f"create:{language}")
        return FakeSession(language, self._serial)

    def destroy_session(self, session: FakeSession) -> None:
        session.closed = True
        self.live_sessions -= 1
        self.events.append(f"destroy:{session.language}")

    def rasterize(self, source, scale: float) -> FakePageImages:
        self.scales.append(scale)
        if self.rasterize_error is not None:
            raise self.rasterize_error
        images = FakePageImages(self.pages, self.render_delay)
        self.images.append(images)
        return images

    def recognize(self, session: FakeSession, image) -> PageText:
        if session.closed:
            raise RuntimeError("session used after teardown")
        time.sleep(self.recognize_delay)
        if session.closed:
            self.torn_down_in_use = True
            raise RuntimeError("session torn down during recognition")
        if isinstance(image, Exception):
            raise image
        if isinstance(image, tuple):
            text, confidence = image
            return PageText(text=text, confidence=confidence)
        return PageText(text=image, confidence=self.confidence)


@pytest.fixture
def extraction_settings() -> ExtractionSettings:
    return ExtractionSettings(
        engine_order=["pymupdf", "pdfplumber", "pdfminer", "pymupdf4llm"],
        min_chars_per_page=50,
        min_meaningful_ratio=0.3,
    )


@pytest.fixture
def recognition_settings() -> RecognitionSettings:
    return RecognitionSettings(
        language="eng",
        scale=1.5,
        fast_scale=1.0,
        max_concurrent_pages=1,
        reuse_session=True,
    )


@pytest.fixture
def fake_recognition() -> FakeRecognitionEngine:
    return FakeRecognitionEngine(pages=["Recognized text"])


@pytest.fixture
def worker(fake_recognition: FakeRecognitionEngine) -> RecognitionWorker:
    return RecognitionWorker(fake_recognition)
