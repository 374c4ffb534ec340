"""Shared types for optical recognition.

Defines the engine protocol the worker drives, plus the per-page and
per-document result types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from PIL import Image

from resume_ingest.extractor.types import DocumentSource


@dataclass(frozen=True)
class PageText:
    """Raw recognition output for one image."""

    text: str
    confidence: float  # 0-100


class PageImages(Protocol):
    """Lazily rasterized pages of one document.

    ``render`` produces one page image on demand, so a failure is local to
    that page and only the pages being recognized are held in memory.
    """

    def __len__(self) -> int: ...

    def render(self, page_index: int) -> Image.Image:
        """Render page *page_index* (1-based)."""
        ...

    def close(self) -> None: ...


class RecognitionEngine(Protocol):
    """Rasterization plus optical recognition with explicit sessions."""

    name: str

    def create_session(self, language: str) -> Any: ...

    def destroy_session(self, session: Any) -> None: ...

    def rasterize(self, source: DocumentSource, scale: float) -> PageImages: ...

    def recognize(self, session: Any, image: Image.Image) -> PageText: ...


@dataclass(frozen=True)
class RecognitionPageResult:
    """Recognition outcome for a single page.

    Attributes:
        page_index: 1-based page number.
        text: Recognized text ("" when the page failed).
        confidence: Mean word confidence 0-100 (0 when the page failed).
        elapsed_ms: Rasterization plus recognition time for this page.
        error: Error description if rasterization or recognition failed.
    """

    page_index: int
    text: str = ""
    confidence: float = 0.0
    elapsed_ms: int = 0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RecognitionResult:
    """Aggregated recognition outcome for a document.

    Attributes:
        success: True if at least one page was recognized.
        pages: Per-page results in page order.
        text: Text of the recognized pages, blank-line separated.
        average_confidence: Mean confidence over non-errored pages only.
        scale: Rasterization scale factor used.
        language: Recognition language code used.
        engine: Recognition engine identifier.
        elapsed_ms: Total time including session setup.
        conversion_ms: Time spent opening the document for rasterization.
        error: Document-level error (session or rasterization failure, or
            every page failing).
    """

    success: bool
    pages: tuple[RecognitionPageResult, ...] = ()
    text: str = ""
    average_confidence: float = 0.0
    scale: float = 1.0
    language: str = "eng"
    engine: str = "tesseract"
    elapsed_ms: int = 0
    conversion_ms: int = 0
    error: str | None = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def failed_pages(self) -> list[RecognitionPageResult]:
        return [p for p in self.pages if not p.success]
