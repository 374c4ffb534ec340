"""Tesseract OCR engine: PyMuPDF rasterization + pytesseract recognition.

Pages are rendered with a ``pymupdf.Matrix(scale, scale)`` transform, so a
scale of 1.0 is 72 dpi. Higher scales are slower and more accurate, with
diminishing returns above ~2.0 and severe accuracy loss below ~0.75. The
scale is used exactly as given.
"""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass

import pymupdf
import pytesseract
from PIL import Image

from resume_ingest.extractor.source import open_pdf
from resume_ingest.extractor.types import DocumentSource
from resume_ingest.recognition.types import PageText

logger = logging.getLogger(__name__)


@dataclass
class TesseractSession:
    """A language-bound Tesseract configuration.

    pytesseract starts one tesseract process per call, so the session is
    the validated language plus a closed flag that stops use after
    teardown.
    """

    language: str
    closed: bool = False


class PdfPageImages:
    """Renders pages of an open PyMuPDF document on demand."""

    def __init__(self, doc: pymupdf.Document, scale: float) -> None:
        self._doc = doc
        self._matrix = pymupdf.Matrix(scale, scale)
        # MuPDF documents must not be used from two threads at once,
        # and must not be closed while a page is rendering
        self._lock = threading.Lock()
        self._closed = False

    def __len__(self) -> int:
        return len(self._doc)

    def render(self, page_index: int) -> Image.Image:
        with self._lock:
            if self._closed:
                raise ValueError("document is closed")
            pix = self._doc[page_index - 1].get_pixmap(matrix=self._matrix)
            png = pix.tobytes("png")
        return Image.open(io.BytesIO(png))

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._closed = True
                self._doc.close()


class TesseractEngine:
    """Recognition engine backed by the tesseract binary."""

    name = "tesseract"

    def __init__(self, tesseract_cmd: str = "tesseract") -> None:
        self.tesseract_cmd = tesseract_cmd

    def _configure(self) -> None:
        # Configure tesseract executable path if non-default
        if self.tesseract_cmd != "tesseract":
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

    def create_session(self, language: str) -> TesseractSession:
        """Validate that every requested language is installed.

        Raises:
            ValueError: If a language's traineddata is missing.
        """
        self._configure()
        installed = set(pytesseract.get_languages(config=""))
        missing = [code for code in language.split("+") if code not in installed]
        if missing:
            raise ValueError(
                f"Tesseract language data not installed: {', '.join(missing)}"
            )
        logger.debug("Tesseract session created for %s", language)
        return TesseractSession(language=language)

    def destroy_session(self, session: TesseractSession) -> None:
        session.closed = True
        logger.debug("Tesseract session for %s destroyed", session.language)

    def rasterize(self, source: DocumentSource, scale: float) -> PdfPageImages:
        doc = open_pdf(source)
        if doc.needs_pass:
            doc.close()
            raise ValueError("encrypted")
        return PdfPageImages(doc, scale)

    def recognize(self, session: TesseractSession, image: Image.Image) -> PageText:
        """Recognize one page image.

        Confidence is the mean of Tesseract's word confidences (0-100);
        non-word boxes report -1 and are excluded.
        """
        if session.closed:
            raise RuntimeError("Tesseract session has been destroyed")

        text = pytesseract.image_to_string(image, lang=session.language)
        data = pytesseract.image_to_data(
            image,
            lang=session.language,
            output_type=pytesseract.Output.DICT,
        )
        confidences = [
            float(c) for c in data.get("conf", []) if c is not None and float(c) >= 0
        ]
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return PageText(text=text, confidence=confidence)
