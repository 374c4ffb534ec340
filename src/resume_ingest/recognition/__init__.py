"""Optical recognition: Tesseract engine, session lifecycle, per-page OCR."""

from resume_ingest.recognition.service import (
    RecognitionOptions,
    aggregate_pages,
    recognize_document,
    validate_language,
    validate_scale,
)
from resume_ingest.recognition.tesseract import TesseractEngine, TesseractSession
from resume_ingest.recognition.types import (
    PageImages,
    PageText,
    RecognitionEngine,
    RecognitionPageResult,
    RecognitionResult,
)
from resume_ingest.recognition.worker import RecognitionWorker, WorkerState

__all__ = [
    "PageImages",
    "PageText",
    "RecognitionEngine",
    "RecognitionOptions",
    "RecognitionPageResult",
    "RecognitionResult",
    "RecognitionWorker",
    "TesseractEngine",
    "TesseractSession",
    "WorkerState",
    "aggregate_pages",
    "recognize_document",
    "validate_language",
    "validate_scale",
]
