"""Helpers for handling a document given either as a path or as bytes."""

from __future__ import annotations

import io
from pathlib import Path

import pymupdf

from resume_ingest.exceptions import InvalidInputError
from resume_ingest.extractor.types import DocumentSource


def describe_source(source: DocumentSource) -> str:
    """Short, log-friendly name for a document source."""
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return Path(source).name


def validate_source(source: DocumentSource | None) -> None:
    """Reject a missing document before any engine is invoked.

    Raises:
        InvalidInputError: If the source is None, empty bytes, or a path
            that does not point to an existing file.
    """
    if source is None:
        raise InvalidInputError("no document supplied")
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise InvalidInputError("document is empty (0 bytes)")
        return
    if not isinstance(source, (str, Path)):
        raise InvalidInputError(
            f"document must be a path or bytes, got {type(source).__name__}"
        )
    path = Path(source)
    if not path.is_file():
        raise InvalidInputError(f"document not found: {path}")


def open_pdf(source: DocumentSource) -> pymupdf.Document:
    """Open a document with PyMuPDF from a path or an in-memory buffer."""
    if isinstance(source, (bytes, bytearray)):
        return pymupdf.open(stream=bytes(source), filetype="pdf")
    return pymupdf.open(str(source))


def as_pdf_input(source: DocumentSource) -> str | io.BytesIO:
    """Return something pdfplumber and pdfminer can open directly."""
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    return str(source)
