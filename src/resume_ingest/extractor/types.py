"""Shared types for the extraction layer.

Defines the document source alias and the immutable ExtractionResult used
across all engine adapters, the fallback selector and the pipeline.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union

# A document is either a path on disk or the raw PDF bytes
DocumentSource = Union[str, Path, bytes, bytearray]


@dataclass(frozen=True)
class ExtractionResult:
    """Result of a single text extraction attempt by one engine.

    Attributes:
        success: Whether the engine processed the document.
        engine: Identifier of the engine that produced this result.
        text: Extracted plain text (may be empty for scanned documents).
        page_count: Number of pages the engine saw.
        elapsed_ms: Wall time measured around the engine call.
        error: Error description if extraction failed.
    """

    success: bool
    engine: str
    text: str = ""
    page_count: int = 0
    elapsed_ms: int = 0
    error: str | None = None

    @property
    def char_count(self) -> int:
        return len(self.text.strip())
