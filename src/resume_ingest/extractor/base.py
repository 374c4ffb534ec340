"""Uniform adapter around a synchronous text-extraction library.

Each concrete engine module exposes a plain function
``(source) -> (text, page_count)`` that is free to raise. ExtractionEngine
wraps such a function so that callers always get an ExtractionResult:
the call runs in a worker thread (the event loop is never blocked on
parsing), is timed, and any exception is captured into ``error``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable

from resume_ingest.extractor.source import describe_source
from resume_ingest.extractor.types import DocumentSource, ExtractionResult

logger = logging.getLogger(__name__)

ExtractFunction = Callable[[DocumentSource], tuple[str, int]]


def elapsed_ms(start: float) -> int:
    """Milliseconds since a ``time.perf_counter()`` reading."""
    return max(0, int((time.perf_counter() - start) * 1000))


@dataclass(frozen=True)
class ExtractionEngine:
    """A named, stateless text-extraction engine.

    Attributes:
        name: Engine identifier used in fallback orders and results.
        extract_fn: Synchronous function returning ``(text, page_count)``.
        description: Human-readable note on the engine's output fidelity.
    """

    name: str
    extract_fn: ExtractFunction
    description: str = ""

    async def extract(self, source: DocumentSource) -> ExtractionResult:
        """Run the engine on *source*. Never raises."""
        start = time.perf_counter()
        try:
            text, page_count = await asyncio.to_thread(self.extract_fn, source)
            page_count = max(0, int(page_count))
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.warning(
                "%s extraction failed for %s: %s",
                self.name,
                describe_source(source),
                error,
            )
            return ExtractionResult(
                success=False,
                engine=self.name,
                elapsed_ms=elapsed_ms(start),
                error=error,
            )

        result = ExtractionResult(
            success=True,
            engine=self.name,
            text=text or "",
            page_count=page_count,
            elapsed_ms=elapsed_ms(start),
        )
        logger.info(
            "%s extracted %d chars from %d pages in %dms: %s",
            self.name,
            result.char_count,
            result.page_count,
            result.elapsed_ms,
            describe_source(source),
        )
        return result
