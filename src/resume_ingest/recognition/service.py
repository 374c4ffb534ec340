"""Per-document OCR: rasterize each page, recognize it, aggregate.

Pages are processed in page order against one session. By default they
run sequentially, so only one page image is resident at a time; a bounded
number of concurrent pages can be enabled with ``max_concurrent_pages``.
Either way a failure on one page is recorded on that page and never
aborts its siblings.

Public API:
    RecognitionOptions.from_settings(settings, ...) -> RecognitionOptions
    recognize_document(source, worker, options) -> RecognitionResult
    aggregate_pages(pages, ...) -> RecognitionResult
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
import time
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Sequence

from resume_ingest.config.settings import RecognitionSettings
from resume_ingest.exceptions import InvalidInputError
from resume_ingest.extractor.base import elapsed_ms
from resume_ingest.extractor.source import describe_source
from resume_ingest.extractor.types import DocumentSource
from resume_ingest.recognition.types import (
    PageImages,
    RecognitionEngine,
    RecognitionPageResult,
    RecognitionResult,
)
from resume_ingest.recognition.worker import RecognitionWorker, run_blocking

logger = logging.getLogger(__name__)

# Tesseract codes: "eng", "chi_sim", "deu_latf", combined as "eng+fra"
_LANGUAGE_PATTERN = re.compile(r"^[a-z]{3}(_[a-z]+)*(\+[a-z]{3}(_[a-z]+)*)*$")


def validate_scale(scale: Any) -> None:
    """Reject non-positive or non-numeric scale factors.

    Values outside the sensible 0.5-3.0 range are accepted unchanged.
    """
    if isinstance(scale, bool) or not isinstance(scale, (int, float)):
        raise InvalidInputError(f"scale must be a number, got {scale!r}")
    if not math.isfinite(scale) or scale <= 0:
        raise InvalidInputError(f"scale must be positive, got {scale!r}")


def validate_language(language: Any) -> None:
    """Reject language codes Tesseract could never load."""
    if not isinstance(language, str) or not _LANGUAGE_PATTERN.match(language):
        raise InvalidInputError(f"unsupported language code {language!r}")


@dataclass(frozen=True)
class RecognitionOptions:
    """Resolved tuning for one recognition call."""

    language: str = "eng"
    scale: float = 1.5
    max_concurrent_pages: int = 1
    reuse_session: bool = True

    @classmethod
    def from_settings(
        cls,
        settings: RecognitionSettings | None = None,
        *,
        language: str | None = None,
        scale: float | None = None,
        fast: bool = False,
    ) -> RecognitionOptions:
        """Combine settings with per-call overrides.

        An explicit *scale* wins; otherwise fast mode picks
        ``fast_scale`` and normal mode picks ``scale``.
        """
        settings = settings or RecognitionSettings()
        if scale is None:
            scale = settings.fast_scale if fast else settings.scale
        return cls(
            language=language if language is not None else settings.language,
            scale=scale,
            max_concurrent_pages=settings.max_concurrent_pages,
            reuse_session=settings.reuse_session,
        )

    def validate(self) -> None:
        validate_scale(self.scale)
        validate_language(self.language)
        if self.max_concurrent_pages < 1:
            raise InvalidInputError(
                f"max_concurrent_pages must be >= 1, got {self.max_concurrent_pages}"
            )


def aggregate_pages(
    pages: Sequence[RecognitionPageResult],
    *,
    scale: float,
    language: str,
    engine: str = "tesseract",
    elapsed: int = 0,
    conversion: int = 0,
) -> RecognitionResult:
    """Combine per-page results into a document result.

    Average confidence is taken over non-errored pages only; if every page
    errored the result is a failure with confidence 0.
    """
    ordered = tuple(sorted(pages, key=lambda p: p.page_index))
    valid = [p for p in ordered if p.success]
    average = sum(p.confidence for p in valid) / len(valid) if valid else 0.0
    text = "\n\n".join(p.text.strip() for p in valid if p.text.strip())

    error = None
    if not ordered:
        error = "no pages to recognize"
    elif not valid:
        error = f"all {len(ordered)} pages failed recognition"

    return RecognitionResult(
        success=bool(valid),
        pages=ordered,
        text=text,
        average_confidence=average,
        scale=scale,
        language=language,
        engine=engine,
        elapsed_ms=elapsed,
        conversion_ms=conversion,
        error=error,
    )


async def _close_images(images: PageImages) -> None:
    images.close()


async def _recognize_page(
    engine: RecognitionEngine,
    session: Any,
    images: PageImages,
    page_index: int,
    page_total: int,
) -> RecognitionPageResult:
    start = time.perf_counter()
    try:
        image = await run_blocking(images.render, page_index)
        page = await run_blocking(engine.recognize, session, image)
    except Exception as e:
        logger.error("Error processing page %d/%d: %s", page_index, page_total, e)
        return RecognitionPageResult(
            page_index=page_index,
            elapsed_ms=elapsed_ms(start),
            error=str(e) or type(e).__name__,
        )

    result = RecognitionPageResult(
        page_index=page_index,
        text=page.text,
        confidence=page.confidence,
        elapsed_ms=elapsed_ms(start),
    )
    logger.info(
        "Page %d/%d recognized in %dms (confidence %.2f%%)",
        page_index,
        page_total,
        result.elapsed_ms,
        result.confidence,
    )
    return result


async def _recognize_pages(
    engine: RecognitionEngine,
    session: Any,
    images: PageImages,
    max_concurrent_pages: int,
) -> list[RecognitionPageResult]:
    total = len(images)
    indices = range(1, total + 1)

    if max_concurrent_pages <= 1:
        return [
            await _recognize_page(engine, session, images, i, total) for i in indices
        ]

    semaphore = asyncio.Semaphore(max_concurrent_pages)

    async def bounded(i: int) -> RecognitionPageResult:
        async with semaphore:
            return await _recognize_page(engine, session, images, i, total)

    # gather preserves argument order, so results stay in page order
    return list(await asyncio.gather(*(bounded(i) for i in indices)))


async def recognize_document(
    source: DocumentSource,
    worker: RecognitionWorker,
    options: RecognitionOptions | None = None,
) -> RecognitionResult:
    """Run OCR over every page of a document.

    Args:
        source: Document path or bytes.
        worker: Owner of the recognition session.
        options: Language, scale and concurrency. Defaults to settings.

    Returns:
        RecognitionResult. Session and rasterization failures are returned
        as a failed result, never raised. On cancellation the page being
        processed finishes before the page images are closed.

    Raises:
        InvalidInputError: For a non-positive scale or a malformed language
            code, before any engine is invoked.
    """
    options = options or RecognitionOptions.from_settings()
    options.validate()

    engine = worker.engine
    name = describe_source(source)
    start = time.perf_counter()

    def failure(error: str, conversion: int = 0) -> RecognitionResult:
        logger.warning("Recognition failed for %s: %s", name, error)
        return RecognitionResult(
            success=False,
            scale=options.scale,
            language=options.language,
            engine=engine.name,
            elapsed_ms=elapsed_ms(start),
            conversion_ms=conversion,
            error=error,
        )

    logger.info(
        "Starting OCR for %s (scale %sx, language %s, session reuse %s)",
        name,
        options.scale,
        options.language,
        options.reuse_session,
    )

    session_scope: AbstractAsyncContextManager[Any] = (
        worker.acquire(options.language)
        if options.reuse_session
        else worker.dedicated(options.language)
    )

    try:
        async with session_scope as session:
            convert_start = time.perf_counter()
            try:
                images = await run_blocking(
                    engine.rasterize,
                    source,
                    options.scale,
                    on_cancel=_close_images,
                )
            except Exception as e:
                return failure(f"failed to convert document to images: {e}")
            conversion = elapsed_ms(convert_start)

            try:
                if len(images) == 0:
                    return failure("no images were extracted from document", conversion)
                pages = await _recognize_pages(
                    engine, session, images, options.max_concurrent_pages
                )
            finally:
                images.close()
    except Exception as e:
        return failure(f"recognition session unavailable: {e}")

    result = aggregate_pages(
        pages,
        scale=options.scale,
        language=options.language,
        engine=engine.name,
        elapsed=elapsed_ms(start),
        conversion=conversion,
    )
    logger.info(
        "OCR complete for %s in %dms: %d/%d pages, average confidence %.1f%%, %d chars",
        name,
        result.elapsed_ms,
        result.page_count - len(result.failed_pages),
        result.page_count,
        result.average_confidence,
        len(result.text),
    )
    return result
