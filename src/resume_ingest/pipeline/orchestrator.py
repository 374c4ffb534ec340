"""Ingestion pipeline: fallback extraction, scan detection, OCR, merge.

Two strategies share one IngestionPipeline:

- smart: run the fallback chain once. If every engine fails, OCR is the
  only source. If the digital text looks scanned, OCR output replaces it.
  Otherwise the digital text is returned and OCR never runs.
- hybrid: always run the fallback chain and OCR, then merge the two.

Engine failures never raise out of the pipeline. Invalid input and a
caller-level timeout are returned as failed outcomes.

Usage:
    worker = RecognitionWorker(TesseractEngine())
    async with IngestionPipeline(worker) as pipeline:
        outcome = await pipeline.run("resume.pdf", strategy="hybrid")
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Mapping, Sequence

from resume_ingest.config.settings import ExtractionSettings, RecognitionSettings
from resume_ingest.exceptions import InvalidInputError
from resume_ingest.extractor.base import ExtractionEngine, elapsed_ms
from resume_ingest.extractor.engines import build_default_engines
from resume_ingest.extractor.quality import needs_recognition
from resume_ingest.extractor.selector import (
    SelectionResult,
    extract_with_fallback,
    resolve_engine_order,
)
from resume_ingest.extractor.source import describe_source, validate_source
from resume_ingest.extractor.types import DocumentSource
from resume_ingest.pipeline.merge import merge_texts
from resume_ingest.pipeline.types import MergedResult, PipelineOutcome, Strategy
from resume_ingest.recognition.service import RecognitionOptions, recognize_document
from resume_ingest.recognition.types import RecognitionResult
from resume_ingest.recognition.worker import RecognitionWorker

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Runs the smart and hybrid strategies against one recognition worker.

    The pipeline does not own the worker's lifetime unless it is used as an
    async context manager (or ``aclose()`` is called), in which case the
    shared recognition session is torn down on exit.
    """

    def __init__(
        self,
        worker: RecognitionWorker,
        engines: Mapping[str, ExtractionEngine] | None = None,
        extraction_settings: ExtractionSettings | None = None,
        recognition_settings: RecognitionSettings | None = None,
    ) -> None:
        self.worker = worker
        self.extraction_settings = extraction_settings or ExtractionSettings()
        self.recognition_settings = recognition_settings or RecognitionSettings()
        self.engines = dict(
            engines if engines is not None
            else build_default_engines(self.extraction_settings)
        )

    async def __aenter__(self) -> IngestionPipeline:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Tear down the recognition session held by the worker."""
        await self.worker.terminate()

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def run(
        self,
        source: DocumentSource,
        strategy: str | Strategy = Strategy.SMART,
        *,
        timeout: float | None = None,
        engine: str | Sequence[str] | None = None,
        language: str | None = None,
        scale: float | None = None,
        fast: bool = False,
    ) -> PipelineOutcome:
        """Run one strategy on *source*, optionally bounded by *timeout*.

        On timeout the recognition worker is left as it was; call
        ``aclose()`` before retrying to start from a clean session.

        Args:
            source: Document path or bytes.
            strategy: "smart" or "hybrid".
            timeout: Seconds before the run is abandoned. None waits forever.
            engine: Preferred extraction engine(s), tried before the
                configured order.
            language: OCR language code (defaults to settings).
            scale: OCR rasterization scale (defaults to settings).
            fast: Use the fast OCR scale when *scale* is not given.

        Returns:
            PipelineOutcome. Never raises for engine failures, invalid
            input or timeouts.
        """
        start = time.perf_counter()
        requested = strategy.value if isinstance(strategy, Strategy) else str(strategy)

        try:
            parsed = Strategy.parse(strategy)
            if timeout is not None and timeout <= 0:
                raise InvalidInputError(f"timeout must be positive, got {timeout!r}")
        except InvalidInputError as e:
            return self._invalid(e, requested, start)

        runner = self.hybrid if parsed is Strategy.HYBRID else self.smart
        call = runner(source, engine=engine, language=language, scale=scale, fast=fast)

        if timeout is None:
            return await call

        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(
                "Pipeline timed out after %ss for %s (%s strategy)",
                timeout,
                describe_source(source),
                parsed.value,
            )
            return PipelineOutcome(
                success=False,
                strategy=parsed.value,
                total_elapsed_ms=elapsed_ms(start),
                error=f"timeout after {timeout}s",
            )

    async def smart(
        self,
        source: DocumentSource,
        *,
        engine: str | Sequence[str] | None = None,
        language: str | None = None,
        scale: float | None = None,
        fast: bool = False,
    ) -> PipelineOutcome:
        """Best available text, running OCR only when it is needed."""
        start = time.perf_counter()
        try:
            order, options = self._prepare(source, engine, language, scale, fast)
        except InvalidInputError as e:
            return self._invalid(e, Strategy.SMART.value, start)

        name = describe_source(source)
        logger.info("Smart ingestion of %s (engines: %s)", name, ", ".join(order))

        timings: dict[str, int] = {}
        phase = time.perf_counter()
        selection = await extract_with_fallback(source, self.engines, order)
        timings["extraction_ms"] = elapsed_ms(phase)
        digital = selection.result

        if selection.exhausted:
            logger.warning(
                "All extraction engines failed for %s, falling back to OCR", name
            )
            recognition = await self._recognize(source, options, timings)
            attempted = (*selection.attempted, recognition.engine)
            if not recognition.success:
                return self._outcome(
                    start,
                    selection,
                    success=False,
                    engines_attempted=attempted,
                    error=(
                        f"all extraction engines failed ({digital.error}); "
                        f"recognition failed ({recognition.error})"
                    ),
                    recognition=recognition,
                    timings=timings,
                )
            return self._outcome(
                start,
                selection,
                success=True,
                text=recognition.text,
                page_count=recognition.page_count,
                used_recognition=True,
                engines_attempted=attempted,
                final_engine=recognition.engine,
                recognition=recognition,
                timings=timings,
            )

        if not needs_recognition(digital.text, digital.page_count, self.extraction_settings):
            logger.info(
                "Using digital text from %s for %s (%d chars)",
                digital.engine,
                name,
                digital.char_count,
            )
            return self._outcome(
                start,
                selection,
                success=True,
                text=digital.text,
                page_count=digital.page_count,
                engines_attempted=selection.attempted,
                final_engine=digital.engine,
                timings=timings,
            )

        logger.info("Digital text from %s looks scanned, running OCR", digital.engine)
        recognition = await self._recognize(source, options, timings)
        attempted = (*selection.attempted, recognition.engine)

        if not recognition.success:
            # Weak digital text is still better than nothing
            logger.warning(
                "OCR failed for %s, keeping digital text from %s: %s",
                name,
                digital.engine,
                recognition.error,
            )
            return self._outcome(
                start,
                selection,
                success=True,
                text=digital.text,
                page_count=digital.page_count,
                engines_attempted=attempted,
                final_engine=digital.engine,
                warning=f"recognition failed: {recognition.error}",
                recognition=recognition,
                timings=timings,
            )

        return self._outcome(
            start,
            selection,
            success=True,
            text=recognition.text,
            page_count=digital.page_count or recognition.page_count,
            used_recognition=True,
            engines_attempted=attempted,
            final_engine=recognition.engine,
            recognition=recognition,
            timings=timings,
        )

    async def hybrid(
        self,
        source: DocumentSource,
        *,
        engine: str | Sequence[str] | None = None,
        language: str | None = None,
        scale: float | None = None,
        fast: bool = False,
    ) -> PipelineOutcome:
        """Digital text and OCR text merged, for maximum recall."""
        start = time.perf_counter()
        try:
            order, options = self._prepare(source, engine, language, scale, fast)
        except InvalidInputError as e:
            return self._invalid(e, Strategy.HYBRID.value, start)

        name = describe_source(source)
        logger.info("Hybrid ingestion of %s (engines: %s)", name, ", ".join(order))

        timings: dict[str, int] = {}
        phase = time.perf_counter()
        selection = await extract_with_fallback(source, self.engines, order)
        timings["extraction_ms"] = elapsed_ms(phase)
        digital = selection.result

        recognition = await self._recognize(source, options, timings)
        attempted = (*selection.attempted, recognition.engine)

        if not digital.success and not recognition.success:
            return self._outcome(
                start,
                selection,
                success=False,
                engines_attempted=attempted,
                error=(
                    f"all extraction engines failed ({digital.error}); "
                    f"recognition failed ({recognition.error})"
                ),
                recognition=recognition,
                timings=timings,
                strategy=Strategy.HYBRID,
            )

        phase = time.perf_counter()
        merged = merge_texts(
            digital.text if digital.success else "",
            recognition.text if recognition.success else "",
        )
        timings["merge_ms"] = elapsed_ms(phase)

        # OCR only counts if at least one of its lines made it into the text
        digital_text = (digital.text if digital.success else "").strip()
        contributed = recognition.success and merged.combined_text != digital_text

        warning = None
        if not recognition.success:
            final_engine = digital.engine
            warning = f"recognition failed: {recognition.error}"
        elif not digital.success:
            final_engine = recognition.engine
            warning = f"all extraction engines failed: {digital.error}"
        elif contributed:
            final_engine = f"{digital.engine}+{recognition.engine}"
        else:
            final_engine = digital.engine

        if warning:
            logger.warning("Hybrid ingestion of %s degraded: %s", name, warning)

        return self._outcome(
            start,
            selection,
            success=True,
            text=merged.combined_text,
            page_count=max(digital.page_count, recognition.page_count),
            used_recognition=contributed,
            engines_attempted=attempted,
            final_engine=final_engine,
            warning=warning,
            merge=merged,
            recognition=recognition,
            timings=timings,
            strategy=Strategy.HYBRID,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _prepare(
        self,
        source: DocumentSource,
        engine: str | Sequence[str] | None,
        language: str | None,
        scale: float | None,
        fast: bool,
    ) -> tuple[list[str], RecognitionOptions]:
        """Validate every input before any engine is invoked."""
        validate_source(source)
        options = RecognitionOptions.from_settings(
            self.recognition_settings, language=language, scale=scale, fast=fast
        )
        options.validate()
        order = resolve_engine_order(
            engine, self.extraction_settings.engine_order, self.engines
        )
        return order, options

    async def _recognize(
        self,
        source: DocumentSource,
        options: RecognitionOptions,
        timings: dict[str, int],
    ) -> RecognitionResult:
        phase = time.perf_counter()
        result = await recognize_document(source, self.worker, options)
        timings["recognition_ms"] = elapsed_ms(phase)
        return result

    def _outcome(
        self,
        start: float,
        selection: SelectionResult,
        *,
        success: bool,
        text: str = "",
        page_count: int = 0,
        used_recognition: bool = False,
        engines_attempted: tuple[str, ...] = (),
        final_engine: str = "none",
        error: str | None = None,
        warning: str | None = None,
        merge: MergedResult | None = None,
        recognition: RecognitionResult | None = None,
        timings: dict[str, int] | None = None,
        strategy: Strategy = Strategy.SMART,
    ) -> PipelineOutcome:
        outcome = PipelineOutcome(
            success=success,
            text=text,
            page_count=page_count,
            used_recognition=used_recognition,
            engines_attempted=engines_attempted,
            final_engine=final_engine,
            total_elapsed_ms=elapsed_ms(start),
            error=error,
            warning=warning,
            strategy=strategy.value,
            requested_engine=selection.requested_engine,
            average_confidence=(
                recognition.average_confidence
                if recognition is not None and recognition.success
                else None
            ),
            merge=merge,
            extraction=selection.result,
            recognition=recognition,
            timings=timings or {},
        )
        if success:
            logger.info(
                "%s ingestion complete via %s in %dms (%d chars, recognition %s)",
                strategy.value,
                final_engine,
                outcome.total_elapsed_ms,
                outcome.char_count,
                "used" if used_recognition else "not used",
            )
        else:
            logger.error("%s ingestion failed: %s", strategy.value, error)
        return outcome

    @staticmethod
    def _invalid(
        error: InvalidInputError, strategy: str, start: float
    ) -> PipelineOutcome:
        logger.error("Rejected invalid input: %s", error)
        return PipelineOutcome(
            success=False,
            strategy=strategy,
            total_elapsed_ms=elapsed_ms(start),
            error=f"invalid_input: {error}",
        )

