"""Fallback selection across interchangeable extraction engines.

Engines are tried strictly one at a time in the declared order. The first
engine that succeeds ends the search; a failing engine is logged and the
next one is tried. Failures here are deterministic parse faults, so no
engine is retried and there is no backoff.

Public API:
    resolve_engine_order(preferred, default_order, available) -> list[str]
    extract_with_fallback(source, engines, order, ...) -> SelectionResult
    compare_engines(source, engines) -> EngineComparison
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from resume_ingest.extractor.base import ExtractionEngine
from resume_ingest.extractor.source import describe_source
from resume_ingest.extractor.types import DocumentSource, ExtractionResult
from resume_ingest.fingerprint import compute_fingerprint

logger = logging.getLogger(__name__)

__all__ = [
    "EngineComparison",
    "SelectionResult",
    "compare_engines",
    "extract_with_fallback",
    "resolve_engine_order",
]


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of one fallback run.

    Either the chain produced a result (``success`` is True and ``engine``
    names the engine that produced it) or it was exhausted and ``result``
    carries the last engine's error.

    Attributes:
        result: The successful result, or a failure carrying the last error.
        requested_engine: First engine of the effective order.
        attempted: Engines invoked, in order.
    """

    result: ExtractionResult
    requested_engine: str | None
    attempted: tuple[str, ...]

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def exhausted(self) -> bool:
        return not self.result.success

    @property
    def engine(self) -> str:
        return self.result.engine

    @property
    def used_fallback(self) -> bool:
        return self.success and self.engine != self.requested_engine


def resolve_engine_order(
    preferred: str | Sequence[str] | None,
    default_order: Sequence[str],
    available: Mapping[str, ExtractionEngine],
) -> list[str]:
    """Build the effective engine order.

    The preferred engine(s) come first, followed by the default order,
    without duplicates. Names with no registered engine are dropped with a
    warning.

    Args:
        preferred: An engine name, a list of names, or None.
        default_order: Default priority order.
        available: Registered engines keyed by name.

    Returns:
        Ordered list of engine names to try.
    """
    if preferred is None:
        requested: list[str] = []
    elif isinstance(preferred, str):
        requested = [preferred]
    else:
        requested = list(preferred)

    order: list[str] = []
    for name in [*requested, *default_order]:
        if name in order:
            continue
        if name not in available:
            logger.warning("Unknown extraction engine %r ignored", name)
            continue
        order.append(name)
    return order


async def extract_with_fallback(
    source: DocumentSource,
    engines: Mapping[str, ExtractionEngine],
    order: Sequence[str],
) -> SelectionResult:
    """Try engines in *order* until one succeeds.

    Args:
        source: Document path or bytes.
        engines: Registered engines keyed by name.
        order: Engine names to try, highest priority first. Every name
            must be present in *engines* (see ``resolve_engine_order``).

    Returns:
        SelectionResult recording the requested engine, the engines
        attempted, and the final result.
    """
    requested = order[0] if order else None
    attempted: list[str] = []
    last: ExtractionResult | None = None
    name = describe_source(source)

    for engine_name in order:
        attempted.append(engine_name)
        logger.info("Trying %s for %s", engine_name, name)
        result = await engines[engine_name].extract(source)

        if result.success:
            if engine_name != requested:
                logger.info(
                    "Fallback successful: using %s instead of %s for %s",
                    engine_name,
                    requested,
                    name,
                )
            return SelectionResult(
                result=result,
                requested_engine=requested,
                attempted=tuple(attempted),
            )

        logger.warning(
            "%s failed for %s (%s), trying next engine",
            engine_name,
            name,
            result.error,
        )
        last = result

    if last is None:
        failure = ExtractionResult(
            success=False,
            engine="none",
            error="no extraction engines configured",
        )
    else:
        failure = ExtractionResult(
            success=False,
            engine=last.engine,
            elapsed_ms=last.elapsed_ms,
            error=last.error,
        )

    logger.error(
        "All extraction engines failed for %s (%s); last error: %s",
        name,
        ", ".join(attempted) or "none configured",
        failure.error,
    )
    return SelectionResult(
        result=failure,
        requested_engine=requested,
        attempted=tuple(attempted),
    )


@dataclass
class EngineComparison:
    """Side-by-side run of every engine on one document."""

    results: list[ExtractionResult] = field(default_factory=list)
    fingerprints: dict[str, str] = field(default_factory=dict)

    @property
    def successful(self) -> list[ExtractionResult]:
        return [r for r in self.results if r.success]

    @property
    def ranking(self) -> list[ExtractionResult]:
        """Successful results, fastest first."""
        return sorted(self.successful, key=lambda r: r.elapsed_ms)

    @property
    def fastest(self) -> ExtractionResult | None:
        ranking = self.ranking
        return ranking[0] if ranking else None

    @property
    def success_rate(self) -> str:
        return f"{len(self.successful)}/{len(self.results)}"


async def compare_engines(
    source: DocumentSource,
    engines: Mapping[str, ExtractionEngine],
) -> EngineComparison:
    """Run every engine on *source*, one after another.

    Used to choose a default order for a document corpus: reports timing,
    success and a content fingerprint per engine so diverging outputs are
    easy to spot.
    """
    comparison = EngineComparison()
    for engine in engines.values():
        result = await engine.extract(source)
        comparison.results.append(result)
        if result.success:
            comparison.fingerprints[engine.name] = compute_fingerprint(result.text)

    logger.info(
        "Engine comparison for %s: %s succeeded, fastest %s",
        describe_source(source),
        comparison.success_rate,
        comparison.fastest.engine if comparison.fastest else "none",
    )
    return comparison
