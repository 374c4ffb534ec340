"""Transcript writer: markdown files with YAML frontmatter.

Each transcript records how it was produced (strategy, engine, OCR use)
in its frontmatter. ``should_write`` provides idempotency: an existing,
non-empty transcript is left alone on re-run.

Public API:
    transcript_path(output_dir, source_name) -> Path
    should_write(md_path) -> bool
    write_transcript(md_path, outcome, source_name) -> None
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path

import frontmatter

from resume_ingest.pipeline.types import PipelineOutcome

logger = logging.getLogger(__name__)


def transcript_path(output_dir: str | Path, source_name: str) -> Path:
    """Markdown path for a source document, e.g. ``cv.pdf`` -> ``cv.md``."""
    return Path(output_dir) / f"{Path(source_name).stem}.md"


def should_write(md_path: Path) -> bool:
    """Return False if *md_path* already exists and has content."""
    if md_path.exists() and md_path.stat().st_size > 0:
        return False
    return True


def write_transcript(
    md_path: Path,
    outcome: PipelineOutcome,
    source_name: str,
) -> None:
    """Write a successful outcome's transcript with frontmatter metadata.

    Frontmatter keys: ``source_file``, ``strategy``, ``final_engine``,
    ``used_recognition``, ``ingested_at`` (UTC ISO-8601), ``page_count``,
    ``char_count`` and, when OCR ran, ``average_confidence``.

    Args:
        md_path: Destination path for the markdown file.
        outcome: Successful pipeline outcome.
        source_name: Source document filename (not full path).

    Raises:
        ValueError: If the outcome carries no transcript.
    """
    if not outcome.success:
        raise ValueError(f"cannot write transcript for failed run: {outcome.error}")

    post = frontmatter.Post(outcome.text)
    post.metadata["source_file"] = source_name
    post.metadata["strategy"] = outcome.strategy
    post.metadata["final_engine"] = outcome.final_engine
    post.metadata["used_recognition"] = outcome.used_recognition
    # Fully qualified datetime.datetime avoids Pydantic v2 shadowing
    post.metadata["ingested_at"] = datetime.datetime.now(datetime.UTC).isoformat()
    post.metadata["page_count"] = outcome.page_count
    post.metadata["char_count"] = outcome.char_count
    if outcome.average_confidence is not None:
        post.metadata["average_confidence"] = round(outcome.average_confidence, 2)

    md_path.parent.mkdir(parents=True, exist_ok=True)

    with open(md_path, "w", encoding="utf-8") as f:
        f.write(frontmatter.dumps(post))

    logger.info(
        "Wrote transcript to %s (%d chars, %d pages)",
        md_path.name,
        outcome.char_count,
        outcome.page_count,
    )
