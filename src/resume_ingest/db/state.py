"""Store operations for ingested resume transcripts.

Provides:
    store_transcript -- Insert a transcript unless its content hash exists.
    get_resume_by_id -- Look up a resume by primary key.
    list_resumes -- All resumes, newest first.
    find_by_hash -- Look up a resume by content hash.
    search_by_filename -- Case-insensitive filename substring search.
    delete_resume -- Remove a resume by primary key.

Every mutation calls session.commit() explicitly -- SQLAlchemy does NOT auto-commit
when the session closes, so changes would be silently lost without it.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resume_ingest.fingerprint import compute_fingerprint

from .models import ParsedResume

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreResult:
    """Outcome of ``store_transcript``.

    Attributes:
        resume_id: Id of the inserted row, or of the existing duplicate.
        content_hash: SHA-256 hex of the transcript.
        duplicate: True if an identical transcript was already stored.
    """

    resume_id: int
    content_hash: str
    duplicate: bool = False


def store_transcript(
    session: Session,
    *,
    filename: str,
    raw_text: str,
    parser_used: str,
    page_count: int = 0,
    strategy: str = "smart",
    parsing_time_ms: int = 0,
    used_recognition: bool = False,
    file_path: str | None = None,
    file_size: int | None = None,
    parsed_data: dict[str, Any] | None = None,
) -> StoreResult:
    """Persist a transcript, reporting a duplicate instead of inserting one.

    Duplicates are detected by content hash, so the same resume submitted
    under a different filename is still reported as a duplicate.

    Args:
        session: Active SQLAlchemy session.
        filename: Source document filename.
        raw_text: The transcript.
        parser_used: Engine that produced the transcript.
        page_count: Pages in the source document.
        strategy: Pipeline strategy used.
        parsing_time_ms: Pipeline wall time.
        used_recognition: Whether OCR contributed to the transcript.
        file_path: Source document path, if it came from disk.
        file_size: Source document size in bytes.
        parsed_data: Extra JSON-serializable metadata (e.g. outcome summary).

    Returns:
        StoreResult with the row id and whether it was a duplicate.
    """
    content_hash = compute_fingerprint(raw_text)

    existing = find_by_hash(session, content_hash)
    if existing is not None:
        logger.info(
            "Duplicate transcript for %s (matches resume %d)", filename, existing.id
        )
        return StoreResult(existing.id, content_hash, duplicate=True)

    resume = ParsedResume(
        filename=filename,
        file_path=file_path,
        file_size=file_size,
        page_count=page_count,
        raw_text=raw_text,
        content_hash=content_hash,
        parser_used=parser_used,
        strategy=strategy,
        parsing_time_ms=parsing_time_ms,
        used_recognition=used_recognition,
        parsed_data=parsed_data,
    )
    session.add(resume)
    try:
        session.commit()
    except IntegrityError:
        # Another writer stored the same content between lookup and insert
        session.rollback()
        existing = find_by_hash(session, content_hash)
        if existing is None:
            raise
        logger.info(
            "Duplicate transcript for %s (matches resume %d)", filename, existing.id
        )
        return StoreResult(existing.id, content_hash, duplicate=True)

    logger.info("Stored resume %d: %s", resume.id, filename)
    return StoreResult(resume.id, content_hash)


def get_resume_by_id(session: Session, resume_id: int) -> ParsedResume | None:
    """Look up a resume by primary key."""
    return session.get(ParsedResume, resume_id)


def list_resumes(session: Session, limit: int | None = None) -> list[ParsedResume]:
    """Return stored resumes, newest first.

    Args:
        session: Active SQLAlchemy session.
        limit: Maximum number of rows, or None for all.
    """
    stmt = select(ParsedResume).order_by(
        ParsedResume.created_at.desc(), ParsedResume.id.desc()
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt).all())


def find_by_hash(session: Session, content_hash: str) -> ParsedResume | None:
    """Look up a resume by the SHA-256 hex of its transcript."""
    stmt = select(ParsedResume).where(ParsedResume.content_hash == content_hash)
    return session.scalars(stmt).first()


def search_by_filename(session: Session, fragment: str) -> list[ParsedResume]:
    """Return resumes whose filename contains *fragment*, ignoring case."""
    stmt = (
        select(ParsedResume)
        .where(ParsedResume.filename.ilike(f"%{fragment}%"))
        .order_by(ParsedResume.created_at.desc(), ParsedResume.id.desc())
    )
    return list(session.scalars(stmt).all())


def delete_resume(session: Session, resume_id: int) -> bool:
    """Delete a resume by primary key.

    Returns:
        True if a row was deleted, False if no such resume exists.
    """
    resume = get_resume_by_id(session, resume_id)
    if resume is None:
        return False
    session.delete(resume)
    session.commit()
    logger.info("Deleted resume %d", resume_id)
    return True
