"""SQLAlchemy 2.0 ORM models for ingested resumes.

Models:
    ParsedResume -- One ingested document with its transcript and the
        content hash used for duplicate detection.
"""

import datetime
from typing import Any, Optional

from sqlalchemy import JSON, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ParsedResume(Base):
    """A resume transcript, unique by content hash."""

    __tablename__ = "parsed_resumes"

    id: Mapped[int] = mapped_column(primary_key=True)
    filename: Mapped[str] = mapped_column(String(500), index=True)
    file_path: Mapped[Optional[str]] = mapped_column(String(1000), default=None)
    file_size: Mapped[Optional[int]] = mapped_column(default=None)
    page_count: Mapped[int] = mapped_column(default=0)
    raw_text: Mapped[str] = mapped_column(Text)

    # SHA-256 hex of raw_text
    content_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    # How the transcript was produced
    parser_used: Mapped[str] = mapped_column(String(100))
    strategy: Mapped[str] = mapped_column(String(20), default="smart")
    parsing_time_ms: Mapped[int] = mapped_column(default=0)
    used_recognition: Mapped[bool] = mapped_column(default=False)
    parsed_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, default=None)

    created_at: Mapped[datetime.datetime] = mapped_column(
        server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<ParsedResume(id={self.id}, filename={self.filename!r})>"
