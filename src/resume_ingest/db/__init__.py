"""Database layer -- ORM model, engine factory, session management, and resume store."""

from .engine import get_engine, get_session_factory, init_db
from .models import Base, ParsedResume
from .state import (
    StoreResult,
    delete_resume,
    find_by_hash,
    get_resume_by_id,
    list_resumes,
    search_by_filename,
    store_transcript,
)

__all__ = [
    "Base",
    "ParsedResume",
    "StoreResult",
    "delete_resume",
    "find_by_hash",
    "get_engine",
    "get_resume_by_id",
    "get_session_factory",
    "init_db",
    "list_resumes",
    "search_by_filename",
    "store_transcript",
]
