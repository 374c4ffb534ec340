"""
Exception classes for resume ingestion.

Engine failures are never raised: they are captured into result objects.
Exceptions are reserved for problems with the request itself, detected
before any engine runs.
"""


class ResumeIngestError(Exception):
    """Base exception for all resume ingestion errors."""

    pass


class InvalidInputError(ResumeIngestError, ValueError):
    """
    Raised when a request is rejected before any engine is invoked.

    Covers a missing or empty document, a non-positive scale factor,
    a malformed language code, and an unknown strategy name.
    """

    pass
