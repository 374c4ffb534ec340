"""Content fingerprints used for duplicate detection."""

import hashlib


def compute_fingerprint(text: str) -> str:
    """Return the SHA-256 hex digest of a transcript."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
