"""Resume ingestion: fallback text extraction, scan detection, OCR and merging."""

__version__ = "0.1.0"
