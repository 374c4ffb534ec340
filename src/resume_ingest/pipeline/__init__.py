"""Ingestion pipeline: smart and hybrid strategies, merge, transcript output.

Public API:
    IngestionPipeline(worker, ...).run(source, strategy) -> PipelineOutcome
    merge_texts(digital_text, recognized_text) -> MergedResult
    write_transcript(md_path, outcome, source_name) -> None
"""

from resume_ingest.pipeline.markdown import should_write, transcript_path, write_transcript
from resume_ingest.pipeline.merge import SECTION_SEPARATOR, merge_texts, normalize_line
from resume_ingest.pipeline.orchestrator import IngestionPipeline
from resume_ingest.pipeline.types import MergedResult, PipelineOutcome, Strategy

__all__ = [
    "IngestionPipeline",
    "MergedResult",
    "PipelineOutcome",
    "SECTION_SEPARATOR",
    "Strategy",
    "merge_texts",
    "normalize_line",
    "should_write",
    "transcript_path",
    "write_transcript",
]
