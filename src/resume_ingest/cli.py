"""Command-line interface for resume ingestion.

Subcommands:
    parse <pdf>     Run the smart or hybrid pipeline and print the transcript.
    compare <pdf>   Run every extraction engine and rank them.
    list            List stored resumes, newest first.
    show <id>       Print a stored transcript.
    delete <id>     Remove a stored resume.

Exit codes: 0 on success, 1 on failure, 2 when ``parse --store`` finds the
transcript is already stored.

Startup sequence:
    1. Load pipeline configuration (needed for log_dir and db_path)
    2. Setup logging (must happen before any code that logs)
    3. Load remaining configuration (extraction, recognition)
    4. Dispatch the subcommand
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from resume_ingest.config import ExtractionSettings, PipelineSettings, RecognitionSettings
from resume_ingest.db import (
    delete_resume,
    get_engine,
    get_resume_by_id,
    get_session_factory,
    init_db,
    list_resumes,
    search_by_filename,
    store_transcript,
)
from resume_ingest.extractor import build_default_engines, compare_engines
from resume_ingest.logging import setup_logging
from resume_ingest.pipeline import (
    IngestionPipeline,
    PipelineOutcome,
    Strategy,
    should_write,
    transcript_path,
    write_transcript,
)
from resume_ingest.recognition import RecognitionWorker, TesseractEngine

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_DUPLICATE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resume-ingest",
        description="Extract a best-effort transcript from resume PDFs.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logs on the console."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    parse = sub.add_parser("parse", help="Extract a transcript from a PDF.")
    parse.add_argument("pdf", type=Path, help="Path to the resume PDF.")
    parse.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        default=None,
        help="smart: OCR only when needed; hybrid: always OCR and merge.",
    )
    parse.add_argument(
        "--engine",
        action="append",
        default=None,
        help="Preferred extraction engine (repeatable), tried before the default order.",
    )
    parse.add_argument("--language", default=None, help="Tesseract language, e.g. eng or eng+fra.")
    parse.add_argument("--scale", type=float, default=None, help="OCR rasterization scale.")
    parse.add_argument("--fast", action="store_true", help="Use the fast OCR scale.")
    parse.add_argument("--timeout", type=float, default=None, help="Abort after N seconds.")
    parse.add_argument("--store", action="store_true", help="Save the transcript to the database.")
    parse.add_argument(
        "--save", action="store_true", help="Write a markdown transcript to the output directory."
    )
    parse.add_argument(
        "--output", type=Path, default=None, help="Output directory for --save (implies --save)."
    )
    parse.add_argument("--json", action="store_true", help="Print a JSON summary instead of text.")

    compare = sub.add_parser("compare", help="Run every extraction engine on a PDF.")
    compare.add_argument("pdf", type=Path, help="Path to the resume PDF.")

    listing = sub.add_parser("list", help="List stored resumes.")
    listing.add_argument("--search", default=None, help="Filter by filename substring.")
    listing.add_argument("--limit", type=int, default=None, help="Maximum rows to show.")

    show = sub.add_parser("show", help="Print a stored transcript.")
    show.add_argument("id", type=int)

    delete = sub.add_parser("delete", help="Delete a stored resume.")
    delete.add_argument("id", type=int)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the resume-ingest command line."""
    args = build_parser().parse_args(argv)

    # 1-2. Pipeline config first, then logging before anything else logs
    pipeline_settings = PipelineSettings()
    setup_logging(
        log_dir=pipeline_settings.log_dir,
        log_level_console=logging.DEBUG if args.verbose else logging.INFO,
        max_bytes=pipeline_settings.log_max_bytes,
        backup_count=pipeline_settings.log_backup_count,
    )

    if args.command == "parse":
        return run_parse(args, pipeline_settings)
    if args.command == "compare":
        return run_compare(args)
    return run_store_command(args, pipeline_settings)


def run_parse(args: argparse.Namespace, pipeline_settings: PipelineSettings) -> int:
    extraction = ExtractionSettings()
    recognition = RecognitionSettings()
    logger.info(
        "Config loaded -- extraction: engines=%s, recognition: language=%s, scale=%s",
        extraction.engine_order,
        recognition.language,
        recognition.scale,
    )

    strategy = args.strategy or pipeline_settings.strategy
    timeout = args.timeout if args.timeout is not None else pipeline_settings.timeout_seconds

    outcome = asyncio.run(
        _ingest(args, strategy, timeout, extraction, recognition)
    )

    if args.json:
        print(json.dumps(outcome.summary(), indent=2))
    elif outcome.success:
        print(outcome.text)

    if not outcome.success:
        print(f"error: {outcome.error}", file=sys.stderr)
        return EXIT_FAILURE
    if outcome.warning:
        print(f"warning: {outcome.warning}", file=sys.stderr)

    if args.save or args.output is not None:
        output_dir = args.output or Path(pipeline_settings.output_dir)
        md_path = transcript_path(output_dir, args.pdf.name)
        if should_write(md_path):
            write_transcript(md_path, outcome, args.pdf.name)
        else:
            logger.info("Transcript %s already exists, skipping", md_path)

    if args.store:
        return _store(args.pdf, outcome, pipeline_settings)
    return EXIT_OK


async def _ingest(
    args: argparse.Namespace,
    strategy: str,
    timeout: float | None,
    extraction: ExtractionSettings,
    recognition: RecognitionSettings,
) -> PipelineOutcome:
    worker = RecognitionWorker(TesseractEngine(recognition.tesseract_cmd))
    # Leaving the context terminates the worker, on timeout too
    async with IngestionPipeline(
        worker,
        extraction_settings=extraction,
        recognition_settings=recognition,
    ) as pipeline:
        return await pipeline.run(
            args.pdf,
            strategy,
            timeout=timeout,
            engine=args.engine,
            language=args.language,
            scale=args.scale,
            fast=args.fast,
        )


def _store(pdf: Path, outcome: PipelineOutcome, pipeline_settings: PipelineSettings) -> int:
    engine = get_engine(pipeline_settings.db_path)
    try:
        init_db(engine)
        session_factory = get_session_factory(engine)
        with session_factory() as session:
            stored = store_transcript(
                session,
                filename=pdf.name,
                raw_text=outcome.text,
                parser_used=outcome.final_engine,
                page_count=outcome.page_count,
                strategy=outcome.strategy,
                parsing_time_ms=outcome.total_elapsed_ms,
                used_recognition=outcome.used_recognition,
                file_path=str(pdf.resolve()),
                file_size=pdf.stat().st_size,
                parsed_data=outcome.summary(),
            )
    finally:
        engine.dispose()

    if stored.duplicate:
        print(f"duplicate of resume {stored.resume_id}", file=sys.stderr)
        return EXIT_DUPLICATE
    print(f"stored as resume {stored.resume_id}", file=sys.stderr)
    return EXIT_OK


def run_compare(args: argparse.Namespace) -> int:
    engines = build_default_engines(ExtractionSettings())
    comparison = asyncio.run(compare_engines(args.pdf, engines))

    for result in comparison.results:
        if result.success:
            print(
                f"{result.engine:<12} ok     {result.elapsed_ms:>6}ms "
                f"{result.char_count:>7} chars  "
                f"{comparison.fingerprints[result.engine][:12]}"
            )
        else:
            print(f"{result.engine:<12} failed {result.elapsed_ms:>6}ms  {result.error}")

    fastest = comparison.fastest
    print(f"success rate: {comparison.success_rate}")
    print(f"fastest: {fastest.engine if fastest else 'none'}")
    return EXIT_OK if comparison.successful else EXIT_FAILURE


def run_store_command(args: argparse.Namespace, pipeline_settings: PipelineSettings) -> int:
    engine = get_engine(pipeline_settings.db_path)
    try:
        init_db(engine)
        session_factory = get_session_factory(engine)
        with session_factory() as session:
            if args.command == "list":
                if args.search:
                    resumes = search_by_filename(session, args.search)
                    if args.limit is not None:
                        resumes = resumes[: args.limit]
                else:
                    resumes = list_resumes(session, limit=args.limit)
                for resume in resumes:
                    print(
                        f"{resume.id:>5}  {resume.created_at:%Y-%m-%d %H:%M}  "
                        f"{resume.parser_used:<22} {resume.filename}"
                    )
                return EXIT_OK

            if args.command == "show":
                resume = get_resume_by_id(session, args.id)
                if resume is None:
                    print(f"no resume with id {args.id}", file=sys.stderr)
                    return EXIT_FAILURE
                print(resume.raw_text)
                return EXIT_OK

            if delete_resume(session, args.id):
                print(f"deleted resume {args.id}", file=sys.stderr)
                return EXIT_OK
            print(f"no resume with id {args.id}", file=sys.stderr)
            return EXIT_FAILURE
    finally:
        engine.dispose()
