"""
run_ocr.py

Command-line entry point: extract text from images/PDFs and save it
as a Word document, or as a zip of documents for several inputs.

Usage:
    docscan <file>                      # writes <file stem>.docx
    docscan <file> --output out.docx
    docscan <file1> <file2> <dir>       # writes extracted-documents.zip
    docscan <file> --json
"""

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .bundler import document_name
from .exceptions import DocScanError, SourceFileError, SourceSecurityError
from .exporter import export_text
from .ocr_pipeline import (
    BatchOrchestrator,
    FixedIntervalThrottle,
    ProcessingCallbacks,
    process_document,
)
from .utils import collect_sources

logger = logging.getLogger(__name__)


def _print_notice(notice):
    page = f" (page {notice.page_number})" if notice.page_number else ""
    print(f"[{notice.kind.value}] {notice.source_name}{page}: {notice.reason}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract text from images and PDFs and export it as Word documents"
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Image/PDF files or directories to process",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output .docx path (single input only)",
    )
    parser.add_argument(
        "--archive",
        default=None,
        help=f"Output zip path for batches (default: {config.ARCHIVE_NAME})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the structured result as JSON instead of writing files",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help=f"Seconds to wait between pages (default: {config.INTER_PAGE_DELAY_SECONDS})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        sources = collect_sources(args.paths)
    except (SourceFileError, SourceSecurityError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not sources:
        print("Error: no supported files found", file=sys.stderr)
        return 1

    callbacks = ProcessingCallbacks(on_notice=_print_notice)
    throttle = FixedIntervalThrottle(interval=args.delay)
    single = len(sources) == 1 and not Path(args.paths[0]).is_dir()

    try:
        if single:
            result = process_document(sources[0], callbacks=callbacks, throttle=throttle)
            if args.json:
                print(result.model_dump_json(indent=2))
                return 0
            output = args.output or document_name(sources[0].name)
            export_text(result.text, path=output)
            print(f"Pages: {result.total_pages}, failed: {result.failed_count} {result.failed_pages}")
            print(f"Saved: {output}")
            return 0

        orchestrator = BatchOrchestrator(callbacks=callbacks, throttle=throttle)
        orchestrator.enqueue(sources)
        report = orchestrator.run()
        if args.json:
            print(report.model_dump_json(indent=2))
            return 0 if report.completed_items else 2
        print(
            f"Items: {report.completed_items} completed, {report.failed_items} failed, "
            f"{report.total_items} total; pages failed: {report.failed_pages}/{report.total_pages}"
        )
        if not report.completed_items:
            return 2
        archive = args.archive or config.ARCHIVE_NAME
        orchestrator.export_archive(path=archive)
        print(f"Saved: {archive}")
        return 0
    except DocScanError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
