#!/usr/bin/env python3
"""Run a local document through the upload + extraction pipeline.

Does the same thing as ``POST /api/upload`` without the HTTP server: the file
is copied into the uploads directory under a collision-resistant name, the
extraction tool is run on it and the resulting article summary is printed
as JSON. Paths default to the values from the environment / ``.env``.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from gst_backend.domains.document_store.store import DocumentStore
from gst_backend.domains.file_ingest.processors.extraction import ExtractionBridge, SubprocessExtractor
from gst_backend.domains.file_ingest.uploads import UploadIngestor
from gst_backend.utils.config import Settings, get_settings


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Upload a document into the GST dashboard data set.",
    )
    parser.add_argument("source", type=Path, help="Document to ingest.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding db.json / gst_data.json (default: from settings).",
    )
    parser.add_argument(
        "--command",
        default=None,
        help="Extraction command, e.g. 'python3 tools/pdf_extraction_tool.py'.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before the extraction tool is killed.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log pipeline steps to stderr.",
    )

    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.command is not None:
        overrides["extraction_command"] = args.command
        overrides["extraction_script"] = None
        overrides["extraction_cwd"] = None
    if args.timeout is not None:
        overrides["extraction_timeout"] = args.timeout
    return get_settings().model_copy(update=overrides)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    if not args.source.is_file():
        logger.error(f"No such file: {args.source}")
        return 1

    settings = build_settings(args)
    store = DocumentStore(settings.primary_path, settings.db_path)
    store.load()

    extractor = SubprocessExtractor(
        command=settings.get_extraction_command(),
        output_path=settings.primary_path,
        cwd=settings.get_extraction_cwd(),
        timeout=settings.extraction_timeout,
    )
    ingestor = UploadIngestor(settings.uploads_path, ExtractionBridge(extractor, store))
    result = ingestor.ingest(args.source.name, args.source.read_bytes())

    report = {
        "state": result.state.value,
        "path": str(result.path),
        **result.summary_fields(),
    }
    if result.error:
        report["error"] = result.error
    print(json.dumps(report, indent=2))

    return 0 if result.extracted else 1


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
