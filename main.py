"""docbridge -- application entry point.

Startup sequence:
    1. Load pipeline configuration (needed for log_dir, db_path, storage_dir)
    2. Setup logging (must happen before any code that logs)
    3. Load remaining configuration (extraction, provider)
    4. Run the requested command

Commands:
    extract PATH [--type MIME] [--write-markdown]
        Extract one local file and print the result as JSON.
    process [--document-id ID] [--force]
        Extract one stored document, or every document still pending.
    complete PROMPT [--provider NAME] [--document-id ID ...]
        Run a single chat completion against the configured provider,
        optionally with stored documents as context.

Exit code is 0 on success and 1 when the result is unreadable or failed.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from docbridge.completion import CompletionRequest, create_completion
from docbridge.config import ExtractionSettings, PipelineSettings, ProviderSettings
from docbridge.db import Database
from docbridge.extractor import (
    BlobNotFoundError,
    DocumentNotFoundError,
    ExtractionPipeline,
    ExtractionRequest,
    LocalBlobStore,
    process_document,
    process_pending_documents,
)
from docbridge.extractor.markdown import write_markdown_file
from docbridge.logging import setup_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docbridge", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Extract text from a local file")
    extract.add_argument("path", type=Path)
    extract.add_argument("--type", dest="declared_type", default=None, help="Declared MIME type")
    extract.add_argument(
        "--write-markdown",
        action="store_true",
        help="Write a <file>.md sidecar with frontmatter metadata",
    )

    process = sub.add_parser("process", help="Extract stored documents")
    process.add_argument("--document-id", default=None)
    process.add_argument("--force", action="store_true", help="Re-extract readable documents")

    complete = sub.add_parser("complete", help="Run one chat completion")
    complete.add_argument("prompt")
    complete.add_argument("--provider", default=None, help="Override the configured provider")
    complete.add_argument(
        "--document-id",
        dest="document_ids",
        action="append",
        default=[],
        help="Stored document to offer as context (repeatable)",
    )

    return parser


def _cmd_extract(args: argparse.Namespace, extraction: ExtractionSettings) -> int:
    try:
        data = args.path.read_bytes()
    except OSError as e:
        logger.error("Cannot read %s: %s", args.path, e)
        return 1

    pipeline = ExtractionPipeline.from_settings(extraction)
    result = pipeline.extract(
        ExtractionRequest(
            data=data,
            declared_name=args.path.name,
            declared_type=args.declared_type,
        )
    )
    if args.write_markdown:
        write_markdown_file(args.path, result)

    print(
        json.dumps(
            {
                "content": result.text,
                "extraction_method": result.method.value,
                "is_readable": result.is_readable,
                "attempts": result.attempts,
                "error": result.error,
            },
            indent=2,
        )
    )
    return 0 if result.is_readable else 1


def _cmd_process(
    args: argparse.Namespace,
    pipeline_settings: PipelineSettings,
    extraction: ExtractionSettings,
) -> int:
    database = Database.from_settings(pipeline_settings)
    blob_store = LocalBlobStore(pipeline_settings.storage_dir)
    pipeline = ExtractionPipeline.from_settings(extraction)

    try:
        with database.session() as session:
            if args.document_id:
                try:
                    outcome = process_document(
                        session,
                        args.document_id,
                        blob_store,
                        pipeline,
                        force_reprocess=args.force,
                        min_content_length=extraction.reprocess_min_content_length,
                    )
                except (DocumentNotFoundError, BlobNotFoundError) as e:
                    logger.error("%s", e)
                    return 1
                if outcome.skipped:
                    return 0
                return 0 if outcome.result.is_readable else 1

            batch = process_pending_documents(
                session,
                blob_store,
                pipeline,
                max_retries=pipeline_settings.max_retry_count,
                min_content_length=extraction.reprocess_min_content_length,
            )
            return 1 if batch.failed else 0
    finally:
        database.dispose()


def _cmd_complete(
    args: argparse.Namespace,
    pipeline_settings: PipelineSettings,
    provider: ProviderSettings,
) -> int:
    if args.provider:
        provider = provider.model_copy(update={"provider": args.provider})
    request = CompletionRequest(prompt=args.prompt, document_ids=args.document_ids)

    if not request.document_ids:
        result = create_completion(request, provider)
    else:
        database = Database.from_settings(pipeline_settings)
        try:
            with database.session() as session:
                result = create_completion(request, provider, session=session)
        finally:
            database.dispose()

    print(result.text)
    if not result.success:
        logger.error("Completion failed: %s", result.error)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the docbridge command line."""
    args = _build_parser().parse_args(argv)

    # 1. Load pipeline config first -- needed for logging and storage paths
    pipeline_settings = PipelineSettings()

    # 2. Setup logging BEFORE anything else logs
    setup_logging(pipeline_settings)

    # 3. Load remaining configuration
    extraction = ExtractionSettings()
    provider = ProviderSettings()

    # Never log the API key
    logger.info(
        "Config loaded -- extraction: pdf_backend=%s; pipeline: db_path=%s, storage_dir=%s; "
        "provider: %s at %s",
        extraction.pdf_backend,
        pipeline_settings.db_path,
        pipeline_settings.storage_dir,
        provider.provider,
        provider.api_endpoint,
    )

    if args.command == "extract":
        return _cmd_extract(args, extraction)
    if args.command == "process":
        return _cmd_process(args, pipeline_settings, extraction)
    return _cmd_complete(args, pipeline_settings, provider)


if __name__ == "__main__":
    sys.exit(main())
