# =============================================================================
# src/cli/indexer.py - Knowledge Indexer Operator CLI
# =============================================================================
#
# Command-line front end for the ingestion worker and the knowledge index.
# In production the external API enqueues jobs and tracks document records;
# this CLI does the same for local runs, maintenance, and debugging.
#
# Supported subcommands:
#
#   worker        - Run the ingestion worker until Ctrl-C / SIGTERM
#   enqueue-text  - Queue raw text (inline or from a file) for indexing
#   enqueue-url   - Queue a web page or a same-site crawl (optionally recurring)
#   enqueue-file  - Stage a local PDF/DOCX in blob storage and queue it
#   delete        - Remove a document record, cancel its queued jobs and queue
#                   deletion of its vectors
#   pause/resume  - Toggle a document's pause flag; pause also cancels queued
#                   re-crawls
#   inspect       - Vector counts, optionally per document and/or team
#   reset         - Drop the whole vector collection (requires --yes)
#
# Every enqueue command registers the document in the status store first,
# exactly as the API does, so status write-backs and re-sync checks find it.
# Pass --now to skip the queue and run the job in-process instead.
#
# Usage examples:
#   python -m src.cli worker
#   python -m src.cli enqueue-text --id doc-1 --team team-a --file notes.txt
#   python -m src.cli enqueue-url --id doc-2 --team team-a \
#       --url https://docs.example.com --mode crawl --depth 2 --sync daily
#   python -m src.cli enqueue-file --id doc-3 --team team-a --path report.pdf
#   python -m src.cli inspect --team team-a
#   python -m src.cli reset --yes
# =============================================================================

"""Operator CLI for the knowledge indexer.

Usage::

    python -m src.cli worker

    python -m src.cli enqueue-url --id doc-2 --team team-a \\
        --url https://docs.example.com --mode crawl --depth 2

    python -m src.cli inspect --document doc-2
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from pathlib import Path
from typing import Any

# Settings is a Pydantic BaseSettings model that reads configuration from
# environment variables and .env files.  Everything else is imported inside
# the handlers so ``--help`` stays fast.
from src.config.settings import Settings

# File extension -> (job source, MIME type) for enqueue-file.
_FILE_TYPES: dict[str, tuple[str, str]] = {
    ".pdf": ("pdf", "application/pdf"),
    ".docx": (
        "docx",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    ".doc": ("docx", "application/msword"),
}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


async def _open_status_store(app_settings: Settings):  # noqa: ANN202
    from src.providers.status.sqlite_status_provider import SQLiteDocumentStatusProvider

    store = SQLiteDocumentStatusProvider(db_path=app_settings.status_db_path)
    await store.initialize()
    return store


async def _cancel_queued_jobs(app_settings: Settings, document_id: str) -> None:
    """Drop waiting and delayed ingest jobs for *document_id*.  Queue errors only warn."""
    from src.main import build_queue
    from src.utils.errors import QueueError

    queue = build_queue(app_settings)
    try:
        removed = await queue.remove_jobs(document_id)
    except QueueError as exc:
        print(f"  Warning: could not cancel queued jobs: {exc}", file=sys.stderr)
        return
    finally:
        await queue.close()
    if removed:
        print(f"  Cancelled {removed} queued job(s) for {document_id}")


def _open_vector_store(app_settings: Settings):  # noqa: ANN202
    from src.providers.vector_store.chromadb_provider import ChromaDBVectorStore

    return ChromaDBVectorStore(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.vector_collection,
    )


async def _submit(app_settings: Settings, job_data: dict[str, Any], run_now: bool) -> int:
    """Register the document, then queue the job (or run it in-process)."""
    from pydantic import ValidationError

    from src.models.ingestion import DocumentJob

    try:
        job = DocumentJob.model_validate(job_data)
    except ValidationError as exc:
        print(f"Error: invalid job: {exc}", file=sys.stderr)
        return 1
    store = await _open_status_store(app_settings)
    await store.register_document(job.document_id, team_id=job.team_id)

    if run_now:
        return await _run_inline(app_settings, job)

    from src.main import build_queue

    queue = build_queue(app_settings)
    try:
        job_id = await queue.add("ingest", job.to_wire())
    finally:
        await queue.close()

    print(f"Queued {job.source} job for document {job.document_id}")
    print(f"  Job ID: {job_id}")
    if app_settings.queue_backend == "memory":
        print("  Note: QUEUE_BACKEND=memory keeps the job in this process only.")
        print("  Use --now to run it immediately.")
    return 0


async def _run_inline(app_settings: Settings, job: Any) -> int:
    from src.main import build_container

    container = build_container(app_settings)
    await container.status_provider.initialize()
    try:
        result = await container.worker.process(job)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await container.queue.close()

    if result is None:
        print(f"Vectors deleted for document {job.document_id}")
        return 0

    print(f"\nIngestion {result.status.value}:")
    print(f"  Chunks:  {result.chunk_count}")
    print(f"  Words:   {result.word_count}")
    if job.source == "url":
        print(f"  Pages:   {result.page_count}")
    print(f"  Time:    {result.elapsed:.2f}s")
    if result.error_message:
        print(f"  Error:   {result.error_message}")
        return 1
    return 0


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_worker(app_settings: Settings) -> int:
    from src.main import run_worker

    await run_worker(app_settings)
    return 0


async def _handle_enqueue_text(args: argparse.Namespace, app_settings: Settings) -> int:
    if args.file:
        path = Path(args.file)
        if not path.is_file():
            print(f"Error: file not found: {path}", file=sys.stderr)
            return 1
        content = path.read_text(encoding="utf-8", errors="replace")
        file_name = args.title or path.name
    else:
        content = args.content
        file_name = args.title or ""

    job_data = {
        "documentId": args.id,
        "source": "text",
        "teamId": args.team,
        "fileName": file_name,
        "content": content,
    }
    return await _submit(app_settings, job_data, args.now)


async def _handle_enqueue_url(args: argparse.Namespace, app_settings: Settings) -> int:
    job_data = {
        "documentId": args.id,
        "source": "url",
        "teamId": args.team,
        "fileName": args.title or args.url,
        "sourceUrl": args.url,
        "fetchMode": args.mode,
        "crawlDepth": args.depth,
        "syncFrequency": args.sync,
    }
    return await _submit(app_settings, job_data, args.now)


async def _handle_enqueue_file(args: argparse.Namespace, app_settings: Settings) -> int:
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    file_type = _FILE_TYPES.get(path.suffix.lower())
    if file_type is None:
        supported = ", ".join(sorted(_FILE_TYPES))
        print(f"Error: unsupported file type {path.suffix!r} (supported: {supported})", file=sys.stderr)
        return 1
    source, mime_type = file_type

    from src.main import build_blob_storage

    file_key = f"{args.team or 'local'}/{uuid.uuid4().hex}/{path.name}"
    storage = build_blob_storage(app_settings)
    await storage.put_object(app_settings.s3_bucket, file_key, path.read_bytes())
    print(f"Staged {path.name} as {app_settings.s3_bucket}/{file_key}")

    job_data = {
        "documentId": args.id,
        "source": source,
        "teamId": args.team,
        "fileKey": file_key,
        "mimeType": mime_type,
        "fileName": args.title or path.name,
    }
    return await _submit(app_settings, job_data, args.now)


async def _handle_delete(args: argparse.Namespace, app_settings: Settings) -> int:
    """Remove the record, then queue removal of the document's vectors."""
    store = await _open_status_store(app_settings)
    record = await store.get_document(args.id)
    if not await store.delete_document(args.id):
        print(f"  No status record for {args.id}; deleting vectors anyway.")
    await _cancel_queued_jobs(app_settings, args.id)

    from src.models.ingestion import DocumentJob

    job = DocumentJob(
        document_id=args.id,
        job_type="delete-vectors",
        source="text",
        team_id=(record or {}).get("team_id", ""),
    )
    if args.now:
        return await _run_inline(app_settings, job)

    from src.main import build_queue

    queue = build_queue(app_settings)
    try:
        job_id = await queue.add("delete-vectors", job.to_wire())
    finally:
        await queue.close()
    print(f"Queued vector deletion for document {args.id} (job {job_id})")
    return 0


async def _handle_pause(args: argparse.Namespace, app_settings: Settings, paused: bool) -> int:
    store = await _open_status_store(app_settings)
    if not await store.set_paused(args.id, paused):
        print(f"Error: unknown document {args.id}", file=sys.stderr)
        return 1
    if paused:
        await _cancel_queued_jobs(app_settings, args.id)
    print(f"Document {args.id} {'paused' if paused else 'resumed'}")
    return 0


async def _handle_inspect(args: argparse.Namespace, app_settings: Settings) -> int:
    vector_store = _open_vector_store(app_settings)
    total = await vector_store.count()

    print("Knowledge Index")
    print("=" * 40)
    print(f"  Collection:     {app_settings.vector_collection}")
    print(f"  Total vectors:  {total}")
    if args.team:
        print(f"  Team vectors:   {await vector_store.count(team_id=args.team)}")

    if args.document:
        doc_count = await vector_store.count(document_id=args.document, team_id=args.team)
        print(f"\n  Document {args.document}:")
        print(f"    Vectors:      {doc_count}")
        store = await _open_status_store(app_settings)
        record = await store.get_document(args.document)
        if record is None:
            print("    Status:       (no record)")
        else:
            print(f"    Status:       {record['status']}")
            print(f"    Paused:       {record['is_paused']}")
            print(f"    Words:        {record['word_count']}")
            print(f"    Chunks:       {record['chunk_count']}")
            print(f"    Last indexed: {record['last_indexed'] or '-'}")
            if record["error_message"]:
                print(f"    Error:        {record['error_message']}")
    return 0


async def _handle_reset(args: argparse.Namespace, app_settings: Settings) -> int:
    vector_store = _open_vector_store(app_settings)
    total = await vector_store.count()
    print(f"Dropping collection '{app_settings.vector_collection}' ({total} vectors)")
    if not args.yes:
        print("  Refusing without --yes.", file=sys.stderr)
        return 1
    await vector_store.reset()
    print("  Done.")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_document_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--id", default=None, help="Document ID (default: random UUID)")
    sub.add_argument("--team", default="", help="Tenant (team) ID that owns the document")
    sub.add_argument("--title", default="", help="Display name stored with each chunk")
    sub.add_argument(
        "--now",
        action="store_true",
        help="Run the job in this process instead of queueing it",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the indexer CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Operate the knowledge indexer worker and vector index.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Indexer commands")

    # -- worker --
    subparsers.add_parser("worker", help="Run the ingestion worker")

    # -- enqueue-text --
    text_parser = subparsers.add_parser("enqueue-text", help="Queue raw text for indexing")
    _add_document_args(text_parser)
    text_source = text_parser.add_mutually_exclusive_group(required=True)
    text_source.add_argument("--content", help="Text to index")
    text_source.add_argument("--file", help="Read the text from this UTF-8 file")

    # -- enqueue-url --
    url_parser = subparsers.add_parser("enqueue-url", help="Queue a web page or site crawl")
    _add_document_args(url_parser)
    url_parser.add_argument("--url", required=True, help="Page (or crawl root) URL")
    url_parser.add_argument(
        "--mode",
        choices=["single", "crawl"],
        default="single",
        help="Fetch only the page, or crawl same-host links (default: single)",
    )
    url_parser.add_argument(
        "--depth", type=int, default=1, help="Maximum crawl depth (default: 1)"
    )
    url_parser.add_argument(
        "--sync",
        choices=["manual", "1hour", "6hours", "daily"],
        default=None,
        help="Re-crawl on this schedule after each successful run",
    )

    # -- enqueue-file --
    file_parser = subparsers.add_parser("enqueue-file", help="Stage and queue a PDF/DOCX file")
    _add_document_args(file_parser)
    file_parser.add_argument("--path", required=True, help="Local .pdf/.docx/.doc file")

    # -- delete --
    delete_parser = subparsers.add_parser(
        "delete", help="Delete a document record and its vectors"
    )
    delete_parser.add_argument("--id", required=True, help="Document ID")
    delete_parser.add_argument(
        "--now", action="store_true", help="Delete vectors in this process"
    )

    # -- pause / resume --
    for name, help_text in (("pause", "Pause a document"), ("resume", "Resume a document")):
        toggle_parser = subparsers.add_parser(name, help=help_text)
        toggle_parser.add_argument("--id", required=True, help="Document ID")

    # -- inspect --
    inspect_parser = subparsers.add_parser("inspect", help="Show vector counts")
    inspect_parser.add_argument("--document", default=None, help="Document ID")
    inspect_parser.add_argument("--team", default=None, help="Team ID")

    # -- reset --
    reset_parser = subparsers.add_parser("reset", help="Drop the vector collection")
    reset_parser.add_argument(
        "--yes", "-y", action="store_true", help="Confirm dropping every vector"
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _dispatch(args: argparse.Namespace, app_settings: Settings) -> int:
    if args.command == "worker":
        return await _handle_worker(app_settings)
    if args.command == "enqueue-text":
        return await _handle_enqueue_text(args, app_settings)
    if args.command == "enqueue-url":
        return await _handle_enqueue_url(args, app_settings)
    if args.command == "enqueue-file":
        return await _handle_enqueue_file(args, app_settings)
    if args.command == "delete":
        return await _handle_delete(args, app_settings)
    if args.command in ("pause", "resume"):
        return await _handle_pause(args, app_settings, paused=args.command == "pause")
    if args.command == "inspect":
        return await _handle_inspect(args, app_settings)
    if args.command == "reset":
        return await _handle_reset(args, app_settings)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses the subcommand, loads Settings from the environment / .env
    file, and exits with the handler's status code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if getattr(args, "id", "") is None:
        args.id = str(uuid.uuid4())

    app_settings = Settings()

    from src.utils.errors import IndexerError
    from src.utils.logging import configure_logging

    if args.command != "worker":
        configure_logging(log_level=app_settings.log_level)

    try:
        exit_code = asyncio.run(_dispatch(args, app_settings))
    except IndexerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
