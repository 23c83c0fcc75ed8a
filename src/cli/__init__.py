# =============================================================================
# src/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line tools for operating the knowledge indexer outside of the
# external API that normally drives it. Everything lives in indexer.py and
# is reachable as `python -m src.cli <command>`:
#
#   1. WORKER  (worker)
#      Runs the long-lived ingestion worker: consumes the job queue and
#      dispatches text, file, and URL jobs to their pipelines.
#
#   2. ENQUEUE (enqueue-text / enqueue-url / enqueue-file)
#      Registers a document record and pushes an ingestion job, the same
#      payload the API would produce. --now runs the job in-process.
#
#   3. MAINTENANCE (delete / pause / resume / inspect / reset)
#      Document lifecycle and vector-collection housekeeping.
#
# Architecture Notes:
#   - argparse only.
#   - Heavy imports (ChromaDB, boto3, redis) are deferred inside handlers
#     to keep `--help` fast.
#   - The worker and --now runs use src.main.build_container, so the CLI
#     and the deployed worker are wired identically.
# =============================================================================

"""CLI tools for the knowledge indexer.

- ``python -m src.cli worker`` - run the ingestion worker
- ``python -m src.cli enqueue-url --url ...`` - queue a page or crawl
- ``python -m src.cli inspect`` - vector counts per team / document
"""
