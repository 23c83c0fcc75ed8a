# =============================================================================
# src/cli/__main__.py - Package Entry Point
# =============================================================================
#
# This file enables running the CLI package itself as a module:
#     python -m src.cli <command>
#
# It delegates to the indexer CLI (indexer.py), which owns every command.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.indexer import main

main()
