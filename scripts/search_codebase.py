# Path: scripts/search_codebase.py
# Purpose: Simple CLI to run a semantic search against an indexed workspace.
# Layer: scripts.
# Details: Prints file locations, scores, and the matching code for each hit.

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings
from codeindex.errors import CodeIndexError
from codeindex.logging_setup import configure_logging
from codeindex.services import build_services


def main() -> int:
    """Execute a search from the command line."""

    parser = argparse.ArgumentParser(description="Search an indexed workspace")
    parser.add_argument("query", type=str, help="Natural-language or code query")
    parser.add_argument("--config", type=Path, default=None, help="JSON settings file")
    parser.add_argument("--workspace", type=Path, default=None, help="Workspace root that was indexed")
    parser.add_argument("--top-k", type=int, default=None, help="Number of results to return")
    parser.add_argument("--min-score", type=float, default=None, help="Minimum score on the 0..2 scale")
    parser.add_argument("--path", type=str, default=None, help="Only return results under this directory")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    args = parser.parse_args()

    settings = AppSettings.from_file(args.config) if args.config else AppSettings.from_env()
    if args.workspace is not None:
        settings = settings.model_copy(update={"workspace_path": args.workspace})
    configure_logging(settings.log_level)
    _, search_service = build_services(settings)

    try:
        if search_service.vector_store is not None:
            search_service.vector_store.initialize()
        results = search_service.search(args.query, top_k=args.top_k, min_score=args.min_score, path_filter=args.path)
    except (CodeIndexError, ValueError) as exc:
        print(f"Search failed: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps([asdict(result) for result in results], indent=2))
        return 0
    for result in results:
        print(f"{result.file_path}:{result.start_line}-{result.end_line} score={result.score:.3f}")
        print(result.code_chunk)
        print("-" * 40)
    if not results:
        print("No results above the score threshold.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
