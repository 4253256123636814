# Path: scripts/index_workspace.py
# Purpose: CLI tool to build or refresh the semantic index of a workspace.
# Layer: scripts.
# Details: Loads settings from a JSON file or CODEINDEX_* variables; Ctrl+C cancels between files.

from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings
from codeindex.errors import CodeIndexError
from codeindex.logging_setup import configure_logging
from codeindex.services import build_services


def load_settings(args: argparse.Namespace) -> AppSettings:
    """Merge the settings source with command-line overrides."""

    settings = AppSettings.from_file(args.config) if args.config else AppSettings.from_env()
    updates = {}
    if args.workspace is not None:
        updates["workspace_path"] = args.workspace
    if args.manifest is not None:
        updates["manifest_path"] = args.manifest
    if args.log_level is not None:
        updates["log_level"] = args.log_level
    if args.vector_store is not None:
        updates["vector_store"] = settings.vector_store.model_copy(update={"provider": args.vector_store})
    return settings.model_copy(update=updates) if updates else settings


def main() -> int:
    """Run one indexing pass, or a maintenance action, over the workspace."""

    parser = argparse.ArgumentParser(description="Index a source tree for semantic code search")
    parser.add_argument("--workspace", type=Path, default=None, help="Workspace root to index")
    parser.add_argument("--config", type=Path, default=None, help="JSON settings file")
    parser.add_argument("--manifest", type=Path, default=None, help="Manifest database path")
    parser.add_argument("--vector-store", choices=["qdrant", "memory"], default=None, help="Vector store backend")
    parser.add_argument("--file", type=Path, default=None, help="Reindex a single file instead of the whole workspace")
    parser.add_argument("--clear", action="store_true", help="Delete all index data before indexing")
    parser.add_argument("--clear-only", action="store_true", help="Delete all index data and exit")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
    args = parser.parse_args()

    settings = load_settings(args)
    configure_logging(settings.log_level)
    orchestrator, _ = build_services(settings)

    try:
        if args.clear or args.clear_only:
            orchestrator.clear_index_data()
            if args.clear_only:
                print(f"Cleared index data for {settings.workspace_path}")
                return 0
        if args.file is not None:
            outcome = orchestrator.index_file(args.file)
            print(json.dumps(outcome.__dict__, indent=2))
            return 1 if outcome.status == "failed" else 0

        cancel = threading.Event()
        signal.signal(signal.SIGINT, lambda *_: cancel.set())
        report = orchestrator.run(cancel_event=cancel, show_progress=not args.no_progress)
    except CodeIndexError as exc:
        print(f"Indexing failed: {exc}", file=sys.stderr)
        return 2
    finally:
        orchestrator.manifest.close()

    print(json.dumps(report.to_dict(), indent=2))
    return 1 if report.failed_files else 0


if __name__ == "__main__":
    sys.exit(main())
