# Path: codeindex/indexing/__init__.py
# Purpose: Package initializer for indexing utilities.
# Layer: codeindex/indexing.
# Details: Exposes scanning, manifest persistence, status tracking, and the run orchestrator.

from .manifest import Manifest
from .orchestrator import FileOutcome, IndexOrchestrator, IndexRunReport
from .scanner import FileScanner
from .status import IndexingPhase, IndexingState, IndexStatus, StatusTracker

__all__ = [
    "FileOutcome",
    "FileScanner",
    "IndexOrchestrator",
    "IndexRunReport",
    "IndexStatus",
    "IndexingPhase",
    "IndexingState",
    "Manifest",
    "StatusTracker",
]
