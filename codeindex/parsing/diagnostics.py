# Path: codeindex/parsing/diagnostics.py
# Purpose: Diagnostics sinks injected into the parser and orchestrator.
# Layer: codeindex/parsing.
# Details: The default sink writes to logging; tests collect events in memory instead.

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol


@dataclass(frozen=True)
class Diagnostic:
    """One recorded problem, e.g. an unreadable file or a grammar failure."""

    location: str
    file_path: str
    error: str
    details: Dict[str, Any] = field(default_factory=dict)


class DiagnosticsSink(Protocol):
    """Receives non-fatal problems encountered while indexing."""

    def record(self, diagnostic: Diagnostic) -> None:
        """Store or forward a diagnostic."""


class LoggingDiagnostics:
    """Sink forwarding every diagnostic to a logger at WARNING level."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("codeindex.diagnostics")

    def record(self, diagnostic: Diagnostic) -> None:
        self.logger.warning("[%s] %s: %s", diagnostic.location, diagnostic.file_path, diagnostic.error)


class CollectingDiagnostics:
    """Sink keeping diagnostics in memory, safe to share between worker threads."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []
        self._lock = threading.Lock()

    def record(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._items.append(diagnostic)

    @property
    def items(self) -> List[Diagnostic]:
        with self._lock:
            return list(self._items)
