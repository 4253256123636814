# Path: codeindex/indexing/status.py
# Purpose: Track indexing state and progress for the CLI, the API, and callbacks.
# Layer: codeindex/indexing.
# Details: Snapshots are immutable; the tracker is shared by worker threads.

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


class IndexingState(str, Enum):
    STANDBY = "Standby"
    INDEXING = "Indexing"
    INDEXED = "Indexed"
    ERROR = "Error"


class IndexingPhase(str, Enum):
    """Per-file step currently being performed."""

    IDLE = "idle"
    SCANNING = "scanning"
    HASHING = "hashing"
    DIFFING = "diffing"
    PARSING = "parsing"
    EMBEDDING = "embedding"
    UPSERTING = "upserting"
    ERROR = "error"


@dataclass(frozen=True)
class IndexStatus:
    state: IndexingState = IndexingState.STANDBY
    phase: IndexingPhase = IndexingPhase.IDLE
    message: str = ""
    processed_files: int = 0
    total_files: int = 0
    processed_blocks: int = 0

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "phase": self.phase.value,
            "message": self.message,
            "processed_files": self.processed_files,
            "total_files": self.total_files,
            "processed_blocks": self.processed_blocks,
        }


ProgressCallback = Callable[[IndexStatus], None]


class StatusTracker:
    """Hold the current IndexStatus and notify listeners on every change."""

    def __init__(self) -> None:
        self._status = IndexStatus()
        self._lock = threading.Lock()
        self._callbacks: List[ProgressCallback] = []

    @property
    def status(self) -> IndexStatus:
        with self._lock:
            return self._status

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""

        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def set_state(self, state: IndexingState, message: str = "") -> None:
        phase = IndexingPhase.ERROR if state is IndexingState.ERROR else IndexingPhase.IDLE
        self._update(state=state, phase=phase, message=message)

    def begin_scan(self) -> None:
        self._update(state=IndexingState.INDEXING, phase=IndexingPhase.SCANNING, message="Scanning workspace")

    def start_run(self, total_files: int) -> None:
        self._update(
            state=IndexingState.INDEXING,
            phase=IndexingPhase.SCANNING,
            message=f"Indexing {total_files} files",
            processed_files=0,
            total_files=total_files,
            processed_blocks=0,
        )

    def set_phase(self, phase: IndexingPhase, message: str = "") -> None:
        self._update(phase=phase, message=message)

    def file_done(self, blocks: int) -> None:
        with self._lock:
            current = self._status
            self._status = replace(
                current,
                processed_files=current.processed_files + 1,
                processed_blocks=current.processed_blocks + blocks,
            )
            snapshot, callbacks = self._status, list(self._callbacks)
        self._notify(snapshot, callbacks)

    def _update(self, **changes) -> None:
        with self._lock:
            self._status = replace(self._status, **changes)
            snapshot, callbacks = self._status, list(self._callbacks)
        self._notify(snapshot, callbacks)

    @staticmethod
    def _notify(snapshot: IndexStatus, callbacks: List[ProgressCallback]) -> None:
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:  # noqa: BLE001 - a listener must not break indexing
                logger.exception("Progress callback %r failed", callback)
