# Path: codeindex/indexing/orchestrator.py
# Purpose: Drive incremental indexing runs from scan to manifest commit.
# Layer: codeindex/indexing.
# Details: Only changed files are parsed and only new segments are embedded; per-file commits are atomic.

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tqdm import tqdm

from config.settings import AppSettings, IndexingSettings
from codeindex.constants import MAX_RETRY_DELAY_MS
from codeindex.embedders import Embedder, NullEmbedder, create_embedder
from codeindex.errors import (
    EmbedderConfigurationError,
    EmbeddingRequestError,
    IndexingInProgressError,
    ManifestCorruptionError,
    TransientBackendError,
    VectorStoreError,
)
from codeindex.models.domain import CodeBlock, VectorPoint
from codeindex.parsing import CodeParser, DiagnosticsSink, file_hash
from codeindex.parsing.diagnostics import Diagnostic
from codeindex.vector_store import VectorStore, create_vector_store

from .manifest import Manifest
from .scanner import FileScanner
from .status import IndexingPhase, IndexingState, IndexStatus, ProgressCallback, StatusTracker

logger = logging.getLogger(__name__)

FILE_SCOPED_ERRORS = (TransientBackendError, EmbeddingRequestError, VectorStoreError, OSError, ValueError)


@dataclass
class FileOutcome:
    """Result of processing one file."""

    path: str
    status: str  # indexed | unchanged | removed | failed | cancelled
    blocks_embedded: int = 0
    blocks_deleted: int = 0
    tokens: int = 0
    error: Optional[str] = None


@dataclass
class IndexRunReport:
    """Summary of an indexing pass."""

    indexed_files: List[str] = field(default_factory=list)
    unchanged_files: List[str] = field(default_factory=list)
    removed_files: List[str] = field(default_factory=list)
    failed_files: Dict[str, str] = field(default_factory=dict)
    blocks_embedded: int = 0
    blocks_deleted: int = 0
    tokens: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0

    def add(self, outcome: FileOutcome) -> None:
        if outcome.status == "indexed":
            self.indexed_files.append(outcome.path)
        elif outcome.status == "unchanged":
            self.unchanged_files.append(outcome.path)
        elif outcome.status == "removed":
            self.removed_files.append(outcome.path)
        elif outcome.status == "failed":
            self.failed_files[outcome.path] = outcome.error or "unknown error"
        self.blocks_embedded += outcome.blocks_embedded
        self.blocks_deleted += outcome.blocks_deleted
        self.tokens += outcome.tokens

    def to_dict(self) -> dict:
        return {
            "indexed_files": sorted(self.indexed_files),
            "unchanged_files": sorted(self.unchanged_files),
            "removed_files": sorted(self.removed_files),
            "failed_files": dict(sorted(self.failed_files.items())),
            "blocks_embedded": self.blocks_embedded,
            "blocks_deleted": self.blocks_deleted,
            "tokens": self.tokens,
            "cancelled": self.cancelled,
            "duration_seconds": round(self.duration_seconds, 3),
        }


class IndexOrchestrator:
    """Coordinate scanner, parser, embedder, vector store, and manifest.

    External calls:
    - codeindex/indexing/scanner.py::FileScanner.scan - enumerate candidate files.
    - codeindex/parsing/parser.py::CodeParser.parse - split files into blocks.
    - codeindex/embedders/base.py::Embedder.create_embeddings - embed new blocks in batches.
    - codeindex/vector_store/base.py::VectorStore.upsert / delete_points - keep vectors in sync.
    - codeindex/indexing/manifest.py::Manifest.commit_file - record what each file contributes.
    """

    def __init__(
        self,
        workspace_path: Path,
        embedder: Embedder,
        vector_store: Optional[VectorStore],
        manifest: Manifest,
        parser: Optional[CodeParser] = None,
        scanner: Optional[FileScanner] = None,
        indexing: Optional[IndexingSettings] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.workspace_path = Path(workspace_path).resolve()
        self.embedder = embedder
        self.vector_store = vector_store
        self.manifest = manifest
        self.settings = indexing or IndexingSettings()
        self.parser = parser or CodeParser(diagnostics=diagnostics)
        self.diagnostics = self.parser.diagnostics
        self.scanner = scanner or FileScanner(
            self.workspace_path,
            extensions=self.settings.extensions,
            max_file_size_bytes=self.settings.max_file_size_bytes,
            respect_gitignore=self.settings.respect_gitignore,
        )
        self._sleep = sleep
        self._tracker = StatusTracker()
        self._run_lock = threading.Lock()
        self._prepared = False

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        session: Optional[requests.Session] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ) -> "IndexOrchestrator":
        """Build the orchestrator and its collaborators from application settings."""

        embedder = create_embedder(settings.embedder, session=session)
        info = embedder.info()
        store = (
            create_vector_store(settings.vector_store, settings.workspace_path, info) if info.dimension else None
        )
        return cls(
            workspace_path=settings.workspace_path,
            embedder=embedder,
            vector_store=store,
            manifest=Manifest(settings.manifest_path),
            indexing=settings.indexing,
            diagnostics=diagnostics,
        )

    @property
    def status(self) -> IndexStatus:
        return self._tracker.status

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        """Subscribe to status changes; returns an unsubscribe function."""

        return self._tracker.on_progress(callback)

    def identity(self) -> str:
        """Embedding identity recorded in the manifest; a change invalidates every stored vector."""

        info = self.embedder.info()
        return f"{info.name}:{info.model_id or ''}:{info.dimension or 0}"

    def run(self, cancel_event: Optional[threading.Event] = None, show_progress: bool = False) -> IndexRunReport:
        """Bring the index in line with the workspace.

        Raises:
            EmbedderConfigurationError: no usable backend, or the backend rejected the credentials.
            ManifestCorruptionError: the manifest cannot be read or written.
            IndexingInProgressError: another run is active.
        """

        if not self._run_lock.acquire(blocking=False):
            raise IndexingInProgressError("An indexing run is already in progress.")
        try:
            return self._run(cancel_event or threading.Event(), show_progress)
        except ManifestCorruptionError as exc:
            self._tracker.set_state(IndexingState.ERROR, str(exc))
            raise
        finally:
            self._run_lock.release()

    def _run(self, cancel_event: threading.Event, show_progress: bool) -> IndexRunReport:
        started = time.monotonic()
        self._ensure_ready(validate=True)

        self._tracker.begin_scan()
        files = self.scanner.scan()
        self._tracker.start_run(len(files))
        logger.info("Indexing %d files under %s", len(files), self.workspace_path)

        report = IndexRunReport()
        abort = threading.Event()
        present: Set[str] = set()
        fatal: Optional[BaseException] = None
        with ThreadPoolExecutor(max_workers=self.settings.max_concurrency) as pool:
            futures = [pool.submit(self._process_file, path, cancel_event, abort) for path in files]
            for future in tqdm(
                as_completed(futures),
                total=len(futures),
                desc="Indexing files",
                unit="file",
                disable=not show_progress,
            ):
                try:
                    outcome = future.result()
                except Exception as exc:  # noqa: BLE001 - anything not file-scoped stops the run
                    if fatal is None:
                        fatal = exc
                    abort.set()
                    continue
                present.add(outcome.path)
                report.add(outcome)

        if fatal is not None:
            self._tracker.set_state(IndexingState.ERROR, f"Indexing failed: {fatal}")
            logger.error("Indexing aborted: %s", fatal)
            self._flush_store()
            raise fatal

        report.cancelled = cancel_event.is_set()
        if not report.cancelled:
            for outcome in self._sweep_missing(present):
                report.add(outcome)
        self._flush_store()

        report.duration_seconds = time.monotonic() - started
        if report.cancelled:
            self._tracker.set_state(IndexingState.STANDBY, "Indexing cancelled")
        else:
            message = f"Indexed {len(report.indexed_files)} files"
            if report.failed_files:
                message += f", {len(report.failed_files)} failed"
            self._tracker.set_state(IndexingState.INDEXED, message)
        logger.info(
            "Run finished: %d indexed, %d unchanged, %d removed, %d failed, %d blocks embedded%s",
            len(report.indexed_files),
            len(report.unchanged_files),
            len(report.removed_files),
            len(report.failed_files),
            report.blocks_embedded,
            " (cancelled)" if report.cancelled else "",
        )
        return report

    def index_file(self, path: Path | str) -> FileOutcome:
        """Reprocess a single file; a missing or no longer indexable file is removed from the index.

        Raises:
            ValueError: ``path`` lies outside the workspace.
        """

        with self._run_lock:
            self._ensure_ready(validate=False)
            absolute = self._absolute(path)
            if not self._is_indexable(absolute):
                outcome = self._remove(self.scanner.relative(absolute))
            else:
                outcome = self._process_file(absolute, threading.Event(), threading.Event())
            self._flush_store()
        return outcome

    def remove_file(self, path: Path | str) -> FileOutcome:
        """Drop a file's vectors and manifest entry."""

        with self._run_lock:
            self._ensure_ready(validate=False)
            outcome = self._remove(self.scanner.relative(self._absolute(path)))
            self._flush_store()
        return outcome

    def clear_index_data(self) -> None:
        """Delete every vector and manifest entry for this workspace."""

        with self._run_lock:
            if self.vector_store is not None:
                if self.vector_store.collection_exists():
                    self.vector_store.clear()
                self._flush_store()
            self.manifest.clear()
            self._prepared = False
            self._tracker.set_state(IndexingState.STANDBY, "Index cleared")
            logger.info("Cleared index data for %s", self.workspace_path)

    def _ensure_ready(self, validate: bool) -> None:
        if isinstance(self.embedder, NullEmbedder) or self.vector_store is None:
            self._tracker.set_state(IndexingState.STANDBY, "No embedding backend configured")
            raise EmbedderConfigurationError("No embedding backend is configured; indexing is disabled.")

        if validate:
            result = self.embedder.validate_configuration()
            if not result.valid:
                self._tracker.set_state(IndexingState.ERROR, result.error or "Embedder validation failed")
                raise EmbedderConfigurationError(result.error or "Embedder validation failed.")

        if self._prepared:
            return
        created = self.vector_store.initialize()
        identity = self.identity()
        recorded = self.manifest.get_identity()
        if recorded is not None and recorded != identity:
            logger.warning("Embedding identity changed from %s to %s; rebuilding index", recorded, identity)
            self.vector_store.clear()
            self.manifest.clear()
        elif created and self.manifest.files():
            logger.warning("Vector collection %s was recreated; re-embedding all files", self.vector_store.collection_name)
            self.manifest.clear()
        self.manifest.set_identity(identity)
        self._prepared = True

    def _process_file(self, path: Path, cancel_event: threading.Event, abort: threading.Event) -> FileOutcome:
        rel = path.as_posix()
        upserted: Set[str] = set()
        previous: Set[str] = set()
        try:
            rel = self.scanner.relative(path)
            if cancel_event.is_set() or abort.is_set():
                return FileOutcome(path=rel, status="cancelled")

            self._tracker.set_phase(IndexingPhase.HASHING, rel)
            try:
                content = path.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise ValueError(f"not valid UTF-8: {exc}") from exc
            digest = file_hash(content)
            if self.manifest.get_file_hash(rel) == digest:
                self._tracker.file_done(0)
                return FileOutcome(path=rel, status="unchanged")

            self._tracker.set_phase(IndexingPhase.PARSING, rel)
            blocks = self.parser.parse(path, content=content, file_hash=digest, rel_path=rel)

            self._tracker.set_phase(IndexingPhase.DIFFING, rel)
            previous = self.manifest.get_segments(rel)
            current = {block.segment_hash for block in blocks}
            fresh = [block for block in blocks if block.segment_hash not in previous]
            stale = previous - current

            tokens = 0
            for start in range(0, len(fresh), self.settings.batch_size):
                batch = fresh[start : start + self.settings.batch_size]
                self._tracker.set_phase(IndexingPhase.EMBEDDING, rel)
                tokens += self._store_batch(batch)
                upserted.update(block.segment_hash for block in batch)

            if stale:
                self._tracker.set_phase(IndexingPhase.UPSERTING, rel)
                self.vector_store.delete_points(sorted(stale))
            self.manifest.commit_file(rel, digest, current)
        except FILE_SCOPED_ERRORS as exc:
            self._discard_uncommitted(rel, upserted - previous)
            self._record_failure(rel, exc)
            self._tracker.file_done(0)
            return FileOutcome(path=rel, status="failed", error=f"{type(exc).__name__}: {exc}")

        self._tracker.file_done(len(fresh))
        logger.debug("Indexed %s: %d new, %d stale, %d total blocks", rel, len(fresh), len(stale), len(current))
        return FileOutcome(
            path=rel,
            status="indexed",
            blocks_embedded=len(fresh),
            blocks_deleted=len(stale),
            tokens=tokens,
        )

    def _store_batch(self, blocks: Sequence[CodeBlock]) -> int:
        """Embed and upsert one batch, retrying the whole batch on transient failures."""

        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_retries),
            wait=wait_exponential(
                multiplier=self.settings.initial_retry_delay_ms / 1000.0,
                max=MAX_RETRY_DELAY_MS / 1000.0,
            ),
            retry=retry_if_exception_type(TransientBackendError),
            sleep=self._sleep,
            before_sleep=lambda state: logger.warning(
                "Batch attempt %d failed: %s; retrying",
                state.attempt_number,
                state.outcome.exception() if state.outcome else "unknown error",
            ),
            reraise=True,
        )
        return retrying(self._embed_and_upsert, blocks)

    def _embed_and_upsert(self, blocks: Sequence[CodeBlock]) -> int:
        response = self.embedder.create_embeddings([block.content for block in blocks])
        self._tracker.set_phase(IndexingPhase.UPSERTING, blocks[0].file_path)
        points = [VectorPoint.from_block(block, vector) for block, vector in zip(blocks, response.embeddings)]
        self.vector_store.upsert(points)
        return response.usage.total_tokens

    def _sweep_missing(self, present: Set[str]) -> List[FileOutcome]:
        outcomes: List[FileOutcome] = []
        for rel in self.manifest.files():
            if rel in present:
                continue
            try:
                outcomes.append(self._remove(rel))
            except (TransientBackendError, VectorStoreError) as exc:
                self._record_failure(rel, exc)
                outcomes.append(FileOutcome(path=rel, status="failed", error=f"{type(exc).__name__}: {exc}"))
        return outcomes

    def _remove(self, rel: str) -> FileOutcome:
        segments = self.manifest.get_segments(rel)
        self.vector_store.delete_by_file(rel)
        self.manifest.remove_file(rel)
        logger.info("Removed %s from the index (%d blocks)", rel, len(segments))
        return FileOutcome(path=rel, status="removed", blocks_deleted=len(segments))

    def _discard_uncommitted(self, rel: str, segment_hashes: Set[str]) -> None:
        """Best-effort removal of vectors written for a file whose commit failed."""

        if not segment_hashes:
            return
        try:
            self.vector_store.delete_points(sorted(segment_hashes))
        except (TransientBackendError, VectorStoreError) as exc:
            logger.warning("Could not roll back %d vectors for %s: %s", len(segment_hashes), rel, exc)

    def _record_failure(self, rel: str, exc: BaseException) -> None:
        logger.warning("Failed to index %s: %s", rel, exc)
        self.diagnostics.record(
            Diagnostic(location="orchestrator.file", file_path=rel, error=f"{type(exc).__name__}: {exc}")
        )

    def _is_indexable(self, path: Path) -> bool:
        if not path.is_file() or not self.scanner.contains(path):
            return False
        if path.suffix.lower() not in self.scanner.extensions:
            return False
        return path.stat().st_size <= self.settings.max_file_size_bytes

    def _absolute(self, path: Path | str) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.workspace_path / candidate
        return Path(os.path.abspath(candidate))

    def _flush_store(self) -> None:
        if self.vector_store is not None:
            self.vector_store.flush()
