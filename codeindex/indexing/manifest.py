# Path: codeindex/indexing/manifest.py
# Purpose: Persist which files and segments are already indexed, and under which embedder identity.
# Layer: codeindex/indexing.
# Details: SQLite-backed; each file's entry is replaced in a single transaction after its vectors are stored.

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set

from codeindex.errors import ManifestCorruptionError

logger = logging.getLogger(__name__)

IDENTITY_KEY = "index_identity"


class Manifest:
    """Content-addressed record of the index.

    - files: one row per workspace-relative path with its last indexed file hash.
    - segments: the segment hashes currently stored for each file.
    - meta: key/value pairs such as the embedder identity the index was built with.

    All methods are safe to call from worker threads; writes are serialized.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None

    def open(self) -> "Manifest":
        with self._lock:
            if self._conn is not None:
                return self
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._translate_errors("open"):
                conn = sqlite3.connect(self.path, check_same_thread=False)
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS files (
                        path TEXT PRIMARY KEY,
                        file_hash TEXT NOT NULL,
                        updated_at REAL NOT NULL
                    );
                    CREATE TABLE IF NOT EXISTS segments (
                        path TEXT NOT NULL,
                        segment_hash TEXT NOT NULL,
                        PRIMARY KEY (path, segment_hash)
                    );
                    CREATE TABLE IF NOT EXISTS meta (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    );
                    """
                )
                conn.commit()
            self._conn = conn
        return self

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "Manifest":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get_file_hash(self, path: str) -> Optional[str]:
        with self._cursor("get_file_hash") as conn:
            row = conn.execute("SELECT file_hash FROM files WHERE path = ?", (path,)).fetchone()
        return row[0] if row else None

    def get_segments(self, path: str) -> Set[str]:
        with self._cursor("get_segments") as conn:
            rows = conn.execute("SELECT segment_hash FROM segments WHERE path = ?", (path,)).fetchall()
        return {row[0] for row in rows}

    def files(self) -> List[str]:
        """Return every recorded path, sorted."""

        with self._cursor("files") as conn:
            rows = conn.execute("SELECT path FROM files ORDER BY path").fetchall()
        return [row[0] for row in rows]

    def commit_file(self, path: str, file_hash: str, segment_hashes: Iterable[str]) -> None:
        """Replace the entry for ``path`` in one transaction."""

        hashes = sorted(set(segment_hashes))
        with self._cursor("commit_file") as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO files (path, file_hash, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(path) DO UPDATE SET
                        file_hash = excluded.file_hash,
                        updated_at = excluded.updated_at
                    """,
                    (path, file_hash, time.time()),
                )
                conn.execute("DELETE FROM segments WHERE path = ?", (path,))
                conn.executemany(
                    "INSERT INTO segments (path, segment_hash) VALUES (?, ?)",
                    [(path, digest) for digest in hashes],
                )

    def remove_file(self, path: str) -> None:
        with self._cursor("remove_file") as conn:
            with conn:
                conn.execute("DELETE FROM segments WHERE path = ?", (path,))
                conn.execute("DELETE FROM files WHERE path = ?", (path,))

    def get_identity(self) -> Optional[str]:
        """Return the embedder identity the index was built with, if recorded."""

        with self._cursor("get_identity") as conn:
            row = conn.execute("SELECT value FROM meta WHERE key = ?", (IDENTITY_KEY,)).fetchone()
        return row[0] if row else None

    def set_identity(self, identity: str) -> None:
        with self._cursor("set_identity") as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO meta (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (IDENTITY_KEY, identity),
                )

    def clear(self) -> None:
        """Forget every file and segment; the identity row is kept."""

        with self._cursor("clear") as conn:
            with conn:
                conn.execute("DELETE FROM segments")
                conn.execute("DELETE FROM files")
        logger.info("Cleared manifest %s", self.path)

    @contextlib.contextmanager
    def _cursor(self, operation: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._conn is None:
                self.open()
            assert self._conn is not None
            with self._translate_errors(operation):
                yield self._conn

    @contextlib.contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.DatabaseError as exc:
            raise ManifestCorruptionError(f"Manifest {self.path} failed during {operation}: {exc}") from exc
