# Path: codeindex/vector_store/memory_store.py
# Purpose: Provide an in-process vector store with optional on-disk persistence.
# Layer: codeindex/vector_store.
# Details: Implements upsert/delete/search with numpy cosine similarity; saves as JSON + .npy files.

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from codeindex.models.domain import VectorPoint, VectorStoreHit

from .base import VectorStore, prefix_segments

logger = logging.getLogger(__name__)


class MemoryStore(VectorStore):
    """Minimal vector store compatible with the indexing pipeline.

    Keeps every point in memory; when ``path`` is set the collection is loaded
    on :meth:`initialize` and written back on :meth:`flush`.
    """

    def __init__(self, dim: int, collection_name: str = "default", path: Optional[Path] = None) -> None:
        self.dim = dim
        self.name = "memory"
        self.collection_name = collection_name
        self.path = Path(path) if path is not None else None
        self._points: Dict[str, Tuple[np.ndarray, Dict]] = {}
        self._lock = threading.Lock()
        self._exists = False

    def initialize(self) -> bool:
        """Load a persisted collection if present; otherwise start empty."""

        if self._exists:
            return False
        self._exists = True
        if self.path is not None and self._vector_file.exists() and self._metadata_file.exists():
            self.load()
            return False
        return True

    def upsert(self, points: Sequence[VectorPoint]) -> None:
        """Add or replace points keyed by segment hash."""

        prepared = []
        for point in points:
            self._check_dimension(point.vector)
            prepared.append((point.id, np.asarray(point.vector, dtype=np.float32), dict(point.payload)))
        with self._lock:
            for point_id, vector, payload in prepared:
                self._points[point_id] = (vector, payload)

    def delete_points(self, segment_hashes: Iterable[str]) -> None:
        with self._lock:
            for segment_hash in segment_hashes:
                self._points.pop(segment_hash, None)

    def delete_by_files(self, file_paths: Sequence[str]) -> None:
        targets = set(file_paths)
        if not targets:
            return
        with self._lock:
            doomed = [pid for pid, (_, payload) in self._points.items() if payload.get("filePath") in targets]
            for point_id in doomed:
                del self._points[point_id]

    def search(
        self,
        vector: Sequence[float],
        top_k: int,
        min_score: float,
        path_filter: Optional[str] = None,
    ) -> List[VectorStoreHit]:
        """Return the ``top_k`` most similar points scoring at least ``min_score``."""

        self._check_dimension(vector)
        prefix = prefix_segments(path_filter)
        with self._lock:
            items = [
                (point_id, stored, payload)
                for point_id, (stored, payload) in self._points.items()
                if self._matches_prefix(payload, prefix)
            ]
        if not items:
            return []

        matrix = np.vstack([stored for _, stored, _ in items])
        query = np.asarray(vector, dtype=np.float32)
        scores = 1.0 + self._cosine(matrix, query)
        # Sort by score, then id, so ties are reported deterministically.
        order = sorted(range(len(items)), key=lambda idx: (-float(scores[idx]), items[idx][0]))

        results: List[VectorStoreHit] = []
        for idx in order:
            score = float(scores[idx])
            if score < min_score:
                break
            point_id, _, payload = items[idx]
            results.append(VectorStoreHit(id=point_id, score=score, payload=dict(payload)))
            if len(results) >= top_k:
                break
        return results

    def clear(self) -> None:
        with self._lock:
            self._points.clear()

    def collection_exists(self) -> bool:
        return self._exists

    def flush(self) -> None:
        if self.path is not None:
            self.save()

    def count(self) -> int:
        """Return the number of stored points."""

        with self._lock:
            return len(self._points)

    def ids(self) -> List[str]:
        with self._lock:
            return sorted(self._points)

    def save(self) -> None:
        """Persist vectors and payloads to disk as lightweight JSON + numpy arrays."""

        if self.path is None:
            raise ValueError("MemoryStore has no persistence path.")
        with self._lock:
            ids = sorted(self._points)
            vectors = (
                np.vstack([self._points[point_id][0] for point_id in ids])
                if ids
                else np.empty((0, self.dim), dtype=np.float32)
            )
            payloads = {point_id: self._points[point_id][1] for point_id in ids}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        np.save(self._vector_file, vectors)
        self._metadata_file.write_text(
            json.dumps({"collection": self.collection_name, "dim": self.dim, "ids": ids, "payloads": payloads}),
            encoding="utf-8",
        )
        logger.debug("Saved %d points to %s", len(ids), self._vector_file)

    def load(self) -> None:
        """Load vectors and payloads previously saved by :meth:`save`."""

        if self.path is None or not self._vector_file.exists() or not self._metadata_file.exists():
            raise FileNotFoundError(f"Missing vector store files for {self.path}.")

        vectors = np.load(self._vector_file).astype(np.float32)
        metadata = json.loads(self._metadata_file.read_text(encoding="utf-8"))
        ids = list(metadata.get("ids", []))
        payloads = metadata.get("payloads", {})
        if vectors.shape[0] != len(ids):
            raise ValueError(f"Vector file {self._vector_file} does not match its metadata.")
        if ids and vectors.shape[1] != self.dim:
            raise ValueError(f"Stored dimension {vectors.shape[1]} does not match store dimension {self.dim}.")
        with self._lock:
            self._points = {point_id: (vectors[row], payloads.get(point_id, {})) for row, point_id in enumerate(ids)}

    @property
    def _vector_file(self) -> Path:
        assert self.path is not None
        return self.path.with_name(f"{self.path.name}-{self.collection_name}.npy")

    @property
    def _metadata_file(self) -> Path:
        assert self.path is not None
        return self.path.with_name(f"{self.path.name}-{self.collection_name}.json")

    @staticmethod
    def _cosine(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        row_norms = np.linalg.norm(matrix, axis=1)
        query_norm = np.linalg.norm(query)
        denominator = row_norms * query_norm
        with np.errstate(divide="ignore", invalid="ignore"):
            similarity = np.where(denominator > 0, matrix @ query / denominator, 0.0)
        return np.clip(similarity, -1.0, 1.0)

    @staticmethod
    def _matches_prefix(payload: Dict, prefix: List[str]) -> bool:
        if not prefix:
            return True
        segments = payload.get("pathSegments") or {}
        return all(segments.get(str(index)) == part for index, part in enumerate(prefix))
