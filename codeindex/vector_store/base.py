# Path: codeindex/vector_store/base.py
# Purpose: Define the VectorStore interface for indexing and searching block embeddings.
# Layer: codeindex/vector_store.
# Details: Points are keyed by segment hash so upserts are idempotent; scores use the 1 + cosine scale.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from codeindex.models.domain import VectorPoint, VectorStoreHit


class VectorStore(ABC):
    """Abstract base class for pluggable vector store backends."""

    name: str
    dim: int
    collection_name: str

    @abstractmethod
    def initialize(self) -> bool:
        """Ensure the collection exists; return True if it had to be created."""

    @abstractmethod
    def upsert(self, points: Sequence[VectorPoint]) -> None:
        """Insert or overwrite points; re-upserting an id replaces vector and payload."""

    @abstractmethod
    def delete_points(self, segment_hashes: Iterable[str]) -> None:
        """Remove points by segment hash; unknown ids are ignored."""

    @abstractmethod
    def delete_by_files(self, file_paths: Sequence[str]) -> None:
        """Remove every point whose payload filePath is one of ``file_paths``."""

    @abstractmethod
    def search(
        self,
        vector: Sequence[float],
        top_k: int,
        min_score: float,
        path_filter: Optional[str] = None,
    ) -> List[VectorStoreHit]:
        """Return up to ``top_k`` hits with score >= ``min_score``, best first."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every point in the collection."""

    @abstractmethod
    def collection_exists(self) -> bool:
        """Return True when the backing collection is present."""

    def delete_by_file(self, file_path: str) -> None:
        """Remove all points stored for a single file."""

        self.delete_by_files([file_path])

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dim:
            raise ValueError(f"Vector dimensionality {len(vector)} does not match store dimension {self.dim}.")

    def flush(self) -> None:
        """Persist pending state; remote stores write through and need nothing here."""


def prefix_segments(path_filter: Optional[str]) -> List[str]:
    """Normalize a directory prefix into path segments; "." and "" mean no filter."""

    if not path_filter:
        return []
    parts = [part for part in path_filter.replace("\\", "/").split("/") if part and part != "."]
    return parts
