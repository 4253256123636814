# Path: codeindex/embedders/base.py
# Purpose: Define the Embedder interface shared by hosted, local, and disabled backends.
# Layer: codeindex/embedders.
# Details: Provides abstract methods plus batch/vector checks so every backend honours the same contract.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from codeindex.errors import EmbedderConfigurationError
from codeindex.models.domain import EmbedderInfo, EmbeddingResponse, ValidationResult


class Embedder(ABC):
    """Abstract base class for all embedders used by indexing and search."""

    name: str
    model_id: Optional[str] = None
    dim: Optional[int] = None

    @abstractmethod
    def create_embeddings(self, texts: Sequence[str], model_id: Optional[str] = None) -> EmbeddingResponse:
        """Return one vector per input text, in order, or raise for the whole batch."""

    @abstractmethod
    def validate_configuration(self) -> ValidationResult:
        """Check connectivity and credentials against the backend."""

    def info(self) -> EmbedderInfo:
        """Return the static identity used to detect incompatible indexes."""

        return EmbedderInfo(name=self.name, model_id=self.model_id, dimension=self.dim)

    @staticmethod
    def _check_batch(texts: Sequence[str]) -> List[str]:
        """Reject empty batches before any request is made."""

        batch = list(texts)
        if not batch:
            raise ValueError("Embedding batch must contain at least one text.")
        return batch

    def _check_vectors(self, texts: Sequence[str], vectors: List[List[float]]) -> List[List[float]]:
        """Verify that the backend answered with one vector of the configured dimension per text."""

        if len(vectors) != len(texts):
            raise EmbedderConfigurationError(
                f"{self.name} returned {len(vectors)} embeddings for {len(texts)} inputs."
            )
        for vector in vectors:
            if self.dim is not None and len(vector) != self.dim:
                raise EmbedderConfigurationError(
                    f"{self.name} model {self.model_id!r} returned vectors of dimension {len(vector)}, "
                    f"but the configured dimension is {self.dim}."
                )
        return vectors
