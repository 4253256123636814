# Path: codeindex/embedders/null_embedder.py
# Purpose: Provide the disabled embedder used when no backend is configured.
# Layer: codeindex/embedders.
# Details: Returns zero-length vectors so callers can tell "not configured" apart from "broken".

from __future__ import annotations

from typing import Optional, Sequence

from codeindex.models.domain import EmbeddingResponse, EmbeddingUsage, ValidationResult

from .base import Embedder


class NullEmbedder(Embedder):
    """Stand-in backend that never makes a network call."""

    def __init__(self) -> None:
        self.name = "none"
        self.model_id = None
        self.dim = None

    def create_embeddings(self, texts: Sequence[str], model_id: Optional[str] = None) -> EmbeddingResponse:
        batch = self._check_batch(texts)
        return EmbeddingResponse(embeddings=[[] for _ in batch], usage=EmbeddingUsage())

    def validate_configuration(self) -> ValidationResult:
        return ValidationResult(valid=True)
