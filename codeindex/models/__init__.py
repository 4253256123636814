# Path: codeindex/models/__init__.py
# Purpose: Package initializer for domain model definitions.
# Layer: codeindex/models.
# Details: Exposes dataclasses used across parsing, embedding, indexing, and search layers.

from .domain import (
    CodeBlock,
    EmbedderInfo,
    EmbeddingResponse,
    EmbeddingUsage,
    SearchResult,
    ValidationResult,
    VectorPoint,
    VectorStoreHit,
    path_segments,
)

__all__ = [
    "CodeBlock",
    "EmbedderInfo",
    "EmbeddingResponse",
    "EmbeddingUsage",
    "SearchResult",
    "ValidationResult",
    "VectorPoint",
    "VectorStoreHit",
    "path_segments",
]
