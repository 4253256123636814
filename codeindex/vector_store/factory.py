# Path: codeindex/vector_store/factory.py
# Purpose: Build the configured vector store for a workspace and embedder.
# Layer: codeindex/vector_store.
# Details: Collection names combine workspace and embedding identity so vector spaces never mix.

from __future__ import annotations

import hashlib
from pathlib import Path

from config.settings import VectorStoreSettings
from codeindex.models.domain import EmbedderInfo

from .base import VectorStore
from .memory_store import MemoryStore
from .qdrant_store import QdrantStore


def collection_name_for(workspace_path: Path | str, info: EmbedderInfo) -> str:
    """Derive a stable collection name from the workspace path and embedder identity."""

    workspace = str(Path(workspace_path).resolve())
    identity = f"{workspace}@{info.name}:{info.model_id or ''}:{info.dimension or 0}"
    digest = hashlib.sha256(identity.encode("utf-8")).hexdigest()
    return f"ws-{digest[:16]}"


def create_vector_store(settings: VectorStoreSettings, workspace_path: Path | str, info: EmbedderInfo) -> VectorStore:
    """Instantiate the store selected by ``settings.provider``."""

    if not info.dimension:
        raise ValueError(f"Embedder {info.name!r} has no known vector dimension; set embedder.dimension.")
    collection = collection_name_for(workspace_path, info)
    if settings.provider == "memory":
        return MemoryStore(dim=info.dimension, collection_name=collection, path=settings.index_path)
    return QdrantStore(
        collection_name=collection,
        dim=info.dimension,
        url=settings.url,
        api_key=settings.secret() or None,
    )
