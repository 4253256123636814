# Path: codeindex/vector_store/__init__.py
# Purpose: Package initializer for vector store interfaces and implementations.
# Layer: codeindex/vector_store.
# Details: Exposes the base vector store contract, the Qdrant and in-memory classes, and the factory.

from .base import VectorStore
from .factory import collection_name_for, create_vector_store
from .memory_store import MemoryStore
from .qdrant_store import QdrantStore

__all__ = ["VectorStore", "MemoryStore", "QdrantStore", "collection_name_for", "create_vector_store"]
