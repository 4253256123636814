# Path: codeindex/errors.py
# Purpose: Exception hierarchy shared by embedders, vector stores, and the orchestrator.
# Layer: codeindex.
# Details: Classes map onto the configuration / transient / fatal error categories of an indexing run.

from __future__ import annotations


class CodeIndexError(Exception):
    """Base class for all indexing pipeline errors."""


class EmbedderConfigurationError(CodeIndexError):
    """Invalid credentials, URL, model, or vector dimension.

    Raised before or during a run; the run must not continue with this backend.
    """


class TransientBackendError(CodeIndexError):
    """Network failure, rate limit, or 5xx response from an embedder or vector store.

    A batch that fails with this error may be re-submitted as a whole.
    """


class VectorStoreError(CodeIndexError):
    """Non-retryable vector store failure (bad collection, rejected payload)."""


class ManifestCorruptionError(CodeIndexError):
    """The persisted manifest cannot be read or written consistently."""


class IndexingInProgressError(CodeIndexError):
    """Another indexing run already holds this orchestrator."""


class EmbeddingRequestError(CodeIndexError):
    """The backend rejected one batch's input (too long, malformed).

    The credentials work, so only the files in that batch fail.
    """
