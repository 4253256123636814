# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for embedders, vector stores, search bounds, batching, and paths.

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, SecretStr

ENV_PREFIX = "CODEINDEX_"


class EmbedderProvider(str, Enum):
    """Embedding backends selectable by configuration."""

    OPENAI = "openai"
    OPENAI_COMPATIBLE = "openai-compatible"
    OLLAMA = "ollama"
    GEMINI = "gemini"
    NONE = "none"


class EmbedderSettings(BaseModel):
    """Settings describing which embedder implementation to use and how to reach it."""

    provider: EmbedderProvider = Field(default=EmbedderProvider.OPENAI, description="Embedding backend identifier.")
    base_url: Optional[str] = Field(default=None, description="Backend base URL; provider default when unset.")
    model_id: Optional[str] = Field(default=None, description="Embedding model; provider default when unset.")
    dimension: Optional[int] = Field(default=None, gt=0, description="Vector dimension returned by the model.")
    api_key: Optional[SecretStr] = Field(default=None, description="Credential for hosted backends.")
    timeout_seconds: float = Field(default=60.0, gt=0, description="HTTP timeout per embedding request.")

    def secret(self) -> str:
        """Return the API key as plain text, or an empty string."""

        return self.api_key.get_secret_value() if self.api_key is not None else ""


class VectorStoreSettings(BaseModel):
    """Settings controlling vector store selection and persistence paths."""

    provider: Literal["qdrant", "memory"] = Field(default="qdrant", description="Vector store implementation.")
    url: Optional[str] = Field(default="http://localhost:6333", description="Vector database URL.")
    api_key: Optional[SecretStr] = Field(default=None, description="Vector database API key.")
    index_path: Path = Field(default=Path("storage/index/vectors"), description="Persistence path for the memory store.")

    def secret(self) -> str:
        return self.api_key.get_secret_value() if self.api_key is not None else ""


class SearchSettings(BaseModel):
    """Bounds and defaults for semantic search requests."""

    max_results: int = Field(default=16, ge=1, le=64, description="Maximum number of results per query.")
    min_score: float = Field(default=1.3, ge=0.0, le=2.0, description="Minimum similarity score (step 0.01).")


class IndexingSettings(BaseModel):
    """Batching, concurrency, and retry parameters for indexing runs."""

    batch_size: int = Field(default=60, ge=1, description="Blocks per embedding/upsert batch.")
    max_concurrency: int = Field(default=10, ge=1, description="Files processed in parallel.")
    max_retries: int = Field(default=3, ge=1, description="Attempts per batch before the file is marked failed.")
    initial_retry_delay_ms: int = Field(default=500, ge=0, description="First backoff delay between batch attempts.")
    max_file_size_bytes: int = Field(default=1024 * 1024, gt=0, description="Larger files are not indexed.")
    extensions: Optional[List[str]] = Field(default=None, description="Extension allow-list; parser defaults when unset.")
    respect_gitignore: bool = Field(default=True, description="Skip paths matched by the workspace .gitignore.")


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    workspace_path: Path = Field(default=Path("."), description="Root folder of the workspace to index.")
    manifest_path: Path = Field(default=Path("storage/manifest.sqlite3"), description="Path to the index manifest.")
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")
    embedder: EmbedderSettings = Field(default_factory=EmbedderSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """Instantiate settings from CODEINDEX_* environment variables when available."""

        env = os.environ if environ is None else environ

        def pick(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value if value not in (None, "") else None

        payload: Dict[str, Any] = {}
        for key, name in (("workspace_path", "WORKSPACE"), ("manifest_path", "MANIFEST_PATH"), ("log_level", "LOG_LEVEL")):
            if pick(name) is not None:
                payload[key] = pick(name)

        sections = {
            "embedder": {
                "provider": "EMBEDDER_PROVIDER",
                "base_url": "EMBEDDER_BASE_URL",
                "model_id": "EMBEDDER_MODEL_ID",
                "dimension": "EMBEDDER_DIMENSION",
                "api_key": "EMBEDDER_API_KEY",
            },
            "vector_store": {
                "provider": "VECTOR_STORE",
                "url": "QDRANT_URL",
                "api_key": "QDRANT_API_KEY",
                "index_path": "VECTOR_INDEX_PATH",
            },
            "search": {
                "max_results": "SEARCH_MAX_RESULTS",
                "min_score": "SEARCH_MIN_SCORE",
            },
            "indexing": {
                "batch_size": "BATCH_SIZE",
                "max_concurrency": "MAX_CONCURRENCY",
            },
        }
        for section, fields in sections.items():
            values = {key: pick(name) for key, name in fields.items() if pick(name) is not None}
            if values:
                payload[section] = values
        return cls.model_validate(payload)

    @classmethod
    def from_file(cls, path: Path | str) -> "AppSettings":
        """Load settings from a JSON document."""

        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(payload)

    def is_configured(self) -> bool:
        """Return True when the embedder and vector store have everything they need to run."""

        embedder = self.embedder
        if self.vector_store.provider == "qdrant" and not self.vector_store.url:
            return False
        if embedder.provider in (EmbedderProvider.OPENAI, EmbedderProvider.GEMINI):
            return bool(embedder.secret())
        if embedder.provider == EmbedderProvider.OLLAMA:
            return bool(embedder.base_url)
        if embedder.provider == EmbedderProvider.OPENAI_COMPATIBLE:
            return bool(embedder.base_url and embedder.secret() and embedder.model_id)
        return False

    def requires_restart(self, previous: "AppSettings") -> bool:
        """Report whether switching from ``previous`` to these settings invalidates running services.

        Only changes that affect backend connectivity or the vector space count;
        search bounds and logging are applied live.
        """

        from codeindex.embedders.profiles import resolve_model_dimension, resolve_model_id

        was_configured = previous.is_configured()
        now_configured = self.is_configured()
        if not was_configured:
            return now_configured

        before, after = previous.embedder, self.embedder
        if before.provider != after.provider:
            return True
        if before.secret() != after.secret() or (before.base_url or "") != (after.base_url or ""):
            return True
        if before.dimension != after.dimension:
            return True

        previous_model = resolve_model_id(before.provider.value, before.model_id)
        current_model = resolve_model_id(after.provider.value, after.model_id)
        if previous_model != current_model:
            previous_dim = resolve_model_dimension(before.provider.value, previous_model, before.dimension)
            current_dim = resolve_model_dimension(after.provider.value, current_model, after.dimension)
            # Unknown dimensions are treated as a change.
            if previous_dim is None or current_dim is None or previous_dim != current_dim:
                return True

        store_before, store_after = previous.vector_store, self.vector_store
        if store_before.provider != store_after.provider:
            return True
        if (store_before.url or "") != (store_after.url or "") or store_before.secret() != store_after.secret():
            return True
        return Path(previous.workspace_path).resolve() != Path(self.workspace_path).resolve()


__all__ = [
    "AppSettings",
    "EmbedderProvider",
    "EmbedderSettings",
    "IndexingSettings",
    "SearchSettings",
    "VectorStoreSettings",
]
