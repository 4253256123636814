# Path: codeindex/search/service.py
# Purpose: Answer natural-language queries against the indexed workspace.
# Layer: codeindex/search.
# Details: Embeds the query with the indexing embedder, clamps request bounds, and delegates to the vector store.

from __future__ import annotations

import logging
from typing import List, Optional

from config.settings import SearchSettings
from codeindex.constants import MAX_SEARCH_SCORE, MIN_SEARCH_RESULTS, MIN_SEARCH_SCORE
from codeindex.embedders import Embedder, NullEmbedder
from codeindex.errors import EmbedderConfigurationError
from codeindex.models.domain import SearchResult
from codeindex.vector_store import VectorStore

logger = logging.getLogger(__name__)


class SearchService:
    """High-level service bridging the API and CLI layers with the embedder and vector store."""

    def __init__(
        self,
        embedder: Embedder,
        vector_store: Optional[VectorStore],
        settings: Optional[SearchSettings] = None,
    ) -> None:
        self.embedder = embedder
        self.vector_store = vector_store
        self.settings = settings or SearchSettings()

    def search(
        self,
        query_text: str,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
        path_filter: Optional[str] = None,
    ) -> List[SearchResult]:
        """
        Return the blocks most similar to ``query_text``, best first.

        ``top_k`` is clamped to [1, max_results] and ``min_score`` to [0, 2];
        both default to the configured values.

        External calls:
        - codeindex/embedders/base.py::Embedder.create_embeddings - embed the query once.
        - codeindex/vector_store/base.py::VectorStore.search - nearest neighbours above the threshold.
        """

        if not query_text or not query_text.strip():
            raise ValueError("Search query must not be empty.")
        if isinstance(self.embedder, NullEmbedder) or self.vector_store is None:
            raise EmbedderConfigurationError("No embedding backend is configured; search is unavailable.")

        limit = self.clamp_top_k(top_k)
        threshold = self.clamp_min_score(min_score)

        response = self.embedder.create_embeddings([query_text])
        vector = response.embeddings[0]
        if len(vector) != self.vector_store.dim:
            raise EmbedderConfigurationError(
                f"Query vector has {len(vector)} dimensions but the index expects {self.vector_store.dim}."
            )

        hits = self.vector_store.search(vector, top_k=limit, min_score=threshold, path_filter=path_filter)
        results = [SearchResult.from_hit(hit) for hit in hits if hit.score >= threshold]
        results.sort(key=lambda result: (-result.score, result.file_path, result.start_line))
        logger.debug("Query %r returned %d results (top_k=%d, min_score=%.2f)", query_text, len(results), limit, threshold)
        return results[:limit]

    def clamp_top_k(self, top_k: Optional[int]) -> int:
        if top_k is None:
            return self.settings.max_results
        return max(MIN_SEARCH_RESULTS, min(int(top_k), self.settings.max_results))

    def clamp_min_score(self, min_score: Optional[float]) -> float:
        if min_score is None:
            return self.settings.min_score
        return max(MIN_SEARCH_SCORE, min(float(min_score), MAX_SEARCH_SCORE))
