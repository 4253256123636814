# Path: codeindex/embedders/openai_embedder.py
# Purpose: Provide a hosted embedder speaking the OpenAI /embeddings protocol.
# Layer: codeindex/embedders.
# Details: Serves OpenAI itself and any OpenAI-compatible endpoint; Gemini reuses it via its compatibility URL.

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import requests

from codeindex.errors import EmbedderConfigurationError, EmbeddingRequestError, TransientBackendError
from codeindex.models.domain import EmbeddingResponse, EmbeddingUsage, ValidationResult

from .base import Embedder
from .http import request_json

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIEmbedder(Embedder):
    """Embedder backed by an OpenAI-compatible HTTP API."""

    def __init__(
        self,
        api_key: str,
        model_id: str,
        dim: Optional[int] = None,
        base_url: Optional[str] = None,
        name: str = "openai",
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.model_id = model_id
        self.dim = dim
        self.base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self.name = name
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def create_embeddings(self, texts: Sequence[str], model_id: Optional[str] = None) -> EmbeddingResponse:
        """Embed a batch of texts with a single request.

        External calls:
        - POST {base_url}/embeddings - OpenAI embeddings endpoint.
        """

        batch = self._check_batch(texts)
        body = request_json(
            self.session,
            "POST",
            f"{self.base_url}/embeddings",
            timeout=self.timeout,
            payload={"model": model_id or self.model_id, "input": batch, "encoding_format": "float"},
            headers=self._headers(),
        )

        data = body.get("data")
        if not isinstance(data, list):
            raise EmbedderConfigurationError(f"{self.name} response is missing the 'data' list.")
        # The API may answer out of order; "index" restores input order.
        ordered = sorted(data, key=lambda item: item.get("index", 0))
        vectors: List[List[float]] = [list(item.get("embedding") or []) for item in ordered]
        self._check_vectors(batch, vectors)

        usage = body.get("usage") or {}
        return EmbeddingResponse(
            embeddings=vectors,
            usage=EmbeddingUsage(
                prompt_tokens=int(usage.get("prompt_tokens", 0)),
                total_tokens=int(usage.get("total_tokens", 0)),
            ),
        )

    def validate_configuration(self) -> ValidationResult:
        """Send a one-word embedding request to confirm URL, key, model, and dimension."""

        try:
            self.create_embeddings(["test"])
        except (EmbedderConfigurationError, EmbeddingRequestError) as exc:
            logger.warning("Embedder %s failed validation: %s", self.name, exc)
            return ValidationResult(valid=False, error=str(exc))
        except TransientBackendError as exc:
            logger.warning("Embedder %s is unreachable: %s", self.name, exc)
            return ValidationResult(valid=False, error=f"Embedding service unreachable: {exc}")
        return ValidationResult(valid=True)
