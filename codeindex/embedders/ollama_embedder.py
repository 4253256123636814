# Path: codeindex/embedders/ollama_embedder.py
# Purpose: Provide a locally hosted embedder backed by an Ollama server.
# Layer: codeindex/embedders.
# Details: Uses the batch /api/embed endpoint; validation also checks that the model has been pulled.

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import requests

from codeindex.errors import EmbedderConfigurationError, EmbeddingRequestError, TransientBackendError
from codeindex.models.domain import EmbeddingResponse, EmbeddingUsage, ValidationResult

from .base import Embedder
from .http import request_json

logger = logging.getLogger(__name__)

OLLAMA_BASE_URL = "http://localhost:11434"


class OllamaEmbedder(Embedder):
    """Embedder for models served by a local Ollama instance."""

    def __init__(
        self,
        model_id: str,
        dim: Optional[int] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.name = "ollama"
        self.model_id = model_id
        self.dim = dim
        self.base_url = (base_url or OLLAMA_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def create_embeddings(self, texts: Sequence[str], model_id: Optional[str] = None) -> EmbeddingResponse:
        """
        Embed a batch of texts with one request.

        External calls:
        - POST {base_url}/api/embed - Ollama batch embedding endpoint.
        """

        batch = self._check_batch(texts)
        body = request_json(
            self.session,
            "POST",
            f"{self.base_url}/api/embed",
            timeout=self.timeout,
            payload={"model": model_id or self.model_id, "input": batch},
        )
        embeddings = body.get("embeddings")
        if not isinstance(embeddings, list):
            raise EmbedderConfigurationError("Ollama response is missing the 'embeddings' list.")
        vectors: List[List[float]] = [list(vector) for vector in embeddings]
        self._check_vectors(batch, vectors)

        prompt_tokens = int(body.get("prompt_eval_count", 0))
        return EmbeddingResponse(
            embeddings=vectors,
            usage=EmbeddingUsage(prompt_tokens=prompt_tokens, total_tokens=prompt_tokens),
        )

    def validate_configuration(self) -> ValidationResult:
        """Confirm the server is reachable, the model is available, and it embeds at the expected size."""

        try:
            tags = request_json(self.session, "GET", f"{self.base_url}/api/tags", timeout=self.timeout)
            available = {str(model.get("name", "")) for model in tags.get("models", [])}
            if not self._model_available(available):
                return ValidationResult(
                    valid=False,
                    error=f"Model {self.model_id!r} is not available on {self.base_url}; run `ollama pull {self.model_id}`.",
                )
            self.create_embeddings(["test"])
        except (EmbedderConfigurationError, EmbeddingRequestError) as exc:
            logger.warning("Ollama embedder failed validation: %s", exc)
            return ValidationResult(valid=False, error=str(exc))
        except TransientBackendError as exc:
            logger.warning("Ollama server unreachable at %s: %s", self.base_url, exc)
            return ValidationResult(valid=False, error=f"Ollama service unreachable: {exc}")
        return ValidationResult(valid=True)

    def _model_available(self, names: set[str]) -> bool:
        if self.model_id in names:
            return True
        # "nomic-embed-text" is listed as "nomic-embed-text:latest".
        return any(name.split(":", 1)[0] == self.model_id for name in names)
