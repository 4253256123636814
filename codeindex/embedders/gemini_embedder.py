# Path: codeindex/embedders/gemini_embedder.py
# Purpose: Provide a Gemini embedder through Google's OpenAI-compatible endpoint.
# Layer: codeindex/embedders.
# Details: Only the base URL, default model, and backend name differ from OpenAIEmbedder.

from __future__ import annotations

from typing import Optional

import requests

from .openai_embedder import OpenAIEmbedder

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
GEMINI_DEFAULT_MODEL = "text-embedding-004"


class GeminiEmbedder(OpenAIEmbedder):
    """Hosted Gemini embeddings."""

    def __init__(
        self,
        api_key: str,
        model_id: Optional[str] = None,
        dim: Optional[int] = None,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(
            api_key=api_key,
            model_id=model_id or GEMINI_DEFAULT_MODEL,
            dim=dim,
            base_url=GEMINI_BASE_URL,
            name="gemini",
            timeout=timeout,
            session=session,
        )
