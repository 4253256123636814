# Path: codeindex/embedders/factory.py
# Purpose: Build the configured embedder implementation.
# Layer: codeindex/embedders.
# Details: The provider tag is the only thing inspected; every variant shares the Embedder contract.

from __future__ import annotations

from typing import Optional

import requests

from config.settings import EmbedderProvider, EmbedderSettings

from .base import Embedder
from .gemini_embedder import GeminiEmbedder
from .null_embedder import NullEmbedder
from .ollama_embedder import OllamaEmbedder
from .openai_embedder import OpenAIEmbedder
from .profiles import resolve_model_dimension, resolve_model_id


def create_embedder(settings: EmbedderSettings, session: Optional[requests.Session] = None) -> Embedder:
    """Instantiate the embedder selected by ``settings.provider``."""

    provider = settings.provider
    if provider == EmbedderProvider.NONE:
        return NullEmbedder()

    model_id = resolve_model_id(provider.value, settings.model_id)
    dim = resolve_model_dimension(provider.value, model_id, settings.dimension)

    if provider == EmbedderProvider.OLLAMA:
        return OllamaEmbedder(
            model_id=model_id or "",
            dim=dim,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            session=session,
        )
    if provider == EmbedderProvider.GEMINI:
        return GeminiEmbedder(
            api_key=settings.secret(),
            model_id=model_id,
            dim=dim,
            timeout=settings.timeout_seconds,
            session=session,
        )
    if provider == EmbedderProvider.OPENAI_COMPATIBLE and not settings.base_url:
        raise ValueError("The openai-compatible provider requires a base_url.")
    return OpenAIEmbedder(
        api_key=settings.secret(),
        model_id=model_id or "",
        dim=dim,
        base_url=settings.base_url,
        name=provider.value,
        timeout=settings.timeout_seconds,
        session=session,
    )
