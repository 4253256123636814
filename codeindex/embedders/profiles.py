# Path: codeindex/embedders/profiles.py
# Purpose: Known embedding models per provider with their default vector dimensions.
# Layer: codeindex/embedders.
# Details: Used to fill in model id / dimension when configuration leaves them unset.

from __future__ import annotations

from typing import Dict, Optional

MODEL_PROFILES: Dict[str, Dict[str, int]] = {
    "openai": {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    },
    "openai-compatible": {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
        "nomic-embed-code": 3584,
        "BAAI/bge-m3": 1024,
    },
    "ollama": {
        "nomic-embed-text": 768,
        "nomic-embed-code": 3584,
        "mxbai-embed-large": 1024,
        "all-minilm": 384,
    },
    "gemini": {
        "text-embedding-004": 768,
        "gemini-embedding-001": 3072,
    },
}

DEFAULT_MODELS: Dict[str, str] = {
    "openai": "text-embedding-3-small",
    "openai-compatible": "text-embedding-3-small",
    "ollama": "nomic-embed-text",
    "gemini": "text-embedding-004",
}


def resolve_model_id(provider: str, model_id: Optional[str] = None) -> Optional[str]:
    """Return the configured model or the provider default."""

    return model_id or DEFAULT_MODELS.get(provider)


def resolve_model_dimension(provider: str, model_id: Optional[str], configured: Optional[int] = None) -> Optional[int]:
    """Return the configured dimension, falling back to the known profile for the model."""

    if configured:
        return configured
    if model_id is None:
        return None
    return MODEL_PROFILES.get(provider, {}).get(model_id)
