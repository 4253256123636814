from __future__ import annotations

import pytest

from codeindex.embedders import GeminiEmbedder, NullEmbedder, OllamaEmbedder, OpenAIEmbedder, create_embedder
from codeindex.embedders.profiles import resolve_model_dimension, resolve_model_id
from config.settings import EmbedderSettings


def test_profiles_supply_defaults() -> None:
    assert resolve_model_id("openai") == "text-embedding-3-small"
    assert resolve_model_dimension("openai", "text-embedding-3-small") == 1536
    assert resolve_model_dimension("ollama", "nomic-embed-text", configured=512) == 512
    assert resolve_model_dimension("openai-compatible", "custom-model") is None


def test_factory_selects_variant() -> None:
    assert isinstance(create_embedder(EmbedderSettings(provider="none")), NullEmbedder)
    assert isinstance(create_embedder(EmbedderSettings(provider="gemini", api_key="g")), GeminiEmbedder)

    ollama = create_embedder(EmbedderSettings(provider="ollama", base_url="http://localhost:11434"))
    assert isinstance(ollama, OllamaEmbedder)
    assert ollama.info().dimension == 768

    openai = create_embedder(EmbedderSettings(provider="openai", api_key="k", model_id="text-embedding-3-large"))
    assert isinstance(openai, OpenAIEmbedder)
    assert (openai.info().name, openai.info().dimension) == ("openai", 3072)


def test_openai_compatible_requires_base_url() -> None:
    with pytest.raises(ValueError):
        create_embedder(EmbedderSettings(provider="openai-compatible", api_key="k", model_id="m"))

    embedder = create_embedder(
        EmbedderSettings(provider="openai-compatible", api_key="k", model_id="m", dimension=64, base_url="http://x/v1")
    )
    assert embedder.info().name == "openai-compatible"
    assert embedder.info().dimension == 64
