from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from config.settings import AppSettings, EmbedderProvider, SearchSettings


def test_defaults() -> None:
    settings = AppSettings()

    assert settings.search.max_results == 16
    assert settings.search.min_score == pytest.approx(1.3)
    assert settings.indexing.batch_size == 60
    assert settings.indexing.max_concurrency == 10
    assert settings.vector_store.provider == "qdrant"


def test_search_bounds_are_validated() -> None:
    with pytest.raises(ValidationError):
        SearchSettings(max_results=65)
    with pytest.raises(ValidationError):
        SearchSettings(max_results=0)
    with pytest.raises(ValidationError):
        SearchSettings(min_score=2.5)


def test_from_env_reads_prefixed_variables(tmp_path: Path) -> None:
    env = {
        "CODEINDEX_WORKSPACE": str(tmp_path),
        "CODEINDEX_EMBEDDER_PROVIDER": "ollama",
        "CODEINDEX_EMBEDDER_BASE_URL": "http://ollama:11434",
        "CODEINDEX_EMBEDDER_DIMENSION": "768",
        "CODEINDEX_VECTOR_STORE": "memory",
        "CODEINDEX_SEARCH_MAX_RESULTS": "32",
        "CODEINDEX_BATCH_SIZE": "10",
        "CODEINDEX_LOG_LEVEL": "",
    }

    settings = AppSettings.from_env(env)

    assert settings.workspace_path == tmp_path
    assert settings.embedder.provider is EmbedderProvider.OLLAMA
    assert settings.embedder.dimension == 768
    assert settings.vector_store.provider == "memory"
    assert settings.search.max_results == 32
    assert settings.indexing.batch_size == 10
    assert settings.log_level == "INFO"


def test_from_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"embedder": {"provider": "openai", "api_key": "sk-1"}, "search": {"min_score": 0.4}}),
        encoding="utf-8",
    )

    settings = AppSettings.from_file(path)

    assert settings.embedder.secret() == "sk-1"
    assert settings.search.min_score == pytest.approx(0.4)


@pytest.mark.parametrize(
    ("embedder", "expected"),
    [
        ({"provider": "openai"}, False),
        ({"provider": "openai", "api_key": "k"}, True),
        ({"provider": "ollama", "base_url": "http://localhost:11434"}, True),
        ({"provider": "openai-compatible", "api_key": "k", "base_url": "http://x"}, False),
        ({"provider": "openai-compatible", "api_key": "k", "base_url": "http://x", "model_id": "m"}, True),
        ({"provider": "none"}, False),
    ],
)
def test_is_configured(embedder: dict, expected: bool) -> None:
    assert AppSettings.model_validate({"embedder": embedder}).is_configured() is expected


def test_requires_restart() -> None:
    base = AppSettings.model_validate({"embedder": {"provider": "openai", "api_key": "k"}})

    tweak_search = base.model_copy(update={"search": SearchSettings(max_results=8)})
    new_key = AppSettings.model_validate({"embedder": {"provider": "openai", "api_key": "other"}})
    new_model = AppSettings.model_validate(
        {"embedder": {"provider": "openai", "api_key": "k", "model_id": "text-embedding-3-large"}}
    )
    same_dimension_model = AppSettings.model_validate(
        {"embedder": {"provider": "openai", "api_key": "k", "model_id": "text-embedding-ada-002"}}
    )

    assert tweak_search.requires_restart(base) is False
    assert new_key.requires_restart(base) is True
    assert new_model.requires_restart(base) is True
    assert same_dimension_model.requires_restart(base) is False
    assert base.requires_restart(AppSettings()) is True
