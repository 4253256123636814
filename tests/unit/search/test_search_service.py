from __future__ import annotations

import pytest

from codeindex.embedders import NullEmbedder
from codeindex.errors import EmbedderConfigurationError
from codeindex.models.domain import CodeBlock, VectorPoint
from codeindex.search import SearchService
from codeindex.vector_store import MemoryStore
from config.settings import SearchSettings
from tests.helpers import FakeEmbedder, embed_text


def index_text(store: MemoryStore, file_path: str, text: str, start_line: int = 1) -> None:
    block = CodeBlock(file_path, None, "", start_line, start_line + 1, text, "fh", f"{file_path}:{start_line}")
    store.upsert([VectorPoint.from_block(block, embed_text(text))])


@pytest.fixture
def service(fake_embedder: FakeEmbedder, memory_store: MemoryStore) -> SearchService:
    index_text(memory_store, "src/auth.py", "def login user password session token")
    index_text(memory_store, "src/db.py", "def connect database pool cursor")
    index_text(memory_store, "docs/auth.md", "login flow uses session token", start_line=10)
    return SearchService(fake_embedder, memory_store, SearchSettings(max_results=2, min_score=1.0))


def test_results_are_sorted_and_above_threshold(service: SearchService) -> None:
    results = service.search("login session token", min_score=1.2)

    assert results
    assert all(result.score >= 1.2 for result in results)
    assert [result.score for result in results] == sorted((r.score for r in results), reverse=True)
    assert {result.file_path for result in results} <= {"src/auth.py", "docs/auth.md"}


def test_threshold_above_best_score_returns_empty(service: SearchService) -> None:
    best = service.search("login session token", min_score=0.0)[0].score

    assert best < 2.0
    assert service.search("login session token", min_score=best + 0.001) == []


def test_top_k_and_min_score_are_clamped(service: SearchService) -> None:
    assert service.clamp_top_k(None) == 2
    assert service.clamp_top_k(500) == 2
    assert service.clamp_top_k(0) == 1
    assert service.clamp_min_score(None) == pytest.approx(1.0)
    assert service.clamp_min_score(-3) == 0.0
    assert service.clamp_min_score(9) == 2.0
    assert len(service.search("def", top_k=50, min_score=0.0)) == 2


def test_path_filter_restricts_results(service: SearchService) -> None:
    results = service.search("login session token", min_score=0.0, path_filter="docs")

    assert [result.file_path for result in results] == ["docs/auth.md"]
    assert results[0].start_line == 10


def test_empty_query_is_rejected(service: SearchService) -> None:
    with pytest.raises(ValueError):
        service.search("   ")


def test_null_embedder_is_not_searchable(memory_store: MemoryStore) -> None:
    with pytest.raises(EmbedderConfigurationError):
        SearchService(NullEmbedder(), memory_store).search("anything")
