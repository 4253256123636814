from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from codeindex.indexing import IndexOrchestrator, Manifest
from codeindex.parsing import CodeParser, CollectingDiagnostics
from codeindex.vector_store import MemoryStore
from config.settings import IndexingSettings
from tests.helpers import DIM, FakeEmbedder


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore(dim=DIM, collection_name="test")


@pytest.fixture
def diagnostics() -> CollectingDiagnostics:
    return CollectingDiagnostics()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def make_orchestrator(
    tmp_path: Path,
    workspace: Path,
    fake_embedder: FakeEmbedder,
    memory_store: MemoryStore,
    diagnostics: CollectingDiagnostics,
):
    created: List[IndexOrchestrator] = []

    def factory(**overrides) -> IndexOrchestrator:
        indexing = overrides.pop("indexing", IndexingSettings(max_concurrency=2, initial_retry_delay_ms=1))
        orchestrator = IndexOrchestrator(
            workspace_path=overrides.pop("workspace_path", workspace),
            embedder=overrides.pop("embedder", fake_embedder),
            vector_store=overrides.pop("vector_store", memory_store),
            manifest=overrides.pop("manifest", Manifest(tmp_path / "manifest.sqlite3")),
            parser=overrides.pop("parser", CodeParser(diagnostics=diagnostics)),
            indexing=indexing,
            sleep=lambda seconds: None,
            **overrides,
        )
        created.append(orchestrator)
        return orchestrator

    yield factory
    for orchestrator in created:
        orchestrator.manifest.close()
