from __future__ import annotations

from unittest import mock

import pytest
from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.http.models import Filter

from codeindex.errors import TransientBackendError, VectorStoreError
from codeindex.models.domain import CodeBlock, EmbedderInfo, VectorPoint
from codeindex.vector_store import QdrantStore, collection_name_for
from codeindex.vector_store.qdrant_store import normalize_qdrant_url, point_id_for


def make_point(file_path: str, segment: str, vector: list[float]) -> VectorPoint:
    block = CodeBlock(file_path, None, "", 1, 3, f"body {segment}", "fh", segment)
    return VectorPoint.from_block(block, vector)


def test_normalize_qdrant_url() -> None:
    assert normalize_qdrant_url(None) == "http://localhost:6333"
    assert normalize_qdrant_url("  ") == "http://localhost:6333"
    assert normalize_qdrant_url("qdrant:6333") == "http://qdrant:6333"
    assert normalize_qdrant_url("https://cloud.example.com") == "https://cloud.example.com"


def test_point_ids_are_stable_uuids() -> None:
    assert point_id_for("abc") == point_id_for("abc")
    assert point_id_for("abc") != point_id_for("abd")
    assert len(point_id_for("abc")) == 36


def test_collection_name_depends_on_workspace_and_identity(tmp_path) -> None:
    info = EmbedderInfo(name="openai", model_id="text-embedding-3-small", dimension=1536)

    name = collection_name_for(tmp_path, info)

    assert name.startswith("ws-") and len(name) == 19
    assert name == collection_name_for(tmp_path, info)
    assert name != collection_name_for(tmp_path / "other", info)
    assert name != collection_name_for(tmp_path, EmbedderInfo("openai", "text-embedding-3-large", 3072))


def test_local_round_trip() -> None:
    store = QdrantStore(collection_name="unit", dim=3, client=QdrantClient(location=":memory:"))

    assert store.initialize() is True
    assert store.initialize() is False
    store.upsert(
        [
            make_point("src/a.py", "s1", [1.0, 0.0, 0.0]),
            make_point("src/b.py", "s2", [0.0, 1.0, 0.0]),
        ]
    )

    hits = store.search([1.0, 0.0, 0.0], top_k=5, min_score=1.5)
    assert [(hit.id, round(hit.score, 3)) for hit in hits] == [("s1", 2.0)]

    store.delete_by_file("src/a.py")
    assert [hit.id for hit in store.search([1.0, 0.0, 0.0], top_k=5, min_score=0.0)] == ["s2"]

    store.delete_points(["s2"])
    assert store.search([0.0, 1.0, 0.0], top_k=5, min_score=0.0) == []


def test_search_builds_prefix_filter_and_shifts_threshold() -> None:
    client = mock.MagicMock()
    client.query_points.return_value = mock.Mock(points=[])
    store = QdrantStore(collection_name="unit", dim=2, client=client)

    store.search([0.1, 0.2], top_k=7, min_score=1.25, path_filter="src/api")

    kwargs = client.query_points.call_args.kwargs
    assert kwargs["limit"] == 7
    assert kwargs["score_threshold"] == pytest.approx(0.25)
    query_filter = kwargs["query_filter"]
    assert isinstance(query_filter, Filter)
    assert [(c.key, c.match.value) for c in query_filter.must] == [("pathSegments.0", "src"), ("pathSegments.1", "api")]


@pytest.mark.parametrize(
    ("status", "expected"),
    [(503, TransientBackendError), (429, TransientBackendError), (400, VectorStoreError)],
)
def test_backend_errors_are_classified(status: int, expected: type) -> None:
    client = mock.MagicMock()
    client.upsert.side_effect = UnexpectedResponse(
        status_code=status, reason_phrase="error", content=b"{}", headers=None
    )
    store = QdrantStore(collection_name="unit", dim=2, client=client)

    with pytest.raises(expected):
        store.upsert([make_point("a.py", "s1", [0.1, 0.2])])
