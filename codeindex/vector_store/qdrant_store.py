# Path: codeindex/vector_store/qdrant_store.py
# Purpose: Provide the remote vector store backed by a Qdrant collection.
# Layer: codeindex/vector_store.
# Details: Segment hashes map to deterministic UUID point ids; pathSegments payload keys enable directory filters.

from __future__ import annotations

import logging
import uuid
from typing import Iterable, List, Optional, Sequence

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.http.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchAny,
    MatchValue,
    PayloadSchemaType,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from codeindex.errors import TransientBackendError, VectorStoreError
from codeindex.models.domain import VectorPoint, VectorStoreHit

from .base import VectorStore, prefix_segments

logger = logging.getLogger(__name__)

DEFAULT_QDRANT_URL = "http://localhost:6333"
# Fixed namespace so a segment hash always maps to the same Qdrant point id.
POINT_ID_NAMESPACE = uuid.UUID("f5b2c0d4-6a1e-4c38-9f0b-3d2a7e8c1b90")
INDEXED_PATH_DEPTH = 5


def normalize_qdrant_url(url: Optional[str]) -> str:
    """Accept bare hostnames and host:port pairs as well as full URLs."""

    if not url or not url.strip():
        return DEFAULT_QDRANT_URL
    trimmed = url.strip()
    if "://" in trimmed:
        return trimmed
    return f"http://{trimmed}"


def point_id_for(segment_hash: str) -> str:
    """Return the deterministic UUID used as the Qdrant id for a segment hash."""

    return str(uuid.uuid5(POINT_ID_NAMESPACE, segment_hash))


class QdrantStore(VectorStore):
    """Vector store persisting block embeddings in Qdrant with cosine distance."""

    def __init__(
        self,
        collection_name: str,
        dim: int,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[QdrantClient] = None,
    ) -> None:
        self.name = "qdrant"
        self.collection_name = collection_name
        self.dim = dim
        self.url = normalize_qdrant_url(url)
        self.client = client or QdrantClient(url=self.url, api_key=api_key or None)

    def initialize(self) -> bool:
        """
        Create the collection (or recreate it when its vector size changed).

        External calls:
        - QdrantClient.collection_exists / get_collection / create_collection / create_payload_index.
        """

        try:
            created = False
            if self.client.collection_exists(self.collection_name):
                info = self.client.get_collection(self.collection_name)
                existing_size = self._vector_size(info)
                if existing_size is not None and existing_size != self.dim:
                    logger.warning(
                        "Collection %s has dimension %s, expected %s; recreating it.",
                        self.collection_name,
                        existing_size,
                        self.dim,
                    )
                    self.client.delete_collection(self.collection_name)
                    self._create_collection()
                    created = True
            else:
                self._create_collection()
                created = True
            if created:
                self._create_payload_indexes()
            return created
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            raise self._wrap(exc, f"initialize collection {self.collection_name}") from exc

    def upsert(self, points: Sequence[VectorPoint]) -> None:
        if not points:
            return
        structs = []
        for point in points:
            self._check_dimension(point.vector)
            structs.append(PointStruct(id=point_id_for(point.id), vector=list(point.vector), payload=point.payload))
        try:
            self.client.upsert(collection_name=self.collection_name, points=structs, wait=True)
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            raise self._wrap(exc, f"upsert {len(structs)} points") from exc

    def delete_points(self, segment_hashes: Iterable[str]) -> None:
        ids = [point_id_for(segment_hash) for segment_hash in segment_hashes]
        if not ids:
            return
        try:
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=PointIdsList(points=ids),
                wait=True,
            )
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            raise self._wrap(exc, f"delete {len(ids)} points") from exc

    def delete_by_files(self, file_paths: Sequence[str]) -> None:
        if not file_paths:
            return
        selector = FilterSelector(
            filter=Filter(must=[FieldCondition(key="filePath", match=MatchAny(any=list(file_paths)))])
        )
        try:
            self.client.delete(collection_name=self.collection_name, points_selector=selector, wait=True)
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            raise self._wrap(exc, f"delete points for {len(file_paths)} files") from exc

    def search(
        self,
        vector: Sequence[float],
        top_k: int,
        min_score: float,
        path_filter: Optional[str] = None,
    ) -> List[VectorStoreHit]:
        """
        Query nearest points; Qdrant's cosine score is shifted by +1 onto the [0, 2] scale.

        External calls:
        - QdrantClient.query_points - similarity search with score threshold and payload filter.
        """

        self._check_dimension(vector)
        prefix = prefix_segments(path_filter)
        query_filter = None
        if prefix:
            query_filter = Filter(
                must=[
                    FieldCondition(key=f"pathSegments.{index}", match=MatchValue(value=part))
                    for index, part in enumerate(prefix)
                ]
            )
        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=list(vector),
                limit=top_k,
                score_threshold=min_score - 1.0,
                query_filter=query_filter,
                with_payload=True,
            )
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            raise self._wrap(exc, "search") from exc

        hits: List[VectorStoreHit] = []
        for point in response.points:
            payload = dict(point.payload or {})
            if not self._is_payload_valid(payload):
                continue
            hits.append(VectorStoreHit(id=str(payload["segmentHash"]), score=float(point.score) + 1.0, payload=payload))
        hits.sort(key=lambda hit: (-hit.score, hit.id))
        return [hit for hit in hits if hit.score >= min_score][:top_k]

    def clear(self) -> None:
        try:
            if self.client.collection_exists(self.collection_name):
                self.client.delete(
                    collection_name=self.collection_name,
                    points_selector=FilterSelector(filter=Filter(must=[])),
                    wait=True,
                )
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            raise self._wrap(exc, f"clear collection {self.collection_name}") from exc

    def collection_exists(self) -> bool:
        try:
            return bool(self.client.collection_exists(self.collection_name))
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            raise self._wrap(exc, "check collection") from exc

    def _create_collection(self) -> None:
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=self.dim, distance=Distance.COSINE),
        )

    def _create_payload_indexes(self) -> None:
        self.client.create_payload_index(
            collection_name=self.collection_name,
            field_name="filePath",
            field_schema=PayloadSchemaType.KEYWORD,
        )
        for depth in range(INDEXED_PATH_DEPTH):
            self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name=f"pathSegments.{depth}",
                field_schema=PayloadSchemaType.KEYWORD,
            )

    @staticmethod
    def _vector_size(info) -> Optional[int]:
        vectors = info.config.params.vectors
        if isinstance(vectors, VectorParams):
            return vectors.size
        return None

    @staticmethod
    def _is_payload_valid(payload: dict) -> bool:
        return all(key in payload for key in ("filePath", "codeChunk", "startLine", "endLine", "segmentHash"))

    @staticmethod
    def _wrap(exc: Exception, action: str) -> Exception:
        status = getattr(exc, "status_code", None)
        if isinstance(exc, ResponseHandlingException) or status is None or status == 429 or status >= 500:
            return TransientBackendError(f"Qdrant failed to {action}: {exc}")
        return VectorStoreError(f"Qdrant rejected {action}: {exc}")
