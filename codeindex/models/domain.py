# Path: codeindex/models/domain.py
# Purpose: Define domain models shared across parsing, embedding, indexing, and search workflows.
# Layer: codeindex/models.
# Details: Lightweight dataclasses simplify serialization between the API, scripts, and core services.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CodeBlock:
    """A contiguous, indexable segment of one source file."""

    file_path: str
    identifier: Optional[str]
    type: str
    start_line: int
    end_line: int
    content: str
    file_hash: str
    segment_hash: str


@dataclass
class EmbeddingUsage:
    """Token accounting reported by an embedding backend."""

    prompt_tokens: int = 0
    total_tokens: int = 0


@dataclass
class EmbeddingResponse:
    """Vectors for a batch of texts, in input order."""

    embeddings: List[List[float]]
    usage: EmbeddingUsage = field(default_factory=EmbeddingUsage)


@dataclass(frozen=True)
class EmbedderInfo:
    """Static identity of an embedder, used for index compatibility checks."""

    name: str
    model_id: Optional[str] = None
    dimension: Optional[int] = None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a connectivity/credential check."""

    valid: bool
    error: Optional[str] = None


@dataclass
class VectorPoint:
    """A vector and its payload, keyed by the block's segment hash."""

    id: str
    vector: List[float]
    payload: Dict[str, Any]

    @classmethod
    def from_block(cls, block: CodeBlock, vector: List[float]) -> "VectorPoint":
        """Build the stored point for a parsed block."""

        return cls(
            id=block.segment_hash,
            vector=list(vector),
            payload={
                "filePath": block.file_path,
                "startLine": block.start_line,
                "endLine": block.end_line,
                "codeChunk": block.content,
                "segmentHash": block.segment_hash,
                "pathSegments": path_segments(block.file_path),
            },
        )


@dataclass
class VectorStoreHit:
    """Raw search hit returned by a vector store."""

    id: str
    score: float
    payload: Dict[str, Any]


@dataclass
class SearchResult:
    """Search result item returned to callers of the search service."""

    file_path: str
    score: float
    start_line: int
    end_line: int
    code_chunk: str

    @classmethod
    def from_hit(cls, hit: VectorStoreHit) -> "SearchResult":
        payload = hit.payload
        return cls(
            file_path=str(payload.get("filePath", "")),
            score=float(hit.score),
            start_line=int(payload.get("startLine", 0)),
            end_line=int(payload.get("endLine", 0)),
            code_chunk=str(payload.get("codeChunk", "")),
        )


def path_segments(file_path: str) -> Dict[str, str]:
    """Split a workspace-relative path into indexed segments for prefix filtering."""

    parts = [part for part in file_path.replace("\\", "/").split("/") if part and part != "."]
    return {str(index): part for index, part in enumerate(parts)}
