from __future__ import annotations

import hashlib
import re
from typing import Callable, List, Optional, Sequence

from codeindex.embedders import Embedder
from codeindex.errors import TransientBackendError
from codeindex.models.domain import EmbeddingResponse, EmbeddingUsage, ValidationResult

DIM = 16
TOKEN_RE = re.compile(r"[A-Za-z_]+")


class FakeEmbedder(Embedder):
    """Deterministic bag-of-words embedder that records every batch it receives."""

    def __init__(self, dim: int = DIM, model_id: str = "fake-model") -> None:
        self.name = "fake"
        self.model_id = model_id
        self.dim = dim
        self.batches: List[List[str]] = []
        self.transient_failures = 0
        self.fail_when: Optional[Callable[[Sequence[str]], bool]] = None
        self.valid = True

    @property
    def texts_embedded(self) -> int:
        return sum(len(batch) for batch in self.batches)

    def create_embeddings(self, texts: Sequence[str], model_id: Optional[str] = None) -> EmbeddingResponse:
        batch = self._check_batch(texts)
        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise TransientBackendError("simulated rate limit")
        if self.fail_when is not None and self.fail_when(batch):
            raise TransientBackendError("simulated outage")
        self.batches.append(batch)
        return EmbeddingResponse(
            embeddings=[embed_text(text, self.dim) for text in batch],
            usage=EmbeddingUsage(prompt_tokens=len(batch), total_tokens=len(batch)),
        )

    def validate_configuration(self) -> ValidationResult:
        if self.valid:
            return ValidationResult(valid=True)
        return ValidationResult(valid=False, error="invalid api key")


def embed_text(text: str, dim: int = DIM) -> List[float]:
    vector = [0.0] * dim
    for token in TOKEN_RE.findall(text.lower()):
        slot = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % dim
        vector[slot] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


def python_function(name: str, body_lines: int = 6) -> str:
    lines = [f"def {name}(value):", f'    """Compute the {name} result for value."""']
    for index in range(body_lines):
        lines.append(f"    value = value + {index}  # step {index} of {name}")
    lines.append("    return value")
    return "\n".join(lines) + "\n"
