# Path: codeindex/parsing/hashing.py
# Purpose: Content fingerprints at file and segment granularity.
# Layer: codeindex/parsing.
# Details: SHA-256 hex digests; pure functions with no shared state.

from __future__ import annotations

import hashlib

from codeindex.constants import CONTENT_PREVIEW_CHARS


def file_hash(content: str) -> str:
    """Hash the full text of a file."""

    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def segment_hash(file_path: str, start_line: int, end_line: int, content: str) -> str:
    """Hash a block's location, length, and leading characters.

    The digest doubles as the block's point id in the vector store.
    """

    preview = content[:CONTENT_PREVIEW_CHARS]
    key = f"{file_path}-{start_line}-{end_line}-{len(content)}-{preview}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()
