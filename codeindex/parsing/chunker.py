# Path: codeindex/parsing/chunker.py
# Purpose: Split oversized text spans into line-aligned blocks within the configured size bounds.
# Layer: codeindex/parsing.
# Details: Splits at line boundaries, merges or rebalances a short tail, and cuts single huge lines as a last resort.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

from codeindex.constants import (
    MAX_BLOCK_CHARS,
    MAX_CHARS_TOLERANCE_FACTOR,
    MIN_BLOCK_CHARS,
    MIN_CHUNK_REMAINDER_CHARS,
)
from codeindex.models.domain import CodeBlock

from .hashing import segment_hash

logger = logging.getLogger(__name__)

TOLERATED_MAX_CHARS = int(MAX_BLOCK_CHARS * MAX_CHARS_TOLERANCE_FACTOR)


@dataclass
class PlannedChunk:
    """A contiguous run of lines (0-based, inclusive) and its joined text."""

    start: int
    end: int
    lines: List[str]
    segment: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def length(self) -> int:
        return len(self.text)


def plan_chunks(lines: Sequence[str]) -> List[PlannedChunk]:
    """Group lines into chunks no longer than MAX_BLOCK_CHARS (tail merges may reach the tolerance)."""

    planned: List[PlannedChunk] = []
    run: List[PlannedChunk] = []
    current: List[str] = []
    start = 0
    length = 0

    def close_current(end: int) -> None:
        nonlocal current, length
        if current:
            run.append(PlannedChunk(start=start, end=end, lines=current))
        current, length = [], 0

    def close_run() -> None:
        _settle_tail(run)
        planned.extend(run)
        run.clear()

    for index, line in enumerate(lines):
        if len(line) > TOLERATED_MAX_CHARS:
            close_current(index - 1)
            close_run()
            planned.extend(
                PlannedChunk(start=index, end=index, lines=[segment], segment=True)
                for segment in split_long_line(line)
            )
            continue
        if current and length + 1 + len(line) > MAX_BLOCK_CHARS:
            close_current(index - 1)
        if not current:
            start = index
            current = [line]
            length = len(line)
        else:
            current.append(line)
            length += 1 + len(line)
    close_current(len(lines) - 1)
    close_run()
    return planned


def split_long_line(line: str) -> List[str]:
    """Cut a single line into MAX_BLOCK_CHARS pieces, folding a short last piece into its neighbour."""

    pieces = [line[offset : offset + MAX_BLOCK_CHARS] for offset in range(0, len(line), MAX_BLOCK_CHARS)]
    if len(pieces) > 1 and len(pieces[-1]) < MIN_CHUNK_REMAINDER_CHARS:
        if len(pieces[-2]) + len(pieces[-1]) <= TOLERATED_MAX_CHARS:
            tail = pieces.pop()
            pieces[-1] += tail
    return pieces


def _settle_tail(run: List[PlannedChunk]) -> None:
    """Merge a short final chunk into its predecessor, or shift lines across to grow it."""

    if len(run) < 2:
        return
    previous, last = run[-2], run[-1]
    if last.length >= MIN_CHUNK_REMAINDER_CHARS:
        return
    if previous.length + 1 + last.length <= TOLERATED_MAX_CHARS:
        run[-2] = PlannedChunk(start=previous.start, end=last.end, lines=previous.lines + last.lines)
        run.pop()
        return

    previous_length, last_length = previous.length, last.length
    while len(previous.lines) > 1 and last_length < MIN_CHUNK_REMAINDER_CHARS:
        moved = previous.lines[-1]
        shrunk = previous_length - len(moved) - 1
        grown = last_length + len(moved) + 1
        if shrunk < MIN_BLOCK_CHARS or grown > MAX_BLOCK_CHARS:
            break
        previous.lines.pop()
        previous.end -= 1
        last.lines.insert(0, moved)
        last.start -= 1
        previous_length, last_length = shrunk, grown


def chunk_lines(
    lines: Sequence[str],
    file_path: str,
    file_hash: str,
    chunk_type: str,
    base_start_line: int = 1,
    identifier: Optional[str] = None,
    seen: Optional[Set[str]] = None,
) -> List[CodeBlock]:
    """Turn a run of lines into CodeBlocks.

    ``base_start_line`` is the 1-based file line of ``lines[0]``. Chunks shorter
    than MIN_BLOCK_CHARS are dropped; ``seen`` suppresses duplicate segment hashes.
    """

    seen = seen if seen is not None else set()
    blocks: List[CodeBlock] = []
    for chunk in plan_chunks(lines):
        content = chunk.text
        if len(content) < MIN_BLOCK_CHARS:
            logger.debug("Dropping %d-char chunk at %s:%d", len(content), file_path, base_start_line + chunk.start)
            continue
        start_line = base_start_line + chunk.start
        end_line = base_start_line + chunk.end
        digest = segment_hash(file_path, start_line, end_line, content)
        if digest in seen:
            continue
        seen.add(digest)
        blocks.append(
            CodeBlock(
                file_path=file_path,
                identifier=identifier,
                type=f"{chunk_type}_segment" if chunk.segment else chunk_type,
                start_line=start_line,
                end_line=end_line,
                content=content,
                file_hash=file_hash,
                segment_hash=digest,
            )
        )
    return blocks
