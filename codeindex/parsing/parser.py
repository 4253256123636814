# Path: codeindex/parsing/parser.py
# Purpose: Turn one source file into CodeBlocks ready for embedding.
# Layer: codeindex/parsing.
# Details: Syntax-aware spans via tree-sitter, heading sections for Markdown, and a whole-file fallback.

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Set, Tuple

from codeindex.constants import MIN_BLOCK_CHARS
from codeindex.models.domain import CodeBlock

from .chunker import TOLERATED_MAX_CHARS, chunk_lines
from .diagnostics import Diagnostic, DiagnosticsSink, LoggingDiagnostics
from .hashing import file_hash as compute_file_hash
from .hashing import segment_hash
from .languages import (
    FALLBACK_EXTENSIONS,
    MARKDOWN_EXTENSIONS,
    SUPPORTED_EXTENSIONS,
    LanguageSpec,
    language_for,
    parser_for,
)
from .markdown import split_sections

logger = logging.getLogger(__name__)

FALLBACK_CHUNK_TYPE = "fallback_chunk"
MARKDOWN_SECTION_TYPE = "markdown_section"


class CodeParser:
    """Parse files into blocks; never raises for unreadable or unparsable input.

    Problems are reported to ``diagnostics`` and the affected file yields no blocks
    (unreadable) or a single whole-file block (grammar failure).
    """

    def __init__(self, diagnostics: Optional[DiagnosticsSink] = None) -> None:
        self.diagnostics = diagnostics or LoggingDiagnostics()

    @property
    def supported_extensions(self) -> frozenset:
        return SUPPORTED_EXTENSIONS

    def is_supported(self, file_path: Path | str) -> bool:
        return Path(file_path).suffix.lower() in SUPPORTED_EXTENSIONS

    def parse(
        self,
        file_path: Path | str,
        content: Optional[str] = None,
        file_hash: Optional[str] = None,
        rel_path: Optional[str] = None,
    ) -> List[CodeBlock]:
        """Return the blocks of ``file_path`` in line order.

        Args:
            file_path: Location of the file; its extension selects the strategy.
            content: File text. Read from disk when omitted.
            file_hash: Precomputed hash of ``content``.
            rel_path: Path recorded on blocks; defaults to ``file_path``.
        """

        path = Path(file_path)
        extension = path.suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            return []

        display_path = rel_path or path.as_posix()
        if content is None:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self._record("read", display_path, exc)
                return []
        if file_hash is None:
            file_hash = compute_file_hash(content)

        if not content.strip():
            return []

        if extension in FALLBACK_EXTENSIONS:
            return [self._whole_file_block(display_path, content, file_hash)]

        lines = content.splitlines()
        seen: Set[str] = set()
        if extension in MARKDOWN_EXTENSIONS:
            blocks = self._parse_markdown(display_path, lines, file_hash, seen)
        else:
            spec = language_for(extension)
            assert spec is not None
            try:
                blocks = self._parse_syntax(spec, display_path, content, lines, file_hash, seen)
            except Exception as exc:
                self._record("grammar", display_path, exc, language=spec.name)
                return [self._whole_file_block(display_path, content, file_hash)]

        if not blocks and len(content) >= MIN_BLOCK_CHARS:
            blocks = chunk_lines(lines, display_path, file_hash, FALLBACK_CHUNK_TYPE, seen=seen)
        blocks.sort(key=lambda block: (block.start_line, block.end_line, block.segment_hash))
        return blocks

    def _parse_syntax(
        self,
        spec: LanguageSpec,
        file_path: str,
        content: str,
        lines: List[str],
        file_hash: str,
        seen: Set[str],
    ) -> List[CodeBlock]:
        source = content.encode("utf-8")
        tree = parser_for(spec).parse(source)
        root = tree.root_node
        if root.has_error:
            logger.debug("Syntax errors in %s; indexing recoverable spans", file_path)

        blocks: List[CodeBlock] = []
        for node in _definitions_below(root, spec.definition_types):
            self._emit_span(node, spec, source, lines, file_path, file_hash, seen, blocks)
        return blocks

    def _emit_span(self, node, spec, source, lines, file_path, file_hash, seen, blocks) -> None:
        text = source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
        if len(text) < MIN_BLOCK_CHARS:
            return

        identifier = _node_name(node, source)
        start_row, end_row = node.start_point[0], node.end_point[0]
        if len(text) <= TOLERATED_MAX_CHARS:
            _append_block(blocks, seen, file_path, identifier, node.type, start_row + 1, end_row + 1, text, file_hash)
            return

        children = _definitions_below(node, spec.definition_types)
        if not children:
            blocks.extend(
                chunk_lines(
                    lines[start_row : end_row + 1],
                    file_path,
                    file_hash,
                    node.type,
                    base_start_line=start_row + 1,
                    identifier=identifier,
                    seen=seen,
                )
            )
            return

        covered: Set[int] = set()
        for child in children:
            covered.update(range(child.start_point[0], child.end_point[0] + 1))
            self._emit_span(child, spec, source, lines, file_path, file_hash, seen, blocks)
        # Lines of the span outside nested definitions (headers, fields, docstrings).
        for gap_start, gap_end in _gaps(start_row, end_row, covered):
            blocks.extend(
                chunk_lines(
                    lines[gap_start : gap_end + 1],
                    file_path,
                    file_hash,
                    node.type,
                    base_start_line=gap_start + 1,
                    identifier=identifier,
                    seen=seen,
                )
            )

    def _parse_markdown(self, file_path: str, lines: List[str], file_hash: str, seen: Set[str]) -> List[CodeBlock]:
        blocks: List[CodeBlock] = []
        for section in split_sections(lines):
            end = section.end
            while end > section.start and not lines[end].strip():
                end -= 1
            section_lines = lines[section.start : end + 1]
            text = "\n".join(section_lines)
            if len(text) < MIN_BLOCK_CHARS:
                continue
            if len(text) <= TOLERATED_MAX_CHARS:
                _append_block(
                    blocks, seen, file_path, section.heading, MARKDOWN_SECTION_TYPE,
                    section.start + 1, end + 1, text, file_hash,
                )
                continue
            blocks.extend(
                chunk_lines(
                    section_lines,
                    file_path,
                    file_hash,
                    MARKDOWN_SECTION_TYPE,
                    base_start_line=section.start + 1,
                    identifier=section.heading,
                    seen=seen,
                )
            )
        return blocks

    @staticmethod
    def _whole_file_block(file_path: str, content: str, file_hash: str) -> CodeBlock:
        end_line = max(1, len(content.splitlines()))
        return CodeBlock(
            file_path=file_path,
            identifier=None,
            type="",
            start_line=1,
            end_line=end_line,
            content=content,
            file_hash=file_hash,
            segment_hash=segment_hash(file_path, 1, end_line, content),
        )

    def _record(self, location: str, file_path: str, exc: BaseException, **details) -> None:
        self.diagnostics.record(
            Diagnostic(
                location=f"parser.{location}",
                file_path=file_path,
                error=f"{type(exc).__name__}: {exc}",
                details=details,
            )
        )


def _append_block(blocks, seen, file_path, identifier, block_type, start_line, end_line, content, file_hash) -> None:
    digest = segment_hash(file_path, start_line, end_line, content)
    if digest in seen:
        return
    seen.add(digest)
    blocks.append(
        CodeBlock(
            file_path=file_path,
            identifier=identifier,
            type=block_type,
            start_line=start_line,
            end_line=end_line,
            content=content,
            file_hash=file_hash,
            segment_hash=digest,
        )
    )


def _definitions_below(node, definition_types) -> list:
    """Definition nodes under ``node`` that are not nested inside another definition."""

    found = []
    stack = list(reversed(node.children))
    while stack:
        child = stack.pop()
        if child.type in definition_types:
            found.append(child)
        else:
            stack.extend(reversed(child.children))
    return found


def _node_name(node, source: bytes) -> Optional[str]:
    """Best-effort identifier for a definition node."""

    name = node.child_by_field_name("name")
    if name is None:
        inner = node.child_by_field_name("definition")
        if inner is not None:
            name = inner.child_by_field_name("name")
    if name is None and node.type == "impl_item":
        name = node.child_by_field_name("type")
    if name is None and node.type == "type_declaration":
        for child in node.named_children:
            if child.type in ("type_spec", "type_alias"):
                name = child.child_by_field_name("name")
                break
    if name is None:
        return None
    return source[name.start_byte : name.end_byte].decode("utf-8", errors="replace")


def _gaps(start_row: int, end_row: int, covered: Set[int]) -> List[Tuple[int, int]]:
    gaps: List[Tuple[int, int]] = []
    gap_start: Optional[int] = None
    for row in range(start_row, end_row + 1):
        if row in covered:
            if gap_start is not None:
                gaps.append((gap_start, row - 1))
                gap_start = None
        elif gap_start is None:
            gap_start = row
    if gap_start is not None:
        gaps.append((gap_start, end_row))
    return gaps
