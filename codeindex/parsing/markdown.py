# Path: codeindex/parsing/markdown.py
# Purpose: Split Markdown documents into heading-delimited sections.
# Layer: codeindex/parsing.
# Details: ATX headings only; lines inside fenced code blocks are never treated as headings.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

HEADING_RE = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)[ \t]*#*[ \t]*$")
FENCE_RE = re.compile(r"^ {0,3}(```|~~~)")


@dataclass(frozen=True)
class MarkdownSection:
    """Lines ``start``..``end`` (0-based, inclusive); ``heading`` is None for a preamble."""

    heading: Optional[str]
    level: int
    start: int
    end: int


def split_sections(lines: Sequence[str]) -> List[MarkdownSection]:
    """Return one section per heading, plus a preamble when text precedes the first heading.

    Returns an empty list when the document has no headings.
    """

    starts: List[tuple[int, int, str]] = []
    fence: Optional[str] = None
    for index, line in enumerate(lines):
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif fence == marker:
                fence = None
            continue
        if fence is not None:
            continue
        heading = HEADING_RE.match(line)
        if heading:
            starts.append((index, len(heading.group(1)), heading.group(2).strip()))

    if not starts:
        return []

    sections: List[MarkdownSection] = []
    first = starts[0][0]
    if first > 0 and any(line.strip() for line in lines[:first]):
        sections.append(MarkdownSection(heading=None, level=0, start=0, end=first - 1))
    for position, (start, level, text) in enumerate(starts):
        end = starts[position + 1][0] - 1 if position + 1 < len(starts) else len(lines) - 1
        sections.append(MarkdownSection(heading=text, level=level, start=start, end=end))
    return sections
