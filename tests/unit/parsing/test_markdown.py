from __future__ import annotations

from codeindex.parsing.markdown import split_sections


def test_sections_follow_headings_and_keep_preamble() -> None:
    lines = [
        "Intro text before any heading.",
        "# Title",
        "Body",
        "## Usage",
        "More body",
    ]

    sections = split_sections(lines)

    assert [(s.heading, s.level, s.start, s.end) for s in sections] == [
        (None, 0, 0, 0),
        ("Title", 1, 1, 2),
        ("Usage", 2, 3, 4),
    ]


def test_headings_inside_fences_are_ignored() -> None:
    lines = ["# Real", "```bash", "# not a heading", "```", "## Next ##", "text"]

    sections = split_sections(lines)

    assert [section.heading for section in sections] == ["Real", "Next"]
    assert sections[0].end == 3


def test_document_without_headings_has_no_sections() -> None:
    assert split_sections(["just text", "more text"]) == []
