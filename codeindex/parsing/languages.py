# Path: codeindex/parsing/languages.py
# Purpose: Map file extensions to tree-sitter grammars and the node types worth indexing.
# Layer: codeindex/parsing.
# Details: Parsers are created lazily per thread because tree-sitter parsers are not thread-safe.

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional

import tree_sitter_go
import tree_sitter_java
import tree_sitter_javascript
import tree_sitter_python
import tree_sitter_rust
import tree_sitter_typescript
from tree_sitter import Language, Parser


@dataclass(frozen=True)
class LanguageSpec:
    """A grammar plus the definition node types captured as indexable spans."""

    name: str
    loader: Callable[[], object]
    definition_types: FrozenSet[str]


_JS_DEFINITIONS = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "method_definition",
    }
)

_TS_DEFINITIONS = _JS_DEFINITIONS | frozenset(
    {
        "abstract_class_declaration",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
        "internal_module",
    }
)

PYTHON = LanguageSpec(
    name="python",
    loader=tree_sitter_python.language,
    definition_types=frozenset({"function_definition", "class_definition", "decorated_definition"}),
)
JAVASCRIPT = LanguageSpec(name="javascript", loader=tree_sitter_javascript.language, definition_types=_JS_DEFINITIONS)
TYPESCRIPT = LanguageSpec(
    name="typescript", loader=tree_sitter_typescript.language_typescript, definition_types=_TS_DEFINITIONS
)
TSX = LanguageSpec(name="tsx", loader=tree_sitter_typescript.language_tsx, definition_types=_TS_DEFINITIONS)
GO = LanguageSpec(
    name="go",
    loader=tree_sitter_go.language,
    definition_types=frozenset({"function_declaration", "method_declaration", "type_declaration"}),
)
RUST = LanguageSpec(
    name="rust",
    loader=tree_sitter_rust.language,
    definition_types=frozenset(
        {"function_item", "struct_item", "enum_item", "trait_item", "impl_item", "mod_item", "macro_definition"}
    ),
)
JAVA = LanguageSpec(
    name="java",
    loader=tree_sitter_java.language,
    definition_types=frozenset(
        {
            "class_declaration",
            "interface_declaration",
            "enum_declaration",
            "record_declaration",
            "method_declaration",
            "constructor_declaration",
        }
    ),
)

SYNTAX_EXTENSIONS: Dict[str, LanguageSpec] = {
    ".py": PYTHON,
    ".pyi": PYTHON,
    ".js": JAVASCRIPT,
    ".jsx": JAVASCRIPT,
    ".mjs": JAVASCRIPT,
    ".cjs": JAVASCRIPT,
    ".ts": TYPESCRIPT,
    ".mts": TYPESCRIPT,
    ".cts": TYPESCRIPT,
    ".tsx": TSX,
    ".go": GO,
    ".rs": RUST,
    ".java": JAVA,
}

MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})

# Indexed as one block per file.
FALLBACK_EXTENSIONS = frozenset(
    {
        ".c",
        ".h",
        ".cc",
        ".cpp",
        ".hpp",
        ".cs",
        ".rb",
        ".php",
        ".kt",
        ".kts",
        ".swift",
        ".scala",
        ".vb",
        ".lua",
        ".sh",
        ".sql",
        ".html",
        ".css",
        ".scss",
        ".vue",
        ".svelte",
        ".yaml",
        ".yml",
        ".toml",
    }
)

SUPPORTED_EXTENSIONS = frozenset(SYNTAX_EXTENSIONS) | MARKDOWN_EXTENSIONS | FALLBACK_EXTENSIONS

_languages: Dict[str, Language] = {}
_languages_lock = threading.Lock()
_local = threading.local()


def language_for(extension: str) -> Optional[LanguageSpec]:
    """Return the grammar spec for a lower-cased extension, or None."""

    return SYNTAX_EXTENSIONS.get(extension.lower())


def parser_for(spec: LanguageSpec) -> Parser:
    """Return this thread's parser for ``spec``, creating it on first use."""

    parsers = getattr(_local, "parsers", None)
    if parsers is None:
        parsers = _local.parsers = {}
    parser = parsers.get(spec.name)
    if parser is None:
        with _languages_lock:
            language = _languages.get(spec.name)
            if language is None:
                language = _languages[spec.name] = Language(spec.loader())
        parser = parsers[spec.name] = Parser(language)
    return parser
