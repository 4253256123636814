# Path: codeindex/parsing/__init__.py
# Purpose: Package initializer for parsing, chunking, and hashing.
# Layer: codeindex/parsing.
# Details: Exposes the parser, hash helpers, and diagnostics sinks.

from .diagnostics import CollectingDiagnostics, Diagnostic, DiagnosticsSink, LoggingDiagnostics
from .hashing import file_hash, segment_hash
from .languages import SUPPORTED_EXTENSIONS
from .parser import CodeParser

__all__ = [
    "CodeParser",
    "CollectingDiagnostics",
    "Diagnostic",
    "DiagnosticsSink",
    "LoggingDiagnostics",
    "SUPPORTED_EXTENSIONS",
    "file_hash",
    "segment_hash",
]
