# Path: codeindex/__init__.py
# Purpose: Package initializer for the codebase indexing core.
# Layer: codeindex.
# Details: Aggregates subpackages for parsing, embedders, vector stores, indexing, search, and models.

__version__ = "0.1.0"
