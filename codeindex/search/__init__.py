# Path: codeindex/search/__init__.py
# Purpose: Package initializer for semantic code search.
# Layer: codeindex/search.
# Details: Exposes the search service entrypoint.

from .service import SearchService

__all__ = ["SearchService"]
