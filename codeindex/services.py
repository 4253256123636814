# Path: codeindex/services.py
# Purpose: Wire indexing and search services from application settings.
# Layer: codeindex.
# Details: Both services share one embedder and one vector store so queries land in the indexed vector space.

from __future__ import annotations

from typing import Optional, Tuple

import requests

from config.settings import AppSettings
from codeindex.indexing import IndexOrchestrator
from codeindex.parsing import DiagnosticsSink
from codeindex.search import SearchService


def build_services(
    settings: AppSettings,
    session: Optional[requests.Session] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> Tuple[IndexOrchestrator, SearchService]:
    """Return an orchestrator and a search service built from ``settings``."""

    orchestrator = IndexOrchestrator.from_settings(settings, session=session, diagnostics=diagnostics)
    search_service = SearchService(
        embedder=orchestrator.embedder,
        vector_store=orchestrator.vector_store,
        settings=settings.search,
    )
    return orchestrator, search_service
