# Path: api/app.py
# Purpose: Expose a FastAPI application for code search and indexing.
# Layer: api.
# Details: Provides health and status checks, a search endpoint, and an endpoint that triggers indexing.

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from config.settings import AppSettings
from codeindex.errors import (
    EmbedderConfigurationError,
    IndexingInProgressError,
    ManifestCorruptionError,
    TransientBackendError,
    VectorStoreError,
)
from codeindex.indexing import IndexOrchestrator
from codeindex.logging_setup import configure_logging
from codeindex.search import SearchService
from codeindex.services import build_services

logger = logging.getLogger(__name__)


class SearchRequest(BaseModel):
    query: str = Field(..., description="Natural-language or code query.")
    top_k: Optional[int] = Field(default=None, description="Maximum results; clamped to the configured bound.")
    min_score: Optional[float] = Field(default=None, description="Score threshold on the 0..2 scale.")
    path: Optional[str] = Field(default=None, description="Restrict results to this directory prefix.")


class IndexRequest(BaseModel):
    path: Optional[str] = Field(default=None, description="Reindex only this file when set.")


def create_app(search_service: Optional[SearchService] = None, orchestrator: Optional[IndexOrchestrator] = None):
    """Create a FastAPI app instance configured with the provided services."""

    from fastapi import FastAPI, HTTPException

    app = FastAPI(title="Codebase Index API", version="0.1.0")

    @app.get("/health")
    def health() -> Dict[str, str]:
        """Return a simple health status payload."""

        return {"status": "ok"}

    @app.get("/status")
    def status() -> Dict[str, Any]:
        """Report the indexing state and progress counters."""

        if orchestrator is None:
            return {"state": "Standby", "message": "Indexing is not configured."}
        return orchestrator.status.to_dict()

    @app.post("/search")
    def search(payload: SearchRequest):
        """Run a semantic search over the indexed workspace."""

        if search_service is None:
            raise HTTPException(status_code=500, detail="Search service is not configured.")
        try:
            results = search_service.search(
                payload.query,
                top_k=payload.top_k,
                min_score=payload.min_score,
                path_filter=payload.path,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (EmbedderConfigurationError, TransientBackendError) as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except VectorStoreError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"results": [asdict(result) for result in results]}

    @app.post("/index")
    def index(payload: Optional[IndexRequest] = None):
        """Run an indexing pass, or reindex one file when ``path`` is given."""

        if orchestrator is None:
            raise HTTPException(status_code=500, detail="Indexing is not configured.")
        try:
            if payload is not None and payload.path:
                return asdict(orchestrator.index_file(payload.path))
            return orchestrator.run().to_dict()
        except IndexingInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (EmbedderConfigurationError, TransientBackendError) as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except (ManifestCorruptionError, VectorStoreError) as exc:
            logger.error("Indexing request failed: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    return app


def create_app_from_settings(settings: Optional[AppSettings] = None):
    """Build services from settings (``CODEINDEX_*`` variables by default) and return the app.

    Usable as ``uvicorn --factory api.app:create_app_from_settings``.
    """

    settings = settings or AppSettings.from_env()
    configure_logging(settings.log_level)
    orchestrator, search_service = build_services(settings)
    return create_app(search_service=search_service, orchestrator=orchestrator)
