# Path: api/__init__.py
# Purpose: Package initializer for HTTP API layer.
# Layer: api.
# Details: Exposes the FastAPI application factory.

from .app import create_app, create_app_from_settings

__all__ = ["create_app", "create_app_from_settings"]
