# Path: config/__init__.py
# Purpose: Package initializer for configuration module.
# Layer: config.
# Details: Exposes settings models for application-wide configuration.

from .settings import (
    AppSettings,
    EmbedderProvider,
    EmbedderSettings,
    IndexingSettings,
    SearchSettings,
    VectorStoreSettings,
)

__all__ = [
    "AppSettings",
    "EmbedderProvider",
    "EmbedderSettings",
    "IndexingSettings",
    "SearchSettings",
    "VectorStoreSettings",
]
