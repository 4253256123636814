# Path: codeindex/embedders/__init__.py
# Purpose: Package initializer for embedder implementations and interfaces.
# Layer: codeindex/embedders.
# Details: Exposes the base interface, the hosted/local/disabled backends, and the factory.

from .base import Embedder
from .factory import create_embedder
from .gemini_embedder import GeminiEmbedder
from .null_embedder import NullEmbedder
from .ollama_embedder import OllamaEmbedder
from .openai_embedder import OpenAIEmbedder

__all__ = [
    "Embedder",
    "GeminiEmbedder",
    "NullEmbedder",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "create_embedder",
]
