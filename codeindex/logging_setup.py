# Path: codeindex/logging_setup.py
# Purpose: Configure process-wide logging for scripts and the HTTP API.
# Layer: codeindex.
# Details: Library modules only call logging.getLogger(__name__); entrypoints call configure_logging once.

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a stream handler on the root logger at the requested level."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    # HTTP client chatter is rarely useful at INFO.
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
