# Path: codeindex/embedders/http.py
# Purpose: Shared JSON-over-HTTP helper for embedding backends.
# Layer: codeindex/embedders.
# Details: Maps requests failures onto configuration vs. transient errors.

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from codeindex.errors import EmbedderConfigurationError, EmbeddingRequestError, TransientBackendError

logger = logging.getLogger(__name__)

CONFIGURATION_STATUS_CODES = {401, 403, 404}
REJECTED_INPUT_STATUS_CODES = {400, 413, 422}


def request_json(
    session: requests.Session,
    method: str,
    url: str,
    timeout: float,
    payload: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Send a JSON request and return the decoded body.

    Raises:
        EmbedderConfigurationError: credentials, URL, or model rejected by the backend.
        EmbeddingRequestError: the payload itself was rejected (e.g. input too long).
        TransientBackendError: timeouts, connection failures, rate limits, and 5xx responses.
    """

    try:
        response = session.request(method, url, json=payload, headers=headers, timeout=timeout)
    except (requests.Timeout, requests.ConnectionError) as exc:
        raise TransientBackendError(f"Request to {url} failed: {exc}") from exc
    except requests.RequestException as exc:
        raise EmbedderConfigurationError(f"Invalid request to {url}: {exc}") from exc

    if response.status_code in CONFIGURATION_STATUS_CODES:
        raise EmbedderConfigurationError(
            f"{url} rejected the request with HTTP {response.status_code}: {response.text[:200]}"
        )
    if response.status_code in REJECTED_INPUT_STATUS_CODES:
        raise EmbeddingRequestError(
            f"{url} rejected the input with HTTP {response.status_code}: {response.text[:200]}"
        )
    if response.status_code == 429 or response.status_code >= 500:
        raise TransientBackendError(f"{url} answered HTTP {response.status_code}: {response.text[:200]}")
    if response.status_code >= 300:
        raise EmbedderConfigurationError(f"{url} answered HTTP {response.status_code}.")

    try:
        body = response.json()
    except ValueError as exc:
        raise EmbedderConfigurationError(f"{url} did not return JSON.") from exc
    if not isinstance(body, dict):
        raise EmbedderConfigurationError(f"{url} returned an unexpected payload.")
    logger.debug("%s %s -> %s", method, url, response.status_code)
    return body
