from __future__ import annotations

from typing import Any
from unittest import mock

import pytest
import requests

from codeindex.embedders import GeminiEmbedder, NullEmbedder, OllamaEmbedder, OpenAIEmbedder
from codeindex.errors import EmbedderConfigurationError, EmbeddingRequestError, TransientBackendError


def fake_response(status: int = 200, body: Any = None) -> mock.Mock:
    response = mock.Mock()
    response.status_code = status
    response.text = str(body)
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def session_returning(*responses: mock.Mock) -> mock.Mock:
    session = mock.Mock(spec=requests.Session)
    session.request.side_effect = list(responses)
    return session


def openai_body(vectors: list[list[float]], tokens: int = 7) -> dict:
    data = [{"index": index, "embedding": vector} for index, vector in enumerate(vectors)]
    return {"data": list(reversed(data)), "usage": {"prompt_tokens": tokens, "total_tokens": tokens}}


def test_openai_embeddings_preserve_input_order_and_usage() -> None:
    session = session_returning(fake_response(body=openai_body([[1.0, 0.0], [0.0, 1.0]])))
    embedder = OpenAIEmbedder(api_key="sk-test", model_id="m", dim=2, session=session)

    response = embedder.create_embeddings(["first", "second"])

    assert response.embeddings == [[1.0, 0.0], [0.0, 1.0]]
    assert response.usage.total_tokens == 7
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("POST", "https://api.openai.com/v1/embeddings")
    assert kwargs["json"] == {"model": "m", "input": ["first", "second"], "encoding_format": "float"}
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"


def test_empty_batch_is_rejected() -> None:
    embedder = OpenAIEmbedder(api_key="k", model_id="m", session=session_returning())

    with pytest.raises(ValueError):
        embedder.create_embeddings([])


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (401, EmbedderConfigurationError),
        (404, EmbedderConfigurationError),
        (400, EmbeddingRequestError),
        (429, TransientBackendError),
        (503, TransientBackendError),
    ],
)
def test_http_status_classification(status: int, expected: type) -> None:
    embedder = OpenAIEmbedder(api_key="k", model_id="m", session=session_returning(fake_response(status, {})))

    with pytest.raises(expected):
        embedder.create_embeddings(["x"])


def test_connection_errors_are_transient() -> None:
    session = mock.Mock(spec=requests.Session)
    session.request.side_effect = requests.ConnectionError("refused")
    embedder = OpenAIEmbedder(api_key="k", model_id="m", session=session)

    with pytest.raises(TransientBackendError):
        embedder.create_embeddings(["x"])


def test_dimension_mismatch_is_a_configuration_error() -> None:
    session = session_returning(fake_response(body=openai_body([[1.0, 0.0, 0.0]])))
    embedder = OpenAIEmbedder(api_key="k", model_id="m", dim=2, session=session)

    with pytest.raises(EmbedderConfigurationError):
        embedder.create_embeddings(["x"])


def test_non_json_body_is_a_configuration_error() -> None:
    session = session_returning(fake_response(body=ValueError("not json")))
    embedder = OpenAIEmbedder(api_key="k", model_id="m", session=session)

    with pytest.raises(EmbedderConfigurationError):
        embedder.create_embeddings(["x"])


def test_validation_reports_bad_credentials() -> None:
    embedder = OpenAIEmbedder(api_key="bad", model_id="m", session=session_returning(fake_response(401, {})))

    result = embedder.validate_configuration()

    assert result.valid is False
    assert "401" in (result.error or "")


def test_validation_succeeds_with_matching_dimension() -> None:
    session = session_returning(fake_response(body=openai_body([[0.5, 0.5]])))
    embedder = OpenAIEmbedder(api_key="k", model_id="m", dim=2, session=session)

    assert embedder.validate_configuration().valid is True


def test_gemini_uses_compatibility_endpoint() -> None:
    session = session_returning(fake_response(body=openai_body([[0.1, 0.2]])))
    embedder = GeminiEmbedder(api_key="g", session=session)

    embedder.create_embeddings(["x"])

    assert embedder.info().name == "gemini"
    assert embedder.model_id == "text-embedding-004"
    assert session.request.call_args.args[1].startswith("https://generativelanguage.googleapis.com/")


def test_ollama_batch_embedding() -> None:
    body = {"embeddings": [[0.1, 0.2], [0.3, 0.4]], "prompt_eval_count": 5}
    session = session_returning(fake_response(body=body))
    embedder = OllamaEmbedder(model_id="nomic-embed-text", dim=2, base_url="http://ollama:11434/", session=session)

    response = embedder.create_embeddings(["a", "b"])

    assert response.embeddings == [[0.1, 0.2], [0.3, 0.4]]
    assert response.usage.prompt_tokens == 5
    assert session.request.call_args.args == ("POST", "http://ollama:11434/api/embed")


def test_ollama_validation_requires_pulled_model() -> None:
    tags = {"models": [{"name": "llama3:latest"}]}
    embedder = OllamaEmbedder(model_id="nomic-embed-text", session=session_returning(fake_response(body=tags)))

    result = embedder.validate_configuration()

    assert result.valid is False
    assert "ollama pull nomic-embed-text" in (result.error or "")


def test_ollama_validation_accepts_latest_tag() -> None:
    session = session_returning(
        fake_response(body={"models": [{"name": "nomic-embed-text:latest"}]}),
        fake_response(body={"embeddings": [[0.0, 1.0]]}),
    )
    embedder = OllamaEmbedder(model_id="nomic-embed-text", dim=2, session=session)

    assert embedder.validate_configuration().valid is True


def test_null_embedder_returns_empty_vectors() -> None:
    embedder = NullEmbedder()

    response = embedder.create_embeddings(["a", "b"])

    assert response.embeddings == [[], []]
    assert embedder.validate_configuration().valid is True
    assert embedder.info().dimension is None
