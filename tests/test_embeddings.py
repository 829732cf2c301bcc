from types import SimpleNamespace
from unittest.mock import patch

import google.generativeai as genai
import numpy as np
import pytest

from onenote_rag.core.exceptions import BackendUnavailableError, ConfigurationError
from onenote_rag.services.embeddings import (
    GeminiEmbeddingFunction,
    LocalHashEmbeddingFunction,
    build_embedding_function,
)


def test_local_embeddings_are_deterministic(embedding_function):
    texts = ["Quarterly planning notes", "Recipe: tomato soup"]

    assert embedding_function.embed(texts) == embedding_function.embed(texts)


def test_local_embeddings_shape_and_norm(embedding_function):
    vectors = embedding_function.embed(["first note", "second, longer note about budgets", "x"])

    assert len(vectors) == 3
    for vector in vectors:
        assert len(vector) == 256
        assert np.linalg.norm(vector) == pytest.approx(1.0)


def test_empty_text_embeds_to_zero_vector(embedding_function):
    [vector] = embedding_function.embed([""])

    assert len(vector) == 256
    assert not any(vector)


def test_different_texts_get_different_vectors(embedding_function):
    first, second = embedding_function.embed(["Holiday packing list", "Database migration plan"])

    assert first != second


def test_local_embeddings_need_room_for_window_features():
    with pytest.raises(ConfigurationError):
        LocalHashEmbeddingFunction(dimension=100)


def make_settings(**overrides):
    values = dict(
        EMBEDDING_PROVIDER="local",
        EMBEDDING_DIMENSION=384,
        EMBEDDING_MODEL_NAME="models/text-embedding-004",
        EMBEDDING_API_KEY=None,
        EMBEDDING_TIMEOUT=30,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_build_local_embedding_function():
    embedding_function = build_embedding_function(make_settings(EMBEDDING_PROVIDER=" Local "))

    assert isinstance(embedding_function, LocalHashEmbeddingFunction)
    assert embedding_function.dimension == 384


def test_gemini_embeddings_require_api_key():
    with pytest.raises(ConfigurationError):
        build_embedding_function(make_settings(EMBEDDING_PROVIDER="gemini"))
    with pytest.raises(ConfigurationError):
        GeminiEmbeddingFunction(api_key="")


def test_unknown_embedding_provider_is_rejected():
    with pytest.raises(ConfigurationError):
        build_embedding_function(make_settings(EMBEDDING_PROVIDER="word2vec"))


@pytest.fixture
def gemini_embeddings():
    return GeminiEmbeddingFunction(api_key="test-key", dimension=4, timeout=5.0)


def test_gemini_embeds_documents_in_batch(gemini_embeddings):
    with patch.object(genai, "embed_content", return_value={"embedding": [[2.0, 0, 0, 0], [0, 3.0, 4.0, 0]]}) as embed_content:
        vectors = gemini_embeddings.embed(["first note", "second note"])

    assert vectors == [[1.0, 0.0, 0.0, 0.0], [0.0, 0.6, 0.8, 0.0]]
    kwargs = embed_content.call_args.kwargs
    assert kwargs["content"] == ["first note", "second note"]
    assert kwargs["task_type"] == "retrieval_document"
    assert kwargs["output_dimensionality"] == 4
    assert kwargs["request_options"] == {"timeout": 5.0}


def test_gemini_single_flat_vector_is_wrapped(gemini_embeddings):
    with patch.object(genai, "embed_content", return_value={"embedding": [3.0, 4.0, 0.0, 0.0]}):
        vectors = gemini_embeddings.embed(["only note"])

    assert vectors == [[0.6, 0.8, 0.0, 0.0]]


def test_gemini_query_uses_query_task_type(gemini_embeddings):
    with patch.object(genai, "embed_content", return_value={"embedding": [[0, 0, 0, 5.0]]}) as embed_content:
        vector = gemini_embeddings.embed_query("Where is my car?")

    assert vector == [0.0, 0.0, 0.0, 1.0]
    assert embed_content.call_args.kwargs["task_type"] == "retrieval_query"


def test_gemini_empty_batch_skips_the_request(gemini_embeddings):
    with patch.object(genai, "embed_content") as embed_content:
        assert gemini_embeddings.embed([]) == []
    embed_content.assert_not_called()


def test_gemini_failure_is_backend_unavailable(gemini_embeddings):
    with patch.object(genai, "embed_content", side_effect=RuntimeError("deadline exceeded")):
        with pytest.raises(BackendUnavailableError) as excinfo:
            gemini_embeddings.embed(["note"])
        assert gemini_embeddings.check_availability() is False

    assert excinfo.value.backend == "embedding"


def test_local_query_embedding_matches_document_embedding(embedding_function):
    assert embedding_function.embed_query("Tax return") == embedding_function.embed(["Tax return"])[0]
