from __future__ import annotations

import logging

import numpy as np
import pytest
from conftest import DIMENSIONS, FakeOpenAI

from bookmark_search.core.schemas.search import EmbeddingMethod
from bookmark_search.core.services.embedding_service import (
    EmbeddingCache,
    EmbeddingError,
    LocalVectorizer,
    ProviderVectorizer,
    cosine_similarity,
)


def test_local_vectorizer_is_deterministic():
    text = "Borrowing and lifetimes in Rust"

    first = LocalVectorizer(DIMENSIONS).vectorize(text)
    second = LocalVectorizer(DIMENSIONS).vectorize(text)

    assert first.shape == (DIMENSIONS,)
    assert np.array_equal(first, second)
    assert np.linalg.norm(first) == pytest.approx(1.0)


def test_local_vectorizer_drops_short_tokens():
    vector = LocalVectorizer(DIMENSIONS).vectorize("a an to of")

    assert not vector.any()
    assert cosine_similarity(vector, vector) == 0.0


def test_self_similarity_is_one():
    vector = LocalVectorizer(DIMENSIONS).vectorize("react hooks tutorial")

    assert cosine_similarity(vector, vector) == pytest.approx(1.0)


def test_unrelated_texts_are_less_similar_than_related_ones():
    local = LocalVectorizer(512)
    query = local.vectorize("rust ownership borrowing")

    related = cosine_similarity(query, local.vectorize("ownership and borrowing in rust"))
    unrelated = cosine_similarity(query, local.vectorize("sourdough bread recipe"))

    assert related > unrelated


def test_cache_evicts_least_recently_used():
    cache = EmbeddingCache(max_size=2)
    a, b, c = (np.full(3, v) for v in (1.0, 2.0, 3.0))

    cache.put(EmbeddingMethod.LOCAL, "a", a)
    cache.put(EmbeddingMethod.LOCAL, "b", b)
    assert cache.get(EmbeddingMethod.LOCAL, "a") is a
    cache.put(EmbeddingMethod.LOCAL, "c", c)

    assert len(cache) == 2
    assert cache.get(EmbeddingMethod.LOCAL, "b") is None
    assert cache.get(EmbeddingMethod.LOCAL, "a") is a
    assert cache.get(EmbeddingMethod.LOCAL, "c") is c


def test_cache_keys_on_method_and_prefix():
    cache = EmbeddingCache(max_size=8, key_chars=5)
    vector = np.ones(3)

    cache.put(EmbeddingMethod.LOCAL, "abcdefgh", vector)

    assert cache.get(EmbeddingMethod.LOCAL, "abcdeXYZ") is vector
    assert cache.get(EmbeddingMethod.PROVIDER, "abcdefgh") is None
    assert cache.hits == 1
    assert cache.misses == 1


def test_cache_rejects_empty_capacity():
    with pytest.raises(ValueError):
        EmbeddingCache(max_size=0)


@pytest.mark.asyncio
async def test_provider_truncates_input():
    client = FakeOpenAI()
    provider = ProviderVectorizer(client, dimensions=DIMENSIONS, max_input_chars=8000)

    await provider.embed("word " * 3000)

    assert len(client.embeddings.calls[0]["input"]) == 8000
    assert client.embeddings.calls[0]["dimensions"] == DIMENSIONS


@pytest.mark.asyncio
async def test_provider_rejects_wrong_dimensions():
    provider = ProviderVectorizer(FakeOpenAI(wrong_dimensions=True), dimensions=DIMENSIONS)

    with pytest.raises(EmbeddingError):
        await provider.embed("react hooks")


@pytest.mark.asyncio
async def test_provider_timeout_raises_embedding_error():
    provider = ProviderVectorizer(FakeOpenAI(delay=1.0), dimensions=DIMENSIONS, timeout=0.05)

    with pytest.raises(EmbeddingError, match="timed out"):
        await provider.embed("react hooks")


@pytest.mark.asyncio
async def test_query_uses_local_without_provider(build_vectorizer):
    vectorizer = build_vectorizer()

    vector, method = await vectorizer.embed_query("react hooks")

    assert method is EmbeddingMethod.LOCAL
    assert not vectorizer.provider_configured
    assert np.array_equal(vector, LocalVectorizer(DIMENSIONS).vectorize("react hooks"))


@pytest.mark.asyncio
async def test_query_uses_provider_when_available(build_vectorizer):
    vectorizer = build_vectorizer(FakeOpenAI())

    vector, method = await vectorizer.embed_query("react hooks")

    assert method is EmbeddingMethod.PROVIDER
    assert vector.shape == (DIMENSIONS,)


@pytest.mark.asyncio
async def test_query_falls_back_when_provider_fails(build_vectorizer, caplog):
    vectorizer = build_vectorizer(FakeOpenAI(fail_all=True))

    with caplog.at_level(logging.WARNING):
        _, method = await vectorizer.embed_query("react hooks")

    assert method is EmbeddingMethod.LOCAL
    assert "Falling back to local vectorizer" in caplog.text


@pytest.mark.asyncio
async def test_query_falls_back_when_provider_is_slow(build_vectorizer):
    vectorizer = build_vectorizer(FakeOpenAI(delay=1.0), timeout=0.05)

    _, method = await vectorizer.embed_query("react hooks")

    assert method is EmbeddingMethod.LOCAL


@pytest.mark.asyncio
async def test_repeated_embeddings_hit_the_cache(build_vectorizer):
    client = FakeOpenAI()
    vectorizer = build_vectorizer(client)

    await vectorizer.embed_with(EmbeddingMethod.PROVIDER, "react hooks")
    await vectorizer.embed_with(EmbeddingMethod.PROVIDER, "react hooks")

    assert len(client.embeddings.calls) == 1
    assert vectorizer.cache.hits == 1


@pytest.mark.asyncio
async def test_provider_method_without_provider_raises(build_vectorizer):
    with pytest.raises(EmbeddingError):
        await build_vectorizer().embed_with(EmbeddingMethod.PROVIDER, "react hooks")
