from __future__ import annotations

import asyncio
import re
import threading
import zlib
from collections import Counter, OrderedDict
from typing import TYPE_CHECKING

import numpy as np

from bookmark_search.core.schemas.search import EmbeddingMethod
from bookmark_search.utils.logging import get_logger

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = get_logger(__name__)

EMBEDDING_MODEL = "text-embedding-3-small"  # 1536 dims by default, shortenable via `dimensions`
EMBEDDING_DIMENSIONS = 1536
MAX_INPUT_CHARS = 8000
CACHE_KEY_CHARS = 100
CACHE_SIZE = 50_000

_SPLIT_RE = re.compile(r"\W+", re.UNICODE)


class EmbeddingError(RuntimeError):
    """Raised when a vectorizer cannot produce a vector for the given text."""


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; 0.0 when either is the zero vector."""
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


class EmbeddingCache:
    """Thread-safe LRU cache of vectors keyed by method and a text prefix.

    Keying on the first ``key_chars`` characters bounds key memory; two long
    texts sharing that prefix share a vector. That approximation is accepted.
    Racing writers on the same key store equivalent vectors, so lost updates
    are harmless.
    """

    def __init__(self, max_size: int = CACHE_SIZE, key_chars: int = CACHE_KEY_CHARS) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self.key_chars = key_chars
        self._entries: OrderedDict[tuple[str, str], np.ndarray] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def key(self, method: EmbeddingMethod, text: str) -> tuple[str, str]:
        return method.value, text[: self.key_chars]

    def get(self, method: EmbeddingMethod, text: str) -> np.ndarray | None:
        key = self.key(method, text)
        with self._lock:
            vector = self._entries.get(key)
            if vector is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return vector

    def put(self, method: EmbeddingMethod, text: str, vector: np.ndarray) -> None:
        key = self.key(method, text)
        with self._lock:
            self._entries[key] = vector
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class LocalVectorizer:
    """Deterministic hashing vectorizer used when the provider is unavailable.

    Tokens shorter than three characters are dropped; each remaining token adds
    its relative frequency to the bucket chosen by its CRC-32, and the result is
    L2-normalized. CRC-32 is stable across processes, unlike ``hash()``.
    """

    method = EmbeddingMethod.LOCAL

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS) -> None:
        self.dimensions = dimensions

    def vectorize(self, text: str) -> np.ndarray:
        tokens = [t for t in _SPLIT_RE.split(text.lower()) if len(t) >= 3]
        vector = np.zeros(self.dimensions, dtype=np.float64)
        if not tokens:
            return vector

        total = len(tokens)
        for token, count in Counter(tokens).items():
            bucket = zlib.crc32(token.encode("utf-8")) % self.dimensions
            vector[bucket] += count / total

        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        return vector / norm

    async def embed(self, text: str) -> np.ndarray:
        return self.vectorize(text)


class ProviderVectorizer:
    """OpenAI embeddings with a hard per-call timeout and no retries."""

    method = EmbeddingMethod.PROVIDER

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = EMBEDDING_MODEL,
        dimensions: int = EMBEDDING_DIMENSIONS,
        timeout: float = 3.0,
        max_input_chars: int = MAX_INPUT_CHARS,
    ) -> None:
        self._client = client
        self.model = model
        self.dimensions = dimensions
        self.timeout = timeout
        self.max_input_chars = max_input_chars

    async def embed(self, text: str) -> np.ndarray:
        """Embed ``text``; raises EmbeddingError on any provider failure or timeout."""
        payload = text[: self.max_input_chars]
        try:
            resp = await asyncio.wait_for(
                self._client.embeddings.create(
                    model=self.model,
                    input=payload,
                    dimensions=self.dimensions,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as err:
            raise EmbeddingError(f"Embedding provider timed out after {self.timeout}s") from err
        except Exception as err:
            raise EmbeddingError(f"Embedding provider failed: {err}") from err

        vector = np.asarray(resp.data[0].embedding, dtype=np.float64)
        if vector.shape != (self.dimensions,):
            raise EmbeddingError(
                f"Embedding provider returned {vector.shape[0]} dimensions, expected {self.dimensions}"
            )
        return vector


class FallbackVectorizer:
    """Chooses between the provider and the local vectorizer per call.

    The query decides the method: the provider is tried first when configured
    and any failure falls back to the local vectorizer for that call. Document
    vectors are then produced with the same method so both sides of the cosine
    live in the same space. The chosen method is returned to the caller rather
    than hidden.
    """

    def __init__(
        self,
        local: LocalVectorizer,
        provider: ProviderVectorizer | None = None,
        cache: EmbeddingCache | None = None,
    ) -> None:
        self.local = local
        self.provider = provider
        self.cache = cache or EmbeddingCache()

    @property
    def provider_configured(self) -> bool:
        return self.provider is not None

    async def embed_query(self, text: str) -> tuple[np.ndarray, EmbeddingMethod]:
        if self.provider is not None:
            try:
                return await self.embed_with(EmbeddingMethod.PROVIDER, text), EmbeddingMethod.PROVIDER
            except EmbeddingError as err:
                logger.warning("Falling back to local vectorizer: %s", err)
        return await self.embed_with(EmbeddingMethod.LOCAL, text), EmbeddingMethod.LOCAL

    async def embed_with(self, method: EmbeddingMethod, text: str) -> np.ndarray:
        """Embed ``text`` with the given method, consulting the cache first."""
        cached = self.cache.get(method, text)
        if cached is not None:
            return cached

        if method is EmbeddingMethod.PROVIDER:
            if self.provider is None:
                raise EmbeddingError("No embedding provider configured")
            vector = await self.provider.embed(text)
        else:
            vector = await self.local.embed(text)

        self.cache.put(method, text, vector)
        return vector
