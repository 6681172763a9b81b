from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from bookmark_search.core.models.document import SearchableDocument
from bookmark_search.core.repositories.document_source import InMemoryDocumentSource
from bookmark_search.core.search.lexical_index import LexicalIndexManager
from bookmark_search.core.services.embedding_service import (
    EmbeddingCache,
    FallbackVectorizer,
    LocalVectorizer,
    ProviderVectorizer,
)
from bookmark_search.core.services.search_service import SearchService

DIMENSIONS = 64


def make_doc(doc_id: str, title: str = "", **fields) -> SearchableDocument:
    return SearchableDocument(id=doc_id, title=title, **fields)


class FakeEmbeddings:
    """Stand-in for ``AsyncOpenAI().embeddings``.

    Vectors come from a hashing vectorizer so related texts stay close.
    Inputs containing ``fail_marker`` raise; ``delay`` simulates a slow provider.
    """

    def __init__(self, dimensions: int = DIMENSIONS, *, fail_marker: str | None = None,
                 fail_all: bool = False, delay: float = 0.0, wrong_dimensions: bool = False) -> None:
        self._vectorizer = LocalVectorizer(dimensions)
        self.fail_marker = fail_marker
        self.fail_all = fail_all
        self.delay = delay
        self.wrong_dimensions = wrong_dimensions
        self.calls: list[dict] = []

    async def create(self, *, model: str, input: str, dimensions: int):
        self.calls.append({"model": model, "input": input, "dimensions": dimensions})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_all or (self.fail_marker and self.fail_marker in input):
            raise ConnectionError("provider unavailable")
        vector = self._vectorizer.vectorize(input).tolist()
        if self.wrong_dimensions:
            vector = vector[:-1]
        return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


class FakeOpenAI:
    def __init__(self, **kwargs) -> None:
        self.embeddings = FakeEmbeddings(**kwargs)


@pytest.fixture
def local_noon() -> datetime:
    """A fixed local-time 'now' far from midnight."""
    return datetime(2026, 10, 19, 15, 30).astimezone()


@pytest.fixture
def sample_docs(local_noon: datetime) -> list[SearchableDocument]:
    return [
        make_doc(
            "1",
            "Learn React Hooks",
            tags=["react", "frontend"],
            notes="useState and useEffect walkthrough",
            url="https://react.dev/learn",
            created_at=local_noon - timedelta(hours=1),
        ),
        make_doc(
            "2",
            "Rust ownership basics",
            tags=["rust"],
            description="Borrowing and lifetimes explained",
            created_at=local_noon - timedelta(days=2),
        ),
        make_doc(
            "3",
            "Conference talk",
            tags=["talks", "frontend"],
            url="https://www.youtube.com/watch?v=abc",
            source="extension",
            created_at=local_noon - timedelta(days=10),
        ),
    ]


@pytest.fixture
def build_vectorizer():
    def _build(client: FakeOpenAI | None = None, *, timeout: float = 0.5) -> FallbackVectorizer:
        provider = None
        if client is not None:
            provider = ProviderVectorizer(client, dimensions=DIMENSIONS, timeout=timeout)
        return FallbackVectorizer(LocalVectorizer(DIMENSIONS), provider, EmbeddingCache(max_size=256))

    return _build


@pytest.fixture
def build_service(build_vectorizer):
    def _build(documents, *, client: FakeOpenAI | None = None, **kwargs) -> SearchService:
        source = InMemoryDocumentSource(documents)
        return SearchService(source, LexicalIndexManager(), build_vectorizer(client), **kwargs)

    return _build
