from __future__ import annotations

from types import SimpleNamespace

import pytest

from bookmark_search.core.models.document import DocumentType
from bookmark_search.core.repositories.document_source import DocumentSourceError
from bookmark_search.core.repositories.implementations.supabase.document_source import (
    SupabaseDocumentSource,
)


class FakeQuery:
    """Records the PostgREST builder chain and serves rows by range."""

    def __init__(self, client: FakeClient) -> None:
        self._client = client

    def select(self, columns):
        self._client.selected = columns
        return self

    def eq(self, column, value):
        self._client.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        return self

    def limit(self, n):
        self._range = (0, n - 1)
        return self

    def range(self, start, end):
        self._range = (start, end)
        self._client.ranges.append((start, end))
        return self

    def execute(self):
        if self._client.error is not None:
            raise self._client.error
        start, end = self._range
        return SimpleNamespace(data=self._client.rows[start:end + 1])


class FakeClient:
    def __init__(self, rows, error: Exception | None = None) -> None:
        self.rows = rows
        self.error = error
        self.ranges: list[tuple[int, int]] = []
        self.filters: list[tuple[str, object]] = []
        self.selected = None

    def table(self, name):
        self.table_name = name
        return FakeQuery(self)


ROWS = [
    {
        "id": "a1",
        "title": "Hooks intro",
        "url": "https://youtube.com/watch?v=1",
        "description": None,
        "notes": None,
        "content": "Saved from the extension",
        "tags": ["React"],
        "collection_id": 7,
        "metadata": {"ocrText": "slide one", "source": "Extension"},
        "created_at": "2024-05-01T10:00:00+00:00",
    },
    {"id": "b2", "title": "Plain note", "url": None, "tags": None, "metadata": None},
    {"id": "", "title": "Broken row"},
]


@pytest.mark.asyncio
async def test_rows_are_mapped_to_documents():
    client = FakeClient(ROWS)
    source = SupabaseDocumentSource(client, table="bookmarks", page_size=10)

    docs = await source.fetch_all()

    assert [d.id for d in docs] == ["a1", "b2"]
    first, second = docs
    assert first.notes == "Saved from the extension"
    assert first.ocr_text == "slide one"
    assert first.source == "extension"
    assert first.collection_id == "7"
    assert first.tags == ["react"]
    assert first.type is DocumentType.VIDEO
    assert second.type is DocumentType.NOTE
    assert second.tags == []
    assert ("archived", False) in client.filters
    assert client.table_name == "bookmarks"


@pytest.mark.asyncio
async def test_pages_are_read_until_a_short_page():
    rows = [{"id": str(i), "title": f"Doc {i}"} for i in range(5)]
    client = FakeClient(rows)

    docs = await SupabaseDocumentSource(client, page_size=2).fetch_all()

    assert [d.id for d in docs] == ["0", "1", "2", "3", "4"]
    assert client.ranges == [(0, 1), (2, 3), (4, 5)]


@pytest.mark.asyncio
async def test_store_failure_raises_document_source_error():
    source = SupabaseDocumentSource(FakeClient([], error=ConnectionError("down")))

    with pytest.raises(DocumentSourceError):
        await source.fetch_all()

    with pytest.raises(DocumentSourceError):
        await source.ping()
