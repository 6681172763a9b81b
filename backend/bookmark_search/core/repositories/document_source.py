from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from bookmark_search.core.models.document import SearchableDocument


class DocumentSourceError(RuntimeError):
    """Raised when the backing store cannot be read."""


class DocumentSource(ABC):
    """Abstract source of the searchable collection.

    The store owns the documents; the search core asks for the full current
    collection on every request and does its own caching and paging.
    """

    @abstractmethod
    async def fetch_all(self) -> Sequence[SearchableDocument]:  # pragma: no cover - interface only
        """Return every searchable document currently in the store."""

    async def ping(self) -> bool:
        """Return True when the store is reachable."""
        await self.fetch_all()
        return True


class InMemoryDocumentSource(DocumentSource):
    """Document source backed by a list; used for tests and local development."""

    def __init__(self, documents: Iterable[SearchableDocument] = ()) -> None:
        self._documents: list[SearchableDocument] = list(documents)

    async def fetch_all(self) -> Sequence[SearchableDocument]:
        return tuple(self._documents)

    def replace(self, documents: Iterable[SearchableDocument]) -> None:
        self._documents = list(documents)

    def add(self, document: SearchableDocument) -> None:
        self._documents.append(document)
