from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from bookmark_search.core.models.document import SearchableDocument
from bookmark_search.core.repositories.document_source import DocumentSource, DocumentSourceError
from bookmark_search.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from supabase import Client


class SupabaseDocumentSource(DocumentSource):
    """Supabase implementation of the DocumentSource.

    Reads the `bookmarks` table page by page through PostgREST. Archived rows
    are not searchable. Rows that fail validation are skipped and logged so one
    bad row cannot take the whole search down.
    """

    COLUMNS = "id,title,url,description,notes,content,tags,collection_id,metadata,created_at"

    def __init__(self, client: Client, *, table: str = "bookmarks", page_size: int = 1000) -> None:
        self._client: Client = client
        self._table = table
        self._page_size = page_size

    async def fetch_all(self) -> Sequence[SearchableDocument]:
        documents: list[SearchableDocument] = []
        offset = 0
        while True:
            start = offset

            def _fetch_page() -> Any:
                return (
                    self._client.table(self._table)
                    .select(self.COLUMNS)
                    .eq("archived", False)
                    .order("created_at", desc=True)
                    .range(start, start + self._page_size - 1)
                    .execute()
                )

            resp = await self._run(_fetch_page)
            rows: list[dict[str, Any]] = resp.data or []
            for row in rows:
                document = self._row_to_document(row)
                if document is not None:
                    documents.append(document)

            if len(rows) < self._page_size:
                break
            offset += self._page_size

        logger.debug("Fetched %d documents from %s", len(documents), self._table)
        return documents

    async def ping(self) -> bool:
        await self._run(
            lambda: self._client.table(self._table).select("id").limit(1).execute()
        )
        return True

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        try:
            return await asyncio.to_thread(func)
        except Exception as err:
            raise DocumentSourceError(f"Failed to read bookmarks: {err}") from err

    @staticmethod
    def _row_to_document(row: dict[str, Any]) -> SearchableDocument | None:
        metadata = row.get("metadata") or {}
        if not isinstance(metadata, dict):
            metadata = {}

        # The stored `type` column uses the enrichment vocabulary; the search
        # core derives its own classification from the URL.
        payload = {
            "id": str(row.get("id") or ""),
            "title": row.get("title"),
            "notes": row.get("notes") or row.get("content"),
            "description": row.get("description"),
            "tags": row.get("tags") or [],
            "ocr_text": metadata.get("ocrText") or metadata.get("ocr_text"),
            "created_at": row.get("created_at"),
            "collection_id": str(row["collection_id"]) if row.get("collection_id") else None,
            "source": metadata.get("source") or "app",
            "url": row.get("url") or None,
        }
        if payload["created_at"] is None:
            payload.pop("created_at")
        try:
            return SearchableDocument.model_validate(payload)
        except ValidationError as err:
            logger.warning("Skipping bookmark row %s: %s", payload["id"] or "<no id>", err)
            return None
