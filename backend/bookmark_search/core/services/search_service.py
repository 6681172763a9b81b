from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from bookmark_search.core.schemas.search import (
    SearchResponse,
    SemanticMatch,
    SemanticSearchResponse,
)
from bookmark_search.core.search.filters import apply_filters, local_now
from bookmark_search.core.search.query_parser import parse_query
from bookmark_search.core.search.ranking import paginate, rank, total_pages
from bookmark_search.core.search.suggestions import autocomplete, tag_suggestions
from bookmark_search.core.services.embedding_service import EmbeddingError, cosine_similarity
from bookmark_search.core.services.taxonomy_service import build_bookmark_taxonomy
from bookmark_search.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    import numpy as np

    from bookmark_search.api.v1.schemas.search import SearchRequest, SemanticSearchRequest
    from bookmark_search.core.models.document import SearchableDocument
    from bookmark_search.core.repositories.document_source import DocumentSource
    from bookmark_search.core.schemas.search import EmbeddingMethod, Suggestion
    from bookmark_search.core.search.lexical_index import LexicalIndexManager
    from bookmark_search.core.services.embedding_service import FallbackVectorizer

logger = get_logger(__name__)


class SearchValidationError(ValueError):
    """Raised for requests that cannot be processed at all (maps to a 4xx)."""


class SearchService:
    """Orchestrates one search request over the current collection.

    Stateless across requests; the lexical index manager and the vectorizer
    (with its embedding cache) are process-wide collaborators injected here.
    """

    def __init__(
        self,
        source: DocumentSource,
        index: LexicalIndexManager,
        vectorizer: FallbackVectorizer,
        *,
        lexical_threshold: float = 0.4,
        min_query_length: int = 2,
        embedding_concurrency: int = 8,
    ) -> None:
        self._source = source
        self._index = index
        self._vectorizer = vectorizer
        self._lexical_threshold = lexical_threshold
        self._min_query_length = min_query_length
        self._embedding_concurrency = max(1, embedding_concurrency)

    async def search(self, request: SearchRequest, *, now: datetime | None = None) -> SearchResponse:
        """Lexical/filtered search: match → filter → rank → paginate → suggest."""
        started = time.perf_counter()
        parsed = parse_query(request.query)
        documents = await self._source.fetch_all()

        candidates = await asyncio.to_thread(
            self._index.search,
            documents,
            parsed.keywords,
            threshold=self._lexical_threshold,
            min_query_length=self._min_query_length,
        )

        current = now or local_now()
        candidates = apply_filters(candidates, request.filters, now=current)
        candidates = apply_filters(candidates, parsed.to_filter(), now=current)
        if parsed.has_text_constraints:
            candidates = [c for c in candidates if parsed.admits(c.item)]

        ranked = rank(candidates, request.sort_by)
        total = len(ranked)
        page_items = paginate(ranked, request.page, request.limit)
        suggestions = tag_suggestions(
            (c.item for c in ranked),
            exclude=[*request.filters.tags, *parsed.tags],
        )

        logger.info(
            "Lexical search completed",
            extra={
                "query_length": len(request.query),
                "documents": len(documents),
                "total": total,
                "page": request.page,
                "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return SearchResponse(
            results=page_items,
            total=total,
            page=request.page,
            limit=request.limit,
            total_pages=total_pages(total, request.limit),
            suggestions=suggestions,
            query=request.query,
            filters=request.filters,
            sort_by=request.sort_by,
        )

    async def semantic_search(
        self,
        request: SemanticSearchRequest,
        *,
        now: datetime | None = None,
    ) -> SemanticSearchResponse:
        """Embedding search: documents below ``threshold`` never become candidates."""
        query = request.query.strip()
        if not query:
            raise SearchValidationError("Semantic search requires a non-empty query")

        started = time.perf_counter()
        documents = await self._source.fetch_all()
        query_vector, method = await self._vectorizer.embed_query(query)

        # Filtering is pure, so narrowing before vectorizing saves embedding calls
        # without changing the result.
        eligible = apply_filters(documents, request.filters, key=lambda d: d, now=now)
        cache_size = self._vectorizer.cache.max_size
        if len(eligible) > cache_size:
            logger.warning(
                "Semantic scan exceeds the embedding cache; document vectors will be recomputed every request",
                extra={"eligible": len(eligible), "cache_size": cache_size, "method": method.value},
            )
        similarities = await self._similarities(eligible, query_vector, method)

        admitted: list[SemanticMatch] = []
        for document, similarity in zip(eligible, similarities):
            if similarity is None or similarity < request.threshold:
                continue
            admitted.append(SemanticMatch(item=document, score=1.0 - similarity, similarity=similarity))

        ranked = sorted(admitted, key=lambda m: m.similarity, reverse=True)

        logger.info(
            "Semantic search completed",
            extra={
                "query_length": len(query),
                "documents": len(documents),
                "eligible": len(eligible),
                "total": len(ranked),
                "method": method.value,
                "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return SemanticSearchResponse(
            results=ranked[: request.limit],
            total=len(ranked),
            query=request.query,
            method=method,
        )

    async def suggest(self, partial: str) -> list[Suggestion]:
        """Query-box autocomplete over known tags, types and date presets."""
        if not partial.strip():
            return []
        taxonomy = await build_bookmark_taxonomy(source=self._source)
        return autocomplete(partial, taxonomy.tag_vocab)

    async def _similarities(
        self,
        documents: Sequence[SearchableDocument],
        query_vector: np.ndarray,
        method: EmbeddingMethod,
    ) -> list[float | None]:
        """Vectorize documents concurrently; a failed document yields None."""
        semaphore = asyncio.Semaphore(self._embedding_concurrency)

        async def _one(document: SearchableDocument) -> float | None:
            text = document.searchable_text()
            if not text:
                return None
            async with semaphore:
                try:
                    vector = await self._vectorizer.embed_with(method, text)
                except EmbeddingError as err:
                    logger.warning(
                        "Excluding document from semantic results: %s",
                        err,
                        extra={"document_id": document.id, "method": method.value},
                    )
                    return None
            return max(0.0, min(1.0, cosine_similarity(query_vector, vector)))

        return await asyncio.gather(*(_one(d) for d in documents))
