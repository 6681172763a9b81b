from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from bookmark_search.config import settings
from bookmark_search.core.repositories.document_source import DocumentSource
from bookmark_search.core.repositories.implementations.supabase.document_source import (
    SupabaseDocumentSource,
)
from bookmark_search.core.search.lexical_index import LexicalIndexManager
from bookmark_search.core.services.embedding_service import (
    EmbeddingCache,
    FallbackVectorizer,
    LocalVectorizer,
    ProviderVectorizer,
)
from bookmark_search.core.services.search_service import SearchService
from bookmark_search.db.base import get_supabase_client
from bookmark_search.utils.logging import get_logger
from bookmark_search.utils.openai_client import get_openai_client

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_document_source() -> DocumentSource:
    """Process-wide document source reading the bookmarks table."""
    return SupabaseDocumentSource(
        get_supabase_client(),
        table=settings.bookmarks_table,
        page_size=settings.bookmarks_page_size,
    )


@lru_cache(maxsize=1)
def get_index_manager() -> LexicalIndexManager:
    """Process-wide lexical index; rebuilt lazily when the collection changes."""
    return LexicalIndexManager(threshold=settings.lexical_threshold)


@lru_cache(maxsize=1)
def get_vectorizer() -> FallbackVectorizer:
    """Process-wide vectorizer with its bounded embedding cache."""
    client = get_openai_client()
    provider = None
    if client is not None:
        provider = ProviderVectorizer(
            client,
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            timeout=settings.embedding_timeout_seconds,
            max_input_chars=settings.embedding_max_input_chars,
        )
    logger.info("Vectorizer configured", extra={"provider": provider is not None})
    return FallbackVectorizer(
        LocalVectorizer(settings.embedding_dimensions),
        provider,
        EmbeddingCache(
            max_size=settings.embedding_cache_size,
            key_chars=settings.embedding_cache_key_chars,
        ),
    )


def get_search_service(
    source: DocumentSource = Depends(get_document_source),
    index: LexicalIndexManager = Depends(get_index_manager),
    vectorizer: FallbackVectorizer = Depends(get_vectorizer),
) -> SearchService:
    """Get a request-scoped search service over the shared index and cache."""
    return SearchService(
        source,
        index,
        vectorizer,
        lexical_threshold=settings.lexical_threshold,
        min_query_length=settings.lexical_min_query_length,
        embedding_concurrency=settings.embedding_concurrency,
    )
