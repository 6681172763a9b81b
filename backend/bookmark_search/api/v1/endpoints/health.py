from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from bookmark_search.config import settings
from bookmark_search.core.repositories.document_source import DocumentSource
from bookmark_search.core.search.lexical_index import LexicalIndexManager
from bookmark_search.core.services.embedding_service import FallbackVectorizer
from bookmark_search.dependencies import get_document_source, get_index_manager, get_vectorizer

router = APIRouter()


@router.get("/")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "service": "bookmark-search-api",
            "version": "0.1.0"
        }
    )


@router.get("/ready")
async def readiness_check(
    source: DocumentSource = Depends(get_document_source),
    index: LexicalIndexManager = Depends(get_index_manager),
    vectorizer: FallbackVectorizer = Depends(get_vectorizer),
):
    """Readiness check endpoint."""
    source_status = "connected"
    try:
        await source.ping()
    except Exception as e:
        source_status = f"error: {str(e)}"

    current = index.current
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "document_source": source_status,
            "embedding_provider": "openai" if vectorizer.provider_configured else "local-fallback",
            "embedding_cache_entries": len(vectorizer.cache),
            "lexical_index_documents": len(current) if current is not None else 0,
            "api_prefix": settings.api_prefix
        }
    )
