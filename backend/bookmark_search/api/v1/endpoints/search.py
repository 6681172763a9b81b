from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bookmark_search.api.v1.schemas.search import SearchRequest, SemanticSearchRequest
from bookmark_search.core.repositories.document_source import DocumentSourceError
from bookmark_search.core.schemas.search import SearchResponse, SemanticSearchResponse, Suggestion
from bookmark_search.core.services.search_service import SearchService, SearchValidationError
from bookmark_search.dependencies import get_search_service
from bookmark_search.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

_SOURCE_UNAVAILABLE = "Bookmark store is unavailable. Please try again later."


@router.post("", response_model=SearchResponse)
async def search_bookmarks(
    payload: SearchRequest,
    service: SearchService = Depends(get_search_service),
):
    """Fuzzy lexical search with filters, sorting and pagination.

    An empty query lists every bookmark (subject to filters) in source order.
    """
    try:
        return await service.search(payload)
    except SearchValidationError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except DocumentSourceError as err:
        logger.error("Lexical search failed: %s", err)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_SOURCE_UNAVAILABLE) from err


@router.post("/semantic", response_model=SemanticSearchResponse)
async def semantic_search_bookmarks(
    payload: SemanticSearchRequest,
    service: SearchService = Depends(get_search_service),
):
    """Embedding similarity search.

    `method` reports whether the OpenAI provider or the local fallback
    vectorizer produced the vectors for this call.
    """
    try:
        return await service.semantic_search(payload)
    except SearchValidationError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except DocumentSourceError as err:
        logger.error("Semantic search failed: %s", err)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_SOURCE_UNAVAILABLE) from err


@router.get("/suggestions", response_model=list[Suggestion])
async def search_suggestions(
    q: str = Query(default="", max_length=200, description="Partial query-box input"),
    service: SearchService = Depends(get_search_service),
):
    """Autocomplete hints (tags, types, date presets) for the query box."""
    return await service.suggest(q)
