from __future__ import annotations

from fastapi import APIRouter, Depends

from bookmark_search.core.models.document import DocumentType
from bookmark_search.core.repositories.document_source import DocumentSource
from bookmark_search.core.schemas.taxonomy import BookmarkTaxonomy
from bookmark_search.core.services.taxonomy_service import build_bookmark_taxonomy
from bookmark_search.dependencies import get_document_source

router = APIRouter()


@router.get("/taxonomy", response_model=BookmarkTaxonomy)
async def get_taxonomy(source: DocumentSource = Depends(get_document_source)):
    """Return the tag vocabulary of the collection, most frequent first."""
    return await build_bookmark_taxonomy(source=source)


@router.get("/document-types", response_model=list[str])
async def list_document_types() -> list[str]:
    """Return all document types for client-side filtering.

    Enum values are serialized to their string representation per Pydantic/JSON rules.
    """
    return [t.value for t in DocumentType]
