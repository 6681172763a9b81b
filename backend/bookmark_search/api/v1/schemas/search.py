from __future__ import annotations

from pydantic import Field, field_validator

from bookmark_search.config import settings
from bookmark_search.core.models.base import AppBaseModel
from bookmark_search.core.schemas.search import SearchFilter, SortKey


def _clamp_limit(v: int) -> int:
    return max(1, min(settings.max_limit, v))


class SearchRequest(AppBaseModel):
    query: str = Field(default="", description="Keyword query, may carry inline filters such as #tag or type:note")
    filters: SearchFilter = Field(default_factory=SearchFilter)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=settings.default_page_size)
    sort_by: SortKey = SortKey.RELEVANCE

    @field_validator("query", mode="before")
    @classmethod
    def coerce_query(cls, v: str | None) -> str:
        return v or ""

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        return _clamp_limit(v)


class SemanticSearchRequest(AppBaseModel):
    query: str = Field(..., description="Natural language query")
    filters: SearchFilter = Field(default_factory=SearchFilter)
    limit: int = Field(default=settings.default_page_size)
    threshold: float = Field(default=settings.semantic_threshold, ge=0, le=1, description="Similarity floor")

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be empty")
        return v

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        return _clamp_limit(v)
