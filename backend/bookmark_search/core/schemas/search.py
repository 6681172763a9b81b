from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from enum import Enum

from pydantic import Field, field_validator, model_validator

from bookmark_search.core.models.base import AppBaseModel, ensure_aware
from bookmark_search.core.models.document import DocumentType, SearchableDocument  # noqa: TCH001


class DatePreset(str, Enum):
    """Named relative windows, each starting at local midnight N days ago."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def days(self) -> int:
        return _PRESET_DAYS[self]

    @property
    def label(self) -> str:
        return _PRESET_LABELS[self]


_PRESET_DAYS = {
    DatePreset.TODAY: 0,
    DatePreset.YESTERDAY: 1,
    DatePreset.WEEK: 7,
    DatePreset.MONTH: 30,
    DatePreset.QUARTER: 90,
    DatePreset.YEAR: 365,
}

_PRESET_LABELS = {
    DatePreset.TODAY: "Today",
    DatePreset.YESTERDAY: "Yesterday",
    DatePreset.WEEK: "Last 7 days",
    DatePreset.MONTH: "Last 30 days",
    DatePreset.QUARTER: "Last 90 days",
    DatePreset.YEAR: "Last year",
}


class DateRange(AppBaseModel):
    """Explicit creation window, half-open: ``from <= created_at < to``."""

    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None

    @field_validator("from_", "to")
    @classmethod
    def validate_bound(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None

    @model_validator(mode="after")
    def validate_order(self) -> DateRange:
        if self.from_ is not None and self.to is not None and self.from_ > self.to:
            raise ValueError("date_range.from must not be after date_range.to")
        return self


class SearchFilter(AppBaseModel):
    """Request-scoped criteria; empty dimensions impose no constraint.

    Dimensions are AND-ed together, values within one dimension are OR-ed.
    """

    types: list[DocumentType] = Field(default_factory=list)
    collections: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    date_preset: DatePreset | None = None
    date_range: DateRange | None = None

    @field_validator("tags", "sources")
    @classmethod
    def normalize_values(cls, v: list[str]) -> list[str]:
        normalized: list[str] = []
        for value in v:
            cleaned = value.strip().lower()
            if cleaned and cleaned not in normalized:
                normalized.append(cleaned)
        return normalized

    @model_validator(mode="after")
    def validate_single_date_constraint(self) -> SearchFilter:
        if self.date_preset is not None and self.date_range is not None:
            raise ValueError("Provide either date_preset or date_range, not both")
        return self

    def is_empty(self) -> bool:
        return not (
            self.types
            or self.collections
            or self.tags
            or self.sources
            or self.date_preset is not None
            or self.date_range is not None
        )


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    DATE = "date"
    TITLE = "title"


class FieldMatch(AppBaseModel):
    """Matched character spans (inclusive ``[start, end]``) inside one field."""

    field: str
    indices: list[tuple[int, int]] = Field(default_factory=list)


class MatchCandidate(AppBaseModel):
    """A document with its lexical dissimilarity (0 is best, 0 also means no query)."""

    item: SearchableDocument
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    matches: list[FieldMatch] = Field(default_factory=list)


class SearchResponse(AppBaseModel):
    results: list[MatchCandidate]
    total: int
    page: int
    limit: int
    total_pages: int
    suggestions: list[str] = Field(default_factory=list)
    query: str
    filters: SearchFilter
    sort_by: SortKey


class EmbeddingMethod(str, Enum):
    """Which vectorizer produced the vectors of a semantic search call."""

    PROVIDER = "openai"
    LOCAL = "local"


class SemanticMatch(AppBaseModel):
    """A document with its cosine similarity; ``score`` is ``1 - similarity``."""

    item: SearchableDocument
    score: float
    similarity: float


class SemanticSearchResponse(AppBaseModel):
    results: list[SemanticMatch]
    total: int
    query: str
    method: EmbeddingMethod


class SuggestionKind(str, Enum):
    TAG = "tag"
    TYPE = "type"
    DATE = "date"


class Suggestion(AppBaseModel):
    type: SuggestionKind
    value: str
    label: str
