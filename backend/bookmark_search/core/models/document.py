from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import Enum

from pydantic import ConfigDict, Field, field_validator, model_validator

from .base import AppBaseModel, ensure_aware


class DocumentType(str, Enum):
    """Derived classification of a saved item.

    Values double as the public filter/autocomplete vocabulary.
    """

    NOTE = "note"
    LINK = "link"
    SOCIAL_POST = "tweet"
    VIDEO = "youtube"


_VIDEO_HOSTS = re.compile(
    r"(youtube\.com|youtu\.be|vimeo\.com|dailymotion\.com|twitch\.tv|tiktok\.com)",
    re.IGNORECASE,
)
_SOCIAL_HOSTS = re.compile(
    r"(twitter\.com|(^|[/.])x\.com|threads\.net|bsky\.app|mastodon\.|instagram\.com|reddit\.com)",
    re.IGNORECASE,
)


def classify_document(url: str | None) -> DocumentType:
    """Classify an item from its URL; items without a URL are notes."""
    cleaned = (url or "").strip()
    if not cleaned:
        return DocumentType.NOTE
    if _VIDEO_HOSTS.search(cleaned):
        return DocumentType.VIDEO
    if _SOCIAL_HOSTS.search(cleaned):
        return DocumentType.SOCIAL_POST
    return DocumentType.LINK


class SearchableDocument(AppBaseModel):
    """One unit of search, owned by the document source and never mutated here."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable, opaque identifier")
    title: str = ""
    notes: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    ocr_text: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    collection_id: str | None = None
    source: str = "app"
    url: str | None = None
    type: DocumentType | None = None

    @field_validator("title", "notes", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: str | None) -> str:
        return v or ""

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Lowercase and de-duplicate tags, keeping first-seen order."""
        if not v:
            return []
        normalized: list[str] = []
        for tag in v:
            if isinstance(tag, str) and tag.strip():
                normalized_tag = tag.strip().lower()
                if normalized_tag not in normalized:
                    normalized.append(normalized_tag)
        return normalized

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @field_validator("source", mode="before")
    @classmethod
    def normalize_source(cls, v: str | None) -> str:
        return (v or "app").strip().lower() or "app"

    @model_validator(mode="before")
    @classmethod
    def derive_type(cls, data):
        if isinstance(data, dict) and not data.get("type"):
            data = {**data, "type": classify_document(data.get("url"))}
        return data

    def searchable_text(self) -> str:
        """Concatenate the fields used for embeddings, with a stable delimiter."""
        parts = [self.title.strip(), self.description.strip(), self.notes.strip()]
        if self.tags:
            parts.append(" ".join(self.tags))
        if self.ocr_text:
            parts.append(self.ocr_text.strip())
        return "\n\n".join(p for p in parts if p)
