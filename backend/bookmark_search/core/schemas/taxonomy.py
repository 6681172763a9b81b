from __future__ import annotations

from pydantic import Field

from bookmark_search.core.models.base import AppBaseModel


class BookmarkTaxonomy(AppBaseModel):
    """Aggregated vocabulary across the bookmark collection.

    - tag_vocab: unique, normalized tags ordered by descending frequency
    """

    tag_vocab: list[str] = Field(default_factory=list)
