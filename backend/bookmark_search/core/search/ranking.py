from __future__ import annotations

import math
import unicodedata
from typing import TYPE_CHECKING, TypeVar

from bookmark_search.core.schemas.search import SortKey

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from bookmark_search.core.models.document import SearchableDocument

T = TypeVar("T")


def title_sort_key(title: str) -> str:
    """Case- and accent-insensitive collation key for titles."""
    decomposed = unicodedata.normalize("NFKD", title.strip())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def rank(
    candidates: Sequence[T],
    sort_by: SortKey = SortKey.RELEVANCE,
    *,
    key: Callable[[T], SearchableDocument] = lambda c: c.item,
) -> list[T]:
    """Order candidates; every ordering is stable.

    ``relevance`` keeps the order candidate generation produced (ascending
    dissimilarity for lexical, descending similarity for semantic).
    """
    ordered = list(candidates)
    if sort_by is SortKey.DATE:
        ordered.sort(key=lambda c: key(c).created_at, reverse=True)
    elif sort_by is SortKey.TITLE:
        ordered.sort(key=lambda c: title_sort_key(key(c).title))
    return ordered


def total_pages(total: int, limit: int) -> int:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def paginate(items: Sequence[T], page: int, limit: int) -> list[T]:
    """Slice a 1-based page; pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")
    start = (page - 1) * limit
    return list(items[start:start + limit])
