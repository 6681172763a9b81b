"""Pure, order-independent narrowing of candidate lists.

Every date window is half-open: presets cover ``[local midnight - N days, now)``
and explicit ranges cover ``[from, to)``.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bookmark_search.core.models.document import SearchableDocument
    from bookmark_search.core.schemas.search import DatePreset, SearchFilter

T = TypeVar("T")


def local_now() -> datetime:
    return datetime.now().astimezone()


def resolve_date_preset(preset: DatePreset, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the ``[start, end)`` window for a preset relative to ``now``."""
    current = (now or local_now()).astimezone()
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=preset.days), current


def matches_filter(document: SearchableDocument, criteria: SearchFilter, now: datetime | None = None) -> bool:
    """True when ``document`` satisfies every active dimension of ``criteria``."""
    if criteria.types and document.type not in criteria.types:
        return False

    if criteria.collections and document.collection_id not in criteria.collections:
        return False

    if criteria.tags and not any(tag in criteria.tags for tag in document.tags):
        return False

    if criteria.sources and document.source not in criteria.sources:
        return False

    if criteria.date_preset is not None:
        start, end = resolve_date_preset(criteria.date_preset, now)
        if not (start <= document.created_at < end):
            return False

    if criteria.date_range is not None:
        lower, upper = criteria.date_range.from_, criteria.date_range.to
        if lower is not None and document.created_at < lower:
            return False
        if upper is not None and document.created_at >= upper:
            return False

    return True


def apply_filters(
    candidates: Iterable[T],
    criteria: SearchFilter | None,
    *,
    key: Callable[[T], SearchableDocument] = lambda c: c.item,
    now: datetime | None = None,
) -> list[T]:
    """Keep the candidates whose document (as returned by ``key``) matches ``criteria``.

    ``now`` is resolved once so every candidate is judged against the same
    window.
    """
    items = list(candidates)
    if criteria is None or criteria.is_empty():
        return items
    current = now or local_now()
    return [c for c in items if matches_filter(key(c), criteria, current)]
