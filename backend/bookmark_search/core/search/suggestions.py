from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from bookmark_search.core.models.document import DocumentType
from bookmark_search.core.schemas.search import DatePreset, Suggestion, SuggestionKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bookmark_search.core.models.document import SearchableDocument

MAX_RESULT_SUGGESTIONS = 5
MAX_AUTOCOMPLETE_SUGGESTIONS = 10

TYPE_LABELS: dict[DocumentType, str] = {
    DocumentType.NOTE: "Notes",
    DocumentType.LINK: "Links",
    DocumentType.SOCIAL_POST: "Tweets",
    DocumentType.VIDEO: "YouTube",
}

AUTOCOMPLETE_DATE_PRESETS = (DatePreset.TODAY, DatePreset.WEEK, DatePreset.MONTH, DatePreset.YEAR)


def tag_suggestions(
    documents: Iterable[SearchableDocument],
    *,
    exclude: Iterable[str] = (),
    limit: int = MAX_RESULT_SUGGESTIONS,
) -> list[str]:
    """Most frequent tags across ``documents`` formatted as ``#tag``.

    Ties keep first-seen order (Counter preserves insertion order and the sort
    is stable).
    """
    skipped = {t.lower() for t in exclude}
    counts: Counter[str] = Counter()
    for document in documents:
        for tag in document.tags:
            if tag not in skipped:
                counts[tag] += 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [f"#{tag}" for tag, _ in ranked[:limit]]


def autocomplete(
    partial: str,
    known_tags: Iterable[str],
    *,
    limit: int = MAX_AUTOCOMPLETE_SUGGESTIONS,
) -> list[Suggestion]:
    """Match partial query-box input against tags, types and date presets.

    Tags come first, then types, then dates; matching is a case-insensitive
    substring test against the value or its label.
    """
    needle = partial.strip().lower().lstrip("#")
    if not needle:
        return []

    suggestions: list[Suggestion] = []
    seen_tags: set[str] = set()
    for tag in known_tags:
        normalized = tag.strip().lower()
        if normalized and normalized not in seen_tags and needle in normalized:
            seen_tags.add(normalized)
            suggestions.append(Suggestion(type=SuggestionKind.TAG, value=normalized, label=f"#{normalized}"))

    for doc_type, label in TYPE_LABELS.items():
        if needle in doc_type.value or needle in label.lower():
            suggestions.append(Suggestion(type=SuggestionKind.TYPE, value=doc_type.value, label=label))

    for preset in AUTOCOMPLETE_DATE_PRESETS:
        if needle in preset.value or needle in preset.label.lower():
            suggestions.append(Suggestion(type=SuggestionKind.DATE, value=preset.value, label=preset.label))

    return suggestions[:limit]
