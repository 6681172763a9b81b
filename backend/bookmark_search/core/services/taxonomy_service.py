from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from bookmark_search.core.schemas.taxonomy import BookmarkTaxonomy
from bookmark_search.utils.logging import get_logger

if TYPE_CHECKING:
    from bookmark_search.core.repositories.document_source import DocumentSource


logger = get_logger(__name__)


async def build_bookmark_taxonomy(*, source: DocumentSource) -> BookmarkTaxonomy:
    """Aggregate unique tags across the collection.

    Tags are already normalized to lowercase by the document model; the
    vocabulary is ordered by descending frequency, ties alphabetically, so the
    most useful completions come first.
    """
    documents = await source.fetch_all()

    counts: Counter[str] = Counter()
    for document in documents:
        counts.update(document.tags)

    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    logger.debug("Built taxonomy with %d tags from %d documents", len(ordered), len(documents))
    return BookmarkTaxonomy(tag_vocab=[tag for tag, _ in ordered])
