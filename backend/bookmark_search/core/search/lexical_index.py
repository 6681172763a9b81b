"""Approximate multi-field lexical index over the bookmark collection.

The index keeps a vocabulary of every distinct lower-cased word with postings
``(document, field, offset)``. A query token is compared against each distinct
word once: a token contained in a word scores 0 (match anywhere in the field),
otherwise the dissimilarity is ``1 - SequenceMatcher.ratio()``, accepted when it
is within the threshold.

Per document, each field gets the mean over query tokens of its best word
score; a field matches when that mean is within the threshold. Each matched
field has a quality ``weight * (1 - score)``. The best quality dominates and the
other matched fields add ``COVERAGE_WEIGHT`` of theirs, so one strong match in a
heavy field outranks matches spread across light fields. The candidate score
is ``1 - relevance``.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import TYPE_CHECKING

from bookmark_search.core.schemas.search import FieldMatch, MatchCandidate
from bookmark_search.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bookmark_search.core.models.document import SearchableDocument

logger = get_logger(__name__)

FIELD_WEIGHTS: dict[str, float] = {
    "title": 0.40,
    "notes": 0.25,
    "description": 0.15,
    "tags": 0.15,
    "ocr_text": 0.05,
}

DEFAULT_THRESHOLD = 0.4
COVERAGE_WEIGHT = 0.25
MIN_QUERY_LENGTH = 2

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def field_text(document: SearchableDocument, name: str) -> str:
    if name == "tags":
        return " ".join(document.tags)
    return getattr(document, name) or ""


def token_dissimilarity(
    token: str,
    word: str,
    threshold: float,
    matcher: SequenceMatcher | None = None,
) -> float | None:
    """Return the dissimilarity of ``token`` against ``word``, or None above ``threshold``.

    Pass a matcher whose second sequence is already ``token`` to reuse its
    cached analysis across many words.
    """
    if token in word:
        return 0.0
    cutoff = 1.0 - threshold
    if matcher is None:
        matcher = SequenceMatcher(None, word, token, autojunk=False)
    else:
        matcher.set_seq1(word)
    if matcher.real_quick_ratio() < cutoff or matcher.quick_ratio() < cutoff:
        return None
    score = 1.0 - matcher.ratio()
    return score if score <= threshold else None


def fingerprint(documents: Sequence[SearchableDocument]) -> tuple[int, int, int]:
    """Summary of a collection that changes whenever any document does.

    Count, total searchable length and an XOR of per-document content hashes
    covering every indexed field plus the attributes filters read. Two
    different collections can still collide on the hash, in which case the
    index is not rebuilt until the next change.
    """
    total_length = 0
    mixed = 0
    for doc in documents:
        total_length += sum(len(field_text(doc, name)) for name in FIELD_WEIGHTS)
        mixed ^= hash((
            doc.id,
            doc.title,
            doc.notes,
            doc.description,
            tuple(doc.tags),
            doc.ocr_text,
            doc.created_at,
            doc.collection_id,
            doc.source,
            doc.url,
            doc.type,
        ))
    return len(documents), total_length, mixed


@dataclass(frozen=True)
class _Posting:
    doc: int
    field: str
    start: int


@dataclass
class _FieldScores:
    # field -> per-token best score
    best: dict[str, list[float]] = field(default_factory=dict)
    # field -> matched spans
    spans: dict[str, list[tuple[int, int]]] = field(default_factory=dict)


class LexicalIndex:
    """Immutable index built from one snapshot of the collection."""

    def __init__(self, documents: Sequence[SearchableDocument], *, threshold: float = DEFAULT_THRESHOLD) -> None:
        self.documents: tuple[SearchableDocument, ...] = tuple(documents)
        self.threshold = threshold
        self.fingerprint = fingerprint(self.documents)
        self._texts: list[dict[str, str]] = []
        self._vocabulary: dict[str, list[_Posting]] = {}
        self._build()

    def _build(self) -> None:
        for idx, doc in enumerate(self.documents):
            texts: dict[str, str] = {}
            for name in FIELD_WEIGHTS:
                text = field_text(doc, name).lower()
                texts[name] = text
                for match in _WORD_RE.finditer(text):
                    self._vocabulary.setdefault(match.group(), []).append(
                        _Posting(doc=idx, field=name, start=match.start())
                    )
            self._texts.append(texts)
        logger.debug(
            "Built lexical index",
            extra={"documents": len(self.documents), "vocabulary": len(self._vocabulary)},
        )

    def __len__(self) -> int:
        return len(self.documents)

    def search(self, query: str, *, threshold: float | None = None) -> list[MatchCandidate]:
        """Return matching documents ordered by ascending dissimilarity.

        Ties keep collection order.
        """
        limit = self.threshold if threshold is None else threshold
        phrase = query.strip().lower()
        tokens = _WORD_RE.findall(phrase)
        if not tokens:
            return []

        per_doc: dict[int, _FieldScores] = {}

        for position, token in enumerate(tokens):
            matcher = SequenceMatcher(None, "", token, autojunk=False)
            for word, postings in self._vocabulary.items():
                score = token_dissimilarity(token, word, limit, matcher)
                if score is None:
                    continue
                for posting in postings:
                    scores = per_doc.setdefault(posting.doc, _FieldScores())
                    best = scores.best.setdefault(posting.field, [1.0] * len(tokens))
                    if score < best[position]:
                        best[position] = score
                    scores.spans.setdefault(posting.field, []).append(
                        (posting.start, posting.start + len(word) - 1)
                    )

        # A phrase found verbatim in a field is a perfect match for that field.
        if len(tokens) > 1:
            for idx, texts in enumerate(self._texts):
                for name, text in texts.items():
                    start = text.find(phrase)
                    if start < 0:
                        continue
                    scores = per_doc.setdefault(idx, _FieldScores())
                    scores.best[name] = [0.0] * len(tokens)
                    scores.spans.setdefault(name, []).append((start, start + len(phrase) - 1))

        candidates: list[tuple[float, int, MatchCandidate]] = []
        for idx, scores in per_doc.items():
            qualities: list[float] = []
            matches: list[FieldMatch] = []
            for name, best in scores.best.items():
                field_score = sum(best) / len(best)
                if field_score > limit:
                    continue
                qualities.append(FIELD_WEIGHTS[name] * (1.0 - field_score))
                matches.append(FieldMatch(field=name, indices=sorted(set(scores.spans.get(name, [])))))
            if not matches:
                continue
            best_quality = max(qualities)
            relevance = best_quality + COVERAGE_WEIGHT * (sum(qualities) - best_quality)
            doc_score = round(min(1.0, max(0.0, 1.0 - relevance)), 6)
            candidates.append(
                (doc_score, idx, MatchCandidate(item=self.documents[idx], score=doc_score, matches=matches))
            )

        candidates.sort(key=lambda entry: (entry[0], entry[1]))
        return [candidate for _, _, candidate in candidates]


class LexicalIndexManager:
    """Owns the process-wide index and rebuilds it when the collection changes.

    Rebuilds construct a new index and then swap the single reference under a
    lock, so readers see either the old index or the new one, never a partial
    build. Concurrent callers that observe the same stale fingerprint rebuild
    once; the second one finds the fresh index after acquiring the lock.
    """

    def __init__(self, *, threshold: float = DEFAULT_THRESHOLD) -> None:
        self.threshold = threshold
        self._index: LexicalIndex | None = None
        self._lock = threading.Lock()
        self.rebuild_count = 0

    @property
    def current(self) -> LexicalIndex | None:
        return self._index

    def get_index(self, documents: Sequence[SearchableDocument]) -> LexicalIndex | None:
        """Return an index matching ``documents``, rebuilding if needed.

        Returns None when the build fails; the caller treats that as no lexical
        candidates.
        """
        current_fp = fingerprint(documents)
        index = self._index
        if index is not None and index.fingerprint == current_fp:
            return index

        with self._lock:
            index = self._index
            if index is not None and index.fingerprint == current_fp:
                return index
            try:
                fresh = LexicalIndex(documents, threshold=self.threshold)
            except Exception:
                logger.exception("Lexical index build failed", extra={"documents": len(documents)})
                return None
            self._index = fresh
            self.rebuild_count += 1
            logger.info(
                "Lexical index rebuilt",
                extra={"documents": len(documents), "rebuilds": self.rebuild_count},
            )
            return fresh

    def search(
        self,
        documents: Sequence[SearchableDocument],
        query: str,
        *,
        threshold: float | None = None,
        min_query_length: int = MIN_QUERY_LENGTH,
    ) -> list[MatchCandidate]:
        """Generate lexical candidates for ``query`` over ``documents``.

        Empty or too-short queries are not queries: every document comes back
        with the neutral score 0 in collection order.
        """
        if len(query.strip()) < min_query_length:
            return [MatchCandidate(item=doc, score=0.0) for doc in documents]

        index = self.get_index(documents)
        if index is None:
            return []

        # Hits point at the snapshot the index was built from; hand back this fetch's documents.
        current = {doc.id: doc for doc in documents}
        return [
            MatchCandidate(item=current[hit.item.id], score=hit.score, matches=hit.matches)
            for hit in index.search(query, threshold=threshold)
            if hit.item.id in current
        ]
