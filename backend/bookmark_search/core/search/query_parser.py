"""Inline syntax for the lexical query box.

Filter tokens (case-insensitive): ``#tag`` and ``tag:name``, ``type:note``,
``source:extension``, ``date:week`` (any preset), ``date:>2024-01-01``,
``date:<2024-01-01`` and ``date:2024-01-01`` (that whole day, local time).

Text constraints, checked as substrings of the bookmark's text:
``"exact phrase"`` must appear, ``-word`` and ``-"some phrase"`` must not,
``cats || dogs`` needs at least one alternative, and ``site:github`` must
appear in the URL.

Plain words and exact phrases form the keyword query handed to the lexical
index.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING

from bookmark_search.core.models.document import DocumentType
from bookmark_search.core.schemas.search import DatePreset, DateRange, SearchFilter

if TYPE_CHECKING:
    from bookmark_search.core.models.document import SearchableDocument

TYPE_ALIASES: dict[str, DocumentType] = {
    "note": DocumentType.NOTE,
    "notes": DocumentType.NOTE,
    "snippet": DocumentType.NOTE,
    "link": DocumentType.LINK,
    "links": DocumentType.LINK,
    "article": DocumentType.LINK,
    "website": DocumentType.LINK,
    "tweet": DocumentType.SOCIAL_POST,
    "tweets": DocumentType.SOCIAL_POST,
    "post": DocumentType.SOCIAL_POST,
    "social": DocumentType.SOCIAL_POST,
    "youtube": DocumentType.VIDEO,
    "video": DocumentType.VIDEO,
    "videos": DocumentType.VIDEO,
}

_EXCLUDED_PHRASE_RE = re.compile(r'(?<!\S)-"([^"]+)"')
_PHRASE_RE = re.compile(r'"([^"]+)"')
_OR_GROUP_RE = re.compile(r"\S+(?:\s*\|\|\s*\S+)+")
_TAG_RE = re.compile(r"(?:(?<=\s)|^)(?:#|tag:)([\w-]+)", re.IGNORECASE)
_TYPE_RE = re.compile(r"\btype:(\w+)", re.IGNORECASE)
_SOURCE_RE = re.compile(r"\bsource:([\w-]+)", re.IGNORECASE)
_SITE_RE = re.compile(r"\bsite:(\S+)", re.IGNORECASE)
_DATE_RE = re.compile(r"\bdate:([<>]?)(\d{4}-\d{2}-\d{2}|\w+)", re.IGNORECASE)
# Only a leading hyphen excludes; "state-of-the-art" stays a keyword.
_EXCLUDED_TERM_RE = re.compile(r"(?<!\S)-(\S+)")


def _append_unique(values: list, value) -> None:
    if value and value not in values:
        values.append(value)


def _haystack(document: SearchableDocument) -> str:
    parts = [
        document.title,
        document.notes,
        document.description,
        document.url or "",
        " ".join(document.tags),
        document.ocr_text or "",
    ]
    return " ".join(parts).lower()


@dataclass
class ParsedQuery:
    keywords: str = ""
    types: list[DocumentType] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    date_preset: DatePreset | None = None
    date_range: DateRange | None = None
    phrases: list[str] = field(default_factory=list)
    excluded_terms: list[str] = field(default_factory=list)
    excluded_phrases: list[str] = field(default_factory=list)
    or_groups: list[list[str]] = field(default_factory=list)
    sites: list[str] = field(default_factory=list)

    def to_filter(self) -> SearchFilter:
        return SearchFilter(
            types=self.types,
            tags=self.tags,
            sources=self.sources,
            date_preset=self.date_preset,
            date_range=self.date_range,
        )

    @property
    def has_text_constraints(self) -> bool:
        return bool(self.phrases or self.excluded_terms or self.excluded_phrases or self.or_groups or self.sites)

    def admits(self, document: SearchableDocument) -> bool:
        """True when ``document`` satisfies every text constraint of the query."""
        if not self.has_text_constraints:
            return True
        text = _haystack(document)
        if any(term in text for term in self.excluded_terms):
            return False
        if any(phrase in text for phrase in self.excluded_phrases):
            return False
        if not all(phrase in text for phrase in self.phrases):
            return False
        if not all(any(option in text for option in group) for group in self.or_groups):
            return False
        if self.sites:
            url = (document.url or "").lower()
            if not any(site in url for site in self.sites):
                return False
        return True


def _local_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min).astimezone()


def _parse_date_token(operator: str, value: str) -> tuple[DatePreset | None, DateRange | None]:
    if not operator:
        try:
            return DatePreset(value.lower()), None
        except ValueError:
            pass
    try:
        day = date.fromisoformat(value)
    except ValueError:
        return None, None

    if operator == ">":
        return None, DateRange(**{"from": _local_midnight(day)})
    if operator == "<":
        return None, DateRange(to=_local_midnight(day))
    return None, DateRange(**{"from": _local_midnight(day), "to": _local_midnight(day + timedelta(days=1))})


def parse_query(raw: str) -> ParsedQuery:
    """Split ``raw`` into inline filters, text constraints and plain keywords.

    Quoted phrases are consumed first so their contents are never read as
    filter tokens. Unknown ``type:`` values and unparsable dates are dropped
    rather than treated as keywords.
    """
    parsed = ParsedQuery()
    if not raw:
        return parsed

    remaining = raw

    for match in _EXCLUDED_PHRASE_RE.finditer(remaining):
        _append_unique(parsed.excluded_phrases, match.group(1).strip().lower())
    remaining = _EXCLUDED_PHRASE_RE.sub(" ", remaining)

    for match in _PHRASE_RE.finditer(remaining):
        _append_unique(parsed.phrases, match.group(1).strip().lower())
    remaining = _PHRASE_RE.sub(" ", remaining)

    for match in _OR_GROUP_RE.finditer(remaining):
        options = [option.strip().lower() for option in match.group().split("||")]
        parsed.or_groups.append([option for option in options if option])
    remaining = _OR_GROUP_RE.sub(" ", remaining)

    for match in _TAG_RE.finditer(remaining):
        _append_unique(parsed.tags, match.group(1).lower())
    remaining = _TAG_RE.sub(" ", remaining)

    for match in _TYPE_RE.finditer(remaining):
        _append_unique(parsed.types, TYPE_ALIASES.get(match.group(1).lower()))
    remaining = _TYPE_RE.sub(" ", remaining)

    for match in _SOURCE_RE.finditer(remaining):
        _append_unique(parsed.sources, match.group(1).lower())
    remaining = _SOURCE_RE.sub(" ", remaining)

    for match in _SITE_RE.finditer(remaining):
        _append_unique(parsed.sites, match.group(1).lower())
    remaining = _SITE_RE.sub(" ", remaining)

    date_match = _DATE_RE.search(remaining)
    if date_match:
        parsed.date_preset, parsed.date_range = _parse_date_token(date_match.group(1), date_match.group(2))
    remaining = _DATE_RE.sub(" ", remaining)

    for match in _EXCLUDED_TERM_RE.finditer(remaining):
        _append_unique(parsed.excluded_terms, match.group(1).lower())
    remaining = _EXCLUDED_TERM_RE.sub(" ", remaining)

    parsed.keywords = " ".join([*remaining.split(), *parsed.phrases])
    return parsed
