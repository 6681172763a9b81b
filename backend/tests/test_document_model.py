from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from bookmark_search.core.models.document import DocumentType, SearchableDocument, classify_document


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (None, DocumentType.NOTE),
        ("   ", DocumentType.NOTE),
        ("https://www.youtube.com/watch?v=abc", DocumentType.VIDEO),
        ("https://youtu.be/abc", DocumentType.VIDEO),
        ("https://twitter.com/user/status/1", DocumentType.SOCIAL_POST),
        ("https://x.com/user/status/1", DocumentType.SOCIAL_POST),
        ("https://netflix.com/title/1", DocumentType.LINK),
        ("https://example.com/article", DocumentType.LINK),
    ],
)
def test_classify_document(url, expected):
    assert classify_document(url) is expected


def test_type_is_derived_from_url():
    doc = SearchableDocument(id="1", url="https://youtu.be/abc")

    assert doc.type is DocumentType.VIDEO


def test_explicit_type_is_kept():
    doc = SearchableDocument(id="1", url="https://example.com", type=DocumentType.NOTE)

    assert doc.type is DocumentType.NOTE


def test_tags_are_normalized():
    doc = SearchableDocument(id="1", tags=[" React ", "react", "UI", ""])

    assert doc.tags == ["react", "ui"]


def test_missing_text_fields_become_empty():
    doc = SearchableDocument(id="1", title=None, notes=None, description=None)

    assert (doc.title, doc.notes, doc.description) == ("", "", "")
    assert doc.source == "app"


def test_naive_created_at_is_treated_as_utc():
    doc = SearchableDocument(id="1", created_at=datetime(2024, 1, 1, 12, 0))

    assert doc.created_at == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def test_id_is_required():
    with pytest.raises(ValidationError):
        SearchableDocument(id="")


def test_documents_are_immutable():
    doc = SearchableDocument(id="1", title="Original")

    with pytest.raises(ValidationError):
        doc.title = "Changed"


def test_searchable_text_joins_populated_fields():
    doc = SearchableDocument(
        id="1",
        title="Rust",
        description="Ownership",
        tags=["rust", "systems"],
        ocr_text="slide text",
    )

    assert doc.searchable_text() == "Rust\n\nOwnership\n\nrust systems\n\nslide text"
