from __future__ import annotations

from conftest import make_doc

from bookmark_search.core.schemas.search import SuggestionKind
from bookmark_search.core.search.suggestions import autocomplete, tag_suggestions


def test_most_frequent_tag_comes_first():
    docs = [make_doc(str(i), tags=["react"]) for i in range(6)]
    docs += [make_doc(str(i), tags=["ui"]) for i in range(6, 8)]

    assert tag_suggestions(docs) == ["#react", "#ui"]


def test_ties_keep_first_seen_order():
    docs = [make_doc("1", tags=["beta"]), make_doc("2", tags=["alpha"]), make_doc("3", tags=["beta", "alpha"])]

    assert tag_suggestions(docs) == ["#beta", "#alpha"]


def test_at_most_five_tags():
    docs = [make_doc(str(i), tags=[f"tag{i}"]) for i in range(8)]

    assert len(tag_suggestions(docs)) == 5


def test_excluded_tags_are_skipped():
    docs = [make_doc("1", tags=["react", "hooks"]), make_doc("2", tags=["react"])]

    assert tag_suggestions(docs, exclude=["React"]) == ["#hooks"]


def test_no_tags_means_no_suggestions():
    assert tag_suggestions([make_doc("1", "Untagged")]) == []


def test_autocomplete_lists_tags_before_types_and_dates():
    suggestions = autocomplete("re", ["react", "redux", "python"])

    assert [(s.type, s.value) for s in suggestions] == [
        (SuggestionKind.TAG, "react"),
        (SuggestionKind.TAG, "redux"),
    ]
    assert suggestions[0].label == "#react"


def test_autocomplete_matches_type_labels():
    suggestions = autocomplete("no", [])

    assert [(s.type, s.value, s.label) for s in suggestions] == [(SuggestionKind.TYPE, "note", "Notes")]


def test_autocomplete_matches_date_presets():
    suggestions = autocomplete("days", ["holidays"])

    assert [(s.type, s.value) for s in suggestions] == [
        (SuggestionKind.TAG, "holidays"),
        (SuggestionKind.DATE, "week"),
        (SuggestionKind.DATE, "month"),
    ]


def test_autocomplete_strips_hash_and_caps_results():
    tags = [f"react{i}" for i in range(15)]

    suggestions = autocomplete("#React", tags)

    assert len(suggestions) == 10
    assert all(s.type is SuggestionKind.TAG for s in suggestions)


def test_blank_input_yields_nothing():
    assert autocomplete("   ", ["react"]) == []
    assert autocomplete("#", ["react"]) == []
