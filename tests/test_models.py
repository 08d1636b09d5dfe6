"""Tests for models.py -- metadata validation, events, search results."""

import pytest
from pydantic import ValidationError

from book_manager.models import (
    ACTIONABLE_KINDS,
    FILENAME_TEMPLATE,
    BookMetadata,
    EventKind,
    FsEvent,
    SearchQuery,
    SearchResult,
)


class TestBookMetadata:
    def test_valid(self):
        meta = BookMetadata(title="Dune", author="Frank Herbert", year="1965")
        assert meta.title == "Dune"
        assert meta.author == "Frank Herbert"
        assert meta.year == "1965"

    def test_strips_whitespace(self):
        meta = BookMetadata(title="  Dune ", author="Frank Herbert", year="1965")
        assert meta.title == "Dune"

    @pytest.mark.parametrize("field", ["title", "author", "year"])
    def test_missing_field_rejected(self, field):
        data = {"title": "Dune", "author": "Frank Herbert", "year": "1965"}
        del data[field]
        with pytest.raises(ValidationError):
            BookMetadata.model_validate(data)

    @pytest.mark.parametrize("field", ["title", "author", "year"])
    def test_empty_field_rejected(self, field):
        data = {"title": "Dune", "author": "Frank Herbert", "year": "1965"}
        data[field] = "   "
        with pytest.raises(ValidationError):
            BookMetadata.model_validate(data)

    def test_numeric_year_rejected(self):
        with pytest.raises(ValidationError):
            BookMetadata.model_validate(
                {"title": "Dune", "author": "Frank Herbert", "year": 1965}
            )

    def test_extra_keys_rejected(self):
        with pytest.raises(ValidationError):
            BookMetadata.model_validate(
                {"title": "Dune", "author": "Frank Herbert", "year": "1965", "isbn": "x"}
            )

    def test_frozen(self):
        meta = BookMetadata(title="Dune", author="Frank Herbert", year="1965")
        with pytest.raises(ValidationError):
            meta.title = "Other"

    def test_schema_lists_all_fields_as_required(self):
        schema = BookMetadata.model_json_schema()
        assert set(schema["required"]) == {"title", "author", "year"}
        assert schema["properties"]["year"]["type"] == "string"


class TestSearchQuery:
    def test_schema_has_query(self):
        schema = SearchQuery.model_json_schema()
        assert schema["required"] == ["query"]

    def test_from_json(self):
        assert SearchQuery.model_validate_json('{"query": "dune"}').query == "dune"


class TestSearchResult:
    def test_tool_payload(self):
        result = SearchResult(title="Dune", author="Frank Herbert", year=1965)
        assert result.to_tool_payload() == {
            "title": "Dune",
            "author": "Frank Herbert",
            "year": 1965,
        }


class TestFsEvent:
    @pytest.mark.parametrize("kind", [EventKind.CREATE, EventKind.RENAME])
    def test_actionable(self, kind):
        assert FsEvent(kind=kind, paths=("/in/a.epub",)).is_actionable

    @pytest.mark.parametrize(
        "kind", [EventKind.MODIFY, EventKind.REMOVE, EventKind.OTHER]
    )
    def test_not_actionable(self, kind):
        assert not FsEvent(kind=kind, paths=("/in/a.epub",)).is_actionable

    def test_actionable_kinds(self):
        assert ACTIONABLE_KINDS == {EventKind.CREATE, EventKind.RENAME}


def test_filename_template():
    assert FILENAME_TEMPLATE == "{title} - {author} ({year})"
