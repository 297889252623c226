"""Tests for single-predicate WHERE filtering."""

import pytest

from gamelog.errors import UnsupportedPredicateError
from gamelog.parsing.sql_parser import NullValue, Placeholder, QueryParser
from gamelog.where import MISSING, ParameterBinder, as_text, compile_predicate, filter_records


@pytest.fixture(scope="module")
def parser():
    return QueryParser()


@pytest.fixture
def records():
    return [
        {"id": 1, "title": "Celeste", "status": "playing", "hours": 2.0, "rating": 9, "online": True},
        {"id": 2, "title": "Hades", "status": "backlog", "hours": 0, "rating": None, "online": False},
        {"id": 3, "title": "Tetris", "status": "playing", "hours": 12.5, "online": True},
    ]


def where_of(parser, predicate):
    return parser.parse(f"SELECT * FROM t WHERE {predicate}").where


class TestEqualityFilter:
    """Tests for ``column = value`` filtering."""

    def test_string_literal(self, parser, records):
        result = filter_records(records, where_of(parser, "status = 'playing'"))
        assert [r["id"] for r in result] == [1, 3]

    def test_placeholder(self, parser, records):
        result = filter_records(records, where_of(parser, "title = ?"), ["Hades"])
        assert [r["id"] for r in result] == [2]

    def test_number_compares_as_text(self, parser, records):
        """2.0 stored and 2 queried are the same text."""
        result = filter_records(records, where_of(parser, "hours = 2"))
        assert [r["id"] for r in result] == [1]

    def test_number_parameter_against_string_literal(self, parser, records):
        result = filter_records(records, where_of(parser, "id = '3'"))
        assert [r["id"] for r in result] == [3]

    def test_negative_literal(self, parser):
        rows = [{"delta": -1}, {"delta": 1}]
        result = filter_records(rows, where_of(parser, "delta = -1"))
        assert result == [{"delta": -1}]

    def test_boolean_literal(self, parser, records):
        result = filter_records(records, where_of(parser, "online = true"))
        assert [r["id"] for r in result] == [1, 3]

    def test_boolean_matches_its_text(self, parser, records):
        result = filter_records(records, where_of(parser, "online = 'false'"))
        assert [r["id"] for r in result] == [2]

    def test_no_match(self, parser, records):
        assert filter_records(records, where_of(parser, "title = 'Celeste 2'")) == []

    def test_no_where_returns_everything(self, records):
        assert filter_records(records, None) == records


class TestNullPredicates:
    """Tests for NULL comparisons."""

    def test_equals_null_matches_null_and_absent(self, parser, records):
        result = filter_records(records, where_of(parser, "rating = NULL"))
        assert [r["id"] for r in result] == [2, 3]

    def test_null_parameter(self, parser, records):
        result = filter_records(records, where_of(parser, "rating = ?"), [None])
        assert [r["id"] for r in result] == [2, 3]

    def test_missing_parameter_acts_as_null(self, parser, records):
        result = filter_records(records, where_of(parser, "rating = ?"), [])
        assert [r["id"] for r in result] == [2, 3]

    def test_is_null_without_equals_does_not_filter(self, parser, records):
        result = filter_records(records, where_of(parser, "rating IS NULL"))
        assert result == records


class TestPassthroughAndErrors:
    """Tests for predicates that cannot filter."""

    def test_non_column_left_side_passes_everything(self, parser, records):
        assert filter_records(records, where_of(parser, "1 = 1")) == records

    def test_comparison_without_equals_passes_everything(self, parser, records):
        assert filter_records(records, where_of(parser, "hours > 5")) == records

    def test_and_raises(self, parser, records):
        with pytest.raises(UnsupportedPredicateError):
            filter_records(records, where_of(parser, "status = 'playing' AND id = 1"))

    def test_or_raises(self, parser, records):
        with pytest.raises(UnsupportedPredicateError):
            filter_records(records, where_of(parser, "id = 1 OR id = 2"))

    def test_compile_returns_column_and_value(self, parser):
        predicate = compile_predicate(where_of(parser, "status = ?"), ParameterBinder(["dropped"]))
        assert predicate.column == "status"
        assert predicate.value == "dropped"


class TestParameterBinder:
    """Tests for positional parameter binding."""

    def test_binds_in_order(self):
        binder = ParameterBinder(["a", "b"])
        assert binder.next() == "a"
        assert binder.next() == "b"
        assert binder.next() is MISSING
        assert binder.consumed == 3

    def test_resolve(self):
        binder = ParameterBinder([7])
        assert binder.resolve(Placeholder()) == 7
        assert binder.resolve(NullValue()) is None
        assert binder.resolve("literal") == "literal"


class TestAsText:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "null"),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (3.0, "3"),
            (3.5, "3.5"),
            ("abc", "abc"),
        ],
    )
    def test_as_text(self, value, expected):
        assert as_text(value) == expected
