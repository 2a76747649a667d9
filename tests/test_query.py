"""
Tests for the rowview.query module.

Covers:
- Query AST (operators, clauses, sort specs) and their wire shapes
- Quote-aware tokenizing
- QueryParser: field:operator:value terms, aliases, negation, bare words
- serialize_clauses
"""

import pytest

from rowview.models import FieldCatalog, FieldDefinition, FieldType
from rowview.query import (
    EMPTY_SENTINEL,
    FilterClause,
    FilterOperator,
    ParseError,
    QueryParser,
    SortDirection,
    SortSpec,
    parse_query,
    serialize_clauses,
)
from rowview.query.tokens import quote_if_needed, split_list, split_outside_quotes, split_terms, unquote


# =============================================================================
# AST
# =============================================================================

class TestFilterOperator:
    """Operator names, aliases and symbols."""

    @pytest.mark.parametrize("text,op", [
        ("contains", FilterOperator.CONTAINS),
        ("EQUALS", FilterOperator.EQUALS),
        ("is", FilterOperator.EQUALS),
        ("not-equals", FilterOperator.NOT_EQUALS),
        ("in", FilterOperator.IN),
        ("is-empty", FilterOperator.IS_EMPTY),
        ("not-empty", FilterOperator.IS_NOT_EMPTY),
        (">", FilterOperator.GT),
        (">=", FilterOperator.GTE),
        ("lt", FilterOperator.LT),
        ("<=", FilterOperator.LTE),
    ])
    def test_from_string(self, text, op):
        assert FilterOperator.from_string(text) == op

    def test_from_string_unknown(self):
        with pytest.raises(ValueError):
            FilterOperator.from_string("like")

    def test_takes_value(self):
        assert FilterOperator.CONTAINS.takes_value
        assert not FilterOperator.IS_EMPTY.takes_value
        assert not FilterOperator.IS_NOT_EMPTY.takes_value

    def test_symbol(self):
        assert FilterOperator.GTE.symbol == ">="
        assert FilterOperator.IN.symbol == "in"


class TestFilterClause:
    """Clause wire shape."""

    def test_from_dict(self):
        clause = FilterClause.from_dict({"field": "status", "operator": "in", "value": ["Todo", "(empty)"]})
        assert clause == FilterClause("status", FilterOperator.IN, ["Todo", EMPTY_SENTINEL])

    def test_from_dict_missing_field(self):
        with pytest.raises(ValueError):
            FilterClause.from_dict({"operator": "equals", "value": "x"})

    def test_from_dict_unknown_operator(self):
        with pytest.raises(ValueError):
            FilterClause.from_dict({"field": "status", "operator": "like"})

    def test_to_dict_omits_missing_value(self):
        clause = FilterClause("due", FilterOperator.IS_EMPTY)
        assert clause.to_dict() == {"field": "due", "operator": "is-empty"}


class TestSortSpec:
    """Sort spec parsing and wire shape."""

    @pytest.mark.parametrize("text,direction", [
        ("points", SortDirection.ASC),
        ("points desc", SortDirection.DESC),
        ("points:DESC", SortDirection.DESC),
    ])
    def test_parse(self, text, direction):
        spec = SortSpec.parse(text)
        assert spec.field == "points"
        assert spec.direction == direction

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            SortSpec.parse("")
        with pytest.raises(ValueError):
            SortSpec.parse("points sideways")

    def test_from_dict(self):
        assert SortSpec.from_dict(None) is None
        assert SortSpec.from_dict({"field": "pts"}) == SortSpec("pts", SortDirection.ASC)
        assert SortSpec.from_dict({"field": "pts", "direction": "desc"}).descending

    def test_from_dict_malformed(self):
        with pytest.raises(ValueError):
            SortSpec.from_dict({"direction": "asc"})

    def test_to_dict(self):
        assert SortSpec("pts", SortDirection.DESC).to_dict() == {"field": "pts", "direction": "desc"}


# =============================================================================
# Tokens
# =============================================================================

class TestTokens:
    """Quote-aware splitting."""

    def test_split_terms_respects_quotes(self):
        assert split_terms('a  "b c"\td') == ['a', '"b c"', 'd']

    def test_split_terms_empty(self):
        assert split_terms("   ") == []

    def test_split_outside_quotes_maxsplit(self):
        assert split_outside_quotes('t:contains:"a:b"', ':', 2) == ['t', 'contains', '"a:b"']
        assert split_outside_quotes('a:b:c:d', ':', 2) == ['a', 'b', 'c:d']

    def test_unquote(self):
        assert unquote(' "x y" ') == 'x y'
        assert unquote('"a","b"') == '"a","b"'
        assert unquote('plain') == 'plain'

    def test_split_list(self):
        assert split_list('"In Progress",(empty)') == ['In Progress', '(empty)']
        assert split_list('a,,b, ') == ['a', 'b']

    def test_split_list_quoted_whole(self):
        assert split_list('"Foo, Inc"') == ['Foo', 'Inc']

    def test_quote_if_needed(self):
        assert quote_if_needed('ab') == 'ab'
        assert quote_if_needed('a b') == '"a b"'
        assert quote_if_needed('a,b') == '"a,b"'
        assert quote_if_needed('a,b', special=' ') == 'a,b'


# =============================================================================
# Parser
# =============================================================================

class TestQueryParser:
    """Term parsing against the task-board catalog."""

    def test_empty_query(self, catalog):
        assert parse_query("", catalog) == []
        assert parse_query("   ", catalog) == []

    def test_bare_word_searches_title(self, catalog):
        assert parse_query("login", catalog) == [
            FilterClause("title", FilterOperator.CONTAINS, "login"),
        ]

    def test_quoted_phrase(self, catalog):
        assert parse_query('"login page"', catalog) == [
            FilterClause("title", FilterOperator.CONTAINS, "login page"),
        ]

    def test_title_and_negated_status(self, catalog):
        """Quoted value plus a negated equals resolving to the option id."""
        clauses = parse_query('Title:contains:"login page" -Status:equals:done', catalog)
        assert clauses == [
            FilterClause("title", FilterOperator.CONTAINS, "login page"),
            FilterClause("status", FilterOperator.NOT_EQUALS, "opt_done"),
        ]

    def test_field_by_id_or_name(self, catalog):
        by_name = parse_query('"Due Date":is-empty', catalog)
        by_id = parse_query('due:is-empty', catalog)
        assert by_name == by_id == [FilterClause("due", FilterOperator.IS_EMPTY)]

    def test_field_aliases(self, catalog):
        assert parse_query("owner:contains:tony", catalog) == [
            FilterClause("assignee", FilterOperator.CONTAINS, "tony"),
        ]
        assert parse_query("label:contains:bug", catalog)[0].field == "tags"

    def test_shorthand_is_contains(self, catalog):
        assert parse_query("status:done", catalog) == [
            FilterClause("status", FilterOperator.CONTAINS, "done"),
        ]

    @pytest.mark.parametrize("query,op", [
        ("points:>3", FilterOperator.GT),
        ("points:>=3", FilterOperator.GTE),
        ("points:<3", FilterOperator.LT),
        ("points:<=:3", FilterOperator.LTE),
        ("points:gt:3", FilterOperator.GT),
    ])
    def test_comparators(self, catalog, query, op):
        assert parse_query(query, catalog) == [FilterClause("points", op, "3")]

    def test_in_list_with_sentinels(self, catalog):
        clauses = parse_query('Status:in:"In Progress",(empty)', catalog)
        assert clauses == [
            FilterClause("status", FilterOperator.IN, ["In Progress", EMPTY_SENTINEL]),
        ]
        assert parse_query("status:in:todo,EMPTY", catalog)[0].value == ["todo", EMPTY_SENTINEL]

    def test_equals_unknown_option_keeps_text(self, catalog):
        assert parse_query("status:equals:blocked", catalog) == [
            FilterClause("status", FilterOperator.EQUALS, "blocked"),
        ]

    def test_colon_inside_quotes(self, catalog):
        assert parse_query('title:contains:"a:b"', catalog)[0].value == "a:b"

    def test_unknown_field_becomes_bare_word(self, catalog):
        assert parse_query("bogus:equals:x", catalog) == [
            FilterClause("title", FilterOperator.CONTAINS, "bogus:equals:x"),
        ]

    def test_negated_non_equals_becomes_bare_word(self, catalog):
        assert parse_query("-status:contains:done", catalog) == [
            FilterClause("title", FilterOperator.CONTAINS, "-status:contains:done"),
        ]

    def test_missing_value_becomes_bare_word(self, catalog):
        assert parse_query("status:equals:", catalog)[0].value == "status:equals:"

    def test_parse_term_raises(self, catalog):
        parser = QueryParser(catalog)
        with pytest.raises(ParseError):
            parser.parse_term("status:frob:x")

    def test_bare_word_dropped_without_text_field(self):
        catalog = FieldCatalog([FieldDefinition(id="n", name="N", type=FieldType.NUMBER)])
        assert parse_query("hello n:>1", catalog) == [FilterClause("n", FilterOperator.GT, "1")]

    def test_default_field_falls_back_to_text(self):
        catalog = FieldCatalog([
            FieldDefinition(id="n", name="N", type=FieldType.NUMBER),
            FieldDefinition(id="body", name="Body", type=FieldType.TEXT),
        ])
        assert QueryParser(catalog).default_field.id == "body"

    def test_accepts_plain_field_list(self, fields):
        assert parse_query("login", fields)[0].field == "title"


# =============================================================================
# Serialization
# =============================================================================

class TestSerializeClauses:
    """Rendering clauses back to query text."""

    def test_labels_and_quoting(self, catalog):
        clauses = [
            FilterClause("title", FilterOperator.CONTAINS, "login page"),
            FilterClause("status", FilterOperator.NOT_EQUALS, "opt_done"),
        ]
        assert serialize_clauses(clauses, catalog) == 'Title:contains:"login page" Status:not-equals:Done'

    def test_symbols_and_empty(self, catalog):
        clauses = [
            FilterClause("points", FilterOperator.GT, "3"),
            FilterClause("due", FilterOperator.IS_EMPTY),
        ]
        assert serialize_clauses(clauses, catalog) == 'Points:>:3 "Due Date":is-empty:'

    def test_in_list(self, catalog):
        clauses = [FilterClause("status", FilterOperator.IN, ["In Progress", EMPTY_SENTINEL])]
        assert serialize_clauses(clauses, catalog) == 'Status:in:"In Progress",(empty)'

    def test_unknown_field_skipped(self, catalog):
        clauses = [FilterClause("gone", FilterOperator.EQUALS, "x")]
        assert serialize_clauses(clauses, catalog) == ""

    @pytest.mark.parametrize("query", [
        'Title:contains:"login page" -Status:equals:done',
        'Status:in:"In Progress",(empty) points:>=3',
        '"Due Date":is-not-empty owner:equals:Tony',
    ])
    def test_reparses_to_same_clauses(self, catalog, query):
        clauses = parse_query(query, catalog)
        assert parse_query(serialize_clauses(clauses, catalog), catalog) == clauses
