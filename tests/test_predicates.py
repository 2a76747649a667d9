"""
Tests for rowview/views/predicates.py.

Clause semantics per value kind, the `in` empty sentinel, free-text search,
and the rule that malformed input degrades to "no match" instead of raising.
"""

import pytest

from rowview.models import Row
from rowview.query.ast import EMPTY_SENTINEL, FilterClause, FilterOperator
from rowview.views.predicates import (
    PredicateEvaluator,
    apply_all_filters,
    apply_global_search,
    filter_rows,
    matches,
)


def ids(rows):
    return [r.id for r in rows]


def clause(field, op, value=None):
    return FilterClause(field, FilterOperator.from_string(op), value)


class TestInOperator:
    """Membership, including the empty sentinel."""

    def test_label_or_empty(self, catalog):
        rows = [
            Row(id="1", values={"status": "opt_todo"}),
            Row(id="2", values={"status": "opt_done"}),
            Row(id="3", values={"status": None}),
        ]
        result = filter_rows(rows, [clause("status", "in", "Todo,(empty)")], catalog)
        assert ids(result) == ["1", "3"]

    def test_list_value(self, catalog, rows):
        result = filter_rows(rows, [clause("status", "in", ["Done", "In Progress"])], catalog)
        assert ids(result) == ["r2", "r4"]

    def test_without_sentinel_excludes_empty(self, catalog, rows):
        result = filter_rows(rows, [clause("status", "in", ["todo"])], catalog)
        assert ids(result) == ["r1"]

    def test_sentinel_alias(self, catalog, rows):
        result = filter_rows(rows, [clause("status", "in", ["empty"])], catalog)
        assert ids(result) == ["r3"]

    def test_single_select_falls_back_to_raw_id(self, catalog, rows):
        result = filter_rows(rows, [clause("status", "in", ["opt_todo"])], catalog)
        assert ids(result) == ["r1"]

    def test_multi_select_matches_labels(self, catalog, rows):
        result = filter_rows(rows, [clause("tags", "in", ["bug"])], catalog)
        assert ids(result) == ["r1", "r4"]

    def test_multi_select_ignores_raw_ids(self, catalog, rows):
        result = filter_rows(rows, [clause("tags", "in", ["t1"])], catalog)
        assert result == []

    def test_multi_select_empty_list_matches_sentinel(self, catalog, rows):
        result = filter_rows(rows, [clause("tags", "in", ["Feature", EMPTY_SENTINEL])], catalog)
        assert ids(result) == ["r2", "r3", "r4"]


class TestEqualityOperators:
    """equals / not-equals / contains."""

    def test_equals_option_by_label(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("status", "equals", "done")], catalog)) == ["r2"]

    def test_equals_option_by_id_case_insensitive(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("status", "equals", "OPT_DONE")], catalog)) == ["r2"]

    def test_label_and_id_are_equivalent(self, catalog, rows):
        by_label = filter_rows(rows, [clause("assignee", "equals", "Tony")], catalog)
        by_id = filter_rows(rows, [clause("assignee", "equals", "u1")], catalog)
        assert ids(by_label) == ids(by_id) == ["r1", "r4"]

    def test_equals_number_text(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("points", "equals", "5")], catalog)) == ["r1"]

    def test_equals_never_matches_empty(self, catalog, rows):
        assert "r3" not in ids(filter_rows(rows, [clause("status", "equals", "")], catalog))

    def test_not_equals_includes_empty(self, catalog, rows):
        result = filter_rows(rows, [clause("status", "not-equals", "opt_done")], catalog)
        assert ids(result) == ["r1", "r3", "r4"]

    def test_contains_display_value(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("tags", "contains", "feat")], catalog)) == ["r2", "r4"]
        assert ids(filter_rows(rows, [clause("title", "contains", "LOG")], catalog)) == ["r1", "r3"]

    def test_contains_skips_empty(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("assignee", "contains", "")], catalog)) == ["r1", "r2", "r4"]


class TestComparisons:
    """Numeric and date comparators."""

    def test_greater_than(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("points", "gt", "3")], catalog)) == ["r1", "r4"]

    def test_less_or_equal(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("points", "lte", 5)], catalog)) == ["r1", "r2"]

    def test_unparsable_never_matches(self, catalog, rows):
        assert filter_rows(rows, [clause("points", "gt", "abc")], catalog) == []

    def test_dates_compare_as_dates(self, catalog, rows):
        result = filter_rows(rows, [clause("due", "lt", "2024-02-15")], catalog)
        assert ids(result) == ["r2", "r4"]

    def test_dates_with_slashes(self, catalog, rows):
        result = filter_rows(rows, [clause("due", "gte", "2/10/2024")], catalog)
        assert ids(result) == ["r1", "r4"]


class TestEmptiness:
    """is-empty / is-not-empty."""

    def test_is_empty_counts_missing_and_empty_list(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("assignee", "is-empty")], catalog)) == ["r3"]
        assert ids(filter_rows(rows, [clause("tags", "is-empty")], catalog)) == ["r3"]

    def test_is_not_empty(self, catalog, rows):
        assert ids(filter_rows(rows, [clause("due", "is-not-empty")], catalog)) == ["r1", "r2", "r4"]


class TestUnknownFields:
    """Clauses on fields outside the catalog are ignored."""

    def test_unknown_field_clause_ignored(self, catalog, rows):
        result = filter_rows(rows, [clause("ghost", "equals", "x")], catalog)
        assert ids(result) == ids(rows)

    def test_matches_without_field_is_true(self, rows):
        assert matches(rows[0], clause("ghost", "equals", "x"), None) is True


class TestEvaluator:
    """PredicateEvaluator behaviour shared by every operator."""

    def test_clauses_combine_with_and(self, catalog, rows):
        clauses = [clause("assignee", "equals", "Tony"), clause("points", "gt", "6")]
        assert ids(filter_rows(rows, clauses, catalog)) == ["r4"]

    def test_no_clauses_returns_copy(self, catalog, rows):
        result = filter_rows(rows, [], catalog)
        assert result == rows
        assert result is not rows

    def test_input_not_modified(self, catalog, rows):
        before = list(rows)
        filter_rows(rows, [clause("status", "equals", "Done")], catalog)
        assert rows == before

    def test_filter_is_idempotent(self, catalog, rows):
        clauses = [clause("status", "in", "Todo,In Progress,(empty)")]
        once = filter_rows(rows, clauses, catalog)
        assert filter_rows(once, clauses, catalog) == once

    def test_evaluate(self, catalog, rows):
        evaluator = PredicateEvaluator(catalog)
        assert evaluator.evaluate(rows[0], clause("status", "equals", "Todo"))
        assert not evaluator.evaluate_all(rows[0], [clause("status", "equals", "Todo"), clause("points", "lt", 1)])


class TestGlobalSearch:
    """Free-text search over visible fields."""

    def test_matches_title(self, catalog, rows):
        assert ids(apply_global_search(rows, "login", catalog)) == ["r1", "r3"]

    def test_matches_option_labels(self, catalog, rows):
        assert ids(apply_global_search(rows, "tony", catalog)) == ["r1", "r4"]
        assert ids(apply_global_search(rows, "bug", catalog)) == ["r1", "r4"]

    def test_hidden_fields_not_searched(self, catalog, rows):
        assert apply_global_search(rows, "secret", catalog) == []

    def test_blank_term_keeps_all(self, catalog, rows):
        assert ids(apply_global_search(rows, "   ", catalog)) == ids(rows)

    def test_term_is_trimmed(self, catalog, rows):
        assert ids(apply_global_search(rows, "  dashboard ", catalog)) == ["r4"]

    def test_search_then_filter(self, catalog, rows):
        result = apply_all_filters(rows, "login", [clause("status", "is-not-empty")], catalog)
        assert ids(result) == ["r1"]
