"""
Predicate evaluation for filter clauses.

A clause is tested against one row using the semantics of the clause's
field type: option ids resolve to labels, numbers and dates are parsed,
and every string comparison is case-insensitive.

Evaluation is total: malformed values, unknown fields and failed type
coercions degrade to "ignore" or "no match", never to an exception.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from rowview.models import CellValue, FieldCatalog, FieldDefinition, Row, ValueKind
from rowview.query.ast import EMPTY_SENTINEL, FilterClause, FilterOperator
from rowview.views.display import (
    display_labels,
    display_value,
    is_empty,
    parse_number,
    parse_timestamp,
    to_text,
)

logger = logging.getLogger(__name__)

Fields = Union[FieldCatalog, Sequence[FieldDefinition]]

EMPTY_TOKENS = (EMPTY_SENTINEL, 'empty')


def _as_catalog(fields: Fields) -> FieldCatalog:
    if isinstance(fields, FieldCatalog):
        return fields
    return FieldCatalog(list(fields))


def _filter_values(value) -> List[str]:
    """Lowercased items of an `in` value (list or comma-separated text)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [to_text(v) for v in value]
    else:
        items = to_text(value).split(',')
    return [item.strip().lower() for item in items if item.strip()]


# =============================================================================
# Equality per value kind
# =============================================================================

def _equals_text(value: CellValue, expected, field: FieldDefinition) -> bool:
    return display_value(value, field).lower() == to_text(expected).lower()


def _equals_option(value: CellValue, expected, field: FieldDefinition) -> bool:
    wanted = to_text(expected).lower()
    # Id match wins; otherwise compare the option label
    if to_text(value).lower() == wanted:
        return True
    option = field.option_by_id(value)
    if option is None:
        return False
    return option.label.lower() == wanted


_EQUALS: Dict[ValueKind, Callable[[CellValue, object, FieldDefinition], bool]] = {
    ValueKind.TEXT: _equals_text,
    ValueKind.NUMBER: _equals_text,
    ValueKind.DATE: _equals_text,
    ValueKind.OPTION: _equals_option,
    ValueKind.OPTIONS: _equals_text,
}


# =============================================================================
# Membership per value kind
# =============================================================================

def _in_scalar(value: CellValue, wanted: List[str], field: FieldDefinition) -> bool:
    label = display_value(value, field).lower()
    if label and label in wanted:
        return True
    # Raw stored value (ids, numbers) as a fallback
    return to_text(value).lower() in wanted


def _in_options(value: CellValue, wanted: List[str], field: FieldDefinition) -> bool:
    if not isinstance(value, (list, tuple)):
        return _in_scalar(value, wanted, field)
    labels = [label.lower() for label in display_labels(value, field)]
    return any(w in labels for w in wanted)


_IN: Dict[ValueKind, Callable[[CellValue, List[str], FieldDefinition], bool]] = {
    ValueKind.TEXT: _in_scalar,
    ValueKind.NUMBER: _in_scalar,
    ValueKind.DATE: _in_scalar,
    ValueKind.OPTION: _in_scalar,
    ValueKind.OPTIONS: _in_options,
}


# =============================================================================
# Ordering comparisons per value kind
# =============================================================================

def _numbers(value: CellValue, expected, field: FieldDefinition):
    return parse_number(value), parse_number(expected)


def _dates_or_numbers(value: CellValue, expected, field: FieldDefinition):
    left, right = parse_timestamp(value), parse_timestamp(expected)
    if left is not None and right is not None:
        return left, right
    return _numbers(value, expected, field)


_COMPARABLES = {
    ValueKind.TEXT: _numbers,
    ValueKind.NUMBER: _numbers,
    ValueKind.DATE: _dates_or_numbers,
    ValueKind.OPTION: _numbers,
    ValueKind.OPTIONS: _numbers,
}

_COMPARATORS = {
    FilterOperator.GT: lambda a, b: a > b,
    FilterOperator.GTE: lambda a, b: a >= b,
    FilterOperator.LT: lambda a, b: a < b,
    FilterOperator.LTE: lambda a, b: a <= b,
}

for _table in (_EQUALS, _IN, _COMPARABLES):
    if set(_table) != set(ValueKind):
        raise RuntimeError("dispatch table must cover every value kind")


# =============================================================================
# Predicate Evaluator
# =============================================================================

class PredicateEvaluator:
    """
    Evaluates filter clauses against rows.

    Holds the field catalog so clauses can be resolved to their fields once
    per evaluation. Clauses on fields missing from the catalog are ignored.
    """

    def __init__(self, fields: Fields):
        self.catalog = _as_catalog(fields)

    def evaluate(self, row: Row, clause: FilterClause) -> bool:
        """Test a row against one clause."""
        return matches(row, clause, self.catalog.get(clause.field))

    def evaluate_all(self, row: Row, clauses: Sequence[FilterClause]) -> bool:
        """Test a row against all clauses (AND)."""
        return all(self.evaluate(row, clause) for clause in clauses)

    def filter(self, rows: Sequence[Row], clauses: Sequence[FilterClause]) -> List[Row]:
        if not clauses:
            return list(rows)
        for clause in clauses:
            if clause.field not in self.catalog:
                logger.debug(f"Ignoring filter on unknown field {clause.field!r}")
        return [row for row in rows if self.evaluate_all(row, clauses)]

    def search(self, rows: Sequence[Row], term: str) -> List[Row]:
        """Keep rows where any visible field's display value contains `term`."""
        needle = (term or '').strip().lower()
        if not needle:
            return list(rows)

        visible = self.catalog.visible()

        def hit(row: Row) -> bool:
            for field in visible:
                value = row.get(field.id)
                if is_empty(value):
                    continue
                if needle in display_value(value, field).lower():
                    return True
            return False

        return [row for row in rows if hit(row)]


def matches(row: Row, clause: FilterClause, field: Optional[FieldDefinition]) -> bool:
    """
    Decide whether a row satisfies a clause.

    Args:
        row: Row to test (never modified)
        clause: Filter clause
        field: Definition of the clause's field; None means the field is
            unknown and the clause is ignored

    Returns:
        True if the row matches (or the clause is ignored)
    """
    if field is None:
        return True

    op = clause.operator
    value = row.get(clause.field)

    if op == FilterOperator.IS_EMPTY:
        return is_empty(value)
    if op == FilterOperator.IS_NOT_EMPTY:
        return not is_empty(value)

    if op == FilterOperator.IN:
        wanted = _filter_values(clause.value)
        wants_empty = any(w in EMPTY_TOKENS for w in wanted)
        wanted = [w for w in wanted if w not in EMPTY_TOKENS]
        if is_empty(value):
            return wants_empty
        return _IN[field.kind](value, wanted, field)

    if is_empty(value):
        # Empty is "not equal" to any concrete value, and matches nothing else
        return op == FilterOperator.NOT_EQUALS

    if op == FilterOperator.CONTAINS:
        return to_text(clause.value).lower() in display_value(value, field).lower()

    if op == FilterOperator.EQUALS:
        return _EQUALS[field.kind](value, clause.value, field)

    if op == FilterOperator.NOT_EQUALS:
        return not _EQUALS[field.kind](value, clause.value, field)

    if op in _COMPARATORS:
        left, right = _COMPARABLES[field.kind](value, clause.value, field)
        if left is None or right is None:
            return False
        return _COMPARATORS[op](left, right)

    return True


# =============================================================================
# Convenience functions
# =============================================================================

def filter_rows(rows: Sequence[Row], clauses: Sequence[FilterClause], fields: Fields) -> List[Row]:
    """Rows matching every clause, in input order."""
    return PredicateEvaluator(fields).filter(rows, clauses)


def apply_global_search(rows: Sequence[Row], search_term: str, fields: Fields) -> List[Row]:
    """Rows where any visible field contains the search term (case-insensitive)."""
    return PredicateEvaluator(fields).search(rows, search_term)


def apply_all_filters(
    rows: Sequence[Row],
    search_term: str,
    clauses: Sequence[FilterClause],
    fields: Fields,
) -> List[Row]:
    """Free-text search followed by clause filtering."""
    evaluator = PredicateEvaluator(fields)
    return evaluator.filter(evaluator.search(rows, search_term), clauses)
