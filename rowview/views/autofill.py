"""
Default cell values for a new row, derived from the active filters.

A row added while "Status:equals:Done" is active should start as Done, so
it stays visible under the filter it was created in. Only `equals` and
`contains` clauses contribute; the first such clause per field wins.
"""

from typing import Any, Dict, Sequence, Union

from rowview.models import FieldCatalog, FieldDefinition, ValueKind
from rowview.query.ast import FilterClause, FilterOperator
from rowview.views.display import parse_number, to_text

Fields = Union[FieldCatalog, Sequence[FieldDefinition]]

AUTOFILL_OPERATORS = (FilterOperator.EQUALS, FilterOperator.CONTAINS)


def _autofill_value(field: FieldDefinition, value: Any) -> Any:
    """Cell value implied by a filter value, or None if there is none."""
    kind = field.kind

    if kind in (ValueKind.TEXT, ValueKind.DATE):
        return to_text(value)

    if kind == ValueKind.NUMBER:
        return parse_number(value)

    option_id = field.resolve_option_id(to_text(value))
    if option_id is None:
        return None
    if kind == ValueKind.OPTIONS:
        return [option_id]
    return option_id


def extract_autofill_values(clauses: Sequence[FilterClause], fields: Fields) -> Dict[str, Any]:
    """
    Map field id to the value a new row should start with.

    Args:
        clauses: Active filter clauses
        fields: Field catalog

    Returns:
        Field id -> cell value, for fields whose first equals/contains
        clause yields a usable value
    """
    catalog = fields if isinstance(fields, FieldCatalog) else FieldCatalog(list(fields))
    values: Dict[str, Any] = {}
    processed = set()

    for clause in clauses:
        if clause.field in processed or clause.operator not in AUTOFILL_OPERATORS:
            continue
        if clause.value is None or clause.value == '' or isinstance(clause.value, list):
            continue

        field = catalog.get(clause.field)
        if field is None:
            continue
        processed.add(clause.field)

        value = _autofill_value(field, clause.value)
        if value is not None:
            values[clause.field] = value

    return values
