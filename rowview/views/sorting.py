"""
Field-typed row ordering.

Rows are ordered by one field. Empty values always go last, and so do
values that cannot be read as the field's type (unparsable numbers or
dates), whichever direction is requested: direction only flips the order
of two concrete values.
"""

from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import logging

from rowview.models import CellValue, FieldCatalog, FieldDefinition, Row, ValueKind
from rowview.query.ast import SortDirection, SortSpec
from rowview.views.display import display_value, is_empty, parse_number, parse_timestamp

logger = logging.getLogger(__name__)

Fields = Union[FieldCatalog, Sequence[FieldDefinition]]

# Rank of a sort key: concrete values first, then unparsable, then empty
CONCRETE = 0
UNPARSABLE = 1
EMPTY = 2

SortKey = Tuple[int, Any]


def _as_catalog(fields: Fields) -> FieldCatalog:
    if isinstance(fields, FieldCatalog):
        return fields
    return FieldCatalog(list(fields))


def _text_key(value: CellValue, field: FieldDefinition) -> SortKey:
    return CONCRETE, display_value(value, field).lower()


def _number_key(value: CellValue, field: FieldDefinition) -> SortKey:
    number = parse_number(value)
    if number is None:
        return UNPARSABLE, None
    return CONCRETE, number


def _date_key(value: CellValue, field: FieldDefinition) -> SortKey:
    ts = parse_timestamp(value)
    if ts is None:
        return UNPARSABLE, None
    return CONCRETE, ts


_KEYS: Dict[ValueKind, Callable[[CellValue, FieldDefinition], SortKey]] = {
    ValueKind.TEXT: _text_key,
    ValueKind.NUMBER: _number_key,
    ValueKind.DATE: _date_key,
    ValueKind.OPTION: _text_key,
    ValueKind.OPTIONS: _text_key,
}

if set(_KEYS) != set(ValueKind):
    raise RuntimeError("sort keys must cover every value kind")


class SortComparator:
    """
    Orders rows by one field and direction.

    Example:
        comparator = SortComparator(field, SortDirection.DESC)
        ordered = comparator.sort(rows)
    """

    def __init__(self, field: FieldDefinition, direction: SortDirection = SortDirection.ASC):
        self.field = field
        self.direction = direction

    def key(self, row: Row) -> SortKey:
        """Rank and comparable value of a row's cell."""
        value = row.get(self.field.id)
        if is_empty(value):
            return EMPTY, None
        return _KEYS[self.field.kind](value, self.field)

    def compare_keys(self, a: SortKey, b: SortKey) -> int:
        rank_a, value_a = a
        rank_b, value_b = b

        if rank_a != rank_b:
            return -1 if rank_a < rank_b else 1
        if rank_a != CONCRETE or value_a == value_b:
            return 0

        result = -1 if value_a < value_b else 1
        return -result if self.direction == SortDirection.DESC else result

    def compare(self, a: Row, b: Row) -> int:
        return self.compare_keys(self.key(a), self.key(b))

    def sort(self, rows: Sequence[Row]) -> List[Row]:
        """New list of rows in order; ties keep their input order."""
        keyed = [(self.key(row), row) for row in rows]
        ordered = sorted(keyed, key=cmp_to_key(lambda x, y: self.compare_keys(x[0], y[0])))
        return [row for _, row in ordered]


def sort_rows(rows: Sequence[Row], spec: Optional[SortSpec], fields: Fields) -> List[Row]:
    """
    Sort rows by a sort spec.

    Returns the rows in input order (as a new list) when there is no spec
    or its field is not in the catalog.
    """
    if spec is None:
        return list(rows)

    field = _as_catalog(fields).get(spec.field)
    if field is None:
        logger.debug(f"Not sorting by unknown field {spec.field!r}")
        return list(rows)

    return SortComparator(field, spec.direction).sort(rows)


def toggle_sort(current: Optional[SortSpec], field_id: str) -> Optional[SortSpec]:
    """
    Next sort state after a field is selected for sorting.

    A new field starts ascending; selecting the same field again goes
    ascending -> descending -> unsorted.
    """
    if current is None or current.field != field_id:
        return SortSpec(field=field_id, direction=SortDirection.ASC)
    if current.direction == SortDirection.ASC:
        return SortSpec(field=field_id, direction=SortDirection.DESC)
    return None
