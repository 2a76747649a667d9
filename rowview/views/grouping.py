"""
Partitioning rows into labeled groups by one field's value.

Each row lands in exactly one bucket. Fields with declared options get one
bucket per option up front, so options without rows still show (with a
count of zero) in declared order. Rows without a value share a single
"No <field>" bucket, which is always last.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from rowview.models import CellValue, FieldCatalog, FieldDefinition, FieldOption, Row, ValueKind
from rowview.views.core import (
    ALL_GROUP_ID,
    ALL_GROUP_LABEL,
    EMPTY_GROUP_ID,
    FieldValueCount,
    RowGroup,
)
from rowview.views.display import display_labels, format_date_label, is_empty, to_text

logger = logging.getLogger(__name__)

Fields = Union[FieldCatalog, Sequence[FieldDefinition]]


def _as_catalog(fields: Fields) -> FieldCatalog:
    if isinstance(fields, FieldCatalog):
        return fields
    return FieldCatalog(list(fields))


def group_key(value: CellValue) -> str:
    """
    Bucket key of a cell value.

    Only empty values get EMPTY_GROUP_ID. A real value spelled like it (with
    any number of leading backslashes) gains one more backslash.
    """
    if is_empty(value):
        return EMPTY_GROUP_ID
    if isinstance(value, (list, tuple)):
        key = '__'.join(to_text(v) for v in value)
    else:
        key = to_text(value)
    if key.lstrip("\\") == EMPTY_GROUP_ID:
        return "\\" + key
    return key


# =============================================================================
# Labels per value kind
# =============================================================================

def _text_label(value: CellValue, field: FieldDefinition) -> str:
    return to_text(value)


def _date_label(value: CellValue, field: FieldDefinition) -> str:
    return format_date_label(value) or to_text(value)


def _option_label(value: CellValue, field: FieldDefinition) -> str:
    option = field.option_by_id(value)
    return option.label if option else to_text(value)


def _options_label(value: CellValue, field: FieldDefinition) -> str:
    return ', '.join(display_labels(value, field))


_LABELS: Dict[ValueKind, Callable[[CellValue, FieldDefinition], str]] = {
    ValueKind.TEXT: _text_label,
    ValueKind.NUMBER: _text_label,
    ValueKind.DATE: _date_label,
    ValueKind.OPTION: _option_label,
    ValueKind.OPTIONS: _options_label,
}

if set(_LABELS) != set(ValueKind):
    raise RuntimeError("group labels must cover every value kind")


def empty_label(field: FieldDefinition) -> str:
    return f"No {field.name}"


def group_label(value: CellValue, field: FieldDefinition) -> str:
    """Display label of a bucket holding `value`."""
    if is_empty(value):
        return empty_label(field)
    return _LABELS[field.kind](value, field) or empty_label(field)


def _seed_value(option: FieldOption, field: FieldDefinition) -> CellValue:
    if field.kind == ValueKind.OPTIONS:
        return [option.id]
    return option.id


def _label_order(label: str):
    return label.casefold(), label


# =============================================================================
# Group Aggregator
# =============================================================================

class GroupAggregator:
    """
    Partitions rows by one field.

    Example:
        groups = GroupAggregator(status_field).group(rows)
        for g in groups:
            print(g.label, g.count)
    """

    def __init__(self, field: FieldDefinition):
        self.field = field

    def group(self, rows: Sequence[Row]) -> List[RowGroup]:
        field = self.field
        buckets: Dict[str, RowGroup] = {}

        declared = []
        for option in field.options or []:
            if option.id in buckets:
                continue
            buckets[option.id] = RowGroup(
                id=option.id,
                label=option.label,
                value=_seed_value(option, field),
            )
            declared.append(option.id)

        for row in rows:
            value = row.get(field.id)
            key = group_key(value)
            bucket = buckets.get(key)
            if bucket is None:
                bucket = RowGroup(id=key, label=group_label(value, field), value=value)
                buckets[key] = bucket
            bucket.rows.append(row)

        return self._order(buckets, declared)

    def _order(self, buckets: Dict[str, RowGroup], declared: List[str]) -> List[RowGroup]:
        seeded = set(declared)
        extras = [
            g for key, g in buckets.items()
            if key not in seeded and key != EMPTY_GROUP_ID
        ]
        extras.sort(key=lambda g: _label_order(g.label))

        ordered = [buckets[key] for key in declared] + extras
        if EMPTY_GROUP_ID in buckets:
            ordered.append(buckets[EMPTY_GROUP_ID])
        return ordered

    def unique_values(self, rows: Sequence[Row]) -> List[FieldValueCount]:
        """Distinct values of the field among `rows`, with counts, sorted by label."""
        seen: Dict[str, List] = {}
        for row in rows:
            value = row.get(self.field.id)
            key = group_key(value)
            if key not in seen:
                seen[key] = [value, group_label(value, self.field), 0]
            seen[key][2] += 1

        values = [FieldValueCount(value=v, label=label, count=n) for v, label, n in seen.values()]
        return sorted(values, key=lambda fv: _label_order(fv.label))


def all_rows_group(rows: Sequence[Row]) -> RowGroup:
    """The single bucket used when there is no (valid) grouping field."""
    return RowGroup(id=ALL_GROUP_ID, label=ALL_GROUP_LABEL, value=None, rows=list(rows))


def group_rows(rows: Sequence[Row], field_id: Optional[str], fields: Fields) -> List[RowGroup]:
    """
    Group rows by a field.

    Args:
        rows: Rows to partition (not modified)
        field_id: Field to group by; None for no grouping
        fields: Field catalog

    Returns:
        Ordered groups; a single "All Items" group when `field_id` is None
        or not in the catalog
    """
    if not field_id:
        return [all_rows_group(rows)]

    field = _as_catalog(fields).get(field_id)
    if field is None:
        logger.debug(f"Not grouping by unknown field {field_id!r}")
        return [all_rows_group(rows)]

    return GroupAggregator(field).group(rows)


def unique_field_values(rows: Sequence[Row], field: FieldDefinition) -> List[FieldValueCount]:
    """Distinct values of a field with their labels and row counts."""
    return GroupAggregator(field).unique_values(rows)
