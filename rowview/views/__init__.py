"""
rowview view stages.

Search, filter, sort and group, each a pure function of its inputs:

    rows -> search -> filter -> (group | sort) -> rows or groups

Example:
    from rowview.views import ViewPipeline

    result = ViewPipeline(fields).run(rows, clauses=clauses, group_field_id="status")
    for group in result:
        print(group.label, group.count)
"""

from rowview.views.core import (
    ALL_GROUP_ID,
    ALL_GROUP_LABEL,
    EMPTY_GROUP_ID,
    RowGroup,
    FieldValueCount,
)

from rowview.views.display import (
    is_empty,
    to_text,
    display_value,
    display_labels,
    parse_number,
    parse_timestamp,
    format_date_label,
)

from rowview.views.predicates import (
    PredicateEvaluator,
    matches,
    filter_rows,
    apply_global_search,
    apply_all_filters,
)

from rowview.views.sorting import SortComparator, sort_rows, toggle_sort
from rowview.views.grouping import GroupAggregator, group_rows, unique_field_values
from rowview.views.pipeline import ViewPipeline, run_pipeline, resolve_fields
from rowview.views.autofill import extract_autofill_values

__all__ = [
    "ALL_GROUP_ID",
    "ALL_GROUP_LABEL",
    "EMPTY_GROUP_ID",
    "RowGroup",
    "FieldValueCount",
    "is_empty",
    "to_text",
    "display_value",
    "display_labels",
    "parse_number",
    "parse_timestamp",
    "format_date_label",
    "PredicateEvaluator",
    "matches",
    "filter_rows",
    "apply_global_search",
    "apply_all_filters",
    "SortComparator",
    "sort_rows",
    "toggle_sort",
    "GroupAggregator",
    "group_rows",
    "unique_field_values",
    "ViewPipeline",
    "run_pipeline",
    "resolve_fields",
    "extract_autofill_values",
]
