"""
The view pipeline: search -> filter -> (group | sort).

Stage order is fixed. Grouping and sorting are mutually exclusive: when a
group field is configured the rows are grouped and the sort spec is not
applied, so the viewer never sees two competing orders.

Example:
    pipeline = ViewPipeline(fields)
    result = pipeline.run(
        rows,
        search_term="login",
        clauses=parse_query("Status:in:Todo,(empty)", fields),
        sort_spec=SortSpec("points", SortDirection.DESC),
    )
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Union

from rowview.models import FieldCatalog, FieldDefinition, Row
from rowview.query.ast import FilterClause, SortSpec
from rowview.views.core import RowGroup
from rowview.views.grouping import group_rows
from rowview.views.predicates import PredicateEvaluator
from rowview.views.sorting import sort_rows

if TYPE_CHECKING:
    from rowview.state import ViewState

logger = logging.getLogger(__name__)

Fields = Union[FieldCatalog, Sequence[FieldDefinition]]
PipelineResult = Union[List[Row], List[RowGroup]]


def resolve_fields(
    fields: Fields,
    field_order: Optional[Sequence[str]] = None,
    field_widths: Optional[Dict[str, float]] = None,
    hidden_columns: Optional[Sequence[str]] = None,
) -> List[FieldDefinition]:
    """
    Apply saved layout to a field list.

    Fields are ordered by `field_order` (ids not in the catalog are ignored;
    fields missing from the order follow in catalog order), widths come from
    `field_widths`, and ids in `hidden_columns` become invisible. Returns new
    field objects; the input is untouched.
    """
    catalog = list(fields)
    by_id = {f.id: f for f in catalog}
    hidden = set(hidden_columns or [])
    widths = field_widths or {}

    ordered: List[FieldDefinition] = []
    placed = set()
    for field_id in field_order or []:
        if field_id in by_id and field_id not in placed:
            ordered.append(by_id[field_id])
            placed.add(field_id)
    ordered.extend(f for f in catalog if f.id not in placed)

    resolved = []
    for f in ordered:
        visible = f.visible if hidden_columns is None else f.id not in hidden
        resolved.append(f.with_layout(visible=visible, width=widths.get(f.id)))
    return resolved


class ViewPipeline:
    """
    Runs the view stages over a row collection.

    Holds only the field catalog; rows, clauses and sort/group settings are
    passed per run, and every run recomputes its result from scratch.
    """

    def __init__(self, fields: Fields):
        self.catalog = fields if isinstance(fields, FieldCatalog) else FieldCatalog(list(fields))
        self.evaluator = PredicateEvaluator(self.catalog)

    @property
    def fields(self) -> List[FieldDefinition]:
        return list(self.catalog)

    def filter(
        self,
        rows: Sequence[Row],
        search_term: str = "",
        clauses: Sequence[FilterClause] = (),
    ) -> List[Row]:
        """Stages 1 and 2: free-text search, then clause filtering."""
        searched = self.evaluator.search(rows, search_term)
        return self.evaluator.filter(searched, clauses)

    def run(
        self,
        rows: Sequence[Row],
        search_term: str = "",
        clauses: Sequence[FilterClause] = (),
        sort_spec: Optional[SortSpec] = None,
        group_field_id: Optional[str] = None,
    ) -> PipelineResult:
        """
        Run all stages.

        Returns:
            A list of RowGroup when `group_field_id` is set, otherwise the
            filtered rows in sort order
        """
        filtered = self.filter(rows, search_term, clauses)
        logger.debug(f"{len(filtered)} of {len(rows)} rows after search and filters")

        if group_field_id:
            if sort_spec is not None:
                logger.debug(f"Grouping by {group_field_id!r}; sort on {sort_spec.field!r} not applied")
            return group_rows(filtered, group_field_id, self.catalog)

        return sort_rows(filtered, sort_spec, self.catalog)

    def run_state(self, rows: Sequence[Row], state: "ViewState", search_term: str = "") -> PipelineResult:
        """Run with the filters, sort and grouping of a saved ViewState."""
        return self.run(
            rows,
            search_term=search_term,
            clauses=state.filters,
            sort_spec=state.sort_config,
            group_field_id=state.group_by,
        )


def run_pipeline(
    rows: Sequence[Row],
    fields: Fields,
    search_term: str = "",
    clauses: Sequence[FilterClause] = (),
    sort_spec: Optional[SortSpec] = None,
    group_field_id: Optional[str] = None,
) -> PipelineResult:
    """Search, filter, then group or sort (grouping wins when both are set)."""
    return ViewPipeline(fields).run(rows, search_term, clauses, sort_spec, group_field_id)
