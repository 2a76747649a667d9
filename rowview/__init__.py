"""
rowview - row query and presentation pipeline

Turns a catalog of typed fields and a collection of rows into exactly the
row (or group) sequence a table should render: free-text search, a compact
filter query language, field-typed sorting and grouping.

Example Usage:
    >>> from rowview import FieldCatalog, Row, ViewPipeline, parse_query
    >>> catalog = FieldCatalog.from_dicts(data["fields"])
    >>> rows = [Row.from_dict(r) for r in data["rows"]]
    >>> clauses = parse_query("status:in:Todo,(empty) points:>3", catalog)
    >>> result = ViewPipeline(catalog).run(rows, clauses=clauses)
"""

__version__ = "0.1.0"
__author__ = "rowview Contributors"

# Models
from rowview.models import (
    CellValue,
    ValueKind,
    FieldType,
    FieldOption,
    FieldDefinition,
    Row,
    FieldCatalog,
)

# Query language
from rowview.query import (
    EMPTY_SENTINEL,
    FilterOperator,
    FilterClause,
    SortDirection,
    SortSpec,
    QueryParser,
    ParseError,
    parse_query,
    serialize_clauses,
)

# Views
from rowview.views import (
    RowGroup,
    FieldValueCount,
    PredicateEvaluator,
    SortComparator,
    GroupAggregator,
    ViewPipeline,
    run_pipeline,
    resolve_fields,
    sort_rows,
    toggle_sort,
    group_rows,
    unique_field_values,
    filter_rows,
    apply_global_search,
    apply_all_filters,
    extract_autofill_values,
)

# State
from rowview.state import (
    ViewState,
    SavedView,
    ViewStateStore,
    MemoryStateStore,
    JsonFileStateStore,
    StorageUnavailable,
)

# Configuration
from rowview.config import RowviewConfig, get_config, init_config

__all__ = [
    # Models
    "CellValue",
    "ValueKind",
    "FieldType",
    "FieldOption",
    "FieldDefinition",
    "Row",
    "FieldCatalog",
    # Query
    "EMPTY_SENTINEL",
    "FilterOperator",
    "FilterClause",
    "SortDirection",
    "SortSpec",
    "QueryParser",
    "ParseError",
    "parse_query",
    "serialize_clauses",
    # Views
    "RowGroup",
    "FieldValueCount",
    "PredicateEvaluator",
    "SortComparator",
    "GroupAggregator",
    "ViewPipeline",
    "run_pipeline",
    "resolve_fields",
    "sort_rows",
    "toggle_sort",
    "group_rows",
    "unique_field_values",
    "filter_rows",
    "apply_global_search",
    "apply_all_filters",
    "extract_autofill_values",
    # State
    "ViewState",
    "SavedView",
    "ViewStateStore",
    "MemoryStateStore",
    "JsonFileStateStore",
    "StorageUnavailable",
    # Configuration
    "RowviewConfig",
    "get_config",
    "init_config",
]
