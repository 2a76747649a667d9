"""
rowview query language.

A query is a whitespace-separated list of terms, each becoming one filter
clause; all clauses must hold (AND). Values containing spaces or commas are
double-quoted.

    Status:in:Todo,(empty)        status is Todo or empty
    -Status:Done                  status is not Done
    points:>3                     numeric comparison
    "Due Date":is-empty:          no due date
    login                         bare word: title contains "login"

Example:

    from rowview.query import parse_query, serialize_clauses

    clauses = parse_query('"login page" -status:Done', fields)
    text = serialize_clauses(clauses, fields)
"""

from rowview.query.ast import (
    EMPTY_SENTINEL,
    FilterOperator,
    FilterClause,
    SortDirection,
    SortSpec,
)

from rowview.query.parser import (
    FIELD_ALIASES,
    QueryParser,
    ParseError,
    parse_query,
    serialize_clauses,
)

__all__ = [
    "EMPTY_SENTINEL",
    "FilterOperator",
    "FilterClause",
    "SortDirection",
    "SortSpec",
    "FIELD_ALIASES",
    "QueryParser",
    "ParseError",
    "parse_query",
    "serialize_clauses",
]
