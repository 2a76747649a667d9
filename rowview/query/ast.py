"""
Query AST for rowview.

A parsed query is a list of FilterClause objects combined with AND.
Clauses, sort specs and their wire shapes are shared by the parser,
the evaluators and the persisted view state.

Example:
    [
        FilterClause("title", FilterOperator.CONTAINS, "login page"),
        FilterClause("status", FilterOperator.NOT_EQUALS, "opt_done"),
        FilterClause("status", FilterOperator.IN, ["Todo", EMPTY_SENTINEL]),
    ]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

# Marker inside an `in` list meaning "value is missing or empty"
EMPTY_SENTINEL = "(empty)"

ClauseValue = Union[str, int, float, List[str], None]


# =============================================================================
# Operators
# =============================================================================

class FilterOperator(Enum):
    """Filter operators (wire values)."""
    CONTAINS = "contains"
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    IN = "in"
    IS_EMPTY = "is-empty"
    IS_NOT_EMPTY = "is-not-empty"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"

    @classmethod
    def from_string(cls, s: str) -> "FilterOperator":
        """
        Parse an operator from its wire value, an alias or a symbol.

        Raises:
            ValueError: if the operator is unknown
        """
        key = s.lower().strip()
        if key in _OPERATOR_ALIASES:
            return _OPERATOR_ALIASES[key]
        raise ValueError(f"Unknown operator: {s}")

    @property
    def takes_value(self) -> bool:
        return self not in (FilterOperator.IS_EMPTY, FilterOperator.IS_NOT_EMPTY)

    @property
    def is_comparison(self) -> bool:
        return self in (FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE)

    @property
    def symbol(self) -> str:
        """Text used when rendering the operator back into a query."""
        return _SYMBOLS.get(self, self.value)


_OPERATOR_ALIASES = {
    'contains': FilterOperator.CONTAINS,
    'contain': FilterOperator.CONTAINS,
    'equals': FilterOperator.EQUALS,
    'is': FilterOperator.EQUALS,
    'eq': FilterOperator.EQUALS,
    'not-equals': FilterOperator.NOT_EQUALS,
    'not': FilterOperator.NOT_EQUALS,
    'ne': FilterOperator.NOT_EQUALS,
    'in': FilterOperator.IN,
    'is-empty': FilterOperator.IS_EMPTY,
    'empty': FilterOperator.IS_EMPTY,
    'is-not-empty': FilterOperator.IS_NOT_EMPTY,
    'not-empty': FilterOperator.IS_NOT_EMPTY,
    '>': FilterOperator.GT,
    'gt': FilterOperator.GT,
    '>=': FilterOperator.GTE,
    'gte': FilterOperator.GTE,
    '<': FilterOperator.LT,
    'lt': FilterOperator.LT,
    '<=': FilterOperator.LTE,
    'lte': FilterOperator.LTE,
}

_SYMBOLS = {
    FilterOperator.GT: '>',
    FilterOperator.GTE: '>=',
    FilterOperator.LT: '<',
    FilterOperator.LTE: '<=',
}


# =============================================================================
# Filter Clauses
# =============================================================================

@dataclass(frozen=True)
class FilterClause:
    """
    One filter condition on one field.

    Attributes:
        field: Field id the clause applies to
        operator: Filter operator
        value: Comparison value; a list (or comma-separated string) for `in`,
            None for is-empty / is-not-empty
    """
    field: str
    operator: FilterOperator
    value: ClauseValue = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterClause":
        """
        Build a clause from its wire shape.

        Raises:
            ValueError: if the field or operator is missing or unknown
        """
        if not isinstance(data, dict) or not data.get("field"):
            raise ValueError(f"Invalid filter clause: {data!r}")
        operator = FilterOperator.from_string(str(data.get("operator", "")))
        value = data.get("value")
        if isinstance(value, (list, tuple)):
            value = [str(v) for v in value]
        return cls(field=str(data["field"]), operator=operator, value=value)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"field": self.field, "operator": self.operator.value}
        if self.value is not None:
            result["value"] = list(self.value) if isinstance(self.value, list) else self.value
        return result

    def __repr__(self):
        return f"FilterClause({self.field} {self.operator.value} {self.value!r})"


# =============================================================================
# Sort Specification
# =============================================================================

class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    """Sort by one field in one direction."""
    field: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, s: str) -> "SortSpec":
        """
        Parse a sort spec from text like 'points', 'points desc' or 'points:desc'.

        Raises:
            ValueError: if the text is empty or the direction is unknown
        """
        parts = s.replace(':', ' ').split()
        if not parts:
            raise ValueError("Empty sort specification")
        direction = parts[1].lower() if len(parts) > 1 else "asc"
        return cls(field=parts[0], direction=SortDirection(direction))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SortSpec"]:
        """
        Build a sort spec from its wire shape; None stays None.

        Raises:
            ValueError: if the shape is malformed
        """
        if data is None:
            return None
        if not isinstance(data, dict) or not data.get("field"):
            raise ValueError(f"Invalid sort config: {data!r}")
        return cls(
            field=str(data["field"]),
            direction=SortDirection(str(data.get("direction", "asc")).lower()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "direction": self.direction.value}

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC

    def __repr__(self):
        return f"SortSpec({self.field} {self.direction.value})"
