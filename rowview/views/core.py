"""
Result types produced by the view stages.

- RowGroup: one labeled partition of the filtered rows
- FieldValueCount: a distinct value of a field with its row count
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List

from rowview.models import CellValue, Row

ALL_GROUP_ID = "__all__"
ALL_GROUP_LABEL = "All Items"
EMPTY_GROUP_ID = "__empty__"


@dataclass
class RowGroup:
    """
    A labeled bucket of rows.

    Attributes:
        id: Bucket key (option id, joined ids, raw value, or a reserved id)
        label: Display label
        value: The cell value that defines the bucket
        rows: Rows in the bucket, in input order
        collapsed: Presentation hint, carried through untouched
    """
    id: str
    label: str
    value: CellValue = None
    rows: List[Row] = field(default_factory=list)
    collapsed: bool = False

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def is_empty_bucket(self) -> bool:
        return self.id == EMPTY_GROUP_ID

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def to_dict(self, include_rows: bool = True) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "value": self.value,
            "count": self.count,
        }
        if include_rows:
            result["rows"] = [r.to_dict() for r in self.rows]
        return result


@dataclass(frozen=True)
class FieldValueCount:
    """A distinct value of a field, its label and how many rows hold it."""
    value: CellValue
    label: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "label": self.label, "count": self.count}
