"""
Field and row models for rowview.

A table is described by a catalog of typed fields and a collection of rows.
Rows store raw cell values keyed by field id; select-type fields store option
ids which are resolved to human-readable labels at display time.

Example:
    fields = [
        FieldDefinition(id="title", name="Title", type=FieldType.TITLE),
        FieldDefinition(
            id="status", name="Status", type=FieldType.SINGLE_SELECT,
            options=[FieldOption("opt_todo", "Todo"), FieldOption("opt_done", "Done")],
        ),
    ]
    catalog = FieldCatalog(fields)
    row = Row(id="r1", values={"title": "Login page", "status": "opt_todo"})
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

CellValue = Union[str, int, float, bool, None, List[str]]


# =============================================================================
# Field Types
# =============================================================================

class ValueKind(Enum):
    """
    How a field's stored values behave when filtered, sorted or grouped.

    Every FieldType maps to exactly one kind; evaluators dispatch on the
    kind rather than on the individual field type.
    """
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    OPTION = "option"      # single option id
    OPTIONS = "options"    # list of option ids


class FieldType(Enum):
    """Field (column) types supported by a table."""
    TITLE = "title"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"
    ASSIGNEE = "assignee"
    ITERATION = "iteration"
    LINK = "link"

    @classmethod
    def from_string(cls, s: str) -> "FieldType":
        """Parse field type from its wire value."""
        s = s.lower().strip()
        for member in cls:
            if member.value == s:
                return member
        raise ValueError(f"Unknown field type: {s}")

    @property
    def kind(self) -> ValueKind:
        return _KINDS[self]


_KINDS = {
    FieldType.TITLE: ValueKind.TEXT,
    FieldType.TEXT: ValueKind.TEXT,
    FieldType.LINK: ValueKind.TEXT,
    FieldType.NUMBER: ValueKind.NUMBER,
    FieldType.DATE: ValueKind.DATE,
    FieldType.SINGLE_SELECT: ValueKind.OPTION,
    FieldType.ASSIGNEE: ValueKind.OPTION,
    FieldType.ITERATION: ValueKind.OPTION,
    FieldType.MULTI_SELECT: ValueKind.OPTIONS,
}

if set(_KINDS) != set(FieldType):
    raise RuntimeError("every field type needs a value kind")


# =============================================================================
# Field Definitions
# =============================================================================

@dataclass(frozen=True)
class FieldOption:
    """An option of a select field (status, tag, user, sprint...)."""
    id: str
    label: str
    color: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldOption":
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", data["id"])),
            color=data.get("color", data.get("colour")),
            description=data.get("description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "label": self.label}
        if self.color is not None:
            result["color"] = self.color
        if self.description is not None:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class FieldDefinition:
    """
    A named, typed column in the row schema.

    Attributes:
        id: Unique field id within a catalog
        name: Display name (also matched by the query parser)
        type: Field type
        options: Ordered option list for select-type fields
        visible: Whether the column is shown (and searched by free text)
        width: Optional column width in pixels
    """
    id: str
    name: str
    type: FieldType
    options: Optional[List[FieldOption]] = None
    visible: bool = True
    width: Optional[float] = None

    @property
    def kind(self) -> ValueKind:
        return self.type.kind

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    def option_by_id(self, option_id: Any) -> Optional[FieldOption]:
        """Find an option by its id."""
        for option in self.options or []:
            if option.id == option_id:
                return option
        return None

    def option_by_label(self, label: Any) -> Optional[FieldOption]:
        """Find an option by its label (case-insensitive)."""
        if label is None:
            return None
        wanted = str(label).lower()
        for option in self.options or []:
            if option.label.lower() == wanted:
                return option
        return None

    def resolve_option_id(self, text: Any) -> Optional[str]:
        """Resolve filter text to an option id: id match first, then label."""
        option = self.option_by_id(text) or self.option_by_label(text)
        return option.id if option else None

    def with_layout(self, visible: Optional[bool] = None, width: Optional[float] = None) -> "FieldDefinition":
        """Copy of this field with visibility/width overridden."""
        changes: Dict[str, Any] = {}
        if visible is not None:
            changes["visible"] = visible
        if width is not None:
            changes["width"] = width
        return replace(self, **changes) if changes else self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDefinition":
        options = data.get("options")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            type=FieldType.from_string(data.get("type", "text")),
            options=[FieldOption.from_dict(o) for o in options] if options is not None else None,
            visible=bool(data.get("visible", True)),
            width=data.get("width"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "visible": self.visible,
        }
        if self.options is not None:
            result["options"] = [o.to_dict() for o in self.options]
        if self.width is not None:
            result["width"] = self.width
        return result


# =============================================================================
# Rows
# =============================================================================

@dataclass(frozen=True)
class Row:
    """One record: a mapping from field id to a stored cell value."""
    id: str
    values: Dict[str, CellValue] = field(default_factory=dict)
    content: Any = None

    def get(self, field_id: str) -> CellValue:
        """Stored value for a field, None when absent."""
        return self.values.get(field_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Row":
        return cls(
            id=str(data["id"]),
            values=dict(data.get("values") or {}),
            content=data.get("content"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "values": dict(self.values)}
        if self.content is not None:
            result["content"] = self.content
        return result


# =============================================================================
# Field Catalog
# =============================================================================

class FieldCatalog:
    """
    Read-only lookup of field id to field definition.

    Preserves the order fields were supplied in; that order decides which
    field is "first" of a type (e.g. the default field for bare search words).
    """

    def __init__(self, fields: Union["FieldCatalog", List[FieldDefinition], None] = None):
        if isinstance(fields, FieldCatalog):
            fields = list(fields)
        self._fields: List[FieldDefinition] = list(fields or [])
        self._by_id: Dict[str, FieldDefinition] = {}
        for f in self._fields:
            self._by_id.setdefault(f.id, f)

    @classmethod
    def from_dicts(cls, data: List[Dict[str, Any]]) -> "FieldCatalog":
        return cls([FieldDefinition.from_dict(d) for d in data])

    def get(self, field_id: Optional[str]) -> Optional[FieldDefinition]:
        if field_id is None:
            return None
        return self._by_id.get(field_id)

    def by_name(self, name: str) -> Optional[FieldDefinition]:
        """Find a field by name or id, case-insensitive."""
        wanted = name.lower()
        for f in self._fields:
            if f.name.lower() == wanted or f.id.lower() == wanted:
                return f
        return None

    def first_of_type(self, *types: FieldType) -> Optional[FieldDefinition]:
        """First field whose type is in `types`, trying types in the given order."""
        for field_type in types:
            for f in self._fields:
                if f.type == field_type:
                    return f
        return None

    def visible(self) -> List[FieldDefinition]:
        return [f for f in self._fields if f.visible]

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._by_id

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldCatalog({[f.id for f in self._fields]!r})"
