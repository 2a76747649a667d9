"""
Saved view state and the stores that persist it.

A ViewState is everything a caller restores when a table is reopened:
column order, widths and visibility, the sort, the filters and the group
field. Stores are injected collaborators; the view pipeline never touches
them. A store that cannot read or write is not fatal: failures are logged
and reported as "nothing loaded" / "not saved".

Example:
    store = JsonFileStateStore("~/.config/rowview/state")
    state = store.load("backlog") or ViewState()
    result = ViewPipeline(fields).run_state(rows, state)
    store.save("backlog", state)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union
from urllib.parse import quote, unquote
import json
import logging

from rowview.models import FieldDefinition
from rowview.query.ast import FilterClause, SortSpec

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "rowview-table-"


class StorageUnavailable(Exception):
    """The state backend cannot be read or written."""
    pass


# =============================================================================
# View State
# =============================================================================

@dataclass
class ViewState:
    """
    Persisted layout and view configuration of one table.

    Serialises to the camelCase wire shape:
    {fieldOrder, sortConfig, filters, groupBy, fieldWidths, hiddenColumns, viewOrder}
    """
    field_order: Optional[List[str]] = None
    sort_config: Optional[SortSpec] = None
    filters: List[FilterClause] = field(default_factory=list)
    group_by: Optional[str] = None
    field_widths: Dict[str, float] = field(default_factory=dict)
    hidden_columns: Optional[List[str]] = None
    view_order: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewState":
        """
        Load state from its wire shape.

        Malformed entries are dropped with a warning rather than failing the
        whole state.
        """
        if not isinstance(data, dict):
            logger.warning(f"Ignoring view state that is not an object: {type(data).__name__}")
            return cls()

        raw_filters = data.get("filters") or []
        if not isinstance(raw_filters, list):
            logger.warning(f"Dropping saved filters: expected a list, got {type(raw_filters).__name__}")
            raw_filters = []
        filters = []
        for item in raw_filters:
            try:
                filters.append(FilterClause.from_dict(item))
            except ValueError as e:
                logger.warning(f"Dropping saved filter: {e}")

        sort_config = None
        try:
            sort_config = SortSpec.from_dict(data.get("sortConfig"))
        except ValueError as e:
            logger.warning(f"Dropping saved sort: {e}")

        raw_widths = data.get("fieldWidths") or {}
        if not isinstance(raw_widths, dict):
            logger.warning(f"Dropping saved field widths: expected an object, got {type(raw_widths).__name__}")
            raw_widths = {}
        widths = {}
        for key, value in raw_widths.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                widths[str(key)] = value

        group_by = data.get("groupBy")

        return cls(
            field_order=_str_list(data.get("fieldOrder")),
            sort_config=sort_config,
            filters=filters,
            group_by=str(group_by) if group_by else None,
            field_widths=widths,
            hidden_columns=_str_list(data.get("hiddenColumns")),
            view_order=_str_list(data.get("viewOrder")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "sortConfig": self.sort_config.to_dict() if self.sort_config else None,
            "filters": [c.to_dict() for c in self.filters],
            "groupBy": self.group_by,
            "fieldWidths": dict(self.field_widths),
        }
        if self.field_order is not None:
            result["fieldOrder"] = list(self.field_order)
        if self.hidden_columns is not None:
            result["hiddenColumns"] = list(self.hidden_columns)
        if self.view_order is not None:
            result["viewOrder"] = list(self.view_order)
        return result


def _str_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        logger.warning(f"Expected a list in view state, got {type(value).__name__}")
        return None
    return [str(v) for v in value]


@dataclass
class SavedView:
    """
    A named view: visible columns, sort, filters and grouping.

    `columns` lists the visible field ids in display order.
    """
    id: str
    name: str
    columns: List[str] = field(default_factory=list)
    sort_by: Optional[SortSpec] = None
    filters: List[FilterClause] = field(default_factory=list)
    group_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedView":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            columns=[str(c) for c in data.get("columns") or []],
            sort_by=SortSpec.from_dict(data.get("sortBy")),
            filters=[FilterClause.from_dict(f) for f in data.get("filters") or []],
            group_by=data.get("groupBy"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "columns": list(self.columns),
            "sortBy": self.sort_by.to_dict() if self.sort_by else None,
            "filters": [c.to_dict() for c in self.filters],
            "groupBy": self.group_by,
        }

    def to_view_state(self, fields: Sequence[FieldDefinition]) -> ViewState:
        """
        State that shows this view.

        Columns of the view come first, in view order; every other field is
        hidden and follows in catalog order. A view without columns leaves the
        layout alone.
        """
        state = ViewState(
            sort_config=self.sort_by,
            filters=list(self.filters),
            group_by=self.group_by,
        )
        if not self.columns:
            return state

        all_ids = [f.id for f in fields]
        shown = [c for c in self.columns if c in all_ids]
        hidden = [fid for fid in all_ids if fid not in self.columns]
        state.field_order = shown + hidden
        state.hidden_columns = hidden
        return state


# =============================================================================
# Stores
# =============================================================================

class ViewStateStore(ABC):
    """
    Load/save contract for view state, keyed by an opaque table id.

    Subclasses implement the raw backend operations and may raise
    StorageUnavailable; the public methods never raise.
    """

    @abstractmethod
    def _read(self, table_id: str) -> Optional[str]:
        pass

    @abstractmethod
    def _write(self, table_id: str, payload: str) -> None:
        pass

    @abstractmethod
    def _delete(self, table_id: str) -> None:
        pass

    @abstractmethod
    def _table_ids(self) -> Iterator[str]:
        pass

    def load(self, table_id: str) -> Optional[ViewState]:
        """Saved state for a table, or None if absent or unreadable."""
        try:
            payload = self._read(table_id)
        except StorageUnavailable as e:
            logger.warning(f"View state storage unavailable: {e}")
            return None

        if not payload:
            return None

        try:
            return ViewState.from_dict(json.loads(payload))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to load view state for {table_id!r}: {e}")
            return None

    def save(self, table_id: str, state: ViewState) -> bool:
        """Persist state for a table; False if the backend failed."""
        try:
            self._write(table_id, json.dumps(state.to_dict()))
            return True
        except StorageUnavailable as e:
            logger.warning(f"View state storage unavailable: {e}")
            return False

    def clear(self, table_id: str) -> bool:
        """Remove saved state for a table; False if the backend failed."""
        try:
            self._delete(table_id)
            return True
        except StorageUnavailable as e:
            logger.warning(f"View state storage unavailable: {e}")
            return False

    def list_ids(self) -> List[str]:
        """Ids of all tables with saved state (empty if the backend failed)."""
        try:
            return sorted(self._table_ids())
        except StorageUnavailable as e:
            logger.warning(f"View state storage unavailable: {e}")
            return []


class MemoryStateStore(ViewStateStore):
    """In-process store; `available=False` simulates a backend outage."""

    def __init__(self, available: bool = True):
        self.available = available
        self._data: Dict[str, str] = {}

    def _check(self) -> None:
        if not self.available:
            raise StorageUnavailable("memory store disabled")

    def _read(self, table_id: str) -> Optional[str]:
        self._check()
        return self._data.get(table_id)

    def _write(self, table_id: str, payload: str) -> None:
        self._check()
        self._data[table_id] = payload

    def _delete(self, table_id: str) -> None:
        self._check()
        self._data.pop(table_id, None)

    def _table_ids(self) -> Iterator[str]:
        self._check()
        return iter(list(self._data))


class JsonFileStateStore(ViewStateStore):
    """
    One JSON file per table in a directory.

    Files are named `<prefix><table id>.json`, with the table id
    percent-encoded so any id is a safe file name.
    """

    def __init__(self, directory: Union[str, Path], prefix: str = DEFAULT_PREFIX):
        self.directory = Path(directory).expanduser()
        self.prefix = prefix

    def path_for(self, table_id: str) -> Path:
        return self.directory / f"{self.prefix}{quote(table_id, safe='')}.json"

    def _read(self, table_id: str) -> Optional[str]:
        path = self.path_for(table_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"cannot read {path}: {e}") from e

    def _write(self, table_id: str, payload: str) -> None:
        path = self.path_for(table_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise StorageUnavailable(f"cannot write {path}: {e}") from e

    def _delete(self, table_id: str) -> None:
        path = self.path_for(table_id)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageUnavailable(f"cannot remove {path}: {e}") from e

    def _table_ids(self) -> Iterator[str]:
        if not self.directory.exists():
            return iter([])
        try:
            names = [p.name for p in self.directory.glob(f"{self.prefix}*.json")]
        except OSError as e:
            raise StorageUnavailable(f"cannot list {self.directory}: {e}") from e
        return (unquote(name[len(self.prefix):-len(".json")]) for name in names)
