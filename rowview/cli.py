#!/usr/bin/env python3
"""
rowview - command-line front end for the view pipeline.

Loads a table ({fields, rows}) from a JSON or YAML file, applies search,
filter query, sort and grouping, and prints the result. Saved view state is
kept per table id in the state directory.
"""
import sys
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rowview.config import RowviewConfig, init_config
from rowview.models import FieldCatalog, FieldDefinition, Row
from rowview.query.ast import SortDirection, SortSpec
from rowview.query.parser import parse_query, serialize_clauses
from rowview.state import JsonFileStateStore, ViewState
from rowview.views.core import RowGroup
from rowview.views.display import display_value
from rowview.views.grouping import unique_field_values
from rowview.views.pipeline import ViewPipeline, resolve_fields

logger = logging.getLogger(__name__)


console = Console()


class DataFileError(Exception):
    """A table data file could not be read or has the wrong shape."""
    pass


# =============================================================================
# Data loading
# =============================================================================

def _row_from_dict(data: Dict[str, Any]) -> Row:
    """Rows may nest cells under "values" or list them flat beside "id"."""
    if "values" in data:
        return Row.from_dict(data)
    values = {k: v for k, v in data.items() if k not in ("id", "content")}
    return Row(id=str(data["id"]), values=values, content=data.get("content"))


def load_table(path: Path) -> Tuple[FieldCatalog, List[Row]]:
    """
    Load fields and rows from a JSON or YAML file.

    Raises:
        DataFileError: if the file is missing, unparsable or malformed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DataFileError(f"Cannot read {path}: {e}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DataFileError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("fields"), list):
        raise DataFileError(f"{path}: expected an object with a 'fields' list")

    try:
        catalog = FieldCatalog.from_dicts(data["fields"])
        rows = [_row_from_dict(r) for r in data.get("rows") or []]
    except (KeyError, TypeError, ValueError) as e:
        raise DataFileError(f"{path}: malformed field or row: {e}") from e

    logger.debug(f"Loaded {len(catalog)} fields and {len(rows)} rows from {path}")
    return catalog, rows


def _find_field(catalog: FieldCatalog, name: str) -> FieldDefinition:
    field = catalog.by_name(name)
    if field is None:
        raise ValueError(f"Unknown field: {name}")
    return field


def parse_sort_arg(text: str, catalog: FieldCatalog) -> SortSpec:
    """Parse FIELD[:asc|desc]; FIELD may be a field name or id."""
    name, direction = text, SortDirection.ASC
    head, sep, tail = text.rpartition(":")
    if sep and tail.strip().lower() in ("asc", "desc"):
        name, direction = head, SortDirection(tail.strip().lower())
    return SortSpec(field=_find_field(catalog, name.strip()).id, direction=direction)


def get_store(config: RowviewConfig) -> JsonFileStateStore:
    return JsonFileStateStore(config.get_state_dir(), prefix=config.state_prefix)


# =============================================================================
# Output
# =============================================================================

def _cell(text: str, width: int) -> str:
    if width and len(text) > width:
        return text[:max(width - 1, 0)] + "…"
    return text


def rows_table(rows: List[Row], fields: List[FieldDefinition], title: str, width: int) -> Table:
    table = Table(title=escape(title))
    table.add_column("ID", style="cyan")
    for f in fields:
        table.add_column(escape(f.name))
    for row in rows:
        table.add_row(row.id, *(escape(_cell(display_value(row.get(f.id), f), width)) for f in fields))
    return table


def output_result(result, fields: List[FieldDefinition], config: RowviewConfig, fmt: str):
    """Print rows or groups in the given format."""
    grouped = bool(result) and isinstance(result[0], RowGroup)

    if fmt == "json":
        if grouped:
            data = [g.to_dict() for g in result]
        else:
            data = [r.to_dict() for r in result]
        print(json.dumps(data, indent=2))
        return

    visible = [f for f in fields if f.visible]
    if not grouped:
        console.print(rows_table(result, visible, f"Rows ({len(result)})", config.max_cell_width))
        return

    for group in result:
        if group.count == 0 and not config.show_empty_groups:
            continue
        title = f"{group.label} ({group.count})"
        console.print(rows_table(group.rows, visible, title, config.max_cell_width))


# =============================================================================
# Commands
# =============================================================================

def cmd_run(args):
    """Run search, filters, sort and grouping over a data file."""
    config = args.config_obj
    if args.save and not args.table_id:
        raise ValueError("--save requires --table-id")
    catalog, rows = load_table(Path(args.data))

    store = get_store(config)
    state = None
    if args.table_id:
        state = store.load(args.table_id)
    state = state or ViewState()

    if args.filter is not None:
        state.filters = parse_query(args.filter, catalog)
    if args.sort:
        state.sort_config = parse_sort_arg(args.sort, catalog)
    if args.group:
        state.group_by = _find_field(catalog, args.group).id
    if args.no_group:
        state.group_by = None

    fields = resolve_fields(catalog, state.field_order, state.field_widths, state.hidden_columns)
    result = ViewPipeline(fields).run_state(rows, state, search_term=args.search or "")
    output_result(result, fields, config, args.output)

    if args.save:
        if store.save(args.table_id, state):
            console.print(f"[green]Saved view state for {args.table_id}[/green]", highlight=False)
        else:
            console.print(f"[yellow]Could not save view state for {args.table_id}[/yellow]")


def cmd_parse(args):
    """Show how a query is understood."""
    catalog, _ = load_table(Path(args.data))
    clauses = parse_query(args.query, catalog)

    if args.output == "json":
        print(json.dumps({
            "clauses": [c.to_dict() for c in clauses],
            "query": serialize_clauses(clauses, catalog),
        }, indent=2))
        return

    table = Table(title=f"Query: {escape(args.query)}")
    table.add_column("Field", style="cyan")
    table.add_column("Operator", style="yellow")
    table.add_column("Value", style="green")
    for clause in clauses:
        field = catalog.get(clause.field)
        value = "" if clause.value is None else json.dumps(clause.value)
        table.add_row(field.name if field else clause.field, clause.operator.value, value)
    console.print(table)
    console.print(f"Canonical: {serialize_clauses(clauses, catalog)}", highlight=False)


def cmd_values(args):
    """List the distinct values of a field."""
    catalog, rows = load_table(Path(args.data))
    field = _find_field(catalog, args.field)
    values = unique_field_values(rows, field)

    if args.output == "json":
        print(json.dumps([v.to_dict() for v in values], indent=2))
        return

    table = Table(title=f"Values of {field.name}")
    table.add_column("Label", style="green")
    table.add_column("Count", style="magenta", justify="right")
    for v in values:
        table.add_row(escape(v.label), str(v.count))
    console.print(table)


def cmd_state(args):
    """Inspect or clear saved view state."""
    store = get_store(args.config_obj)

    if args.state_command == "list":
        ids = store.list_ids()
        if args.output == "json":
            print(json.dumps(ids))
        elif not ids:
            console.print("[yellow]No saved view state[/yellow]")
        else:
            for table_id in ids:
                print(table_id)
        return

    if not args.table_id:
        raise ValueError(f"state {args.state_command} requires a TABLE_ID")

    if args.state_command == "show":
        state = store.load(args.table_id)
        if state is None:
            console.print(f"[yellow]No saved view state for {args.table_id}[/yellow]")
            return
        print(json.dumps(state.to_dict(), indent=2))
    elif args.state_command == "clear":
        if store.clear(args.table_id):
            console.print(f"[green]Cleared view state for {args.table_id}[/green]", highlight=False)
        else:
            console.print(f"[yellow]Could not clear view state for {args.table_id}[/yellow]")


# =============================================================================
# Entry point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rowview",
        description="rowview - filter, sort and group table rows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rowview run tasks.json --filter 'Status:in:Todo,(empty) points:>3'
  rowview run tasks.yaml --search login --sort points:desc
  rowview run tasks.json --group Status --table-id backlog --save
  rowview run tasks.json --filter=-status:equals:done
  rowview parse tasks.json '"login page" -status:Done'
  rowview values tasks.json Tags
  rowview state list

A query that starts with '-' (a negated term) must be passed as --filter=QUERY.

Configuration:
  Config file: ~/.config/rowview/config.toml (or ./rowview.toml)
  Environment: ROWVIEW_STATE_DIR, ROWVIEW_OUTPUT_FORMAT, ROWVIEW_LOG_LEVEL
        """
    )

    # Global options
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("--state-dir", help="Directory for saved view state")
    parser.add_argument("-o", "--output", choices=["table", "json"], help="Output format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    run_parser = subparsers.add_parser("run", help="Run the view pipeline over a data file")
    run_parser.add_argument("data", help="JSON or YAML file with fields and rows")
    run_parser.add_argument("--search", help="Free-text search over visible fields")
    run_parser.add_argument(
        "--filter", help="Filter query; write --filter=QUERY when QUERY starts with '-'",
    )
    run_parser.add_argument("--sort", help="Sort as FIELD[:asc|desc]")
    run_parser.add_argument("--group", help="Group by FIELD (sort is then ignored)")
    run_parser.add_argument("--no-group", action="store_true", help="Ignore saved grouping")
    run_parser.add_argument("--table-id", help="Load (and with --save, store) view state under this id")
    run_parser.add_argument("--save", action="store_true", help="Save the resulting view state")
    run_parser.set_defaults(func=cmd_run)

    parse_parser = subparsers.add_parser("parse", help="Show the clauses a query parses to")
    parse_parser.add_argument("data", help="JSON or YAML file with fields")
    parse_parser.add_argument("query", help="Filter query; put -- before a query that starts with '-'")
    parse_parser.set_defaults(func=cmd_parse)

    values_parser = subparsers.add_parser("values", help="Distinct values of a field")
    values_parser.add_argument("data", help="JSON or YAML file with fields and rows")
    values_parser.add_argument("field", help="Field name or id")
    values_parser.set_defaults(func=cmd_values)

    state_parser = subparsers.add_parser("state", help="Saved view state")
    state_parser.add_argument("state_command", choices=["show", "clear", "list"])
    state_parser.add_argument("table_id", nargs="?", help="Table id")
    state_parser.set_defaults(func=cmd_state)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    global console

    parser = build_parser()
    args = parser.parse_args(argv)

    # Initialize configuration with CLI overrides
    config = init_config(
        config_file=Path(args.config) if args.config else None,
        output_format=args.output,
        state_dir=args.state_dir,
    )
    if not args.output:
        args.output = config.output_format
    args.config_obj = config

    level = logging.DEBUG if args.verbose else getattr(logging, str(config.log_level).upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if not config.color_output:
        console = Console(no_color=True)

    try:
        args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except (DataFileError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
