"""
Display resolution and value coercion shared by the view stages.

Stored cell values are raw: select fields hold option ids, numbers may
arrive as strings, dates as ISO text. Filtering, sorting and grouping all
work on the *display value*, the human-readable form a viewer sees.
"""

from datetime import date, datetime, timezone
from typing import Any, List, Optional
import math
import re

from rowview.models import CellValue, FieldDefinition, ValueKind

# Leading numeric prefix, the way JavaScript's parseFloat reads it
_FLOAT_PREFIX = re.compile(r'^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

_DATE_FORMATS = [
    '%Y-%m-%d',
    '%Y/%m/%d',
    '%m/%d/%Y',
    '%d %b %Y',
    '%b %d %Y',
    '%b %d, %Y',
    '%B %d, %Y',
]


def is_empty(value: CellValue) -> bool:
    """None, the empty string and the empty list count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ''
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def to_text(value: Any) -> str:
    """Render a raw value as text (integral floats drop the '.0', booleans are lowercase)."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ', '.join(to_text(v) for v in value)
    return str(value)


def display_labels(value: CellValue, field: FieldDefinition) -> List[str]:
    """Labels for each id of a multi-value cell; unresolvable ids stay raw."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    labels = []
    for item in items:
        option = field.option_by_id(item)
        labels.append(option.label if option else to_text(item))
    return [label for label in labels if label]


def display_value(value: CellValue, field: FieldDefinition) -> str:
    """
    Human-readable form of a stored value.

    - OPTION fields: option label, or the raw id if no option matches
    - OPTIONS fields: labels joined with ", "
    - everything else: the value as text
    """
    if value is None:
        return ''

    kind = field.kind
    if kind == ValueKind.OPTION and field.options and not isinstance(value, (list, tuple)):
        option = field.option_by_id(value)
        return option.label if option else to_text(value)

    if kind == ValueKind.OPTIONS and isinstance(value, (list, tuple)):
        return ', '.join(display_labels(value, field))

    return to_text(value)


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a value as a float.

    Numbers pass through; text is read up to the end of its leading numeric
    prefix ("12px" -> 12.0). Returns None when nothing numeric is found.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        result = float(value)
        return None if math.isnan(result) else result

    match = _FLOAT_PREFIX.match(to_text(value).strip())
    if not match:
        return None
    text = match.group(0)
    if text.lstrip('+-') == 'Infinity':
        return -math.inf if text.startswith('-') else math.inf
    return float(text)


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a value as a timezone-aware datetime.

    Accepts datetime/date objects, epoch milliseconds, ISO 8601 text and a
    handful of common date formats. Naive values are taken as UTC.
    Returns None when the value is not a date.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            dt = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        s = str(value).strip()
        if not s:
            return None
        dt = None
        try:
            dt = datetime.fromisoformat(s.replace('Z', '+00:00'))
        except ValueError:
            for fmt in _DATE_FORMATS:
                try:
                    dt = datetime.strptime(s, fmt)
                    break
                except ValueError:
                    continue
        if dt is None:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_timestamp(value: Any) -> Optional[float]:
    """Seconds since the epoch for a date-like value, None if unparsable."""
    dt = parse_date(value)
    return dt.timestamp() if dt is not None else None


def format_date_label(value: Any) -> Optional[str]:
    """Short month/day/year label for a date value, None if unparsable."""
    dt = parse_date(value)
    if dt is None:
        return None
    return f"{dt.month}/{dt.day}/{dt.year}"
