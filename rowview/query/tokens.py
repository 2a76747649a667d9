"""
Quote-aware tokenizing helpers for the query language.

Double quotes protect spaces, colons and commas:

    split_terms('title:contains:"login page" -status:equals:done')
        -> ['title:contains:"login page"', '-status:equals:done']
    split_outside_quotes('status:in:"In Progress",(empty)', ':', 2)
        -> ['status', 'in', '"In Progress",(empty)']
    split_list('"In Progress",(empty)')
        -> ['In Progress', '(empty)']
"""

from typing import List, Optional

QUOTE = '"'


def split_terms(s: str) -> List[str]:
    """Split a query into whitespace-separated terms, respecting quotes."""
    terms = []
    current = []
    in_quotes = False

    for char in s:
        if char == QUOTE:
            in_quotes = not in_quotes
            current.append(char)
        elif char.isspace() and not in_quotes:
            if current:
                terms.append(''.join(current))
                current = []
        else:
            current.append(char)

    if current:
        terms.append(''.join(current))

    return terms


def split_outside_quotes(s: str, sep: str, maxsplit: Optional[int] = None) -> List[str]:
    """Split on a single-character separator that is not inside quotes."""
    parts = []
    current = []
    in_quotes = False

    for char in s:
        if char == QUOTE:
            in_quotes = not in_quotes
            current.append(char)
        elif char == sep and not in_quotes and (maxsplit is None or len(parts) < maxsplit):
            parts.append(''.join(current))
            current = []
        else:
            current.append(char)

    parts.append(''.join(current))
    return parts


def is_quoted(s: str) -> bool:
    """True when the whole string is one quoted segment."""
    return len(s) >= 2 and s.startswith(QUOTE) and s.endswith(QUOTE) and QUOTE not in s[1:-1]


def unquote(s: str) -> str:
    """Strip surrounding whitespace and one pair of surrounding quotes."""
    s = s.strip()
    if is_quoted(s):
        return s[1:-1]
    return s


def split_list(s: str) -> List[str]:
    """
    Split a comma-separated value list, respecting quotes.

    A list quoted as a whole ('"A,B"') is unwrapped first. Items are
    unquoted; empty items are dropped.
    """
    s = unquote(s)
    return [unquote(item) for item in split_outside_quotes(s, ',') if item.strip()]


def quote_if_needed(s: str, special: str = ' ,') -> str:
    """Wrap text in quotes when it contains whitespace or any special character."""
    if any(ch in s for ch in special) or any(ch.isspace() for ch in s):
        return f'{QUOTE}{s}{QUOTE}'
    return s
