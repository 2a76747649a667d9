"""
Parser for the rowview filter query language.

A query is a sequence of space-separated terms combined with AND:

    login                          bare word: title contains "login"
    "login page"                   quoted phrase: title contains "login page"
    Status:equals:Done             field:operator:value
    -Status:equals:Done            negated equals -> not-equals
    points:>:3  /  points:>3       symbolic comparators
    owner:contains:tony            field aliases (owner -> assignee field)
    Status:in:"In Progress",(empty)
    Due:is-empty

Parsing is best-effort: a term that cannot be read as a clause (unknown
field, unknown operator, ...) is treated as a bare search word instead of
failing the whole query.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

from rowview.models import FieldCatalog, FieldDefinition, FieldType, ValueKind
from rowview.query.ast import EMPTY_SENTINEL, FilterClause, FilterOperator
from rowview.query.tokens import (
    quote_if_needed,
    split_list,
    split_outside_quotes,
    split_terms,
    unquote,
)

logger = logging.getLogger(__name__)

Fields = Union[FieldCatalog, Sequence[FieldDefinition]]

# Alias -> field types tried in order
FIELD_ALIASES = {
    'owner': (FieldType.ASSIGNEE,),
    'assigned': (FieldType.ASSIGNEE,),
    'assignee': (FieldType.ASSIGNEE,),
    'tag': (FieldType.MULTI_SELECT,),
    'tags': (FieldType.MULTI_SELECT,),
    'label': (FieldType.MULTI_SELECT,),
    'labels': (FieldType.MULTI_SELECT,),
    'sprint': (FieldType.ITERATION,),
    'iteration': (FieldType.ITERATION,),
    'title': (FieldType.TITLE,),
    'name': (FieldType.TITLE,),
}

EMPTY_TOKENS = ('(empty)', 'empty')

# Longest first so '>=' is not read as '>' followed by '=3'
_SYMBOL_PREFIXES = ('>=', '<=', '>', '<')


class ParseError(Exception):
    """A query term that cannot be read as a filter clause."""
    pass


def _as_catalog(fields: Fields) -> FieldCatalog:
    if isinstance(fields, FieldCatalog):
        return fields
    return FieldCatalog(list(fields))


class QueryParser:
    """
    Parses query text into FilterClause lists against a field catalog.

    The catalog decides which fields aliases and names resolve to, and which
    field bare words search (first title field, else first text field).
    """

    def __init__(self, fields: Fields):
        self.catalog = _as_catalog(fields)
        self.default_field = self.catalog.first_of_type(FieldType.TITLE, FieldType.TEXT)

    def parse(self, query: str) -> List[FilterClause]:
        """Parse a full query string; never raises."""
        if not query or not query.strip():
            return []

        clauses = []
        for term in split_terms(query):
            try:
                clause = self.parse_term(term)
            except ParseError as e:
                logger.debug(f"Treating {term!r} as a search word: {e}")
                clause = self._bare_word(term)
            if clause is not None:
                clauses.append(clause)
        return clauses

    def parse_term(self, term: str) -> Optional[FilterClause]:
        """
        Parse a single term.

        Raises:
            ParseError: if the term looks like a clause but cannot be read as one
        """
        negated = term.startswith('-')
        body = term[1:] if negated else term

        parts = split_outside_quotes(body, ':', 2)
        if len(parts) < 2:
            return self._bare_word(term)

        field = self.resolve_field(unquote(parts[0]))
        if field is None:
            raise ParseError(f"Unknown field: {parts[0]!r}")

        operator, raw_value = self._read_operator(parts)

        if negated:
            if operator != FilterOperator.EQUALS:
                raise ParseError(f"Operator {operator.value!r} cannot be negated")
            operator = FilterOperator.NOT_EQUALS

        if not operator.takes_value:
            return FilterClause(field=field.id, operator=operator)

        if raw_value is None or not unquote(raw_value):
            raise ParseError(f"Missing value for {field.name}:{operator.value}")

        return FilterClause(
            field=field.id,
            operator=operator,
            value=self._read_value(field, operator, raw_value),
        )

    def resolve_field(self, alias: str) -> Optional[FieldDefinition]:
        """Resolve a field alias: name/id match first, then the alias table."""
        if not alias:
            return None
        field = self.catalog.by_name(alias)
        if field is not None:
            return field
        types = FIELD_ALIASES.get(alias.lower())
        if types:
            return self.catalog.first_of_type(*types)
        return None

    def _read_operator(self, parts: List[str]) -> Tuple[FilterOperator, Optional[str]]:
        """Split [field, op, value...] into the operator and the raw value text."""
        op_text = parts[1].strip()
        rest = parts[2] if len(parts) > 2 else None

        try:
            return FilterOperator.from_string(op_text), rest
        except ValueError:
            pass

        # points:>3
        for symbol in _SYMBOL_PREFIXES:
            if op_text.startswith(symbol):
                value = op_text[len(symbol):]
                if rest is not None:
                    value = f"{value}:{rest}"
                return FilterOperator.from_string(symbol), value

        # status:done -> contains
        if rest is None:
            return FilterOperator.CONTAINS, op_text

        raise ParseError(f"Unknown operator: {op_text!r}")

    def _read_value(self, field: FieldDefinition, operator: FilterOperator, raw: str):
        if operator == FilterOperator.IN:
            items = split_list(raw)
            return [EMPTY_SENTINEL if item.lower() in EMPTY_TOKENS else item for item in items]

        value = unquote(raw)
        if operator in (FilterOperator.EQUALS, FilterOperator.NOT_EQUALS) and field.kind == ValueKind.OPTION:
            option_id = field.resolve_option_id(value)
            if option_id is not None:
                return option_id
        return value

    def _bare_word(self, term: str) -> Optional[FilterClause]:
        word = unquote(term)
        if not word:
            return None
        if self.default_field is None:
            logger.debug(f"No title or text field to search for {word!r}")
            return None
        return FilterClause(field=self.default_field.id, operator=FilterOperator.CONTAINS, value=word)


def parse_query(query: str, fields: Fields) -> List[FilterClause]:
    """Parse query text into filter clauses (best-effort, never raises)."""
    return QueryParser(fields).parse(query)


# =============================================================================
# Serialization
# =============================================================================

def _format_value(clause: FilterClause, field: FieldDefinition) -> str:
    value = clause.value
    if isinstance(value, list):
        items = []
        for item in value:
            if item == EMPTY_SENTINEL:
                items.append(EMPTY_SENTINEL)
                continue
            option = field.option_by_id(item)
            items.append(quote_if_needed(option.label if option else str(item)))
        return ','.join(items)

    text = '' if value is None else str(value)
    if field.kind in (ValueKind.OPTION, ValueKind.OPTIONS):
        option = field.option_by_id(value)
        if option:
            text = option.label
    return quote_if_needed(text, special=' ')


def serialize_clauses(clauses: Sequence[FilterClause], fields: Fields) -> str:
    """
    Render clauses back into query text.

    Uses field names, symbolic comparators and option labels, so the output
    reads the way a person would type it and parses back to equivalent clauses.
    Clauses on unknown fields are skipped.
    """
    catalog = _as_catalog(fields)
    terms = []

    for clause in clauses:
        field = catalog.get(clause.field)
        if field is None:
            continue

        name = quote_if_needed(field.name, special=' :')
        symbol = clause.operator.symbol
        if not clause.operator.takes_value:
            terms.append(f"{name}:{symbol}:")
            continue

        terms.append(f"{name}:{symbol}:{_format_value(clause, field)}")

    return ' '.join(terms)
