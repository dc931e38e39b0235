# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed filter AST for list queries.

A raw parameter bag (query string or JSON body) is parsed into a
ParsedQuery holding FilterCondition nodes. Conditions are compiled
against a concrete model only after each field and operator has been
checked, so nothing from the request is ever spliced into SQL text.

Accepted filter shapes:
    {"difficulty": "easy"}                equality
    {"difficulty": "easy,medium"}         any of (comma separated)
    {"duration": {"gte": 30, "lt": 90}}   comparison mapping
    {"duration[gte]": "30"}               comparison in query-string form
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from sqlalchemy import and_, false, or_
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.sql.elements import ColumnElement

from src.utils.datetime import parse_iso

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields", "search", "searchFields"})
DEFAULT_SEARCH_FIELDS = ("content", "title", "name", "topic")
LIST_SEPARATOR = ","

_BRACKET_KEY = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)\[(?P<op>[A-Za-z]+)\]$")


class InvalidQueryError(Exception):
    """A list request carried a filter that cannot be applied."""

    pass


class FilterOperator(str, Enum):
    """Comparison operators a filter may use."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NIN = "nin"


_SET_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NIN})


@dataclass(frozen=True)
class FilterCondition:
    """One (field, operator, value) node."""

    field: str
    operator: FilterOperator
    value: Any


@dataclass
class ParsedQuery:
    """Structured form of a list request.

    Attributes:
        filters: Conditions combined with AND.
        search: Case-insensitive substring to look for, if any.
        search_fields: Columns searched; None means the default set.
        sort: Sort specifier such as "-created_at,title", if any.
        fields: Projection allow-list; None means every public column.
        page: Raw page value as received.
        limit: Raw page-size value as received.
    """

    filters: list[FilterCondition] = field(default_factory=list)
    search: Optional[str] = None
    search_fields: Optional[list[str]] = None
    sort: Optional[str] = None
    fields: Optional[list[str]] = None
    page: Any = None
    limit: Any = None


def _split_list(raw: Any) -> list[Any]:
    if isinstance(raw, (list, tuple, set)):
        return list(raw)
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(LIST_SEPARATOR) if part.strip()]
    return [raw]


def _parse_operator(name: str) -> FilterOperator:
    try:
        return FilterOperator(name.lower())
    except ValueError as e:
        raise InvalidQueryError(f"Unknown filter operator: {name}") from e


def _condition(field_name: str, operator: FilterOperator, value: Any) -> FilterCondition:
    if operator in _SET_OPERATORS:
        return FilterCondition(field_name, operator, _split_list(value))
    if operator == FilterOperator.EQ and isinstance(value, str) and LIST_SEPARATOR in value:
        return FilterCondition(field_name, FilterOperator.IN, _split_list(value))
    if operator == FilterOperator.EQ and isinstance(value, (list, tuple)):
        return FilterCondition(field_name, FilterOperator.IN, list(value))
    return FilterCondition(field_name, operator, value)


def _comma_list(raw: Any) -> Optional[list[str]]:
    if raw is None or raw == "":
        return None
    return [str(item) for item in _split_list(raw)]


def parse_query_params(params: Mapping[str, Any]) -> ParsedQuery:
    """Build a ParsedQuery from a raw parameter bag.

    Args:
        params: Request parameters, typically ``dict(request.query_params)``.

    Returns:
        The parsed query.

    Raises:
        InvalidQueryError: If an operator is not recognized.
    """
    parsed = ParsedQuery(
        search=params.get("search") or None,
        search_fields=_comma_list(params.get("searchFields")),
        sort=params.get("sort") or None,
        fields=_comma_list(params.get("fields")),
        page=params.get("page"),
        limit=params.get("limit"),
    )

    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue

        match = _BRACKET_KEY.match(key)
        if match:
            parsed.filters.append(
                _condition(match.group("field"), _parse_operator(match.group("op")), value)
            )
        elif isinstance(value, Mapping):
            for op_name, op_value in value.items():
                parsed.filters.append(_condition(key, _parse_operator(op_name), op_value))
        else:
            parsed.filters.append(_condition(key, FilterOperator.EQ, value))

    return parsed


def _coerce(column: Any, value: Any) -> Any:
    """Convert a raw request value to the column's Python type."""
    if value is None:
        return None

    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    if isinstance(value, python_type) and not (python_type is int and isinstance(value, bool)):
        return value

    try:
        if python_type is bool:
            lowered = str(value).strip().lower()
            if lowered in ("true", "1", "yes"):
                return True
            if lowered in ("false", "0", "no"):
                return False
            raise ValueError(value)
        if python_type is datetime:
            return parse_iso(str(value))
        if python_type in (list, dict):
            return value
        return python_type(value)
    except (TypeError, ValueError) as e:
        raise InvalidQueryError(
            f"Invalid value {value!r} for field {column.key}"
        ) from e


def _compile_one(model: type, condition: FilterCondition) -> ColumnElement[bool]:
    column = model.__table__.columns.get(condition.field)
    if column is None:
        raise InvalidQueryError(f"Unknown filter field: {condition.field}")

    attr = getattr(model, column.key)
    op = condition.operator

    if isinstance(column.type, ARRAY):
        items = [str(v) for v in _split_list(condition.value)]
        if op == FilterOperator.EQ:
            return attr.contains(items)
        if op == FilterOperator.NE:
            return ~attr.contains(items)
        if op == FilterOperator.IN:
            return attr.overlap(items)
        if op == FilterOperator.NIN:
            return ~attr.overlap(items)
        raise InvalidQueryError(f"Operator {op.value} is not supported on {condition.field}")

    if op in _SET_OPERATORS:
        values = [_coerce(column, v) for v in condition.value]
        return attr.in_(values) if op == FilterOperator.IN else attr.not_in(values)

    value = _coerce(column, condition.value)
    if op == FilterOperator.EQ:
        return attr.is_(None) if value is None else attr == value
    if op == FilterOperator.NE:
        return attr.is_not(None) if value is None else attr != value
    if op == FilterOperator.GT:
        return attr > value
    if op == FilterOperator.GTE:
        return attr >= value
    if op == FilterOperator.LT:
        return attr < value
    return attr <= value


def compile_conditions(
    model: type, filters: list[FilterCondition]
) -> Optional[ColumnElement[bool]]:
    """Compile filter nodes into one AND-ed SQL expression.

    Args:
        model: Mapped model class the filters apply to.
        filters: Parsed conditions.

    Returns:
        The combined clause, or None when there are no filters.

    Raises:
        InvalidQueryError: On unknown fields, unsupported operators or
            values that cannot be converted to the column type.
    """
    if not filters:
        return None
    return and_(*[_compile_one(model, condition) for condition in filters])


def compile_search(
    model: type, term: Optional[str], search_fields: Optional[list[str]] = None
) -> Optional[ColumnElement[bool]]:
    """Compile a case-insensitive substring search across text columns.

    Args:
        model: Mapped model class.
        term: Text to look for.
        search_fields: Columns to search; the default set when None.

    Returns:
        OR-ed ILIKE clause, or None when no term is given. A model with
        no searchable column yields a clause that matches nothing.

    Raises:
        InvalidQueryError: If an explicitly requested field does not exist.
    """
    if not term:
        return None

    columns = model.__table__.columns
    if search_fields:
        missing = [name for name in search_fields if name not in columns]
        if missing:
            raise InvalidQueryError(f"Unknown search field: {', '.join(missing)}")
        names = search_fields
    else:
        names = [name for name in DEFAULT_SEARCH_FIELDS if name in columns]

    if not names:
        return false()

    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(*[getattr(model, columns[name].key).ilike(pattern, escape="\\") for name in names])
