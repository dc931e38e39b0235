# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Generic list pipeline: scope, filter, search, sort, paginate, project, populate.

Every list endpoint goes through QueryPipeline so that paging metadata,
default ordering and field projection behave the same everywhere.

Example:
    pipeline = QueryPipeline(session, Question, TenantScope.for_actor(actor))
    page = await pipeline.execute(
        dict(request.query_params),
        pre_filter=or_(Question.is_public.is_(True), Question.created_by == actor.id),
        populate=[Populate("subject", ("name",))],
    )
    # {"data": [...], "pagination": {"current": 1, "limit": 20, ...}}
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only, selectinload
from sqlalchemy.sql.elements import ColumnElement

from src.infrastructure.database.models.base import VERSION_COLUMN, is_tenant_scoped
from src.infrastructure.database.query.filters import (
    InvalidQueryError,
    ParsedQuery,
    compile_conditions,
    compile_search,
    parse_query_params,
)
from src.infrastructure.database.query.scoping import TenantScope, TenantScopeRequiredError

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-created_at"
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100


@dataclass(frozen=True)
class Populate:
    """Relation expansion directive.

    Attributes:
        relation: Relationship attribute name on the listed model.
        fields: Columns of the related model to embed.
    """

    relation: str
    fields: tuple[str, ...]


def row_to_dict(
    instance: Any,
    fields: Optional[Iterable[str]] = None,
) -> dict[str, Any]:
    """Shape one ORM row as a plain dict.

    Args:
        instance: Mapped instance.
        fields: Columns to include; every column except the version
            marker when None.

    Returns:
        Column name to value mapping, always including the id.
    """
    columns = instance.__table__.columns
    if fields is None:
        names = [column.key for column in columns if column.key != VERSION_COLUMN]
    else:
        names = list(fields)
        if "id" in columns and "id" not in names:
            names.insert(0, "id")
    return {name: getattr(instance, name) for name in names}


def resolve_page(page: Any) -> int:
    """1-indexed page number; anything unusable becomes 1."""
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    return value if value >= 1 else 1


def resolve_limit(
    limit: Any,
    default_limit: int = DEFAULT_PAGE_LIMIT,
    max_limit: int = MAX_PAGE_LIMIT,
) -> int:
    """Page size, defaulted when unusable and capped at max_limit."""
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = default_limit
    if value < 1:
        value = default_limit
    return min(value, max_limit)


def pagination_meta(page: int, limit: int, total: int) -> dict[str, Any]:
    """Build the pagination block for a page of results."""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


class QueryPipeline:
    """Scoped, paginated list query over one model.

    Attributes:
        session: Session the queries run on.
        model: Mapped model class being listed.
        scope: Tenant scope; mandatory for tenant-scoped models.
        default_limit: Page size when the request gives none.
        max_limit: Hard cap on page size.
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type,
        scope: Optional[TenantScope],
        default_limit: int = DEFAULT_PAGE_LIMIT,
        max_limit: int = MAX_PAGE_LIMIT,
    ) -> None:
        if scope is None and is_tenant_scoped(model):
            raise TenantScopeRequiredError(
                f"{model.__name__} is tenant scoped; a TenantScope is required"
            )
        self.session = session
        self.model = model
        self.scope = scope
        self.default_limit = default_limit
        self.max_limit = max_limit

    def _columns(self) -> Any:
        return self.model.__table__.columns

    def _where_clauses(
        self,
        query: ParsedQuery,
        pre_filter: Optional[ColumnElement[bool]],
    ) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []

        if self.scope is not None:
            scope_clause = self.scope.predicate(self.model)
            if scope_clause is not None:
                clauses.append(scope_clause)

        if pre_filter is not None:
            clauses.append(pre_filter)

        filter_clause = compile_conditions(self.model, query.filters)
        if filter_clause is not None:
            clauses.append(filter_clause)

        search_clause = compile_search(self.model, query.search, query.search_fields)
        if search_clause is not None:
            clauses.append(search_clause)

        return clauses

    def _order_by(self, sort: str) -> list[Any]:
        order: list[Any] = []
        columns = self._columns()
        for part in sort.split(","):
            name = part.strip()
            if not name:
                continue
            descending = name.startswith("-")
            name = name.lstrip("-+")
            if name not in columns:
                raise InvalidQueryError(f"Unknown sort field: {name}")
            attr = getattr(self.model, columns[name].key)
            order.append(attr.desc() if descending else attr.asc())
        return order

    def _projection(self, fields: Optional[list[str]]) -> Optional[list[str]]:
        if fields is None:
            return None
        columns = self._columns()
        unknown = [name for name in fields if name not in columns]
        if unknown:
            raise InvalidQueryError(f"Unknown field: {', '.join(unknown)}")
        return fields

    def _populate_options(self, populate: Sequence[Populate]) -> list[Any]:
        options = []
        for directive in populate:
            relationship = self.model.__mapper__.relationships.get(directive.relation)
            if relationship is None:
                raise InvalidQueryError(f"Unknown relation: {directive.relation}")
            target = relationship.mapper.class_
            attrs = [getattr(target, name) for name in directive.fields]
            options.append(
                selectinload(getattr(self.model, directive.relation)).load_only(*attrs)
            )
        return options

    async def count(
        self,
        params: Union[Mapping[str, Any], ParsedQuery, None] = None,
        pre_filter: Optional[ColumnElement[bool]] = None,
    ) -> int:
        """Number of rows matching scope, pre-filter, filters and search."""
        query = self._parse(params)
        stmt = select(func.count()).select_from(self.model)
        clauses = self._where_clauses(query, pre_filter)
        if clauses:
            stmt = stmt.where(*clauses)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    def _parse(self, params: Union[Mapping[str, Any], ParsedQuery, None]) -> ParsedQuery:
        if params is None:
            return ParsedQuery()
        if isinstance(params, ParsedQuery):
            return params
        return parse_query_params(params)

    async def execute(
        self,
        params: Union[Mapping[str, Any], ParsedQuery, None] = None,
        pre_filter: Optional[ColumnElement[bool]] = None,
        populate: Sequence[Populate] = (),
        default_sort: str = DEFAULT_SORT,
        default_limit: Optional[int] = None,
    ) -> dict[str, Any]:
        """Run the list query.

        Args:
            params: Raw request parameters or an already parsed query.
            pre_filter: Caller-supplied visibility clause (e.g. "mine or public").
            populate: Relation expansions to embed in every row.
            default_sort: Sort specifier used when the request has none.
            default_limit: Per-endpoint page size override.

        Returns:
            {"data": [row dicts], "pagination": {...}}.

        Raises:
            InvalidQueryError: On malformed filter, sort, field or relation names.
        """
        query = self._parse(params)

        page = resolve_page(query.page)
        limit = resolve_limit(
            query.limit,
            default_limit=default_limit or self.default_limit,
            max_limit=self.max_limit,
        )
        fields = self._projection(query.fields)
        clauses = self._where_clauses(query, pre_filter)

        total = await self.count(query, pre_filter)

        stmt = select(self.model)
        if clauses:
            stmt = stmt.where(*clauses)
        stmt = stmt.order_by(*self._order_by(query.sort or default_sort))
        stmt = stmt.offset((page - 1) * limit).limit(limit)
        for option in self._populate_options(populate):
            stmt = stmt.options(option)

        result = await self.session.execute(stmt)
        rows = result.scalars().all()

        data = []
        for row in rows:
            item = row_to_dict(row, fields)
            for directive in populate:
                related = getattr(row, directive.relation)
                item[directive.relation] = (
                    row_to_dict(related, directive.fields) if related is not None else None
                )
            data.append(item)

        logger.debug(
            "Listed %s: page=%d limit=%d total=%d",
            self.model.__name__,
            page,
            limit,
            total,
        )

        return {"data": data, "pagination": pagination_meta(page, limit, total)}
