# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""List query building: filter AST, tenant scoping and the pipeline."""

from src.infrastructure.database.query.filters import (
    DEFAULT_SEARCH_FIELDS,
    RESERVED_PARAMS,
    FilterCondition,
    FilterOperator,
    InvalidQueryError,
    ParsedQuery,
    compile_conditions,
    compile_search,
    parse_query_params,
)
from src.infrastructure.database.query.pipeline import (
    DEFAULT_SORT,
    Populate,
    QueryPipeline,
    pagination_meta,
    resolve_limit,
    resolve_page,
    row_to_dict,
)
from src.infrastructure.database.query.scoping import (
    TenantScope,
    TenantScopeRequiredError,
    scoped_select,
)

__all__ = [
    "DEFAULT_SEARCH_FIELDS",
    "DEFAULT_SORT",
    "RESERVED_PARAMS",
    "FilterCondition",
    "FilterOperator",
    "InvalidQueryError",
    "ParsedQuery",
    "Populate",
    "QueryPipeline",
    "TenantScope",
    "TenantScopeRequiredError",
    "compile_conditions",
    "compile_search",
    "pagination_meta",
    "parse_query_params",
    "resolve_limit",
    "resolve_page",
    "row_to_dict",
    "scoped_select",
]
