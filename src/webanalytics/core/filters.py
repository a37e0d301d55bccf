"""Utilities for translating query filters into parameterised SQL predicates."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from ._columns import resolve_column
from .exceptions import InvalidOperatorError
from .sql import (
    QueryParameter,
    escape_like,
    placeholder,
    string_array_parameter,
    string_parameter,
)
from .types import QueryFilter

FilterLike = Union[QueryFilter, Mapping[str, Any]]


@dataclass(frozen=True)
class CompiledFilter:
    """A SQL condition together with the parameters it references."""

    sql: str
    parameters: tuple[QueryParameter, ...] = ()


TRUE_CONDITION = CompiledFilter(sql="TRUE")


def compile_filters(
    filters: Sequence[FilterLike] | None, *, prefix: str = "query_filter"
) -> list[CompiledFilter]:
    """Convert filters into conditions to be ANDed by the caller.

    The output keeps the input order and names parameters after the filter's
    position (``@query_filter_0``, ``@query_filter_1``, ...), so the same list
    always yields the same SQL.  ``prefix`` keeps parameter names apart when a
    statement embeds several filter lists.  No filters compile to ``TRUE``.
    """

    if not filters:
        return [TRUE_CONDITION]
    return [
        _compile_filter(_coerce_filter(filter_), f"{prefix}_{index}")
        for index, filter_ in enumerate(filters)
    ]


def query_parameters(compiled: Iterable[CompiledFilter]) -> list[QueryParameter]:
    """Flatten the parameters of ``compiled`` for a query job configuration."""

    return [parameter for condition in compiled for parameter in condition.parameters]


def filters_cache_key(filters: Sequence[FilterLike] | None) -> str:
    """Return a canonical serialisation of ``filters`` for external caches."""

    normalized = [_coerce_filter(filter_).to_dict() for filter_ in filters or ()]
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"))


def _coerce_filter(filter_: FilterLike) -> QueryFilter:
    if isinstance(filter_, QueryFilter):
        return filter_
    return QueryFilter.from_mapping(filter_)


def _compile_filter(filter_: QueryFilter, name: str) -> CompiledFilter:
    column = resolve_column(filter_.column).expression
    op = filter_.operator
    ref = placeholder(name)

    if op in {"=", "!="}:
        return CompiledFilter(
            sql=f"{column} {op} {ref}",
            parameters=(string_parameter(name, filter_.values[0]),),
        )

    if op in {"in", "not_in"}:
        negation = "NOT " if op == "not_in" else ""
        return CompiledFilter(
            sql=f"{column} {negation}IN UNNEST({ref})",
            parameters=(string_array_parameter(name, filter_.values),),
        )

    if op in {"contains", "not_contains"}:
        patterns = [f"%{escape_like(value.lower())}%" for value in filter_.values]
        clause = f"EXISTS (SELECT 1 FROM UNNEST({ref}) AS pattern WHERE LOWER({column}) LIKE pattern)"
        if op == "not_contains":
            clause = f"NOT {clause}"
        return CompiledFilter(sql=clause, parameters=(string_array_parameter(name, patterns),))

    raise InvalidOperatorError(f"Unsupported operator: {op!r}", context={"operator": op})
