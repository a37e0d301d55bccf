"""Helper utilities for constructing SQL fragments and their parameters.

This module keeps the parameter handling in one place so that the rest of the
codebase can focus on the semantics of a query.  User supplied values never
reach the SQL text: they are always wrapped in BigQuery query parameters and
referenced by name.  Parameter names are derived from positions, which keeps
the generated SQL deterministic for the snapshot style tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Union

from google.cloud import bigquery

QueryParameter = Union[bigquery.ScalarQueryParameter, bigquery.ArrayQueryParameter]


def placeholder(name: str) -> str:
    """Return the SQL reference for the named parameter ``name``."""

    return f"@{name}"


def string_parameter(name: str, value: object) -> bigquery.ScalarQueryParameter:
    return bigquery.ScalarQueryParameter(name, "STRING", str(value))


def string_array_parameter(name: str, values: Iterable[object]) -> bigquery.ArrayQueryParameter:
    return bigquery.ArrayQueryParameter(name, "STRING", [str(value) for value in values])


def int_parameter(name: str, value: int) -> bigquery.ScalarQueryParameter:
    return bigquery.ScalarQueryParameter(name, "INT64", int(value))


def timestamp_parameter(name: str, value: datetime) -> bigquery.ScalarQueryParameter:
    return bigquery.ScalarQueryParameter(name, "TIMESTAMP", value)


def escape_like(value: str) -> str:
    """Escape ``LIKE`` metacharacters so ``value`` only matches itself."""

    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def join_where_clauses(clauses: Sequence[str], *, operator: str = "AND") -> str:
    """Join ``clauses`` with ``operator`` while wrapping each clause in parentheses."""

    return f" {operator} ".join(f"({clause})" for clause in clauses)
