"""Shared helper utilities for event-store query construction."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from .filters import FilterLike, compile_filters, query_parameters
from .sql import QueryParameter, string_parameter, timestamp_parameter


def compile_where(
    filters: Sequence[FilterLike] | None, *, prefix: str = "query_filter"
) -> tuple[list[str], list[QueryParameter]]:
    """Return the filter conditions and their parameters as two lists."""

    compiled = compile_filters(filters, prefix=prefix)
    return [condition.sql for condition in compiled], query_parameters(compiled)


def site_range_conditions() -> list[str]:
    return ["site_id = @site_id", "timestamp BETWEEN @start AND @end"]


def site_range_parameters(
    site_id: str, start_ts: pd.Timestamp, end_ts: pd.Timestamp
) -> list[QueryParameter]:
    return [
        string_parameter("site_id", site_id),
        timestamp_parameter("start", start_ts.to_pydatetime()),
        timestamp_parameter("end", end_ts.to_pydatetime()),
    ]


def prepare_result_dataframe(df: pd.DataFrame, date_column: str) -> pd.DataFrame:
    if date_column in df.columns:
        df[date_column] = pd.to_datetime(df[date_column], utc=True)
    return df


__all__ = [
    "compile_where",
    "prepare_result_dataframe",
    "site_range_conditions",
    "site_range_parameters",
]
