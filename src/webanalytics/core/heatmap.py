"""Weekday by hour heatmap matrices."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal, get_args

import pandas as pd

from .stats import compute_normalized_max
from .types import WeeklyHeatmapMatrix, WeeklyHeatmapRow

logger = logging.getLogger(__name__)

HeatmapMetric = Literal[
    "pageviews",
    "unique_visitors",
    "sessions",
    "bounce_rate",
    "pages_per_session",
    "session_duration",
]
HEATMAP_METRICS: tuple[str, ...] = get_args(HeatmapMetric)

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24
HEATMAP_MAX_QUANTILE = 0.99


def build_weekly_heatmap(
    rows: Iterable[WeeklyHeatmapRow], *, metric: HeatmapMetric | None = None
) -> WeeklyHeatmapMatrix:
    """Build the dense Monday to Sunday, 0h to 23h matrix from sparse rows.

    Cells without a row are ``0`` and rows outside the grid are skipped.  The
    scale maximum is normalised over all cells so heatmaps of different
    metrics share one colour behaviour.
    """

    matrix = [[0.0] * HOURS_PER_DAY for _ in range(DAYS_PER_WEEK)]
    skipped = 0
    for row in rows:
        if not (1 <= row.weekday <= DAYS_PER_WEEK and 0 <= row.hour < HOURS_PER_DAY):
            skipped += 1
            continue
        matrix[row.weekday - 1][row.hour] = float(row.value)
    if skipped:
        logger.debug("Skipped %d heatmap rows outside the weekday/hour grid", skipped)

    max_value = compute_normalized_max(
        (value for day in matrix for value in day), HEATMAP_MAX_QUANTILE
    )
    return WeeklyHeatmapMatrix(
        matrix=tuple(tuple(day) for day in matrix),
        max_value=max_value,
        metric=metric,
    )


def heatmap_rows_from_dataframe(df: pd.DataFrame) -> list[WeeklyHeatmapRow]:
    """Convert a ``weekday, hour, value`` frame into typed rows."""

    return [
        WeeklyHeatmapRow(
            weekday=int(record["weekday"]),
            hour=int(record["hour"]),
            value=0.0 if pd.isna(record["value"]) else float(record["value"]),
        )
        for record in df.to_dict("records")
    ]
