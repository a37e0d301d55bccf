"""Core Web Vitals percentile series and summaries."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from typing import Literal

import pandas as pd

from .dates import Granularity, bucket_range
from .types import (
    CORE_WEB_VITAL_NAMES,
    CoreWebVitalNamedPercentilesRow,
    CoreWebVitalsSummary,
    PercentilePoint,
)

logger = logging.getLogger(__name__)

PERCENTILE_KEYS = ("p50", "p75", "p90", "p99")
ZERO_PERCENTILES = (0.0, 0.0, 0.0, 0.0)

CoreWebVitalLevel = Literal["good", "fair", "poor"]

# (good, fair) upper bounds; anything above ``fair`` is poor.
CWV_THRESHOLDS: dict[str, tuple[float, float]] = {
    "LCP": (2500.0, 4000.0),
    "INP": (200.0, 500.0),
    "CLS": (0.1, 0.25),
    "FCP": (1800.0, 3000.0),
    "TTFB": (800.0, 1800.0),
}


def resample_percentile_series(
    rows: Iterable[CoreWebVitalNamedPercentilesRow],
    *,
    granularity: Granularity,
    start: pd.Timestamp,
    end: pd.Timestamp,
    metrics: Sequence[str] = CORE_WEB_VITAL_NAMES,
) -> dict[str, list[PercentilePoint]]:
    """Spread percentile rows over the full ``[start, end]`` bucket grid.

    Every metric gets one point per bucket; buckets without a row are filled
    with zeros.
    """

    grid = bucket_range(start, end, granularity)
    reference = grid[0] if grid else pd.Timestamp(start)

    lookup: dict[str, dict[pd.Timestamp, tuple[float, float, float, float]]] = {
        metric: {} for metric in metrics
    }
    ignored = 0
    for row in rows:
        by_date = lookup.get(row.name)
        if by_date is None:
            ignored += 1
            continue
        by_date[_align(row.date, reference)] = row.percentiles
    if ignored:
        logger.debug("Ignored %d percentile rows for unrequested metrics", ignored)

    return {
        metric: [
            PercentilePoint(date=bucket, values=lookup[metric].get(bucket, ZERO_PERCENTILES))
            for bucket in grid
        ]
        for metric in metrics
    }


def group_percentile_series(
    rows: Iterable[CoreWebVitalNamedPercentilesRow],
    *,
    metrics: Sequence[str] = CORE_WEB_VITAL_NAMES,
) -> dict[str, list[PercentilePoint]]:
    """Bucket already dense rows per metric, sorted by time, without gap filling."""

    grouped: defaultdict[str, list[PercentilePoint]] = defaultdict(list)
    for row in rows:
        if row.name in metrics:
            grouped[row.name].append(PercentilePoint(date=row.date, values=row.percentiles))

    return {
        metric: sorted(grouped.get(metric, []), key=lambda point: point.date)
        for metric in metrics
    }


def percentile_rows_from_dataframe(df: pd.DataFrame) -> list[CoreWebVitalNamedPercentilesRow]:
    """Convert a ``date, name, p50, p75, p90, p99`` frame into typed rows."""

    return [
        CoreWebVitalNamedPercentilesRow(
            date=record["date"],
            name=str(record["name"]),
            **{key: _as_float(record[key]) for key in PERCENTILE_KEYS},
        )
        for record in df.to_dict("records")
    ]


def summarize_p75(rows: Iterable[Mapping[str, object]]) -> CoreWebVitalsSummary:
    """Collect ``{name, p75}`` rows into a summary; missing metrics stay ``None``."""

    p75 = {str(row["name"]): row.get("p75") for row in rows}

    def _value(metric: str) -> float | None:
        value = p75.get(metric)
        return None if value is None or pd.isna(value) else float(value)

    return CoreWebVitalsSummary(
        cls_p75=_value("CLS"),
        lcp_p75=_value("LCP"),
        inp_p75=_value("INP"),
        fcp_p75=_value("FCP"),
        ttfb_p75=_value("TTFB"),
    )


def core_web_vital_level(metric: str, value: float | None) -> CoreWebVitalLevel | None:
    if value is None:
        return None
    thresholds = CWV_THRESHOLDS.get(metric)
    if thresholds is None:
        return None
    good, fair = thresholds
    if value > fair:
        return "poor"
    if value > good:
        return "fair"
    return "good"


def _align(ts: pd.Timestamp, reference: pd.Timestamp) -> pd.Timestamp:
    """Express ``ts`` in the same timezone awareness as ``reference``."""

    ts = pd.Timestamp(ts)
    if reference.tzinfo is not None:
        return ts.tz_localize(reference.tzinfo) if ts.tzinfo is None else ts.tz_convert(reference.tzinfo)
    return ts if ts.tzinfo is None else ts.tz_convert(None)


def _as_float(value: object) -> float:
    return 0.0 if value is None or pd.isna(value) else float(value)
