"""Helpers for handling date ranges and time buckets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal, Tuple, get_args

import pandas as pd

Granularity = Literal["minute_1", "minute_15", "minute_30", "hour", "day", "week", "month"]
GRANULARITIES: tuple[str, ...] = get_args(Granularity)


def parse_date_range(start: date, end: date, tz: str) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """Return timezone aware timestamps covering the inclusive date range."""

    if end < start:
        raise ValueError("end must be on or after start")

    start_ts = (
        pd.Timestamp(start)
        .tz_localize(tz)
        .replace(hour=0, minute=0, second=0, microsecond=0)
    )
    end_ts = (
        pd.Timestamp(end)
        .tz_localize(tz)
        .replace(hour=23, minute=59, second=59, microsecond=999_999)
    )
    return start_ts, end_ts


@dataclass(frozen=True)
class _GranularitySpec:
    expression_template: str
    step: pd.DateOffset | pd.Timedelta

    def render(self, tz: str) -> str:
        return self.expression_template.format(tz=tz)


# Minute buckets are floored in local wall time, matching floor_to_bucket.
_MINUTE_BUCKET_TEMPLATE = (
    "TIMESTAMP_ADD(TIMESTAMP_TRUNC(timestamp, HOUR, '{{tz}}'), "
    "INTERVAL DIV(EXTRACT(MINUTE FROM timestamp AT TIME ZONE '{{tz}}'), {minutes}) * {minutes} MINUTE)"
)

_GRANULARITY_SPECS = {
    "minute_1": _GranularitySpec(
        "TIMESTAMP_TRUNC(timestamp, MINUTE, '{tz}')", pd.Timedelta(minutes=1)
    ),
    "minute_15": _GranularitySpec(
        _MINUTE_BUCKET_TEMPLATE.format(minutes=15), pd.Timedelta(minutes=15)
    ),
    "minute_30": _GranularitySpec(
        _MINUTE_BUCKET_TEMPLATE.format(minutes=30), pd.Timedelta(minutes=30)
    ),
    "hour": _GranularitySpec("TIMESTAMP_TRUNC(timestamp, HOUR, '{tz}')", pd.Timedelta(hours=1)),
    "day": _GranularitySpec("TIMESTAMP_TRUNC(timestamp, DAY, '{tz}')", pd.DateOffset(days=1)),
    "week": _GranularitySpec(
        "TIMESTAMP_TRUNC(timestamp, WEEK(MONDAY), '{tz}')", pd.DateOffset(weeks=1)
    ),
    "month": _GranularitySpec(
        "TIMESTAMP_TRUNC(timestamp, MONTH, '{tz}')", pd.DateOffset(months=1)
    ),
}

_GRANULARITY_ALIASES = {"date": "day", "minute": "minute_1"}


def _granularity_spec(granularity: str) -> _GranularitySpec:
    normalized = granularity.lower()
    normalized = _GRANULARITY_ALIASES.get(normalized, normalized)
    spec = _GRANULARITY_SPECS.get(normalized)
    if spec is None:
        raise ValueError(f"granularity must be one of: {', '.join(GRANULARITIES)}")
    return spec


def bucket_expression(granularity: Granularity, tz: str) -> str:
    """Return the SQL expression truncating ``timestamp`` to ``granularity``."""

    return _granularity_spec(granularity).render(tz)


def floor_to_bucket(ts: pd.Timestamp, granularity: Granularity) -> pd.Timestamp:
    """Return the start of the bucket containing ``ts``.

    Weeks start on Monday and months on the first, in ``ts``'s own timezone.
    """

    _granularity_spec(granularity)
    ts = pd.Timestamp(ts)
    normalized = _GRANULARITY_ALIASES.get(granularity.lower(), granularity.lower())

    if normalized == "minute_1":
        return ts.floor("min")
    if normalized == "minute_15":
        return ts.floor("15min")
    if normalized == "minute_30":
        return ts.floor("30min")
    if normalized == "hour":
        return ts.floor("h")
    if normalized == "day":
        return ts.normalize()
    if normalized == "week":
        return (ts - pd.Timedelta(days=ts.weekday())).normalize()
    return ts.normalize().replace(day=1)


def bucket_range(
    start: pd.Timestamp, end: pd.Timestamp, granularity: Granularity
) -> list[pd.Timestamp]:
    """Return every bucket start from ``start``'s bucket up to ``end`` inclusive."""

    step = _granularity_spec(granularity).step
    current = floor_to_bucket(start, granularity)
    end = pd.Timestamp(end)

    buckets: list[pd.Timestamp] = []
    while current <= end:
        buckets.append(current)
        current = current + step
    return buckets


_DAY = pd.Timedelta(days=1)


def allowed_granularities(start: pd.Timestamp, end: pd.Timestamp) -> list[Granularity]:
    """Return the granularities that make sense for a range of this length."""

    duration = pd.Timestamp(end) - pd.Timestamp(start)

    if duration >= 180 * _DAY:
        return ["month", "week", "day"]
    if duration >= 27 * _DAY:
        return ["week", "day"]
    if duration >= 7.5 * _DAY:
        return ["day"]
    if duration <= pd.Timedelta(hours=2):
        return ["minute_1"]
    if duration <= 2 * _DAY:
        return ["hour", "minute_30", "minute_15"]
    return ["day", "hour"]


_FALLBACK_ORDER: dict[str, tuple[Granularity, ...]] = {
    "minute_1": ("minute_1", "minute_15"),
    "minute_15": ("minute_15", "minute_30", "hour", "day", "week", "month"),
    "minute_30": ("minute_30", "hour", "day", "week", "month"),
    "hour": ("hour", "minute_30", "minute_15", "day", "week", "month"),
    "day": ("day", "hour", "week", "month", "minute_30", "minute_15"),
    "week": ("week", "day", "month", "hour"),
    "month": ("month", "week", "day"),
}


def granularity_fallback(current: Granularity, allowed: list[Granularity]) -> Granularity:
    """Return ``current`` if allowed, otherwise the closest allowed granularity."""

    if current in allowed:
        return current
    for candidate in _FALLBACK_ORDER.get(current, ()):
        if candidate in allowed:
            return candidate
    return allowed[0] if allowed else "day"
