"""Public data structures consumed and produced by the analytics core."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple, get_args

import pandas as pd

from ._columns import resolve_column
from .exceptions import (
    EmptyValuesError,
    InvalidFilterError,
    InvalidFunnelError,
    InvalidOperatorError,
)

__all__ = [
    "CORE_WEB_VITAL_NAMES",
    "FILTER_OPERATORS",
    "CoreWebVitalName",
    "CoreWebVitalNamedPercentilesRow",
    "CoreWebVitalsSummary",
    "FilterOperator",
    "Funnel",
    "FunnelDetails",
    "FunnelStep",
    "JourneyPath",
    "JourneyTransition",
    "NodeKey",
    "PercentilePoint",
    "PresentedFunnel",
    "PresentedFunnelStep",
    "QueryFilter",
    "SankeyData",
    "SankeyLink",
    "SankeyNode",
    "VisitorCount",
    "WeeklyHeatmapMatrix",
    "WeeklyHeatmapRow",
]

FilterOperator = Literal["=", "!=", "contains", "not_contains", "in", "not_in"]
FILTER_OPERATORS: tuple[str, ...] = get_args(FilterOperator)
SCALAR_OPERATORS = frozenset({"=", "!="})

CoreWebVitalName = Literal["CLS", "LCP", "INP", "FCP", "TTFB"]
CORE_WEB_VITAL_NAMES: tuple[str, ...] = get_args(CoreWebVitalName)


# --- Filters -----------------------------------------------------------------


@dataclass(frozen=True)
class QueryFilter:
    """A single predicate over an allow-listed dimension column.

    Filters are validated when they are built, so an instance that exists is
    always safe to hand to :func:`~webanalytics.core.filters.compile_filters`.
    ``values`` accepts any sequence and is stored as a tuple of strings.
    """

    column: str
    operator: FilterOperator
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        resolve_column(self.column)

        if self.operator not in FILTER_OPERATORS:
            raise InvalidOperatorError(
                f"Unsupported operator: {self.operator!r}",
                context={"operator": self.operator, "allowed": list(FILTER_OPERATORS)},
            )

        raw_values = (self.values,) if isinstance(self.values, str) else tuple(self.values or ())
        values = tuple(str(value) for value in raw_values)
        if not values or not all(values):
            raise EmptyValuesError(
                "Filters require at least one non-empty value",
                context={"column": self.column, "values": list(values)},
            )
        if self.operator in SCALAR_OPERATORS and len(values) != 1:
            raise InvalidFilterError(
                "Comparison operators require exactly one value",
                context={"operator": self.operator, "values": list(values)},
            )
        object.__setattr__(self, "values", values)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "QueryFilter":
        """Build a filter from its ``{"column", "operator", "values"}`` form."""

        missing = [key for key in ("column", "operator", "values") if key not in mapping]
        if missing:
            raise InvalidFilterError(
                f"Filter is missing required keys: {', '.join(missing)}",
                context={"filter": dict(mapping)},
            )
        return cls(
            column=mapping["column"],
            operator=mapping["operator"],
            values=mapping["values"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"column": self.column, "operator": self.operator, "values": list(self.values)}


# --- Funnels -----------------------------------------------------------------


@dataclass(frozen=True)
class FunnelStep:
    """A named funnel step matched by a single filter."""

    name: str
    filter: QueryFilter

    def __post_init__(self) -> None:
        if isinstance(self.filter, Mapping):
            object.__setattr__(self, "filter", QueryFilter.from_mapping(self.filter))


@dataclass(frozen=True)
class Funnel:
    """An ordered sequence of at least two steps."""

    id: str
    name: str
    dashboard_id: str
    steps: tuple[FunnelStep, ...]
    is_strict: bool = False

    def __post_init__(self) -> None:
        steps = tuple(self.steps)
        if len(steps) < 2:
            raise InvalidFunnelError(
                "A funnel requires at least two steps",
                context={"funnel_id": self.id, "step_count": len(steps)},
            )
        object.__setattr__(self, "steps", steps)


@dataclass(frozen=True)
class FunnelDetails(Funnel):
    """A funnel together with the visitor count reached at each step.

    ``visitors`` is either empty (no data for the range) or parallel to
    ``steps``.
    """

    visitors: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        visitors = tuple(int(count) for count in self.visitors)
        if visitors and len(visitors) != len(self.steps):
            raise InvalidFunnelError(
                "visitors must contain one count per funnel step",
                context={
                    "funnel_id": self.id,
                    "step_count": len(self.steps),
                    "visitor_count": len(visitors),
                },
            )
        object.__setattr__(self, "visitors", visitors)

    @classmethod
    def from_funnel(cls, funnel: Funnel, visitors: Sequence[int]) -> "FunnelDetails":
        return cls(
            id=funnel.id,
            name=funnel.name,
            dashboard_id=funnel.dashboard_id,
            steps=funnel.steps,
            is_strict=funnel.is_strict,
            visitors=tuple(visitors),
        )


@dataclass(frozen=True)
class VisitorCount:
    min: int
    max: int


@dataclass(frozen=True)
class PresentedFunnelStep:
    """Conversion figures for one step.

    ``step_filters`` names the pair of steps the drop-off happened between.
    For the last step the second element is the last step itself.
    """

    step: FunnelStep
    visitors: int
    visitors_ratio: float
    dropoff_count: int
    dropoff_ratio: float
    step_filters: tuple[FunnelStep, FunnelStep]


@dataclass(frozen=True)
class PresentedFunnel:
    id: str
    name: str
    is_strict: bool
    step_count: int
    visitor_count: VisitorCount
    steps: tuple[PresentedFunnelStep, ...]
    biggest_drop_off: PresentedFunnelStep | None
    conversion_rate: float


# --- User journeys -----------------------------------------------------------


class NodeKey(NamedTuple):
    """Identity of a Sankey node: the same URL at another depth is another node."""

    url: str
    depth: int

    @property
    def node_id(self) -> str:
        return f"{self.url}_{self.depth}"


@dataclass(frozen=True)
class JourneyTransition:
    """One aggregated hop between two URLs at the given depths."""

    source: str
    target: str
    source_depth: int
    target_depth: int
    value: int


@dataclass(frozen=True)
class JourneyPath:
    """A ranked sequential path of URLs with the number of sessions that took it."""

    urls: tuple[str, ...]
    count: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "urls", tuple(self.urls))


@dataclass(frozen=True)
class SankeyNode:
    id: str
    name: str
    depth: int
    total_traffic: int
    percentage_of_max: int


@dataclass(frozen=True)
class SankeyLink:
    source: int
    target: int
    value: int


@dataclass(frozen=True)
class SankeyData:
    nodes: tuple[SankeyNode, ...] = ()
    links: tuple[SankeyLink, ...] = ()
    max_traffic: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.nodes


# --- Weekly heatmap ----------------------------------------------------------


@dataclass(frozen=True)
class WeeklyHeatmapRow:
    """A sparse heatmap cell; ``weekday`` runs from 1 (Monday) to 7 (Sunday)."""

    weekday: int
    hour: int
    value: float


@dataclass(frozen=True)
class WeeklyHeatmapMatrix:
    matrix: tuple[tuple[float, ...], ...]
    max_value: float
    metric: str | None = None


# --- Core Web Vitals ---------------------------------------------------------


@dataclass(frozen=True)
class CoreWebVitalNamedPercentilesRow:
    date: pd.Timestamp
    name: str
    p50: float
    p75: float
    p90: float
    p99: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", pd.Timestamp(self.date))

    @property
    def percentiles(self) -> tuple[float, float, float, float]:
        return (self.p50, self.p75, self.p90, self.p99)


@dataclass(frozen=True)
class PercentilePoint:
    """A bucket of a percentile series; ``values`` is ``(p50, p75, p90, p99)``."""

    date: pd.Timestamp
    values: tuple[float, float, float, float] = field(default=(0.0, 0.0, 0.0, 0.0))


@dataclass(frozen=True)
class CoreWebVitalsSummary:
    cls_p75: float | None = None
    lcp_p75: float | None = None
    inp_p75: float | None = None
    fcp_p75: float | None = None
    ttfb_p75: float | None = None
