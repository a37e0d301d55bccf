from .client import AnalyticsBigQuery
from .exceptions import (
    EmptyValuesError,
    InvalidColumnError,
    InvalidFilterError,
    InvalidFunnelError,
    InvalidOperatorError,
    WebAnalyticsError,
)
from .filters import CompiledFilter, compile_filters, filters_cache_key
from .funnels import present_funnel
from .heatmap import build_weekly_heatmap
from .journeys import build_sankey_from_paths, build_sankey_from_transitions
from .stats import compute_normalized_max, interpolated_quantile, nice_max
from .types import (
    FilterOperator,
    Funnel,
    FunnelDetails,
    FunnelStep,
    JourneyPath,
    JourneyTransition,
    QueryFilter,
    WeeklyHeatmapRow,
)
from .web_vitals import group_percentile_series, resample_percentile_series

__all__ = [
    "AnalyticsBigQuery",
    "CompiledFilter",
    "EmptyValuesError",
    "FilterOperator",
    "Funnel",
    "FunnelDetails",
    "FunnelStep",
    "InvalidColumnError",
    "InvalidFilterError",
    "InvalidFunnelError",
    "InvalidOperatorError",
    "JourneyPath",
    "JourneyTransition",
    "QueryFilter",
    "WebAnalyticsError",
    "WeeklyHeatmapRow",
    "build_sankey_from_paths",
    "build_sankey_from_transitions",
    "build_weekly_heatmap",
    "compile_filters",
    "compute_normalized_max",
    "filters_cache_key",
    "group_percentile_series",
    "interpolated_quantile",
    "nice_max",
    "present_funnel",
    "resample_percentile_series",
]
