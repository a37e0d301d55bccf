"""Public package API."""

from importlib import metadata

from .core import (
    AnalyticsBigQuery,
    FilterOperator,
    Funnel,
    FunnelDetails,
    FunnelStep,
    QueryFilter,
    build_sankey_from_paths,
    build_sankey_from_transitions,
    build_weekly_heatmap,
    compile_filters,
    present_funnel,
    resample_percentile_series,
)

__all__ = [
    "AnalyticsBigQuery",
    "FilterOperator",
    "Funnel",
    "FunnelDetails",
    "FunnelStep",
    "QueryFilter",
    "build_sankey_from_paths",
    "build_sankey_from_transitions",
    "build_weekly_heatmap",
    "compile_filters",
    "present_funnel",
    "resample_percentile_series",
]

try:
    __version__ = metadata.version("webanalytics")
except (
    metadata.PackageNotFoundError
):  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"
