"""Primary client for issuing analytics queries against BigQuery."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pandas as pd
from google.cloud import bigquery

from .dates import Granularity, bucket_expression, parse_date_range
from .filters import FilterLike
from .funnels import present_funnel
from .heatmap import HEATMAP_METRICS, HeatmapMetric, build_weekly_heatmap, heatmap_rows_from_dataframe
from .journeys import build_sankey_from_transitions, max_path_length
from .query_helpers import (
    compile_where,
    prepare_result_dataframe,
    site_range_conditions,
    site_range_parameters,
)
from .sql import QueryParameter, int_parameter, join_where_clauses, string_array_parameter
from .types import (
    CORE_WEB_VITAL_NAMES,
    CoreWebVitalsSummary,
    Funnel,
    FunnelDetails,
    JourneyTransition,
    PercentilePoint,
    PresentedFunnel,
    SankeyData,
    WeeklyHeatmapMatrix,
)
from .web_vitals import percentile_rows_from_dataframe, resample_percentile_series, summarize_p75

logger = logging.getLogger(__name__)

_SIMPLE_HEATMAP_AGGREGATIONS = {
    "pageviews": "COUNT(*)",
    "unique_visitors": "COUNT(DISTINCT visitor_id)",
    "sessions": "COUNT(DISTINCT session_id)",
}

_SESSION_HEATMAP_AGGREGATIONS = {
    "bounce_rate": "IF(COUNT(*) > 0, ROUND((COUNT(*) - COUNTIF(page_count > 1)) / COUNT(*) * 100, 1), 0)",
    "pages_per_session": "IF(COUNT(*) > 0, ROUND(SUM(page_count) / COUNT(*), 1), 0)",
    "session_duration": (
        "IF(COUNTIF(page_count > 1) > 0, "
        "ROUND(AVG(IF(page_count > 1, duration_seconds, NULL)), 0), 0)"
    ),
}


class AnalyticsBigQuery:
    """Analytics client for a BigQuery table holding one row per tracked event."""

    def __init__(
        self,
        table_id: str,
        *,
        site_id: str,
        tz: str = "UTC",
        client: bigquery.Client | None = None,
    ) -> None:
        try:
            ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {tz!r}") from exc

        self.table_id = table_id
        self.site_id = site_id
        self.tz = tz
        self.client = client or bigquery.Client()

    def _query(self, sql: str, parameters: Sequence[QueryParameter]) -> pd.DataFrame:
        """Execute ``sql`` with ``parameters`` and return the resulting dataframe."""

        logger.debug("Running query against %s:\n%s", self.table_id, sql)
        job_config = bigquery.QueryJobConfig(query_parameters=list(parameters))
        df = self.client.query(sql, job_config=job_config).result().to_dataframe()
        logger.debug("Query returned %d rows", len(df))
        return df

    def request_funnel(self, funnel: Funnel, *, start: date, end: date) -> PresentedFunnel:
        """Return the presented funnel for the visitors in the date range.

        Strict funnels only advance when the next step's event directly follows
        the previous one in the session; otherwise any later event counts.
        """

        start_ts, end_ts = parse_date_range(start, end, self.tz)
        parameters = site_range_parameters(self.site_id, start_ts, end_ts)

        ctes = [
            "\n".join(
                [
                    "events AS (",
                    "  SELECT *, ROW_NUMBER() OVER (PARTITION BY session_id ORDER BY timestamp) AS event_index",
                    f"  FROM `{self.table_id}`",
                    f"  WHERE {' AND '.join(site_range_conditions())}",
                    ")",
                ]
            )
        ]
        for idx, step in enumerate(funnel.steps, start=1):
            conditions, step_parameters = compile_where([step.filter], prefix=f"step{idx}_filter")
            parameters.extend(step_parameters)
            ctes.append(
                "\n".join(
                    [
                        f"step{idx} AS (",
                        "  SELECT visitor_id, session_id, event_index",
                        "  FROM events",
                        f"  WHERE {' AND '.join(conditions)}",
                        ")",
                    ]
                )
            )

        order_condition = "= step{prev}.event_index + 1" if funnel.is_strict else "> step{prev}.event_index"
        joins = []
        for idx in range(2, len(funnel.steps) + 1):
            joins.append(
                "\n".join(
                    [
                        f"LEFT JOIN step{idx}",
                        f"       ON step{idx}.session_id = step{idx-1}.session_id",
                        f"      AND step{idx}.event_index {order_condition.format(prev=idx - 1)}",
                    ]
                )
            )
        step_cols = [
            f"COUNT(DISTINCT step{idx}.visitor_id) AS `{idx}`"
            for idx in range(1, len(funnel.steps) + 1)
        ]

        sql = "\n".join(
            [
                "WITH",
                ",\n".join(ctes),
                "",
                "SELECT",
                f"  {', '.join(step_cols)}",
                "FROM step1",
                "\n".join(joins),
            ]
        ).strip()

        df = self._query(sql, parameters)
        visitors = self._funnel_visitors(df, len(funnel.steps))
        return present_funnel(FunnelDetails.from_funnel(funnel, visitors))

    def request_user_journey(
        self,
        *,
        start: date,
        end: date,
        max_steps: int = 3,
        limit: int = 50,
        filters: Sequence[FilterLike] | None = None,
    ) -> SankeyData:
        """Return the Sankey data for the most common page to page transitions."""

        start_ts, end_ts = parse_date_range(start, end, self.tz)
        filter_conditions, filter_parameters = compile_where(filters)
        wheres = [*site_range_conditions(), "event_type = 'pageview'", *filter_conditions]

        sql = f"""
WITH pageviews AS (
  SELECT session_id, url, timestamp,
         LAG(url) OVER (PARTITION BY session_id ORDER BY timestamp) AS previous_url
  FROM `{self.table_id}`
  WHERE {join_where_clauses(wheres)}
),
path_nodes AS (
  SELECT session_id, url,
         ROW_NUMBER() OVER (PARTITION BY session_id ORDER BY timestamp) - 1 AS depth
  FROM pageviews
  WHERE previous_url IS NULL OR previous_url != url
),
transitions AS (
  SELECT url AS source,
         LEAD(url) OVER (PARTITION BY session_id ORDER BY depth) AS target,
         depth AS source_depth,
         depth + 1 AS target_depth
  FROM path_nodes
)
SELECT source, target, source_depth, target_depth, COUNT(*) AS value
FROM transitions
WHERE target IS NOT NULL AND target_depth < @max_path_length
GROUP BY source, target, source_depth, target_depth
ORDER BY value DESC, source_depth ASC
LIMIT @limit
"""
        parameters = [
            *site_range_parameters(self.site_id, start_ts, end_ts),
            *filter_parameters,
            int_parameter("max_path_length", max_path_length(max_steps)),
            int_parameter("limit", limit),
        ]

        df = self._query(sql, parameters)
        transitions = [
            JourneyTransition(
                source=str(record["source"]),
                target=str(record["target"]),
                source_depth=int(record["source_depth"]),
                target_depth=int(record["target_depth"]),
                value=int(record["value"]),
            )
            for record in df.to_dict("records")
        ]
        return build_sankey_from_transitions(transitions, max_steps=max_path_length(max_steps) - 1)

    def request_weekly_heatmap(
        self,
        *,
        start: date,
        end: date,
        metric: HeatmapMetric = "unique_visitors",
        filters: Sequence[FilterLike] | None = None,
    ) -> WeeklyHeatmapMatrix:
        """Return the weekday by hour matrix of ``metric`` in the client timezone."""

        if metric not in HEATMAP_METRICS:
            raise ValueError(f"metric must be one of: {', '.join(HEATMAP_METRICS)}")

        start_ts, end_ts = parse_date_range(start, end, self.tz)
        filter_conditions, filter_parameters = compile_where(filters)
        weekday = f"MOD(EXTRACT(DAYOFWEEK FROM timestamp AT TIME ZONE '{self.tz}') + 5, 7) + 1"
        hour = f"EXTRACT(HOUR FROM timestamp AT TIME ZONE '{self.tz}')"

        if metric in _SIMPLE_HEATMAP_AGGREGATIONS:
            wheres = [*site_range_conditions(), *filter_conditions]
            if metric == "pageviews":
                wheres.append("event_type = 'pageview'")
            sql = f"""
SELECT {weekday} AS weekday, {hour} AS hour, {_SIMPLE_HEATMAP_AGGREGATIONS[metric]} AS value
FROM `{self.table_id}`
WHERE {join_where_clauses(wheres)}
GROUP BY weekday, hour
ORDER BY weekday ASC, hour ASC
"""
        else:
            wheres = [*site_range_conditions(), "event_type = 'pageview'", *filter_conditions]
            sql = f"""
WITH session_data AS (
  SELECT session_id, {weekday} AS weekday, {hour} AS hour,
         COUNT(*) AS page_count,
         IF(COUNT(*) > 1, TIMESTAMP_DIFF(MAX(timestamp), MIN(timestamp), SECOND), 0) AS duration_seconds
  FROM `{self.table_id}`
  WHERE {join_where_clauses(wheres)}
  GROUP BY session_id, weekday, hour
)
SELECT weekday, hour, {_SESSION_HEATMAP_AGGREGATIONS[metric]} AS value
FROM session_data
GROUP BY weekday, hour
ORDER BY weekday ASC, hour ASC
"""

        parameters = [*site_range_parameters(self.site_id, start_ts, end_ts), *filter_parameters]
        df = self._query(sql, parameters)
        return build_weekly_heatmap(heatmap_rows_from_dataframe(df), metric=metric)

    def request_web_vitals_series(
        self,
        *,
        start: date,
        end: date,
        granularity: Granularity = "day",
        filters: Sequence[FilterLike] | None = None,
    ) -> dict[str, list[PercentilePoint]]:
        """Return dense p50/p75/p90/p99 series for every Core Web Vital."""

        start_ts, end_ts = parse_date_range(start, end, self.tz)
        metrics_cte, parameters = self._web_vitals_cte(
            start_ts, end_ts, filters, date_select=bucket_expression(granularity, self.tz)
        )
        sql = f"""
WITH {metrics_cte}
SELECT date, name,
       APPROX_QUANTILES(value, 100)[OFFSET(50)] AS p50,
       APPROX_QUANTILES(value, 100)[OFFSET(75)] AS p75,
       APPROX_QUANTILES(value, 100)[OFFSET(90)] AS p90,
       APPROX_QUANTILES(value, 100)[OFFSET(99)] AS p99
FROM metrics
WHERE name IN UNNEST(@metric_names)
GROUP BY date, name
ORDER BY date ASC
"""
        df = prepare_result_dataframe(self._query(sql, parameters), "date")
        return resample_percentile_series(
            percentile_rows_from_dataframe(df),
            granularity=granularity,
            start=start_ts,
            end=end_ts,
        )

    def request_web_vitals_summary(
        self,
        *,
        start: date,
        end: date,
        filters: Sequence[FilterLike] | None = None,
    ) -> CoreWebVitalsSummary:
        """Return the p75 of every Core Web Vital over the whole range."""

        start_ts, end_ts = parse_date_range(start, end, self.tz)
        metrics_cte, parameters = self._web_vitals_cte(start_ts, end_ts, filters)
        sql = f"""
WITH {metrics_cte}
SELECT name, APPROX_QUANTILES(value, 100)[OFFSET(75)] AS p75
FROM metrics
WHERE name IN UNNEST(@metric_names)
GROUP BY name
"""
        df = self._query(sql, parameters)
        return summarize_p75(df.to_dict("records"))

    def _web_vitals_cte(
        self,
        start_ts: pd.Timestamp,
        end_ts: pd.Timestamp,
        filters: Sequence[FilterLike] | None,
        *,
        date_select: str | None = None,
    ) -> tuple[str, list[QueryParameter]]:
        filter_conditions, filter_parameters = compile_where(filters)
        wheres = [*site_range_conditions(), "event_type = 'cwv'", *filter_conditions]
        selects = [
            "JSON_VALUE(metric, '$.name') AS name",
            "CAST(JSON_VALUE(metric, '$.value') AS FLOAT64) AS value",
        ]
        if date_select is not None:
            selects.insert(0, f"{date_select} AS date")

        cte = "\n".join(
            [
                "metrics AS (",
                f"  SELECT {', '.join(selects)}",
                f"  FROM `{self.table_id}`, UNNEST(JSON_QUERY_ARRAY(custom_event_json, '$.metrics')) AS metric",
                f"  WHERE {join_where_clauses(wheres)}",
                ")",
            ]
        )
        parameters = [
            *site_range_parameters(self.site_id, start_ts, end_ts),
            *filter_parameters,
            string_array_parameter("metric_names", CORE_WEB_VITAL_NAMES),
        ]
        return cte, parameters

    @staticmethod
    def _funnel_visitors(df: pd.DataFrame, step_count: int) -> list[int]:
        if df.empty:
            return []
        row = df.iloc[0]
        return [
            0 if pd.isna(row[str(idx)]) else int(row[str(idx)])
            for idx in range(1, step_count + 1)
        ]
