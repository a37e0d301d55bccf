from __future__ import annotations

from datetime import date

import pandas as pd

from webanalytics import AnalyticsBigQuery, Funnel, FunnelStep, QueryFilter


class _FakeResult:
    def __init__(self, df: pd.DataFrame) -> None:
        self._df = df

    def to_dataframe(self) -> pd.DataFrame:
        return self._df


class _FakeQueryJob:
    def __init__(self, df: pd.DataFrame) -> None:
        self._result = _FakeResult(df)

    def result(self) -> _FakeResult:
        return self._result


class _FakeClient:
    def __init__(self, df: pd.DataFrame) -> None:
        self._df = df
        self.job_configs: list = []

    def query(self, sql: str, job_config=None) -> _FakeQueryJob:
        assert "SELECT" in sql and "FROM" in sql
        self.job_configs.append(job_config)
        return _FakeQueryJob(self._df.copy())


def _analytics(df: pd.DataFrame) -> AnalyticsBigQuery:
    return AnalyticsBigQuery("proj.analytics.events", site_id="site-1", tz="UTC", client=_FakeClient(df))


def test_request_funnel_smoke() -> None:
    analytics = _analytics(pd.DataFrame({"1": [120], "2": [30]}))
    funnel = Funnel(
        id="f1",
        name="Signup",
        dashboard_id="d1",
        steps=[
            FunnelStep(name="Landing", filter=QueryFilter(column="url", operator="=", values=["/"])),
            FunnelStep(name="Signup", filter={"column": "url", "operator": "=", "values": ["/signup"]}),
        ],
    )

    out = analytics.request_funnel(funnel, start=date(2025, 1, 1), end=date(2025, 1, 2))

    assert [step.visitors for step in out.steps] == [120, 30]
    assert out.conversion_rate == 0.25
    assert out.biggest_drop_off is out.steps[0]


def test_request_funnel_without_rows_smoke() -> None:
    analytics = _analytics(pd.DataFrame({"1": [], "2": []}))
    funnel = Funnel(
        id="f1",
        name="Signup",
        dashboard_id="d1",
        steps=[
            FunnelStep(name="Landing", filter={"column": "url", "operator": "=", "values": ["/"]}),
            FunnelStep(name="Signup", filter={"column": "url", "operator": "=", "values": ["/signup"]}),
        ],
    )

    out = analytics.request_funnel(funnel, start=date(2025, 1, 1), end=date(2025, 1, 2))

    assert [step.visitors for step in out.steps] == [0, 0]


def test_query_parameters_are_passed_in_job_config() -> None:
    client = _FakeClient(pd.DataFrame({"weekday": [], "hour": [], "value": []}))
    analytics = AnalyticsBigQuery("proj.analytics.events", site_id="site-1", client=client)

    analytics.request_weekly_heatmap(start=date(2025, 1, 1), end=date(2025, 1, 7))

    (job_config,) = client.job_configs
    assert [parameter.name for parameter in job_config.query_parameters] == ["site_id", "start", "end"]


def test_request_user_journey_smoke() -> None:
    analytics = _analytics(
        pd.DataFrame(
            {
                "source": ["/", "/", "/pricing"],
                "target": ["/pricing", "/blog", "/signup"],
                "source_depth": [0, 0, 1],
                "target_depth": [1, 1, 2],
                "value": [40, 10, 20],
            }
        )
    )

    out = analytics.request_user_journey(start=date(2025, 1, 1), end=date(2025, 1, 7))

    assert [node.id for node in out.nodes] == ["/_0", "/blog_1", "/pricing_1", "/signup_2"]
    assert out.max_traffic == 50


def test_request_weekly_heatmap_smoke() -> None:
    analytics = _analytics(pd.DataFrame({"weekday": [1, 7], "hour": [8, 22], "value": [12, 3]}))

    out = analytics.request_weekly_heatmap(start=date(2025, 1, 1), end=date(2025, 1, 7), metric="sessions")

    assert out.matrix[0][8] == 12.0
    assert out.matrix[6][22] == 3.0
    assert out.metric == "sessions"


def test_request_web_vitals_series_smoke() -> None:
    analytics = _analytics(
        pd.DataFrame(
            {
                "date": ["2025-01-02T00:00:00Z"],
                "name": ["LCP"],
                "p50": [1800.0],
                "p75": [2400.0],
                "p90": [3100.0],
                "p99": [5200.0],
            }
        )
    )

    out = analytics.request_web_vitals_series(start=date(2025, 1, 1), end=date(2025, 1, 3))

    assert set(out) == {"CLS", "LCP", "INP", "FCP", "TTFB"}
    assert [point.values[1] for point in out["LCP"]] == [0.0, 2400.0, 0.0]
    assert all(len(points) == 3 for points in out.values())


def test_request_web_vitals_summary_smoke() -> None:
    analytics = _analytics(pd.DataFrame({"name": ["INP", "CLS"], "p75": [180.0, 0.02]}))

    out = analytics.request_web_vitals_summary(start=date(2025, 1, 1), end=date(2025, 1, 3))

    assert out.inp_p75 == 180.0
    assert out.cls_p75 == 0.02
    assert out.lcp_p75 is None


def test_request_user_journey_single_hop_smoke() -> None:
    analytics = _analytics(
        pd.DataFrame(
            {"source": ["/"], "target": ["/a"], "source_depth": [0], "target_depth": [1], "value": [7]}
        )
    )

    out = analytics.request_user_journey(start=date(2025, 1, 1), end=date(2025, 1, 7), max_steps=0)

    assert [node.id for node in out.nodes] == ["/_0", "/a_1"]
    assert [link.value for link in out.links] == [7]
