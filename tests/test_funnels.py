from __future__ import annotations

import pytest

from webanalytics.core.funnels import present_funnel
from webanalytics.core.types import FunnelDetails, FunnelStep, QueryFilter


def _details(visitors: list[int], step_count: int | None = None) -> FunnelDetails:
    count = step_count if step_count is not None else len(visitors)
    steps = [
        FunnelStep(name=f"Step {idx}", filter=QueryFilter(column="url", operator="=", values=[f"/{idx}"]))
        for idx in range(count)
    ]
    return FunnelDetails(id="f1", name="Checkout", dashboard_id="d1", steps=steps, visitors=visitors)


def test_flat_funnel_has_no_drop_off() -> None:
    presented = present_funnel(_details([100, 100, 100]))

    assert [step.dropoff_ratio for step in presented.steps] == [0.0, 0.0, 0.0]
    assert [step.visitors_ratio for step in presented.steps] == [1.0, 1.0, 1.0]
    assert presented.conversion_rate == 1.0
    assert presented.biggest_drop_off is presented.steps[0]


def test_total_drop_off() -> None:
    presented = present_funnel(_details([100, 0]))

    first, last = presented.steps
    assert first.dropoff_count == 100
    assert first.dropoff_ratio == 1.0
    assert last.visitors == 0
    assert last.dropoff_ratio == 0.0
    assert last.visitors_ratio == 0.0
    assert presented.conversion_rate == 0.0
    assert presented.biggest_drop_off is first


def test_last_step_compares_against_peak() -> None:
    presented = present_funnel(_details([200, 100, 50]))

    last = presented.steps[-1]
    assert last.dropoff_count == 50 - 200
    assert last.dropoff_ratio == pytest.approx(1 - 200 / 50)
    assert last.step_filters == (last.step, last.step)
    assert presented.steps[0].step_filters == (presented.steps[0].step, presented.steps[1].step)


def test_step_ratios() -> None:
    presented = present_funnel(_details([200, 100, 50]))

    assert [step.visitors_ratio for step in presented.steps] == [1.0, 0.5, 0.25]
    assert [step.dropoff_ratio for step in presented.steps[:2]] == [0.5, 0.5]
    assert presented.visitor_count.min == 50
    assert presented.visitor_count.max == 200
    assert presented.conversion_rate == 0.25


def test_biggest_drop_off_ties_keep_first_step() -> None:
    presented = present_funnel(_details([200, 100, 50]))

    assert presented.biggest_drop_off is presented.steps[0]


def test_empty_visitors() -> None:
    presented = present_funnel(_details([], step_count=2))

    assert presented.step_count == 2
    assert presented.visitor_count.min == 1
    assert presented.visitor_count.max == 1
    assert [step.visitors for step in presented.steps] == [0, 0]
    assert [step.dropoff_ratio for step in presented.steps] == [0.0, 0.0]
    assert presented.conversion_rate == 1.0


def test_presented_funnel_keeps_identity() -> None:
    details = _details([10, 5])
    presented = present_funnel(details)

    assert presented.id == "f1"
    assert presented.name == "Checkout"
    assert presented.is_strict is False
    assert [step.step for step in presented.steps] == list(details.steps)


def test_strict_and_loose_counts_for_the_same_steps() -> None:
    loose = _details([100, 70])
    strict = FunnelDetails(
        id=loose.id,
        name=loose.name,
        dashboard_id=loose.dashboard_id,
        steps=loose.steps,
        is_strict=True,
        visitors=[100, 40],
    )

    presented_loose = present_funnel(loose)
    presented_strict = present_funnel(strict)

    assert presented_strict.is_strict is True
    assert presented_loose.is_strict is False
    assert presented_strict.conversion_rate == 0.4
    assert presented_loose.conversion_rate == 0.7
    assert presented_strict.steps[0].dropoff_count == 60
    assert presented_loose.steps[0].dropoff_count == 30
    assert presented_strict.steps[0].dropoff_ratio > presented_loose.steps[0].dropoff_ratio
