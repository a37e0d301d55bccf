"""Turn raw per-step visitor counts into presentable funnel figures."""

from __future__ import annotations

from functools import reduce

from .types import FunnelDetails, FunnelStep, PresentedFunnel, PresentedFunnelStep, VisitorCount


def present_funnel(details: FunnelDetails) -> PresentedFunnel:
    """Compute step conversion, drop-off and funnel level summary.

    The last step has no successor, so it is compared against a sentinel step
    carrying the funnel's peak visitor count: its drop-off describes the
    distance to the peak rather than being forced to zero.
    """

    visitors = details.visitors
    visitor_count = VisitorCount(min=min(visitors, default=1), max=max(visitors, default=1))
    peak = max(visitor_count.max, 1)

    steps = tuple(
        _present_step(details.steps, visitors, index, visitor_count.max, peak)
        for index in range(len(details.steps))
    )

    return PresentedFunnel(
        id=details.id,
        name=details.name,
        is_strict=details.is_strict,
        step_count=len(steps),
        visitor_count=visitor_count,
        steps=steps,
        biggest_drop_off=biggest_drop_off(steps),
        conversion_rate=visitor_count.min / peak,
    )


def biggest_drop_off(steps: tuple[PresentedFunnelStep, ...]) -> PresentedFunnelStep | None:
    """Return the step with the highest drop-off ratio; the first one wins ties."""

    if not steps:
        return None
    return reduce(
        lambda best, current: current if current.dropoff_ratio > best.dropoff_ratio else best,
        steps,
    )


def _visitors_at(visitors: tuple[int, ...], index: int) -> int:
    return visitors[index] if index < len(visitors) else 0


def _present_step(
    funnel_steps: tuple[FunnelStep, ...],
    visitors: tuple[int, ...],
    index: int,
    max_visitors: int,
    peak: int,
) -> PresentedFunnelStep:
    step = funnel_steps[index]
    actual = _visitors_at(visitors, index)

    if index + 1 < len(funnel_steps):
        next_step = funnel_steps[index + 1]
        next_visitors = _visitors_at(visitors, index + 1)
    else:
        next_step = step
        next_visitors = max_visitors

    return PresentedFunnelStep(
        step=step,
        visitors=actual,
        visitors_ratio=actual / peak,
        dropoff_count=actual - next_visitors,
        dropoff_ratio=1 - next_visitors / max(actual, 1) if actual else 0.0,
        step_filters=(step, next_step),
    )
