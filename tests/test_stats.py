from __future__ import annotations

import pytest

from webanalytics.core.stats import compute_normalized_max, interpolated_quantile, nice_max


def test_interpolated_quantile_median() -> None:
    assert interpolated_quantile([5, 1, 4, 2, 3], 0.5) == 3.0


def test_interpolated_quantile_interpolates_between_ranks() -> None:
    assert interpolated_quantile([1, 2, 3, 4], 0.5) == pytest.approx(2.5)
    assert interpolated_quantile([10, 20], 1.0) == 20.0


def test_interpolated_quantile_empty_is_zero() -> None:
    assert interpolated_quantile([], 0.9) == 0.0


def test_normalized_max_keeps_small_samples_untrimmed() -> None:
    assert compute_normalized_max([1, 2, 1000], 0.99) == 1000.0


def test_normalized_max_empty_is_one() -> None:
    assert compute_normalized_max([], 0.99) == 1.0


def test_normalized_max_trims_outliers_in_large_samples() -> None:
    values = [10.0] * 99 + [10_000.0]

    assert compute_normalized_max(values, 0.95) == pytest.approx(10.0)


def test_normalized_max_never_below_one() -> None:
    assert compute_normalized_max([0.0] * 20, 0.99) == 1.0


@pytest.mark.parametrize(
    ("value", "expected"),
    [(604, 700.0), (9732, 10_000.0), (0.84, 1.0), (1000, 1000.0), (0, 1.0), (-5, 1.0)],
)
def test_nice_max(value: float, expected: float) -> None:
    assert nice_max(value) == pytest.approx(expected)
