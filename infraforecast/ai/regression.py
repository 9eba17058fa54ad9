"""
Regression Engine

Ordinary least-squares fit of a daily series against its index, plus the
residual dispersion used to size forecast confidence bands.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Sequence

from infraforecast.models import clamp_percent


@dataclass(frozen=True)
class LinearModel:
    """Fitted line over day indices 0..n-1."""
    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return clamp_percent(self.intercept + self.slope * x)


def linear_regression(values: Sequence[float]) -> LinearModel:
    """
    Fit y = intercept + slope * i using the index as the time axis.

    Series shorter than 2 points give a flat model through the single
    value (or 0 when empty).
    """
    n = len(values)
    if n < 2:
        return LinearModel(slope=0.0, intercept=float(values[0]) if n else 0.0)

    mean_x = (n - 1) / 2
    mean_y = sum(values) / n
    sum_xy = sum(i * y for i, y in enumerate(values))
    sum_x2 = sum(i * i for i in range(n))

    denominator = sum_x2 - n * mean_x * mean_x
    if denominator == 0:
        denominator = 1

    slope = (sum_xy - n * mean_x * mean_y) / denominator
    intercept = mean_y - slope * mean_x

    return LinearModel(slope=slope, intercept=intercept)


def residual_std_dev(values: Sequence[float], predict: Callable[[float], float]) -> float:
    """
    Population standard deviation of the residuals y_i - predict(i).

    The residual mean is not always zero: predict clamps to [0, 100], so a
    line that leaves the range inside the window shifts the residuals.
    """
    n = len(values)
    if n < 2:
        return 0.0

    residuals = [y - predict(i) for i, y in enumerate(values)]
    mean = sum(residuals) / n
    variance = sum((r - mean) ** 2 for r in residuals) / n
    return math.sqrt(variance)
