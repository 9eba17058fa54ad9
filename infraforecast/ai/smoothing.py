"""
Smoothing Pipeline

Recency weighting, exponential smoothing and weekly seasonality extraction
applied before trend extraction on series with at least two weeks of data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from infraforecast.ai.regression import LinearModel, linear_regression, residual_std_dev
from infraforecast.config import ForecastConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmoothedFit:
    """Regression fitted on the smoothed series."""
    model: LinearModel
    std_dev: float
    seasonality: Optional[Tuple[float, ...]]
    sample_count: int  # length of the reweighted series


def apply_recency_weighting(
    values: Sequence[float],
    window: int = 30,
    weight: int = 3,
) -> List[float]:
    """
    Repeat each of the last `window` points `weight` times in place.

    Series no longer than `window` are returned unchanged.
    """
    if len(values) <= window:
        return list(values)

    recent_start = len(values) - window
    weighted: List[float] = []
    for i, v in enumerate(values):
        if i >= recent_start:
            weighted.extend([v] * weight)
        else:
            weighted.append(v)
    return weighted


def ewma(values: Sequence[float], alpha: float = 0.3) -> List[float]:
    """Exponentially weighted moving average, seeded with the first value."""
    if not values:
        return []

    result = [values[0]]
    for v in values[1:]:
        result.append(alpha * v + (1 - alpha) * result[-1])
    return result


def detect_seasonality(
    values: Sequence[float],
    period: int = 7,
    min_points: int = 14,
    min_amplitude: float = 1.0,
) -> Optional[List[float]]:
    """
    Per-slot deviation from the global mean, slot = index % period.

    Returns None when there is too little data or when no slot deviates by
    at least `min_amplitude` percentage points.
    """
    if len(values) < max(min_points, 1):
        return None

    buckets: List[List[float]] = [[] for _ in range(period)]
    for i, v in enumerate(values):
        buckets[i % period].append(v)

    global_mean = sum(values) / len(values)
    factors = [
        (sum(b) / len(b) - global_mean) if b else 0.0
        for b in buckets
    ]

    if max(abs(f) for f in factors) < min_amplitude:
        return None

    return factors


def fit_smoothed(history: Sequence[float], config: ForecastConfig) -> SmoothedFit:
    weighted = apply_recency_weighting(history, config.recency_window, config.recency_weight)
    smoothed = ewma(weighted, config.smoothing_alpha)
    seasonality = detect_seasonality(
        history,
        period=config.seasonal_period,
        min_points=config.min_smoothing_points,
        min_amplitude=config.seasonal_min_amplitude,
    )

    model = linear_regression(smoothed)
    std_dev = residual_std_dev(smoothed, model.predict)

    if seasonality is not None:
        logger.debug(f"Weekly seasonality enabled (max factor {max(abs(f) for f in seasonality):.2f})")

    return SmoothedFit(
        model=model,
        std_dev=std_dev,
        seasonality=tuple(seasonality) if seasonality is not None else None,
        sample_count=len(weighted),
    )
