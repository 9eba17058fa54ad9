"""
Capacity Prediction Module

Estimates when a linearly growing resource crosses a threshold, and when
individual storage pools will fill up.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence
from dataclasses import dataclass
import logging

from infraforecast.ai.regression import linear_regression
from infraforecast.models import clamp_percent, is_valid_number

logger = logging.getLogger(__name__)


def find_threshold_day(
    current_value: float,
    slope: float,
    threshold: float,
    max_days: int = 180,
) -> Optional[int]:
    """
    Days until current_value + slope * d reaches threshold.

    Returns:
        0 when already at or past the threshold, the ceiling of the crossing
        day when it falls within (0, max_days], otherwise None.
    """
    if slope <= 0:
        return None
    if current_value >= threshold:
        return 0

    days = (threshold - current_value) / slope
    if 0 < days <= max_days:
        return math.ceil(days)
    return None


@dataclass
class CapacityPrediction:
    """Capacity prediction result."""
    resource_name: str
    current_usage: float  # percent
    growth_rate_per_day: float
    days_until_full: Optional[int]
    days_until_warning: Optional[int]
    confidence: float
    recommendation: str


class CapacityPredictor:
    """
    Predicts when a storage pool will be exhausted.

    Uses linear regression on the daily usage percentages of the pool.
    """

    def __init__(
        self,
        warning_threshold: float = 80.0,
        critical_threshold: float = 90.0,
        max_days: int = 180,
        min_history_points: int = 7,
    ):
        self.warning_threshold = warning_threshold
        self.critical_threshold = critical_threshold
        self.max_days = max_days
        self.min_history_points = min_history_points

    def predict_pool(self, name: str, usage_history: Sequence[float]) -> CapacityPrediction:
        """
        Predict when a pool fills up.

        Args:
            name: Pool name
            usage_history: Daily usage percentages, oldest first

        Returns:
            CapacityPrediction
        """
        history: List[float] = [clamp_percent(v) for v in usage_history if is_valid_number(v)]
        current = history[-1] if history else 0.0

        if len(history) < self.min_history_points:
            return CapacityPrediction(
                resource_name=name,
                current_usage=current,
                growth_rate_per_day=0.0,
                days_until_full=None,
                days_until_warning=None,
                confidence=0.0,
                recommendation="Insufficient data for prediction",
            )

        growth_rate = linear_regression(history).slope
        days_until_full = find_threshold_day(current, growth_rate, 100.0, self.max_days)
        days_until_warning = find_threshold_day(current, growth_rate, self.warning_threshold, self.max_days)
        days_until_critical = find_threshold_day(current, growth_rate, self.critical_threshold, self.max_days)

        if days_until_full is not None and days_until_full < 7:
            recommendation = f"URGENT: Pool {name} will be full in {days_until_full} days!"
        elif days_until_critical is not None and days_until_critical <= 14:
            recommendation = f"Pool {name} will reach {self.critical_threshold:g}% in {days_until_critical} days."
        elif days_until_warning is not None and days_until_warning <= 30:
            recommendation = f"WARNING: Pool {name} will reach {self.warning_threshold:g}% in {days_until_warning} days."
        else:
            recommendation = f"Pool {name} usage is stable."

        logger.debug(f"Pool {name}: growth {growth_rate:.3f}%/day, full in {days_until_full}")

        return CapacityPrediction(
            resource_name=name,
            current_usage=current,
            growth_rate_per_day=growth_rate,
            days_until_full=days_until_full,
            days_until_warning=days_until_warning,
            confidence=min(1.0, len(history) / 30),
            recommendation=recommendation,
        )
