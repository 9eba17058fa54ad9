"""
Resource Forecast Engine

Projects CPU, RAM and storage utilization forward with widening confidence
bands and raises one predictive alert per resource.
Uses linear regression, optionally on an exponentially smoothed series with
weekly seasonality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from infraforecast.ai.regression import linear_regression, residual_std_dev
from infraforecast.ai.smoothing import fit_smoothed
from infraforecast.config import DEFAULT_THRESHOLDS, ForecastConfig, ResourceThresholds
from infraforecast.models import (
    RESOURCES,
    KpiSnapshot,
    TrendSample,
    clamp_percent,
    extract_series,
    is_valid_number,
)
from infraforecast.prediction.capacity import find_threshold_day

logger = logging.getLogger(__name__)

TREND_SLOPE_EPSILON = 0.05
CONFIDENCE_WIDENING = 1.5


class TrendDirection(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class TrendType(Enum):
    STABLE = "stable"
    LINEAR = "linear"
    # Reserved for curvature analysis, never produced today.
    ACCELERATING = "accelerating"
    DECELERATING = "decelerating"


class AlertSeverity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    OK = "ok"


def classify_direction(slope: float) -> TrendDirection:
    if slope > TREND_SLOPE_EPSILON:
        return TrendDirection.UP
    if slope < -TREND_SLOPE_EPSILON:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def classify_trend_type(slope: float) -> TrendType:
    return TrendType.STABLE if abs(slope) < TREND_SLOPE_EPSILON else TrendType.LINEAR


def classify_severity(days_to_threshold: Optional[int]) -> AlertSeverity:
    if days_to_threshold is None:
        return AlertSeverity.OK
    if days_to_threshold <= 14:
        return AlertSeverity.CRITICAL
    if days_to_threshold <= 30:
        return AlertSeverity.WARNING
    return AlertSeverity.OK


@dataclass(frozen=True)
class ResourcePrediction:
    """Predictor for one resource, anchored on its last actual value."""
    resource: str
    last_value: float
    slope: float
    std_dev: float
    trend_type: TrendType
    smoothed: bool = False
    seasonality: Optional[Tuple[float, ...]] = None
    weekday: int = 0  # 0 = Sunday
    seasonal_damping: float = 0.5

    def predict(self, day: int) -> float:
        value = self.last_value + self.slope * day
        if self.seasonality:
            slot = (self.weekday + day) % len(self.seasonality)
            value += self.seasonality[slot] * self.seasonal_damping
        return clamp_percent(value)


@dataclass(frozen=True)
class ResourceProjection:
    actual: Optional[float] = None
    projected: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "actualValue": self.actual,
            "projectedValue": self.projected,
            "min": self.min,
            "max": self.max,
        }


@dataclass(frozen=True)
class ForecastPoint:
    """
    One day of the combined history + projection series.

    day_offset is 0 for the last historical day, negative before it and
    positive for projected days.
    """
    day_offset: int
    label: Optional[str]
    cpu: ResourceProjection = ResourceProjection()
    ram: ResourceProjection = ResourceProjection()
    storage: ResourceProjection = ResourceProjection()

    @property
    def is_projection(self) -> bool:
        return self.day_offset > 0

    def resource(self, name: str) -> ResourceProjection:
        if name not in RESOURCES:
            raise KeyError(name)
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"t": self.label, "dayOffset": self.day_offset}
        for name in RESOURCES:
            out[name] = self.resource(name).to_dict()
        return out


@dataclass(frozen=True)
class PredictiveAlert:
    resource: str
    current_value: float
    predicted_value: float
    days_to_threshold: Optional[int]
    threshold: float
    trend: TrendDirection
    severity: AlertSeverity
    trend_type: TrendType
    # Heuristic (100 - 3 * residual std dev), not a probability.
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource": self.resource,
            "currentValue": self.current_value,
            "predictedValue": self.predicted_value,
            "daysToThreshold": self.days_to_threshold,
            "threshold": self.threshold,
            "trend": self.trend.value,
            "severity": self.severity.value,
            "trendType": self.trend_type.value,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ForecastResult:
    projected_trends: Tuple[ForecastPoint, ...]
    alerts: Tuple[PredictiveAlert, ...]
    predictions: Dict[str, ResourcePrediction] = field(default_factory=dict)
    smoothed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectedTrends": [p.to_dict() for p in self.projected_trends],
            "alerts": [a.to_dict() for a in self.alerts],
        }


class ForecastEngine:
    """
    Forecasting for infrastructure utilization.

    Methods:
    - Plain linear regression on the raw history
    - Smoothed path (recency weighting + EWMA + weekly seasonality) once the
      CPU history covers two weeks; the choice applies to all resources
    - Days-to-critical estimation per resource
    """

    def __init__(
        self,
        thresholds: ResourceThresholds = DEFAULT_THRESHOLDS,
        config: Optional[ForecastConfig] = None,
    ):
        self.thresholds = thresholds
        self.config = config or ForecastConfig()

    def forecast(
        self,
        kpis: KpiSnapshot,
        trends: Sequence[TrendSample],
        today: Optional[date] = None,
        horizon_days: Optional[int] = None,
    ) -> ForecastResult:
        """
        Project every resource forward.

        Args:
            kpis: Current KPI snapshot, used when a history is empty
            trends: Daily history, oldest first
            today: Reference day for the seasonal slot (defaults to today)
            horizon_days: Days to project (defaults to config.horizon_days)

        Returns:
            ForecastResult with history + projection points and three alerts
        """
        horizon = horizon_days if horizon_days is not None else self.config.horizon_days
        horizon = max(1, int(horizon))
        today = today or date.today()
        weekday = (today.weekday() + 1) % 7

        histories = {name: extract_series(trends, name) for name in RESOURCES}
        use_smoothing = len(histories["cpu"]) >= self.config.min_smoothing_points

        logger.debug(
            f"Forecast pass: {len(trends)} samples, horizon {horizon}d, "
            f"{'smoothed' if use_smoothing else 'plain'} path"
        )

        predictions: Dict[str, ResourcePrediction] = {}
        for name in RESOURCES:
            history = histories[name]
            last_value = history[-1] if history else kpis.percent_for(name)
            predictions[name] = self._predict_resource(name, history, last_value, use_smoothing, weekday)

        points = self._history_points(trends, predictions)
        points.extend(self._projection_points(predictions, horizon))

        alerts = tuple(self._make_alert(predictions[name]) for name in RESOURCES)

        return ForecastResult(
            projected_trends=tuple(points),
            alerts=alerts,
            predictions=predictions,
            smoothed=use_smoothing,
        )

    def _predict_resource(
        self,
        resource: str,
        history: List[float],
        last_value: float,
        use_smoothing: bool,
        weekday: int,
    ) -> ResourcePrediction:
        if len(history) < 2:
            return ResourcePrediction(
                resource=resource,
                last_value=last_value,
                slope=0.0,
                std_dev=0.0,
                trend_type=TrendType.STABLE,
            )

        seasonality = None
        if use_smoothing:
            fit = fit_smoothed(history, self.config)
            slope, std_dev, seasonality = fit.model.slope, fit.std_dev, fit.seasonality
        else:
            model = linear_regression(history)
            slope, std_dev = model.slope, residual_std_dev(history, model.predict)

        floor = self.config.min_growth_for(resource)
        if floor > 0 and slope < floor:
            logger.debug(f"{resource}: slope {slope:.4f} raised to growth floor {floor:.4f}")
            slope = floor

        return ResourcePrediction(
            resource=resource,
            last_value=last_value,
            slope=slope,
            std_dev=std_dev,
            trend_type=classify_trend_type(slope),
            smoothed=use_smoothing,
            seasonality=seasonality,
            weekday=weekday,
            seasonal_damping=self.config.seasonal_damping,
        )

    def _history_points(
        self,
        trends: Sequence[TrendSample],
        predictions: Dict[str, ResourcePrediction],
    ) -> List[ForecastPoint]:
        points = []
        last_index = len(trends) - 1
        for i, sample in enumerate(trends):
            projections = {}
            for name in RESOURCES:
                raw = sample.value_for(name)
                actual = clamp_percent(raw) if is_valid_number(raw) else None
                # The seam point carries the value every projection starts from.
                projected = predictions[name].last_value if i == last_index else None
                projections[name] = ResourceProjection(actual=actual, projected=projected)
            points.append(ForecastPoint(day_offset=i - last_index, label=sample.t, **projections))
        return points

    def _projection_points(
        self,
        predictions: Dict[str, ResourcePrediction],
        horizon: int,
    ) -> List[ForecastPoint]:
        points = []
        for day in range(1, horizon + 1):
            confidence_factor = 1 + (day / horizon) * CONFIDENCE_WIDENING
            projections = {}
            for name in RESOURCES:
                pred = predictions[name]
                value = pred.predict(day)
                margin = pred.std_dev * confidence_factor
                projections[name] = ResourceProjection(
                    projected=value,
                    min=clamp_percent(value - margin),
                    max=clamp_percent(value + margin),
                )
            points.append(ForecastPoint(day_offset=day, label=None, **projections))
        return points

    def _make_alert(self, pred: ResourcePrediction) -> PredictiveAlert:
        threshold = self.thresholds.for_resource(pred.resource).critical
        days_to = find_threshold_day(
            pred.last_value, pred.slope, threshold, self.config.max_threshold_days
        )
        severity = classify_severity(days_to)

        if severity is not AlertSeverity.OK:
            logger.info(f"{pred.resource} predicted to reach {threshold:g}% in {days_to} days ({severity.value})")

        return PredictiveAlert(
            resource=pred.resource,
            current_value=pred.last_value,
            predicted_value=pred.predict(self.config.alert_horizon_days),
            days_to_threshold=days_to,
            threshold=threshold,
            trend=classify_direction(pred.slope),
            severity=severity,
            trend_type=pred.trend_type,
            confidence=clamp_percent(100 - pred.std_dev * 3),
        )
