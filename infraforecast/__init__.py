from .ai.health_engine import HealthScoreEngine, HealthScoreResult
from .ai.trend_engine import ForecastEngine, ForecastResult, PredictiveAlert
from .config import DEFAULT_THRESHOLDS, ForecastConfig, ResourceThresholds, Threshold, load_config
from .models import KpiSnapshot, TrendSample

__all__ = [
    "DEFAULT_THRESHOLDS",
    "ForecastConfig",
    "ForecastEngine",
    "ForecastResult",
    "HealthScoreEngine",
    "HealthScoreResult",
    "KpiSnapshot",
    "PredictiveAlert",
    "ResourceThresholds",
    "Threshold",
    "TrendSample",
    "load_config",
]
