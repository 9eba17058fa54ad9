import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml


class ConfigError(ValueError):
    """Invalid forecast or threshold configuration."""


def _expand_env(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        key = value[2:-1]
        return os.environ.get(key, "")
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


@dataclass(frozen=True)
class Threshold:
    warning: float = 80.0
    critical: float = 90.0


@dataclass(frozen=True)
class ResourceThresholds:
    cpu: Threshold = Threshold()
    ram: Threshold = Threshold()
    storage: Threshold = Threshold()

    def for_resource(self, resource: str) -> Threshold:
        if resource not in ("cpu", "ram", "storage"):
            raise KeyError(resource)
        return getattr(self, resource)


DEFAULT_THRESHOLDS = ResourceThresholds()


DEFAULT_MIN_GROWTH: Tuple[Tuple[str, float], ...] = (
    ("cpu", 0.0),
    ("ram", 0.5 / 30),
    ("storage", 1.0 / 30),
)


@dataclass(frozen=True)
class ForecastConfig:
    horizon_days: int = 30
    alert_horizon_days: int = 30
    max_threshold_days: int = 180
    min_smoothing_points: int = 14
    smoothing_alpha: float = 0.3
    recency_window: int = 30
    recency_weight: int = 3
    seasonal_period: int = 7
    seasonal_min_amplitude: float = 1.0
    seasonal_damping: float = 0.5
    # (resource, percent per day) pairs
    min_growth_per_day: Tuple[Tuple[str, float], ...] = DEFAULT_MIN_GROWTH
    date_format: str = "%d %b"

    def min_growth_for(self, resource: str) -> float:
        return float(dict(self.min_growth_per_day).get(resource, 0.0))


@dataclass(frozen=True)
class SystemConfig:
    timezone: str
    log_level: str


@dataclass(frozen=True)
class AppConfig:
    raw: Dict[str, Any]
    system: SystemConfig
    thresholds: ResourceThresholds
    forecast: ForecastConfig


def _threshold(data: Dict[str, Any], name: str) -> Threshold:
    entry = data.get(name) or {}
    try:
        warning = float(entry.get("warning", 80.0))
        critical = float(entry.get("critical", 90.0))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {name} threshold: {e}") from e

    for label, value in (("warning", warning), ("critical", critical)):
        if not 0 <= value <= 100:
            raise ConfigError(f"{name}.{label} must be within 0-100, got {value}")
    if warning > critical:
        raise ConfigError(f"{name}.warning ({warning}) is above {name}.critical ({critical})")

    return Threshold(warning=warning, critical=critical)


def build_thresholds(data: Optional[Dict[str, Any]]) -> ResourceThresholds:
    """Build thresholds from a {cpu: {warning, critical}, ...} mapping."""
    if not data:
        return DEFAULT_THRESHOLDS
    return ResourceThresholds(
        cpu=_threshold(data, "cpu"),
        ram=_threshold(data, "ram"),
        storage=_threshold(data, "storage"),
    )


def build_forecast_config(data: Optional[Dict[str, Any]]) -> ForecastConfig:
    data = data or {}
    defaults = ForecastConfig()

    min_growth = dict(DEFAULT_MIN_GROWTH)
    try:
        for k, v in (data.get("min_growth_per_day") or {}).items():
            min_growth[str(k)] = float(v)

        cfg = ForecastConfig(
            horizon_days=int(data.get("horizon_days", defaults.horizon_days)),
            alert_horizon_days=int(data.get("alert_horizon_days", defaults.alert_horizon_days)),
            max_threshold_days=int(data.get("max_threshold_days", defaults.max_threshold_days)),
            min_smoothing_points=int(data.get("min_smoothing_points", defaults.min_smoothing_points)),
            smoothing_alpha=float(data.get("smoothing_alpha", defaults.smoothing_alpha)),
            recency_window=int(data.get("recency_window", defaults.recency_window)),
            recency_weight=int(data.get("recency_weight", defaults.recency_weight)),
            seasonal_period=int(data.get("seasonal_period", defaults.seasonal_period)),
            seasonal_min_amplitude=float(data.get("seasonal_min_amplitude", defaults.seasonal_min_amplitude)),
            seasonal_damping=float(data.get("seasonal_damping", defaults.seasonal_damping)),
            min_growth_per_day=tuple(min_growth.items()),
            date_format=str(data.get("date_format", defaults.date_format)),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid forecast settings: {e}") from e

    if cfg.horizon_days < 1:
        raise ConfigError(f"horizon_days must be positive, got {cfg.horizon_days}")
    if cfg.max_threshold_days < 1:
        raise ConfigError(f"max_threshold_days must be positive, got {cfg.max_threshold_days}")
    if not 0 < cfg.smoothing_alpha <= 1:
        raise ConfigError(f"smoothing_alpha must be within (0, 1], got {cfg.smoothing_alpha}")
    if cfg.seasonal_period < 1 or cfg.recency_weight < 1:
        raise ConfigError("seasonal_period and recency_weight must be at least 1")

    return cfg


def load_config(path: Optional[str] = None) -> AppConfig:
    data: Dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    data = _expand_env(data)

    sys_cfg = data.get("system", {}) or {}
    system = SystemConfig(
        timezone=str(sys_cfg.get("timezone", "UTC")),
        log_level=str(sys_cfg.get("log_level", "INFO")),
    )

    return AppConfig(
        raw=data,
        system=system,
        thresholds=build_thresholds(data.get("thresholds")),
        forecast=build_forecast_config(data.get("forecast")),
    )
