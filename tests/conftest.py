"""
Shared pytest fixtures for the forecasting and health-score suites.

Provides:
- KPI snapshots (healthy, empty)
- Daily trend series (rising CPU, two-week smoothed window)
- Alert factory
"""

from typing import Callable, List

import pytest

from infraforecast.ai.trend_engine import (
    AlertSeverity,
    PredictiveAlert,
    TrendDirection,
    TrendType,
)
from infraforecast.models import (
    CpuKpi,
    KpiSnapshot,
    RamKpi,
    StorageKpi,
    TrendSample,
    VmCounts,
)

GIB = 1024 ** 3


@pytest.fixture
def healthy_kpis() -> KpiSnapshot:
    return KpiSnapshot(
        cpu=CpuKpi(used=40, allocated=32, total=64),
        ram=RamKpi(used=60, allocated=128 * GIB, total=256 * GIB),
        storage=StorageKpi(used=50 * GIB, total=100 * GIB),
        vms=VmCounts(total=10, running=8, stopped=2),
        efficiency=60,
    )


@pytest.fixture
def rising_trends() -> List[TrendSample]:
    """Ten days: CPU 20 -> 38 (+2/day), RAM flat 50, storage flat 40."""
    return [TrendSample(t=f"d{i}", cpu=20 + 2 * i, ram=50, storage=40) for i in range(10)]


@pytest.fixture
def two_week_trends() -> List[TrendSample]:
    """Fourteen days of slowly rising CPU (no weekly pattern), enough for the smoothed path."""
    return [TrendSample(t=f"d{i}", cpu=30 + 0.2 * i, ram=55, storage=60) for i in range(14)]


@pytest.fixture
def make_alert() -> Callable[..., PredictiveAlert]:
    def _make(severity: AlertSeverity, resource: str = "cpu") -> PredictiveAlert:
        return PredictiveAlert(
            resource=resource,
            current_value=50.0,
            predicted_value=60.0,
            days_to_threshold=10 if severity is not AlertSeverity.OK else None,
            threshold=90.0,
            trend=TrendDirection.UP,
            severity=severity,
            trend_type=TrendType.LINEAR,
            confidence=90.0,
        )

    return _make
