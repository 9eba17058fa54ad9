"""
KPI Payload Parser

Normalizes data-fetch payloads (camelCase or snake_case dicts) into the
KPI snapshot, trend samples and alert batches used by the engines.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

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
    is_valid_number,
)

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    """Extract a finite float, or None."""
    if is_valid_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip().rstrip("%"))
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _num(data: Mapping[str, Any], *keys: str, default: float = 0.0) -> float:
    for key in keys:
        if key in data:
            value = _to_float(data[key])
            if value is not None:
                return value
    return default


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    section = data.get(key)
    return section if isinstance(section, Mapping) else {}


def _list(data: Mapping[str, Any], key: str) -> List[Any]:
    rows = data.get(key)
    if rows is None:
        return []
    if not isinstance(rows, (list, tuple)):
        logger.warning(f"Ignoring {key}: expected a list, got {type(rows).__name__}")
        return []
    return list(rows)


def parse_kpi_snapshot(data: Optional[Mapping[str, Any]]) -> KpiSnapshot:
    """Build a KpiSnapshot; missing or non-numeric fields default to 0."""
    data = data or {}
    cpu = _section(data, "cpu")
    ram = _section(data, "ram")
    storage = _section(data, "storage")
    vms = _section(data, "vms")

    return KpiSnapshot(
        cpu=CpuKpi(used=_num(cpu, "used"), allocated=_num(cpu, "allocated"), total=_num(cpu, "total")),
        ram=RamKpi(used=_num(ram, "used"), allocated=_num(ram, "allocated"), total=_num(ram, "total")),
        storage=StorageKpi(used=_num(storage, "used"), total=_num(storage, "total")),
        vms=VmCounts(
            total=int(_num(vms, "total")),
            running=int(_num(vms, "running")),
            stopped=int(_num(vms, "stopped")),
        ),
        efficiency=_num(data, "efficiency"),
    )


def parse_trend_samples(rows: Optional[Iterable[Any]]) -> List[TrendSample]:
    """
    Build trend samples, oldest first.

    Non-numeric values become None so the series extraction drops them.
    """
    samples = []
    for i, row in enumerate(rows or []):
        if not isinstance(row, Mapping):
            logger.warning(f"Skipping trend row {i}: expected a mapping, got {type(row).__name__}")
            continue
        samples.append(
            TrendSample(
                t=str(row.get("t", i)),
                cpu=_to_float(row.get("cpu")),
                ram=_to_float(row.get("ram")),
                storage=_to_float(row.get("storage")),
            )
        )
    return samples


def _enum_value(enum_cls, value: Any, default):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return default


def parse_alerts(rows: Optional[Iterable[Any]]) -> List[PredictiveAlert]:
    """Build an alert batch from dicts; unknown severities map to ok."""
    alerts = []
    for i, row in enumerate(rows or []):
        if not isinstance(row, Mapping):
            logger.warning(f"Skipping alert row {i}: expected a mapping, got {type(row).__name__}")
            continue
        days = row.get("daysToThreshold", row.get("days_to_threshold"))
        days_value = _to_float(days)
        alerts.append(
            PredictiveAlert(
                resource=str(row.get("resource", "")),
                current_value=_num(row, "currentValue", "current_value"),
                predicted_value=_num(row, "predictedValue", "predicted_value"),
                days_to_threshold=int(days_value) if days_value is not None else None,
                threshold=_num(row, "threshold", default=90.0),
                trend=_enum_value(TrendDirection, row.get("trend"), TrendDirection.STABLE),
                severity=_enum_value(AlertSeverity, row.get("severity"), AlertSeverity.OK),
                trend_type=_enum_value(
                    TrendType, row.get("trendType", row.get("trend_type")), TrendType.STABLE
                ),
                confidence=_num(row, "confidence"),
            )
        )
    return alerts


def parse_payload(data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Split an input document into kpis, trends and alerts.

    A document that is not a mapping, or trends/alerts that are not lists,
    parse as empty.
    """
    if not isinstance(data, Mapping):
        if data is not None:
            logger.warning(f"Ignoring input document: expected a mapping, got {type(data).__name__}")
        data = {}
    return {
        "kpis": parse_kpi_snapshot(_section(data, "kpis")),
        "trends": parse_trend_samples(_list(data, "trends")),
        "alerts": parse_alerts(_list(data, "alerts")),
    }
