"""
Resource Data Model

KPI snapshot and daily trend samples consumed by the forecast and
health-score engines.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

RESOURCES = ("cpu", "ram", "storage")


def clamp_percent(value: float) -> float:
    """Clamp a percentage to [0, 100]."""
    return max(0.0, min(100.0, float(value)))


def is_valid_number(value: Any) -> bool:
    """True for real, finite numbers (bools and NaN excluded)."""
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class CpuKpi:
    used: float = 0.0  # percent
    allocated: float = 0.0  # vCPUs
    total: float = 0.0  # physical cores


@dataclass(frozen=True)
class RamKpi:
    used: float = 0.0  # percent
    allocated: float = 0.0  # bytes
    total: float = 0.0  # bytes


@dataclass(frozen=True)
class StorageKpi:
    used: float = 0.0  # bytes
    total: float = 0.0  # bytes

    @property
    def percent(self) -> float:
        if self.total > 0:
            return clamp_percent(self.used / self.total * 100)
        return 0.0


@dataclass(frozen=True)
class VmCounts:
    total: int = 0
    running: int = 0
    stopped: int = 0


@dataclass(frozen=True)
class KpiSnapshot:
    """Current-moment utilization of the whole infrastructure."""
    cpu: CpuKpi = CpuKpi()
    ram: RamKpi = RamKpi()
    storage: StorageKpi = StorageKpi()
    vms: VmCounts = VmCounts()
    efficiency: float = 0.0

    @property
    def cpu_percent(self) -> float:
        return clamp_percent(self.cpu.used)

    @property
    def ram_percent(self) -> float:
        return clamp_percent(self.ram.used)

    @property
    def storage_percent(self) -> float:
        return self.storage.percent

    @property
    def efficiency_percent(self) -> float:
        return clamp_percent(self.efficiency)

    def percent_for(self, resource: str) -> float:
        if resource == "cpu":
            return self.cpu_percent
        if resource == "ram":
            return self.ram_percent
        if resource == "storage":
            return self.storage_percent
        raise KeyError(resource)


@dataclass(frozen=True)
class TrendSample:
    """One daily historical utilization entry (percentages)."""
    t: str
    cpu: Optional[float] = None
    ram: Optional[float] = None
    storage: Optional[float] = None

    def value_for(self, resource: str) -> Optional[float]:
        return getattr(self, resource)


def extract_series(samples: Sequence[TrendSample], resource: str) -> List[float]:
    """
    Extract one resource's history, oldest first.

    Missing and non-finite values are dropped, the rest clamped to [0, 100].
    """
    return [
        clamp_percent(v)
        for v in (s.value_for(resource) for s in samples)
        if is_valid_number(v)
    ]
