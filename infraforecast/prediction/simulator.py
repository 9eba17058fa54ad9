"""
What-If Capacity Simulator

Estimates the health-score impact of deploying additional VMs.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging

from infraforecast.ai.health_engine import HealthScoreEngine
from infraforecast.config import DEFAULT_THRESHOLDS, ResourceThresholds
from infraforecast.models import KpiSnapshot, clamp_percent

logger = logging.getLogger(__name__)

GIB = 1024 ** 3

# Share of newly allocated capacity assumed to be actually consumed.
USAGE_FACTOR = 0.5


@dataclass(frozen=True)
class VmScenario:
    vm_count: int = 5
    vcpu_per_vm: int = 4
    ram_gb_per_vm: float = 8
    disk_gb_per_vm: float = 100


@dataclass(frozen=True)
class SimulationResult:
    current_score: int
    simulated_score: int
    score_delta: int
    cpu_pct: float  # allocated vCPU / physical cores
    ram_pct: float  # allocated / physical RAM
    storage_pct: float
    storage_free_gb: float
    simulated_kpis: KpiSnapshot


def _ratio(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0


def simulate_scenario(
    kpis: KpiSnapshot,
    scenario: VmScenario,
    thresholds: ResourceThresholds = DEFAULT_THRESHOLDS,
) -> SimulationResult:
    """
    Score the infrastructure as if `scenario` had been deployed.

    Predictive alerts are ignored on both sides of the comparison.
    """
    added_cpu = scenario.vm_count * scenario.vcpu_per_vm
    added_ram = scenario.vm_count * scenario.ram_gb_per_vm * GIB
    added_disk = scenario.vm_count * scenario.disk_gb_per_vm * GIB

    cpu_allocated = kpis.cpu.allocated + added_cpu
    ram_allocated = kpis.ram.allocated + added_ram
    storage_used = kpis.storage.used + added_disk

    simulated = replace(
        kpis,
        cpu=replace(
            kpis.cpu,
            allocated=cpu_allocated,
            used=min(100.0, kpis.cpu.used + _ratio(added_cpu, kpis.cpu.total) * 100 * USAGE_FACTOR),
        ),
        ram=replace(
            kpis.ram,
            allocated=ram_allocated,
            used=min(100.0, kpis.ram.used + _ratio(added_ram, kpis.ram.total) * 100 * USAGE_FACTOR),
        ),
        storage=replace(kpis.storage, used=storage_used),
        vms=replace(
            kpis.vms,
            total=kpis.vms.total + scenario.vm_count,
            running=kpis.vms.running + scenario.vm_count,
        ),
    )

    engine = HealthScoreEngine(thresholds)
    current_score = engine.calculate(kpis).score
    simulated_score = engine.calculate(simulated).score

    logger.debug(f"Scenario {scenario}: score {current_score} -> {simulated_score}")

    return SimulationResult(
        current_score=current_score,
        simulated_score=simulated_score,
        score_delta=simulated_score - current_score,
        cpu_pct=_ratio(cpu_allocated, kpis.cpu.total) * 100,
        ram_pct=_ratio(ram_allocated, kpis.ram.total) * 100,
        storage_pct=clamp_percent(_ratio(storage_used, kpis.storage.total) * 100),
        storage_free_gb=max(0.0, (kpis.storage.total - storage_used) / GIB) if kpis.storage.total > 0 else 0.0,
        simulated_kpis=simulated,
    )
