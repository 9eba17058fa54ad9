"""
Health Score Engine

Calculates the infrastructure health score from current KPIs and the
predictive alert batch. Every dimension is scored independently and keeps a
human-readable reason next to its penalty.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple
from dataclasses import dataclass
import logging

from infraforecast.ai.trend_engine import AlertSeverity, PredictiveAlert
from infraforecast.config import DEFAULT_THRESHOLDS, ResourceThresholds
from infraforecast.models import KpiSnapshot, clamp_percent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PenaltyEntry:
    penalty: float
    reason: str


@dataclass(frozen=True)
class HealthScoreBreakdown:
    cpu: PenaltyEntry
    ram: PenaltyEntry
    storage: PenaltyEntry
    alerts: PenaltyEntry
    efficiency: PenaltyEntry
    stopped_vms: PenaltyEntry

    def items(self) -> List[Tuple[str, PenaltyEntry]]:
        return [
            ("cpu", self.cpu),
            ("ram", self.ram),
            ("storage", self.storage),
            ("alerts", self.alerts),
            ("efficiency", self.efficiency),
            ("stoppedVms", self.stopped_vms),
        ]

    @property
    def total(self) -> float:
        return sum(entry.penalty for _, entry in self.items())

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {k: {"penalty": e.penalty, "reason": e.reason} for k, e in self.items()}


@dataclass(frozen=True)
class HealthScoreResult:
    """Infrastructure health score result."""
    score: int  # 0-100
    status: str  # excellent, good, monitoring, critical
    breakdown: HealthScoreBreakdown

    def explain(self) -> List[str]:
        """One line per dimension that moved the score."""
        lines = [f"Score: {self.score}/100"]
        for key, entry in self.breakdown.items():
            if entry.penalty != 0:
                sign = "+" if entry.penalty > 0 else ""
                lines.append(f"{key.upper()}: {sign}{entry.penalty:g} ({entry.reason})")
        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "status": self.status, "breakdown": self.breakdown.to_dict()}


def score_status(score: float) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "monitoring"
    return "critical"


class HealthScoreEngine:
    """
    Rule-based infrastructure health scoring.

    Starts from 100 and applies additive, independently computed penalties:
    - CPU (down to -20)
    - RAM (down to -25)
    - Storage (down to -25)
    - Predictive alerts (down to -30)
    - Efficiency (-15 to +5)
    - Stopped VMs (always 0: stopped guests are a normal state)
    """

    ALERT_PENALTIES = {
        AlertSeverity.CRITICAL: 12,
        AlertSeverity.WARNING: 5,
    }
    ALERT_PENALTY_CAP = 30

    def __init__(self, thresholds: ResourceThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def calculate(
        self,
        kpis: KpiSnapshot,
        alerts: Iterable[PredictiveAlert] = (),
    ) -> HealthScoreResult:
        """
        Calculate the health score.

        Args:
            kpis: Current KPI snapshot
            alerts: Predictive alert batch from the forecast engine

        Returns:
            HealthScoreResult with the per-dimension breakdown
        """
        breakdown = HealthScoreBreakdown(
            cpu=self._cpu_penalty(kpis.cpu_percent),
            ram=self._ram_penalty(kpis.ram_percent),
            storage=self._storage_penalty(kpis.storage_percent),
            alerts=self._alert_penalty(alerts),
            efficiency=self._efficiency_penalty(kpis.efficiency_percent),
            stopped_vms=PenaltyEntry(0, f"{kpis.vms.stopped} stopped VMs (normal state)"),
        )

        score = int(round(clamp_percent(100 + breakdown.total)))
        logger.debug(f"Health score {score} (adjustment {breakdown.total:+g})")

        return HealthScoreResult(score=score, status=score_status(score), breakdown=breakdown)

    def _cpu_penalty(self, pct: float) -> PenaltyEntry:
        th = self.thresholds.cpu
        if pct > th.critical:
            return PenaltyEntry(-20, f"CPU critical ({pct:.1f}% > {th.critical:g}%)")
        if pct > th.warning:
            return PenaltyEntry(-15, f"CPU high ({pct:.1f}% > {th.warning:g}%)")
        if pct > 70:
            return PenaltyEntry(-8, f"CPU elevated ({pct:.1f}% > 70%)")
        if pct > 60:
            return PenaltyEntry(-4, f"CPU moderate ({pct:.1f}% > 60%)")
        if pct < 5:
            return PenaltyEntry(-5, f"CPU heavily underused ({pct:.1f}% < 5%)")
        if pct < 10:
            return PenaltyEntry(-2, f"CPU underused ({pct:.1f}% < 10%)")
        return PenaltyEntry(0, f"CPU optimal ({pct:.1f}%)")

    def _ram_penalty(self, pct: float) -> PenaltyEntry:
        th = self.thresholds.ram
        if pct > th.critical:
            return PenaltyEntry(-25, f"RAM critical ({pct:.1f}% > {th.critical:g}%)")
        if pct > th.warning:
            return PenaltyEntry(-18, f"RAM high ({pct:.1f}% > {th.warning:g}%)")
        if pct > 80:
            return PenaltyEntry(-12, f"RAM elevated ({pct:.1f}% > 80%)")
        if pct > 75:
            return PenaltyEntry(-6, f"RAM moderate ({pct:.1f}% > 75%)")
        if pct < 20:
            return PenaltyEntry(-8, f"RAM heavily underused ({pct:.1f}% < 20%)")
        if pct < 30:
            return PenaltyEntry(-4, f"RAM underused ({pct:.1f}% < 30%)")
        return PenaltyEntry(0, f"RAM optimal ({pct:.1f}%)")

    def _storage_penalty(self, pct: float) -> PenaltyEntry:
        th = self.thresholds.storage
        if pct > th.critical + 5:
            return PenaltyEntry(-25, f"Storage nearly full ({pct:.1f}% > {th.critical + 5:g}%)")
        if pct > th.critical:
            return PenaltyEntry(-20, f"Storage critical ({pct:.1f}% > {th.critical:g}%)")
        if pct > th.warning + 5:
            return PenaltyEntry(-15, f"Storage high ({pct:.1f}% > {th.warning + 5:g}%)")
        if pct > th.warning:
            return PenaltyEntry(-10, f"Storage above warning ({pct:.1f}% > {th.warning:g}%)")
        if pct > 75:
            return PenaltyEntry(-5, f"Storage elevated ({pct:.1f}% > 75%)")
        return PenaltyEntry(0, f"Storage healthy ({pct:.1f}%)")

    def _alert_penalty(self, alerts: Iterable[PredictiveAlert]) -> PenaltyEntry:
        critical = warning = 0
        for alert in alerts:
            if alert.severity is AlertSeverity.CRITICAL:
                critical += 1
            elif alert.severity is AlertSeverity.WARNING:
                warning += 1

        raw = (
            critical * self.ALERT_PENALTIES[AlertSeverity.CRITICAL]
            + warning * self.ALERT_PENALTIES[AlertSeverity.WARNING]
        )
        penalty = min(self.ALERT_PENALTY_CAP, raw)

        if penalty == 0:
            return PenaltyEntry(0, "No predictive alerts")
        reason = f"{critical} critical, {warning} warning predictive alerts"
        if raw > penalty:
            reason += f" (capped at {self.ALERT_PENALTY_CAP})"
        return PenaltyEntry(-penalty, reason)

    def _efficiency_penalty(self, pct: float) -> PenaltyEntry:
        if pct >= 80:
            return PenaltyEntry(5, f"Excellent efficiency ({pct:.1f}%)")
        if pct >= 70:
            return PenaltyEntry(2, f"Very good efficiency ({pct:.1f}%)")
        if pct < 30:
            return PenaltyEntry(-15, f"Massive overprovisioning ({pct:.1f}% efficiency)")
        if pct < 40:
            return PenaltyEntry(-10, f"Poor efficiency ({pct:.1f}%)")
        if pct < 50:
            return PenaltyEntry(-5, f"Efficiency to improve ({pct:.1f}%)")
        return PenaltyEntry(0, f"Efficiency acceptable ({pct:.1f}%)")
