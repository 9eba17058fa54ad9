import argparse
import json
import logging
import sys
from datetime import date, datetime
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from rich.console import Console
from rich.table import Table

from infraforecast.ai.health_engine import HealthScoreEngine
from infraforecast.ai.trend_engine import ForecastEngine
from infraforecast.config import ConfigError, load_config
from infraforecast.dashboard.labels import label_forecast
from infraforecast.parsers.kpi_parser import parse_payload
from infraforecast.prediction.capacity import CapacityPredictor
from infraforecast.prediction.simulator import VmScenario, simulate_scenario


console = Console()


def _fmt(v: Optional[float]) -> str:
    return "-" if v is None else f"{v:.1f}"


def _today(tz: str) -> date:
    try:
        return datetime.now(ZoneInfo(tz)).date()
    except (ZoneInfoNotFoundError, ValueError):
        logging.getLogger(__name__).warning(f"Unknown timezone {tz!r}, using local date")
        return date.today()


def _rows(value: Any) -> list:
    return value if isinstance(value, list) else []


def _load_input(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        doc = json.load(f) if path.endswith(".json") else yaml.safe_load(f)
    doc = doc or {}
    if not isinstance(doc, dict):
        raise ValueError(f"expected a mapping at the top level, got {type(doc).__name__}")
    return doc


def main(argv=None):
    parser = argparse.ArgumentParser(prog="infraforecast", description="Resource forecasting and health scoring")
    parser.add_argument("--config", default=None, help="Path to YAML config (thresholds, forecast settings)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_forecast = sub.add_parser("forecast", help="Project CPU/RAM/storage and list predictive alerts")
    p_forecast.add_argument("input", help="YAML/JSON document with kpis and trends")
    p_forecast.add_argument("--days", type=int, default=None, help="Forecast horizon in days")
    p_forecast.add_argument("--json", action="store_true", help="Print the forecast as JSON")

    p_score = sub.add_parser("score", help="Compute the infrastructure health score")
    p_score.add_argument("input", help="YAML/JSON document with kpis, trends and/or alerts")
    p_score.add_argument("--json", action="store_true")

    p_sim = sub.add_parser("simulate", help="What-if: score impact of deploying new VMs")
    p_sim.add_argument("input", help="YAML/JSON document with kpis")
    p_sim.add_argument("--vms", type=int, default=5)
    p_sim.add_argument("--vcpu", type=int, default=4, help="vCPUs per VM")
    p_sim.add_argument("--ram-gb", type=float, default=8, help="RAM per VM (GB)")
    p_sim.add_argument("--disk-gb", type=float, default=100, help="Disk per VM (GB)")
    p_sim.add_argument("--json", action="store_true")

    p_pools = sub.add_parser("pools", help="Predict when storage pools fill up")
    p_pools.add_argument("input", help="YAML/JSON document with pools: [{name, history}]")
    p_pools.add_argument("--json", action="store_true")

    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except (OSError, yaml.YAMLError, ConfigError) as e:
        console.print(f"[red]Invalid config:[/red] {e}")
        return 2

    logging.basicConfig(level=getattr(logging, cfg.system.log_level.upper(), logging.INFO))

    try:
        raw = _load_input(args.input)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Cannot read input {args.input}:[/red] {e}")
        return 2

    payload = parse_payload(raw)
    today = _today(cfg.system.timezone)

    if args.cmd == "forecast":
        engine = ForecastEngine(cfg.thresholds, cfg.forecast)
        result = engine.forecast(payload["kpis"], payload["trends"], today=today, horizon_days=args.days)
        if args.json:
            console.print_json(json.dumps(result.to_dict(), default=str))
            return 0

        points = label_forecast(result.projected_trends, today, cfg.forecast.date_format)
        table = Table(title="Projection" + (" (smoothed)" if result.smoothed else ""))
        table.add_column("Day")
        for name in ("CPU", "RAM", "Storage"):
            table.add_column(name)
            table.add_column(f"{name} band")
        for p in points:
            if not p.is_projection and p.day_offset != 0:
                continue
            row = [p.label or str(p.day_offset)]
            for name in ("cpu", "ram", "storage"):
                proj = p.resource(name)
                row.append(_fmt(proj.projected))
                row.append("-" if proj.min is None else f"{proj.min:.1f}-{proj.max:.1f}")
            table.add_row(*row)
        console.print(table)

        alerts = Table(title="Predictive Alerts")
        for col in ("Resource", "Current", "+30d", "Days to threshold", "Threshold", "Trend", "Severity", "Confidence"):
            alerts.add_column(col)
        for a in result.alerts:
            alerts.add_row(
                a.resource,
                _fmt(a.current_value),
                _fmt(a.predicted_value),
                "-" if a.days_to_threshold is None else str(a.days_to_threshold),
                f"{a.threshold:g}",
                a.trend.value,
                a.severity.value,
                _fmt(a.confidence),
            )
        console.print(alerts)
        return 0

    if args.cmd == "score":
        alert_batch = payload["alerts"]
        if not alert_batch and payload["trends"]:
            alert_batch = list(
                ForecastEngine(cfg.thresholds, cfg.forecast).forecast(payload["kpis"], payload["trends"], today=today).alerts
            )
        result = HealthScoreEngine(cfg.thresholds).calculate(payload["kpis"], alert_batch)
        if args.json:
            console.print_json(json.dumps(result.to_dict(), default=str))
            return 0

        table = Table(title=f"Health Score: {result.score}/100 ({result.status})")
        table.add_column("Dimension")
        table.add_column("Penalty")
        table.add_column("Reason")
        for key, entry in result.breakdown.items():
            table.add_row(key, f"{entry.penalty:+g}", entry.reason)
        console.print(table)
        return 0

    if args.cmd == "simulate":
        scenario = VmScenario(
            vm_count=args.vms,
            vcpu_per_vm=args.vcpu,
            ram_gb_per_vm=args.ram_gb,
            disk_gb_per_vm=args.disk_gb,
        )
        sim = simulate_scenario(payload["kpis"], scenario, cfg.thresholds)
        out = {
            "currentScore": sim.current_score,
            "simulatedScore": sim.simulated_score,
            "scoreDelta": sim.score_delta,
            "cpuPct": round(sim.cpu_pct, 1),
            "ramPct": round(sim.ram_pct, 1),
            "storagePct": round(sim.storage_pct, 1),
            "storageFreeGb": round(sim.storage_free_gb, 1),
        }
        if args.json:
            console.print_json(json.dumps(out))
            return 0
        table = Table(title=f"What-if: +{scenario.vm_count} VMs")
        table.add_column("Metric")
        table.add_column("Value")
        for k, v in out.items():
            table.add_row(k, str(v))
        console.print(table)
        return 0

    # pools
    th = cfg.thresholds.storage
    predictor = CapacityPredictor(th.warning, th.critical, cfg.forecast.max_threshold_days)
    predictions = [
        predictor.predict_pool(str(p.get("name", "?")), _rows(p.get("history")))
        for p in _rows(raw.get("pools"))
        if isinstance(p, dict)
    ]
    if args.json:
        console.print_json(json.dumps([vars(p) for p in predictions], default=str))
        return 0
    table = Table(title="Storage Pools")
    table.add_column("Pool")
    table.add_column("Usage")
    table.add_column("Growth/day")
    table.add_column("Days to full")
    table.add_column("Recommendation")
    for p in predictions:
        table.add_row(
            p.resource_name,
            _fmt(p.current_usage),
            f"{p.growth_rate_per_day:.3f}",
            "-" if p.days_until_full is None else str(p.days_until_full),
            p.recommendation,
        )
    console.print(table)
    return 0


if __name__ == "__main__":
    sys.exit(main())
