import pytest

from infraforecast.ai.trend_engine import AlertSeverity, TrendDirection
from infraforecast.parsers.kpi_parser import (
    parse_alerts,
    parse_kpi_snapshot,
    parse_payload,
    parse_trend_samples,
)


def test_kpi_snapshot_from_payload():
    kpis = parse_kpi_snapshot(
        {
            "cpu": {"used": "45.5%", "allocated": 48, "total": 64},
            "ram": {"used": 62, "allocated": 1.0e11, "total": 2.0e11},
            "storage": {"used": 750, "total": 1000},
            "vms": {"total": 12, "running": 9, "stopped": 3},
            "efficiency": 71,
        }
    )
    assert kpis.cpu.used == 45.5
    assert kpis.ram_percent == 62
    assert kpis.storage_percent == 75
    assert kpis.vms.stopped == 3
    assert kpis.efficiency == 71


def test_kpi_snapshot_missing_fields_default_to_zero():
    kpis = parse_kpi_snapshot({"cpu": "broken", "ram": {"used": None}})
    assert kpis.cpu.used == 0
    assert kpis.ram.used == 0
    assert kpis.storage_percent == 0
    assert parse_kpi_snapshot(None).vms.total == 0


def test_trend_samples_keep_gaps():
    samples = parse_trend_samples(
        [
            {"t": "1 Oct", "cpu": 10, "ram": "n/a"},
            "garbage",
            {"t": "2 Oct", "cpu": "nan", "ram": 20, "storage": 30},
        ]
    )
    assert len(samples) == 2
    assert samples[0].ram is None
    assert samples[0].storage is None
    assert samples[1].cpu is None
    assert samples[1].storage == 30


def test_alerts_from_payload():
    alerts = parse_alerts(
        [
            {"resource": "cpu", "severity": "CRITICAL", "trend": "up", "daysToThreshold": 4, "currentValue": 85},
            {"resource": "ram", "severity": "bogus", "days_to_threshold": None},
        ]
    )
    assert alerts[0].severity is AlertSeverity.CRITICAL
    assert alerts[0].trend is TrendDirection.UP
    assert alerts[0].days_to_threshold == 4
    assert alerts[0].current_value == 85
    assert alerts[1].severity is AlertSeverity.OK
    assert alerts[1].days_to_threshold is None
    assert alerts[1].threshold == 90


def test_payload_split():
    payload = parse_payload({"kpis": {"cpu": {"used": 10}}, "trends": [{"t": "x", "cpu": 1, "ram": 2}]})
    assert payload["kpis"].cpu.used == 10
    assert len(payload["trends"]) == 1
    assert payload["alerts"] == []


@pytest.mark.parametrize("doc", [[1, 2], "text", 42])
def test_payload_that_is_not_a_mapping_is_empty(doc):
    payload = parse_payload(doc)
    assert payload["trends"] == []
    assert payload["alerts"] == []
    assert payload["kpis"].cpu_percent == 0


def test_payload_ignores_non_list_rows():
    payload = parse_payload({"trends": 5, "alerts": {"resource": "cpu"}})
    assert payload["trends"] == []
    assert payload["alerts"] == []
