from datetime import date

from infraforecast.ai.trend_engine import ForecastEngine
from infraforecast.dashboard.labels import format_day, label_forecast


def test_format_day():
    assert format_day(date(2026, 10, 18), 1, "%Y-%m-%d") == "2026-10-19"
    assert format_day(date(2026, 12, 31), 1, "%Y-%m-%d") == "2027-01-01"


def test_projected_points_labelled(healthy_kpis, rising_trends):
    start = date(2026, 10, 18)
    result = ForecastEngine().forecast(healthy_kpis, rising_trends, today=start, horizon_days=3)
    labelled = label_forecast(result.projected_trends, start, "%Y-%m-%d")

    assert [p.label for p in labelled[-3:]] == ["2026-10-19", "2026-10-20", "2026-10-21"]
    assert labelled[0].label == "d0"
    assert labelled[9].label == "d9"
    # originals are value objects and stay unlabelled
    assert result.projected_trends[-1].label is None
    assert labelled[-1].cpu == result.projected_trends[-1].cpu
