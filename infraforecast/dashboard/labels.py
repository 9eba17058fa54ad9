"""
Forecast Date Labels

Attaches display dates to projected forecast points. Kept out of the
numeric core, which only deals in day offsets.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional, Sequence

from infraforecast.ai.trend_engine import ForecastPoint


def format_day(start: date, day_offset: int, date_format: str = "%d %b") -> str:
    return (start + timedelta(days=day_offset)).strftime(date_format)


def label_forecast(
    points: Sequence[ForecastPoint],
    start: Optional[date] = None,
    date_format: str = "%d %b",
) -> List[ForecastPoint]:
    """
    Label projected points with start + day_offset.

    Historical points keep the label they came with.
    """
    start = start or date.today()
    return [
        replace(p, label=format_day(start, p.day_offset, date_format)) if p.is_projection else p
        for p in points
    ]
