"""
Temporal summaries and derived quantities for site tables.

Provides:
- aggregate: hourly -> daily -> monthly summaries with fixed reducers
- derived: wind speed from components, daily temperature departures
- training: hourly table enriched with daily, lag and preview predictors
"""

from pointmet.summaries.aggregate import daily_from_hourly, monthly_from_daily, read_hourly_table
from pointmet.summaries.derived import add_temperature_departures, add_wind_speed, wind_speed

__all__ = [
    "daily_from_hourly",
    "monthly_from_daily",
    "read_hourly_table",
    "wind_speed",
    "add_wind_speed",
    "add_temperature_departures",
]
# ========================= EOF ====================================================================
