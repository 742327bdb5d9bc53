# art_planner/utils/periods.py
"""
Date window utilities for Program Increments and iterations.
Supports quarterly, monthly, and weekly period keys, and fixed-length
iteration partitioning of a window.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List
import re


@dataclass(frozen=True)
class PeriodWindow:
    """
    A time window with start and end dates (end is inclusive).
    Used for PI horizons and the iterations carved out of them.
    """
    start: date
    end: date  # inclusive

    def contains(self, dt: date) -> bool:
        """Check if a date falls within this window (inclusive)."""
        return self.start <= dt <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def parse_period_key(period_key: str) -> PeriodWindow:
    """
    Parse a period key string into a PeriodWindow.

    Supported formats:
    - Quarterly: "YYYY-QN" (e.g., "2026-Q1")
    - Monthly: "YYYY-MN" or "YYYY-MM" (e.g., "2026-M3", "2026-03")
    - Weekly: "YYYY-WN" or "YYYY-WNN" (e.g., "2026-W5")

    Raises:
        ValueError: If period_key format is not recognized or invalid
    """
    if not period_key or not isinstance(period_key, str):
        raise ValueError(f"Invalid period_key: must be a non-empty string, got {period_key!r}")

    period_key = period_key.strip().upper()

    quarterly_match = re.match(r"^(\d{4})-Q([1-4])$", period_key)
    if quarterly_match:
        year = _check_year(int(quarterly_match.group(1)))
        start_month = (int(quarterly_match.group(2)) - 1) * 3 + 1
        return PeriodWindow(start=date(year, start_month, 1), end=_month_end(year, start_month + 2))

    monthly_match = re.match(r"^(\d{4})-M?(\d{1,2})$", period_key)
    if monthly_match:
        year = _check_year(int(monthly_match.group(1)))
        month = int(monthly_match.group(2))
        if month < 1 or month > 12:
            raise ValueError(f"Invalid month in period_key '{period_key}': month must be 1-12")
        return PeriodWindow(start=date(year, month, 1), end=_month_end(year, month))

    weekly_match = re.match(r"^(\d{4})-W(\d{1,2})$", period_key)
    if weekly_match:
        year = _check_year(int(weekly_match.group(1)))
        week = int(weekly_match.group(2))
        if week < 1 or week > 53:
            raise ValueError(f"Invalid week in period_key '{period_key}': week must be 1-53")
        if week > _iso_weeks(year):
            raise ValueError(f"Year {year} has no ISO week {week}")
        # ISO 8601: week 1 is the week holding the first Thursday
        start = date.fromisocalendar(year, week, 1)
        return PeriodWindow(start=start, end=start + timedelta(days=6))

    raise ValueError(
        f"Unrecognized period_key format: '{period_key}'. "
        f"Supported formats: 'YYYY-QN' (quarters), 'YYYY-MN' (months), 'YYYY-WN' (weeks). "
        f"Examples: '2026-Q1', '2026-M3', '2026-03', '2026-W5'"
    )


def split_into_iterations(window: PeriodWindow, length_days: int) -> List[PeriodWindow]:
    """
    Partition a window into consecutive fixed-length sub-windows.

    Every day of the window is covered exactly once; the final sub-window is
    clipped to window.end and may be shorter than length_days.
    """
    if length_days < 1:
        raise ValueError(f"Iteration length must be >= 1 day, got {length_days}")

    windows: List[PeriodWindow] = []
    start = window.start
    while start <= window.end:
        end = min(start + timedelta(days=length_days - 1), window.end)
        windows.append(PeriodWindow(start=start, end=end))
        start = end + timedelta(days=1)
    return windows


def _check_year(year: int) -> int:
    if year < 1900 or year > 2100:
        raise ValueError(f"Invalid year {year}: must be between 1900 and 2100")
    return year


def _month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year, 12, 31)
    return date(year, month + 1, 1) - timedelta(days=1)


def _iso_weeks(year: int) -> int:
    # Dec 28 is always in the last ISO week of its year
    return date(year, 12, 28).isocalendar()[1]


__all__ = ["PeriodWindow", "parse_period_key", "split_into_iterations"]
