# Tests for period key parsing and iteration windows
from datetime import date

import pytest

from art_planner.utils.periods import PeriodWindow, parse_period_key, split_into_iterations


@pytest.mark.parametrize(
    "key,start,end",
    [
        ("2026-Q1", date(2026, 1, 1), date(2026, 3, 31)),
        ("2026-q4", date(2026, 10, 1), date(2026, 12, 31)),
        ("2024-M2", date(2024, 2, 1), date(2024, 2, 29)),
        ("2026-03", date(2026, 3, 1), date(2026, 3, 31)),
        ("2026-W1", date(2025, 12, 29), date(2026, 1, 4)),
        ("2020-W53", date(2020, 12, 28), date(2021, 1, 3)),
    ],
)
def test_parse_period_key(key, start, end):
    window = parse_period_key(key)
    assert (window.start, window.end) == (start, end)


@pytest.mark.parametrize("key", ["", "2026-Q5", "2026-13", "2025-W53", "1800-Q1", "next quarter"])
def test_parse_period_key_rejects_bad_keys(key):
    with pytest.raises(ValueError):
        parse_period_key(key)


def test_split_covers_window_exactly_once():
    window = PeriodWindow(start=date(2026, 1, 5), end=date(2026, 2, 4))

    parts = split_into_iterations(window, 14)

    assert [(p.start, p.end) for p in parts] == [
        (date(2026, 1, 5), date(2026, 1, 18)),
        (date(2026, 1, 19), date(2026, 2, 1)),
        (date(2026, 2, 2), date(2026, 2, 4)),
    ]
    assert sum(p.days for p in parts) == window.days
    assert parts[0].contains(date(2026, 1, 18)) and not parts[0].contains(date(2026, 1, 19))


def test_split_shorter_than_one_iteration_and_bad_length():
    window = PeriodWindow(start=date(2026, 1, 1), end=date(2026, 1, 3))
    assert split_into_iterations(window, 14) == [window]

    with pytest.raises(ValueError):
        split_into_iterations(window, 0)
