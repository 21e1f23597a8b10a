from datetime import datetime
from types import SimpleNamespace

import pytest

from needled.services.progress import (
    EMPTY_STATS,
    calculate_bmi,
    calculate_goal_progress,
    compute_stats,
    dosage_at,
    dosage_changes,
    range_start,
    round_half_up,
)
from needled.services.trends import clamp_percent, total_change, week_change


def _profile(**overrides):
    data = {"start_weight": 100.0, "goal_weight": 80.0, "height": None, "weight_unit": "kg"}
    data.update(overrides)
    return SimpleNamespace(**data)


def _weigh_in(day: datetime, weight: float):
    return SimpleNamespace(date=day, weight=weight)


def _injection(day: datetime, dosage):
    return SimpleNamespace(date=day, dosage_mg=dosage)


def test_round_half_up():
    assert round_half_up(0.25, 1) == 0.3
    assert round_half_up(2.5, 0) == 3
    assert round_half_up(-5.0, 1) == -5.0


def test_goal_progress_is_not_clamped():
    assert calculate_goal_progress(100, 90, 80) == 50.0
    assert calculate_goal_progress(100, 75, 80) == 125.0
    assert calculate_goal_progress(100, 105, 80) == -25.0
    assert calculate_goal_progress(100, 90, None) is None
    assert calculate_goal_progress(100, 90, 100) is None


def test_bmi_converts_pounds():
    assert calculate_bmi(80, 180, "kg") == 24.7
    assert calculate_bmi(176.37, 180, "lbs") == 24.7
    assert calculate_bmi(80, None, "kg") is None


def test_empty_history_returns_zeroed_stats():
    assert compute_stats([], _profile()) == EMPTY_STATS


def test_stats_over_two_weeks():
    points = [_weigh_in(datetime(2025, 1, 1), 100.0), _weigh_in(datetime(2025, 1, 15), 90.0)]
    stats = compute_stats(points, _profile(height=180))

    assert stats.total_change == -10.0
    assert stats.percent_change == -10.0
    assert stats.goal_progress == 50.0
    assert stats.to_goal == 10.0
    assert stats.weekly_average == -5.0
    assert stats.current_bmi == 27.8


def test_weekly_average_needs_a_week_of_data():
    points = [_weigh_in(datetime(2025, 1, 1), 100.0), _weigh_in(datetime(2025, 1, 4), 99.0)]
    assert compute_stats(points, _profile()).weekly_average is None


def test_range_start():
    now = datetime(2025, 3, 1, 15, 0)
    assert range_start("1M", now) == datetime(2025, 1, 30)
    assert range_start("ALL", now) is None


def test_dosage_at_uses_latest_prior_injection():
    injections = [_injection(datetime(2025, 1, 1), 0.25), _injection(datetime(2025, 1, 15), 0.5)]
    assert dosage_at(datetime(2024, 12, 31), injections) is None
    assert dosage_at(datetime(2025, 1, 10), injections) == 0.25
    assert dosage_at(datetime(2025, 1, 15), injections) == 0.5


def test_dosage_changes():
    injections = [
        _injection(datetime(2025, 1, 1), 0.25),
        _injection(datetime(2025, 1, 8), 0.25),
        _injection(datetime(2025, 1, 15), 0.5),
        _injection(datetime(2025, 1, 22), None),
    ]
    changes = dosage_changes(injections)
    assert [(c.from_dosage, c.to_dosage) for c in changes] == [(None, 0.25), (0.25, 0.5)]


def test_dosage_changes_in_range_are_seeded_from_earlier_dose():
    injections = [
        _injection(datetime(2025, 1, 1), 0.25),
        _injection(datetime(2025, 1, 15), 0.5),
    ]
    changes = dosage_changes(injections, since=datetime(2025, 1, 10))
    assert len(changes) == 1
    assert changes[0].from_dosage == 0.25
    assert changes[0].date == datetime(2025, 1, 15)


@pytest.mark.parametrize(
    "value, expected",
    [(None, None), (-12.5, 0.0), (42.0, 42.0), (130.0, 100.0)],
)
def test_clamp_percent(value, expected):
    assert clamp_percent(value) == expected


def test_weight_changes():
    assert week_change(89.5, 90.0) == -0.5
    assert week_change(89.5, None) is None
    assert total_change(90.0, 100.0) == -10.0


def test_compute_stats_is_idempotent():
    points = [
        _weigh_in(datetime(2024, 12, 28), 101.3),
        _weigh_in(datetime(2025, 1, 6), 99.8),
        _weigh_in(datetime(2025, 1, 20), 97.45),
    ]
    profile = _profile(height=175)

    first = compute_stats(points, profile)
    assert compute_stats(points, profile) == first
    assert [p.weight for p in points] == [101.3, 99.8, 97.45]
