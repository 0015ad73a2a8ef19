from __future__ import annotations

import pytest

from tz_inference.detectors.lunch import (
    NO_LUNCH,
    LunchDetector,
    LunchWindowMetrics,
    detect_lunch_break,
    duration_pattern_multiplier,
    european_early_lunch_multiplier,
    lunch_confidence,
    minimum_drop_ratio,
    minimum_pre_lunch_activity,
    perfect_drop_multiplier,
    perfect_drop_near_standard_multiplier,
    pre_lunch_strength_multiplier,
    standard_time_multiplier,
)
from tz_inference.histogram import BUCKETS


def _metrics(**overrides: float) -> LunchWindowMetrics:
    values = {
        "start_local": 12.0,
        "duration": 0.5,
        "before_count": 20,
        "activity_before": 60,
        "window_average": 2.0,
        "after_count": 18,
    }
    values.update(overrides)
    return LunchWindowMetrics(**values)


def test_sharp_dip_after_a_busy_morning(eastern_workday: dict[float, int]) -> None:
    lunch = detect_lunch_break(eastern_workday, -4)

    assert lunch.found
    assert lunch.start_utc == 15.5
    assert lunch.end_utc == 16.0
    assert lunch.start_local(-4) == 11.5
    assert lunch.duration == 0.5
    assert lunch.drop_ratio == pytest.approx(26 / 29)
    assert lunch.confidence == pytest.approx(0.8)


def test_full_hour_gap_is_reported_as_one_hour() -> None:
    histogram = {bucket: 0 for bucket in BUCKETS}
    for bucket in (9.0, 9.5, 10.0, 10.5, 11.0, 11.5, 13.0, 13.5, 14.0, 14.5):
        histogram[bucket] = 20

    lunch = detect_lunch_break(histogram, 0)

    assert lunch.start_utc == 12.0
    assert lunch.end_utc == 13.0
    assert lunch.duration == 1.0
    assert lunch.drop_ratio == 1.0


def test_lunch_durations_stay_in_domain(eastern_workday: dict[float, int]) -> None:
    for offset in range(-12, 15):
        lunch = detect_lunch_break(eastern_workday, offset)
        if lunch.found:
            assert lunch.duration in (0.5, 1.0, 1.5)
            assert 0.0 <= lunch.confidence <= 1.0


def test_no_lunch_without_midday_activity(eastern_workday: dict[float, int]) -> None:
    assert detect_lunch_break(eastern_workday, 8) == NO_LUNCH


def test_no_lunch_for_flat_activity(uniform_histogram: dict[float, int]) -> None:
    for offset in range(-12, 15):
        assert detect_lunch_break(uniform_histogram, offset) == NO_LUNCH


def test_window_that_runs_into_silence_is_extended() -> None:
    metrics = _metrics(after_count=0, window_average=0.0)

    assert metrics.continues_after
    assert metrics.reported_duration == 1.0
    assert duration_pattern_multiplier(metrics) == 0.5


def test_strong_recovery_doubles_short_window() -> None:
    metrics = _metrics()

    assert metrics.has_strong_recovery
    assert duration_pattern_multiplier(metrics) == 2.0


def test_quick_lunch_near_standard_halves_drop_threshold() -> None:
    quick = _metrics()
    slow = _metrics(after_count=5)
    quick_but_late = _metrics(start_local=13.0)

    assert quick.is_quick_lunch
    assert minimum_drop_ratio(quick) == pytest.approx(0.015 * 0.5)
    assert not slow.is_quick_lunch
    assert minimum_drop_ratio(slow) == pytest.approx(0.015)
    assert quick_but_late.is_quick_lunch
    assert minimum_drop_ratio(quick_but_late) == pytest.approx(0.025)


def test_perfect_drop_multipliers() -> None:
    perfect = _metrics(window_average=0.0)
    perfect_far = _metrics(start_local=15.0, window_average=0.0)

    assert perfect.drop_ratio == 1.0
    assert perfect_drop_near_standard_multiplier(perfect) == 10.0
    assert perfect_drop_multiplier(perfect) == 5.0
    assert perfect_drop_near_standard_multiplier(perfect_far) == 1.0
    assert perfect_drop_multiplier(perfect_far) == 5.0
    assert perfect_drop_near_standard_multiplier(_metrics()) == 1.0
    assert perfect_drop_multiplier(_metrics()) == 1.0


def test_standard_time_multiplier_prefers_noon() -> None:
    noon = _metrics(start_local=11.75)
    half_past = _metrics(start_local=12.25)
    late = _metrics(start_local=14.0, after_count=5)

    assert standard_time_multiplier(noon) == pytest.approx(3.0 * 1.3)
    assert standard_time_multiplier(half_past) == 2.2
    assert standard_time_multiplier(late) == 0.7


def test_european_offsets_penalize_early_lunch() -> None:
    early = _metrics(start_local=10.5, duration=1.0)

    assert european_early_lunch_multiplier(1, early) == 0.3
    assert european_early_lunch_multiplier(-4, early) == 1.0
    assert european_early_lunch_multiplier(1, _metrics()) == 1.0


def test_pre_lunch_thresholds() -> None:
    assert minimum_pre_lunch_activity(49) == 3
    assert minimum_pre_lunch_activity(199) == 10
    assert minimum_pre_lunch_activity(499) == 15
    assert minimum_pre_lunch_activity(500) == 20
    assert pre_lunch_strength_multiplier(41) == 1.5
    assert pre_lunch_strength_multiplier(31) == 1.2
    assert pre_lunch_strength_multiplier(30) == 1.0


def test_lunch_confidence_components() -> None:
    assert lunch_confidence(0.1, 10.5) == pytest.approx(0.3)
    assert lunch_confidence(0.5, 10.5) == pytest.approx(0.6)
    assert lunch_confidence(0.5, 12.0) == pytest.approx(0.8)


def test_lunch_detector_tabulates_every_offset(eastern_workday: dict[float, int]) -> None:
    result = LunchDetector().run(eastern_workday)
    table = result.tables["lunch_by_offset"]

    assert len(table) == 27
    row = table.loc[table["offset"] == -4].iloc[0]
    assert row["start_local"] == 11.5
    assert result.summary["offsets_with_lunch"] >= 1
