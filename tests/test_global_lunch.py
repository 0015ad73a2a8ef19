from __future__ import annotations

import pytest

from tz_inference.detectors.global_lunch import (
    NO_GLOBAL_LUNCH,
    GlobalLunchDetector,
    find_global_lunch_pattern,
    recovery_factor,
    score_global_pattern,
)
from tz_inference.histogram import BUCKETS


def _dip_histogram(dip_bucket: float) -> dict[float, int]:
    histogram = {bucket: 10 for bucket in BUCKETS}
    histogram[dip_bucket] = 2
    return histogram


def test_single_bucket_dip_in_search_span() -> None:
    pattern = find_global_lunch_pattern(_dip_histogram(16.0))

    assert pattern.found
    assert pattern.start_utc == 16.0
    assert pattern.end_utc == 16.5
    assert pattern.drop_percent == pytest.approx(0.8)
    assert pattern.confidence == 1.0
    assert pattern.start_local(-4) == 12.0


def test_dip_outside_search_span_is_ignored() -> None:
    assert find_global_lunch_pattern(_dip_histogram(10.0)) == NO_GLOBAL_LUNCH


def test_flat_or_sparse_activity_has_no_pattern(uniform_histogram: dict[float, int]) -> None:
    assert find_global_lunch_pattern(uniform_histogram) == NO_GLOBAL_LUNCH
    assert find_global_lunch_pattern({16.0: 20, 16.5: 2, 17.0: 20}) == NO_GLOBAL_LUNCH


def test_eastern_workday_dip(eastern_workday: dict[float, int]) -> None:
    pattern = find_global_lunch_pattern(eastern_workday)

    assert pattern.start_utc == 15.5
    assert pattern.confidence == 1.0


def test_scoring_terms() -> None:
    assert recovery_factor(2, 10) == 5.0
    assert recovery_factor(0, 10) == 1.0
    assert recovery_factor(10, 5) == 1.0
    assert score_global_pattern(0.5, 2.0, 10.0, 1.0, 2) == pytest.approx(110.0)
    assert score_global_pattern(0.5, 5.0, 10.0, 2.0, 1) == pytest.approx(105.0)


def test_detector_table_has_pattern_fields() -> None:
    result = GlobalLunchDetector().run(_dip_histogram(16.0))

    assert result.summary["global_lunch_found"] is True
    assert list(result.tables["global_lunch"].columns) == [
        "start_utc",
        "end_utc",
        "confidence",
        "drop_percent",
    ]
