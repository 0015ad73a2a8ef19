from __future__ import annotations

from tz_inference.report.text import bucket_marker, render_candidates, render_histogram
from tz_inference.scoring.evaluator import evaluate_candidates


def _candidate(histogram: dict[float, int], offset: int):
    candidates = evaluate_candidates(histogram, min_score=0.0)
    return next(candidate for candidate in candidates if candidate.offset == offset)


def test_histogram_rows_follow_local_time(eastern_workday: dict[float, int]) -> None:
    candidate = _candidate(eastern_workday, -4)

    lines = render_histogram(eastern_workday, candidate).splitlines()

    assert lines[0] == "Activity pattern (UTC-4, 30-minute buckets)"
    rows = lines[2:]
    assert len(rows) == 48
    assert rows[0].startswith("00:00 z")
    assert "11:00 ^ (29) " + "█" * 29 in rows
    assert "11:30 L ( 3) ███" in rows
    assert "20:00 z" in rows


def test_sleep_marker_wins_over_other_markers(eastern_workday: dict[float, int]) -> None:
    candidate = _candidate(eastern_workday, -4)

    assert bucket_marker(23.0, candidate) == "z"
    assert bucket_marker(15.0, candidate) == "^"
    assert bucket_marker(15.5, candidate) == "L"
    assert bucket_marker(17.0, candidate) == ""
    assert bucket_marker(15.0, None) == ""


def test_limited_data_warning_and_single_event_bar() -> None:
    output = render_histogram({3.0: 1, 3.5: 4})

    assert "Limited data: only 5 events available" in output
    assert "03:00   ( 1) ·" in output
    assert "03:30   ( 4) ████" in output


def test_empty_histogram_message(empty_histogram: dict[float, int]) -> None:
    output = render_histogram(empty_histogram)

    assert "No activity data available" in output
    assert "00:00" not in output


def test_bars_scale_to_max_width() -> None:
    output = render_histogram({12.0: 120, 13.0: 30})

    assert "12:00   (120) " + "█" * 60 in output
    assert "13:00   (30) " + "█" * 15 in output


def test_color_output_styles_markers(eastern_workday: dict[float, int]) -> None:
    candidate = _candidate(eastern_workday, -4)

    assert "\x1b[" in render_histogram(eastern_workday, candidate, color=True)
    assert "\x1b[" not in render_histogram(eastern_workday, candidate, color=False)


def test_candidate_table(eastern_workday: dict[float, int]) -> None:
    candidates = evaluate_candidates(eastern_workday)

    output = render_candidates(candidates, limit=2)

    assert "UTC-4" in output
    assert "11:30" in output
    assert len([line for line in output.splitlines() if "UTC" in line]) == 2


def test_candidate_table_without_candidates() -> None:
    assert render_candidates([]) == "No timezone candidates scored above the minimum.\n"
