"""Plain-text rendering of histograms and ranked candidates for the terminal."""

from __future__ import annotations

from collections.abc import Sequence

import typer

from tz_inference.histogram import ActivityHistogram, count_at, total_activity
from tz_inference.scoring.evaluator import (
    Candidate,
    in_lunch_window,
    in_sleep_window,
    is_peak_bucket,
)
from tz_inference.tzconvert import format_hour, local_to_utc

LIMITED_DATA_EVENTS = 20
MAX_BAR_WIDTH = 60
RULE = "-" * 50

MARKER_COLORS = {
    "z": typer.colors.BLUE,
    "^": typer.colors.YELLOW,
    "L": typer.colors.GREEN,
}


def bucket_marker(bucket: float, candidate: Candidate | None) -> str:
    if candidate is None:
        return ""
    if in_sleep_window(bucket, candidate):
        return "z"
    if is_peak_bucket(bucket, candidate):
        return "^"
    if in_lunch_window(bucket, candidate):
        return "L"
    return ""


def _bar(count: int, peak: int) -> str:
    if count <= 0:
        return ""
    if count == 1:
        return "·"
    length = count if peak <= MAX_BAR_WIDTH else max(1, round(count * MAX_BAR_WIDTH / peak))
    return "█" * length


def render_histogram(
    histogram: ActivityHistogram,
    candidate: Candidate | None = None,
    color: bool = False,
) -> str:
    """48 half-hour rows in the candidate's local time, starting at local midnight."""
    offset = candidate.offset if candidate is not None else 0
    total = total_activity(histogram)
    label = candidate.timezone if candidate is not None else "UTC"
    lines = [f"Activity pattern ({label}, 30-minute buckets)", RULE]
    if total < LIMITED_DATA_EVENTS:
        lines.extend([f"Limited data: only {total} events available", RULE])
    if total == 0:
        lines.append("No activity data available")
        return "\n".join(lines) + "\n"

    peak = max(count_at(histogram, local_to_utc(step * 0.5, offset)) for step in range(48))
    for step in range(48):
        local = step * 0.5
        bucket = local_to_utc(local, offset)
        count = count_at(histogram, bucket)
        marker = bucket_marker(bucket, candidate)
        marker_text = marker or " "
        bar = _bar(count, peak)
        if color:
            if marker:
                marker_text = typer.style(marker, fg=MARKER_COLORS[marker])
            if bar:
                bar = typer.style(bar, fg=typer.colors.BRIGHT_BLACK)
        count_text = f"({count:2d})" if count > 0 else "    "
        lines.append(f"{format_hour(local)} {marker_text} {count_text} {bar}".rstrip())
    return "\n".join(lines) + "\n"


def _format_optional_hour(hour: float | None) -> str:
    if hour is None or hour < 0:
        return "--:--"
    return format_hour(hour)


def render_candidates(candidates: Sequence[Candidate], limit: int = 5) -> str:
    if not candidates:
        return "No timezone candidates scored above the minimum.\n"
    lines = [f"{'rank':>4}  {'timezone':<8} {'score':>6}  lunch  sleep  work", RULE]
    for rank, candidate in enumerate(candidates[:limit], start=1):
        work = None if candidate.work_start_local is None else float(candidate.work_start_local)
        lines.append(
            f"{rank:>4}  {candidate.timezone:<8} {candidate.score:>6.1f}  "
            f"{_format_optional_hour(candidate.lunch_start_local)}  "
            f"{_format_optional_hour(candidate.sleep_mid_local)}  "
            f"{_format_optional_hour(work)}"
        )
        strongest = sorted(candidate.adjustments, key=lambda item: -abs(item.delta))[:3]
        for adjustment in strongest:
            lines.append(f"{'':>6}{adjustment.describe()}")
    return "\n".join(lines) + "\n"
