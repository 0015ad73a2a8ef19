"""Per-offset lunch break detection.

For one offset hypothesis the detector slides 30/60/90 minute windows across late
morning and early afternoon (local time) and looks for the deepest activity dip that
follows real work. Each scoring multiplier is its own function so the heuristics can
be exercised one at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from tz_inference.detectors.base import Detector, DetectorResult
from tz_inference.histogram import ActivityHistogram, count_at, total_activity
from tz_inference.tzconvert import local_to_utc, utc_to_local, wrap_hour

LOGGER = logging.getLogger(__name__)

LUNCH_DURATIONS = (0.5, 1.0, 1.5)
SEARCH_START_LOCAL = 10.0
SEARCH_END_LOCAL = 14.0
EARLIEST_START_LOCAL = 10.5
LATEST_START_LOCAL = 13.5
STANDARD_MIDPOINTS = (11.5, 12.0, 12.5)
EUROPEAN_OFFSETS = range(-1, 4)


@dataclass(frozen=True)
class LunchWindow:
    start_utc: float
    end_utc: float
    confidence: float
    duration: float = 0.0
    drop_ratio: float = 0.0

    @property
    def found(self) -> bool:
        return self.start_utc >= 0

    def start_local(self, offset: int) -> float:
        return utc_to_local(self.start_utc, offset) if self.found else -1.0

    def contains(self, bucket: float) -> bool:
        if not self.found:
            return False
        # Windows are at most 90 minutes, so a forward distance check handles midnight.
        return wrap_hour(bucket - self.start_utc) < self.duration


NO_LUNCH = LunchWindow(start_utc=-1.0, end_utc=-1.0, confidence=0.0)


@dataclass(frozen=True)
class LunchWindowMetrics:
    start_local: float
    duration: float
    before_count: int
    activity_before: int
    window_average: float
    after_count: int

    @property
    def drop_ratio(self) -> float:
        return (self.before_count - self.window_average) / self.before_count

    @property
    def recovery_ratio(self) -> float:
        return self.after_count / self.before_count

    @property
    def midpoint(self) -> float:
        return self.start_local + self.duration / 2.0

    @property
    def distance_from_noon(self) -> float:
        return abs(self.midpoint - 12.0)

    @property
    def distance_from_1130(self) -> float:
        return abs(self.midpoint - 11.5)

    @property
    def distance_from_1230(self) -> float:
        return abs(self.midpoint - 12.5)

    @property
    def effective_distance(self) -> float:
        return min(abs(self.midpoint - standard) for standard in STANDARD_MIDPOINTS)

    @property
    def has_strong_recovery(self) -> bool:
        return self.recovery_ratio > 0.6 and self.drop_ratio > 0.6

    @property
    def is_quick_lunch(self) -> bool:
        return self.recovery_ratio > 0.4 and self.drop_ratio > 0.5 and self.effective_distance < 1.0

    @property
    def continues_after(self) -> bool:
        """Activity stays low right after the window, so the break probably runs longer."""
        if self.duration >= 1.5:
            return False
        return self.after_count == 0 or self.after_count / self.before_count < 0.3

    @property
    def reported_duration(self) -> float:
        if self.duration == 0.5 and self.continues_after and self.after_count == 0:
            return 1.0
        return self.duration


def minimum_pre_lunch_activity(total_events: int) -> int:
    if total_events < 50:
        return 3
    if total_events < 200:
        return 10
    if total_events < 500:
        return 15
    return 20


def pre_lunch_activity(
    histogram: ActivityHistogram, start_utc: float, total_events: int
) -> int:
    """Events 1-2h before the window; sparse histograms may look back up to 4h."""
    activity = sum(count_at(histogram, start_utc - lookback) for lookback in (1.0, 1.5, 2.0))
    if total_events < 50:
        threshold = minimum_pre_lunch_activity(total_events)
        for lookback in (2.5, 3.0, 3.5, 4.0):
            if activity >= threshold:
                break
            activity += count_at(histogram, start_utc - lookback)
    return activity


def required_pre_lunch_activity(
    total_events: int, midpoint_local: float, activity_before: int
) -> int:
    if 11.5 <= midpoint_local <= 12.5 and activity_before > 0:
        return 1
    return minimum_pre_lunch_activity(total_events)


def minimum_drop_ratio(metrics: LunchWindowMetrics) -> float:
    threshold = 0.01 + metrics.effective_distance * 0.02
    if metrics.is_quick_lunch and metrics.effective_distance < 0.5:
        threshold *= 0.5
    return threshold


def pre_lunch_strength_multiplier(activity_before: int) -> float:
    if activity_before > 40:
        return 1.5
    if activity_before > 30:
        return 1.2
    return 1.0


def perfect_drop_near_standard_multiplier(metrics: LunchWindowMetrics) -> float:
    if metrics.drop_ratio >= 1.0 and metrics.effective_distance <= 1.0:
        return 10.0
    return 1.0


def duration_pattern_multiplier(metrics: LunchWindowMetrics) -> float:
    duration = metrics.duration
    continues = metrics.continues_after
    if duration == 0.5 and metrics.has_strong_recovery and not continues:
        return 2.0
    if duration == 0.5 and metrics.is_quick_lunch and not continues:
        return 1.3
    if duration == 0.5 and continues:
        # incomplete: the 30-minute window is reported as a full hour
        return 0.5
    if duration == 1.0 and not metrics.has_strong_recovery:
        return 1.2
    if duration == 1.0:
        return 0.8
    if duration == 0.5:
        return 0.95
    return 0.9


def perfect_drop_multiplier(metrics: LunchWindowMetrics) -> float:
    return 5.0 if metrics.drop_ratio >= 1.0 else 1.0


def standard_time_multiplier(metrics: LunchWindowMetrics) -> float:
    drop = metrics.drop_ratio
    if metrics.distance_from_noon <= 0.25:
        if drop > 0.8:
            multiplier = 3.0
        elif drop > 0.6:
            multiplier = 2.5
        else:
            multiplier = 2.0
        if metrics.is_quick_lunch:
            multiplier *= 1.3
        return multiplier
    if metrics.distance_from_1230 <= 0.25:
        return 2.2
    if metrics.distance_from_1130 <= 0.25:
        return 1.5
    distance = metrics.effective_distance
    if distance < 0.5:
        return 1.5 * (1.2 if metrics.is_quick_lunch else 1.0)
    if distance < 1.0:
        return 1.2
    if distance > 2.0:
        return 0.5
    if distance > 1.5:
        return 0.7
    return 1.0


def european_early_lunch_multiplier(offset: int, metrics: LunchWindowMetrics) -> float:
    if offset in EUROPEAN_OFFSETS and metrics.midpoint < 11.5:
        return 0.3
    return 1.0


def score_lunch_window(metrics: LunchWindowMetrics, offset: int) -> float:
    score = metrics.drop_ratio
    for multiplier in (
        pre_lunch_strength_multiplier(metrics.activity_before),
        perfect_drop_near_standard_multiplier(metrics),
        duration_pattern_multiplier(metrics),
        perfect_drop_multiplier(metrics),
        standard_time_multiplier(metrics),
        european_early_lunch_multiplier(offset, metrics),
    ):
        score *= multiplier
    return score


def lunch_confidence(drop_ratio: float, start_local: float) -> float:
    confidence = 0.3
    if drop_ratio > 0.2:
        confidence += 0.3
    if 11.5 <= start_local <= 13.0:
        confidence += 0.2
    return min(1.0, confidence)


def _candidate_starts() -> list[float]:
    steps = int((SEARCH_END_LOCAL - SEARCH_START_LOCAL) / 0.5)
    return [SEARCH_START_LOCAL + step * 0.5 for step in range(steps + 1)]


def _window_metrics(
    histogram: ActivityHistogram,
    offset: int,
    start_local: float,
    duration: float,
    total_events: int,
) -> LunchWindowMetrics | None:
    start_utc = local_to_utc(start_local, offset)
    before_count = count_at(histogram, start_utc - 0.5)
    activity_before = pre_lunch_activity(histogram, start_utc, total_events)
    midpoint = start_local + duration / 2.0
    if activity_before < required_pre_lunch_activity(total_events, midpoint, activity_before):
        return None
    if before_count == 0:
        return None
    buckets = int(duration / 0.5)
    window_total = sum(count_at(histogram, start_utc + step * 0.5) for step in range(buckets))
    return LunchWindowMetrics(
        start_local=start_local,
        duration=duration,
        before_count=before_count,
        activity_before=activity_before,
        window_average=window_total / buckets,
        after_count=count_at(histogram, start_utc + duration),
    )


def _has_midday_activity(histogram: ActivityHistogram, offset: int) -> bool:
    local_buckets = [SEARCH_START_LOCAL + step * 0.5 for step in range(10)]
    return any(count_at(histogram, local_to_utc(bucket, offset)) > 0 for bucket in local_buckets)


def detect_lunch_break(histogram: ActivityHistogram, offset: int) -> LunchWindow:
    """Best lunch window for ``offset``, or ``NO_LUNCH`` when no dip qualifies."""
    if not _has_midday_activity(histogram, offset):
        return NO_LUNCH
    total_events = total_activity(histogram)

    best_score = 0.0
    best: LunchWindowMetrics | None = None
    for duration in LUNCH_DURATIONS:
        for start_local in _candidate_starts():
            if start_local < EARLIEST_START_LOCAL or start_local >= LATEST_START_LOCAL:
                continue
            metrics = _window_metrics(histogram, offset, start_local, duration, total_events)
            if metrics is None or metrics.drop_ratio <= minimum_drop_ratio(metrics):
                continue
            score = score_lunch_window(metrics, offset)
            if score > best_score:
                best_score = score
                best = metrics

    if best is None:
        return NO_LUNCH
    start_utc = local_to_utc(best.start_local, offset)
    duration = best.reported_duration
    LOGGER.debug(
        "offset %+d lunch local=%.1f duration=%.1f drop=%.2f score=%.2f",
        offset,
        best.start_local,
        duration,
        best.drop_ratio,
        best_score,
    )
    return LunchWindow(
        start_utc=start_utc,
        end_utc=wrap_hour(start_utc + duration),
        confidence=lunch_confidence(best.drop_ratio, best.start_local),
        duration=duration,
        drop_ratio=best.drop_ratio,
    )


class LunchDetector(Detector):
    """Runs the per-offset lunch search across every offset and tabulates the results."""

    name = "lunch"

    def __init__(self, offsets: range = range(-12, 15)) -> None:
        self.offsets = offsets

    def run(self, histogram: ActivityHistogram) -> DetectorResult:
        rows = []
        for offset in self.offsets:
            window = detect_lunch_break(histogram, offset)
            rows.append(
                {
                    "offset": offset,
                    "found": window.found,
                    "start_utc": window.start_utc,
                    "end_utc": window.end_utc,
                    "start_local": window.start_local(offset),
                    "duration": window.duration,
                    "drop_ratio": window.drop_ratio,
                    "confidence": window.confidence,
                }
            )
        table = pd.DataFrame(rows)
        return DetectorResult(
            detector=self.name,
            summary={
                "offsets_tested": len(rows),
                "offsets_with_lunch": int(table["found"].sum()) if not table.empty else 0,
            },
            tables={"lunch_by_offset": table},
        )
