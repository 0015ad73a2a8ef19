"""Offset-independent lunch dip search over raw UTC buckets.

Local noon for the populated offsets (US, Europe, East Asia) lands between 15:00 and
21:00 UTC, so one pass over that span yields an anchor every offset hypothesis can
be checked against.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

import pandas as pd

from tz_inference.detectors.base import DetectorResult, SignalDetector
from tz_inference.histogram import BUCKETS, ActivityHistogram, count_at, total_activity
from tz_inference.tzconvert import utc_to_local, wrap_hour

LOGGER = logging.getLogger(__name__)

SEARCH_START_UTC = 15.0
SEARCH_END_UTC = 21.0
DURATION_BUCKETS = (1, 2, 3)
MIN_DROP = 0.25
MIN_DROP_WITH_RECOVERY = 0.15
MAX_QUIET_RATIO = 0.8


@dataclass(frozen=True)
class GlobalLunchPattern:
    start_utc: float
    end_utc: float
    confidence: float
    drop_percent: float = 0.0

    @property
    def found(self) -> bool:
        return self.start_utc >= 0

    def start_local(self, offset: int) -> float:
        return utc_to_local(self.start_utc, offset) if self.found else -1.0


NO_GLOBAL_LUNCH = GlobalLunchPattern(start_utc=-1.0, end_utc=-1.0, confidence=0.0)


def recovery_factor(start_count: int, after_count: int) -> float:
    if start_count > 0 and after_count > start_count:
        return after_count / start_count
    return 1.0


def score_global_pattern(
    drop_percent: float,
    window_average: float,
    mean_activity: float,
    recovery: float,
    duration_buckets: int,
) -> float:
    score = drop_percent * 100.0
    score += (1.0 - window_average / mean_activity) * 50.0
    if recovery >= 1.5:
        score += (recovery - 1.0) * 30.0
    if duration_buckets == 2:
        score += 20.0
    return score


def find_global_lunch_pattern(histogram: ActivityHistogram) -> GlobalLunchPattern:
    mean_activity = total_activity(histogram) / len(BUCKETS)
    if mean_activity < 1:
        return NO_GLOBAL_LUNCH

    best = NO_GLOBAL_LUNCH
    best_score = 0.0
    starts = [
        SEARCH_START_UTC + step * 0.5
        for step in range(int((SEARCH_END_UTC - SEARCH_START_UTC) / 0.5))
    ]
    for duration in DURATION_BUCKETS:
        for start in starts:
            end = start + duration * 0.5
            previous_count = count_at(histogram, start - 0.5)
            if previous_count == 0:
                continue
            start_count = count_at(histogram, start)
            drop = (previous_count - start_count) / previous_count
            recovery = recovery_factor(start_count, count_at(histogram, end))
            window_average = (
                sum(count_at(histogram, start + step * 0.5) for step in range(duration)) / duration
            )

            threshold = MIN_DROP_WITH_RECOVERY if recovery >= 2.0 else MIN_DROP
            if drop <= threshold or window_average > mean_activity * MAX_QUIET_RATIO:
                continue
            score = score_global_pattern(drop, window_average, mean_activity, recovery, duration)
            if score > best_score:
                best_score = score
                best = GlobalLunchPattern(
                    start_utc=start,
                    end_utc=wrap_hour(end),
                    confidence=min(1.0, score / 100.0),
                    drop_percent=drop,
                )

    if best.found:
        LOGGER.debug(
            "global lunch %.1f-%.1f UTC drop=%.2f score=%.1f",
            best.start_utc,
            best.end_utc,
            best.drop_percent,
            best_score,
        )
    return best


class GlobalLunchDetector(SignalDetector):
    name = "global_lunch"

    def detect(self, histogram: ActivityHistogram) -> GlobalLunchPattern:
        return find_global_lunch_pattern(histogram)

    def result_for(
        self, histogram: ActivityHistogram, pattern: GlobalLunchPattern
    ) -> DetectorResult:
        return DetectorResult(
            detector=self.name,
            summary={
                "global_lunch_found": pattern.found,
                "global_lunch_start_utc": pattern.start_utc,
                "global_lunch_end_utc": pattern.end_utc,
                "global_lunch_confidence": pattern.confidence,
                "global_lunch_drop_percent": pattern.drop_percent,
            },
            tables={"global_lunch": pd.DataFrame([asdict(pattern)])},
        )
