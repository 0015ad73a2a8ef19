from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from tz_inference.detectors.base import DetectorResult, SignalDetector
from tz_inference.histogram import (
    BUCKETS,
    ActivityHistogram,
    bucket_run,
    count_at,
    next_bucket,
    normalize_bucket,
    total_activity,
)
from tz_inference.tzconvert import hour_in_window, local_to_utc, utc_to_local, wrap_hour

LOGGER = logging.getLogger(__name__)

DEFAULT_NIGHT_START_LOCAL = 21.0
NIGHT_WINDOW_LOCAL = (21.0, 9.0)
WORK_WINDOW_LOCAL = (9.0, 17.0)

SPARSE_TOTAL_EVENTS = 50
DENSE_QUIET_THRESHOLD = 2
SPARSE_QUIET_THRESHOLD = 0
HARD_STOP_COUNT = 5
MIN_RUN_BUCKETS = 8
MIN_SLEEP_BUCKETS = 7
MAX_RUN_BUCKETS = 24
MAX_WORK_HOURS_FRACTION = 0.3
SPARSE_NIGHTTIME_PREFERENCE = 0.5


@dataclass(frozen=True)
class SleepWindow:
    """Contiguous (mod 24) run of quiet UTC buckets, in walking order."""

    buckets: tuple[float, ...] = ()
    nighttime_score: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.buckets

    @property
    def length(self) -> int:
        return len(self.buckets)

    @property
    def duration_hours(self) -> float:
        return self.length * 0.5

    @property
    def start(self) -> float:
        return self.buckets[0] if self.buckets else -1.0

    @property
    def end(self) -> float:
        return next_bucket(self.buckets[-1]) if self.buckets else -1.0

    @property
    def midpoint(self) -> float:
        if not self.buckets:
            return -1.0
        return wrap_hour(self.start + self.duration_hours / 2.0)

    def contains(self, bucket: float) -> bool:
        return normalize_bucket(bucket) in self.buckets


EMPTY_SLEEP = SleepWindow()


@dataclass(frozen=True)
class _QuietRun:
    buckets: tuple[float, ...]
    score: float


def quiet_threshold(total_events: int) -> int:
    """Sparse histograms only treat empty buckets as quiet."""
    if total_events < SPARSE_TOTAL_EVENTS:
        return SPARSE_QUIET_THRESHOLD
    return DENSE_QUIET_THRESHOLD


def sleep_scan_order(
    offset: int = 0, night_start_local: float = DEFAULT_NIGHT_START_LOCAL
) -> list[float]:
    """48 UTC buckets beginning at local night start: the night half first, then the day."""
    start = normalize_bucket(local_to_utc(night_start_local, offset))
    return bucket_run(start, 48)


def nighttime_score(buckets: tuple[float, ...] | list[float], offset: int = 0) -> float:
    if not buckets:
        return 0.0
    night_start, night_end = NIGHT_WINDOW_LOCAL
    night = sum(
        1 for bucket in buckets if hour_in_window(utc_to_local(bucket, offset), night_start, night_end)
    )
    return night / len(buckets)


def work_hours_fraction(buckets: tuple[float, ...] | list[float], offset: int = 0) -> float:
    if not buckets:
        return 0.0
    work_start, work_end = WORK_WINDOW_LOCAL
    inside = sum(
        1 for bucket in buckets if hour_in_window(utc_to_local(bucket, offset), work_start, work_end)
    )
    return inside / len(buckets)


def grow_quiet_run(histogram: ActivityHistogram, start: float, *, sparse: bool) -> list[float]:
    """Walk forward from ``start`` until activity resumes or the 12h cap is reached."""
    run: list[float] = []
    previous: int | None = None
    bucket = normalize_bucket(start)
    while len(run) < MAX_RUN_BUCKETS:
        count = count_at(histogram, bucket)
        if count > HARD_STOP_COUNT:
            return run if len(run) >= MIN_RUN_BUCKETS else []
        if previous is not None:
            if sparse:
                if count > 0 and previous == 0:
                    break
            elif (previous >= 2 and count >= 3) or (previous >= 3 and count >= 2):
                if run and previous >= 2:
                    run.pop()
                break
        run.append(bucket)
        previous = count
        bucket = next_bucket(bucket)
    return run


def quieter_than_mean(
    histogram: ActivityHistogram, buckets: tuple[float, ...] | list[float], total: int
) -> bool:
    """True when at least one bucket sits below the mean count per bucket."""
    mean = total / len(BUCKETS)
    return any(count_at(histogram, bucket) < mean for bucket in buckets)


def _score_run(buckets: list[float], offset: int) -> float:
    if work_hours_fraction(buckets, offset) > MAX_WORK_HOURS_FRACTION:
        return 0.0
    return nighttime_score(buckets, offset)


def _select_best(runs: list[_QuietRun], *, sparse: bool) -> _QuietRun | None:
    if not runs:
        return None
    if sparse:
        nighttime = [run for run in runs if run.score > SPARSE_NIGHTTIME_PREFERENCE]
        if nighttime:
            return sorted(nighttime, key=lambda run: (-len(run.buckets), -run.score))[0]
    return sorted(runs, key=lambda run: (-run.score, -len(run.buckets)))[0]


def split_contiguous(buckets: list[float]) -> list[list[float]]:
    if not buckets:
        return []
    groups: list[list[float]] = [[buckets[0]]]
    for bucket in buckets[1:]:
        if next_bucket(groups[-1][-1]) == bucket:
            groups[-1].append(bucket)
        else:
            groups.append([bucket])
    return groups


def trim_sleep_run(histogram: ActivityHistogram, buckets: list[float]) -> list[float]:
    trimmed = list(buckets)
    while trimmed and count_at(histogram, trimmed[-1]) >= 3:
        trimmed.pop()
    while len(trimmed) > 1 and not (
        count_at(histogram, trimmed[0]) <= 2 and count_at(histogram, trimmed[1]) <= 2
    ):
        trimmed.pop(0)
    qualifying = [group for group in split_contiguous(trimmed) if len(group) >= MIN_SLEEP_BUCKETS]
    if not qualifying:
        return []
    return max(qualifying, key=len)


def detect_sleep_window(
    histogram: ActivityHistogram,
    *,
    offset: int = 0,
    night_start_local: float = DEFAULT_NIGHT_START_LOCAL,
) -> SleepWindow:
    """Find the most plausible sleep window in UTC buckets.

    ``offset`` places the local night (21:00-09:00) and work (09:00-17:00) windows used
    for scoring; the default of 0 scores directly in UTC. A histogram without any
    activity carries no sleep signal and yields ``EMPTY_SLEEP``.
    """
    total = total_activity(histogram)
    if total <= 0:
        return EMPTY_SLEEP
    threshold = quiet_threshold(total)
    sparse = threshold == SPARSE_QUIET_THRESHOLD

    runs: list[_QuietRun] = []
    for start in sleep_scan_order(offset, night_start_local):
        if count_at(histogram, start) > threshold:
            continue
        buckets = grow_quiet_run(histogram, start, sparse=sparse)
        if len(buckets) < MIN_RUN_BUCKETS:
            continue
        if not quieter_than_mean(histogram, buckets, total):
            continue
        runs.append(_QuietRun(buckets=tuple(buckets), score=_score_run(buckets, offset)))

    best = _select_best(runs, sparse=sparse)
    if best is None:
        LOGGER.debug("no quiet run of %d+ buckets (total=%d)", MIN_RUN_BUCKETS, total)
        return EMPTY_SLEEP

    final = trim_sleep_run(histogram, list(best.buckets))
    LOGGER.debug(
        "sleep run start=%.1f len=%d score=%.2f -> trimmed len=%d",
        best.buckets[0],
        len(best.buckets),
        best.score,
        len(final),
    )
    if not final:
        return EMPTY_SLEEP
    return SleepWindow(buckets=tuple(final), nighttime_score=nighttime_score(final, offset))


class SleepDetector(SignalDetector):
    name = "sleep"

    def __init__(
        self, *, offset: int = 0, night_start_local: float = DEFAULT_NIGHT_START_LOCAL
    ) -> None:
        self.offset = int(offset)
        self.night_start_local = float(night_start_local)

    def detect(self, histogram: ActivityHistogram) -> SleepWindow:
        return detect_sleep_window(
            histogram, offset=self.offset, night_start_local=self.night_start_local
        )

    def result_for(self, histogram: ActivityHistogram, window: SleepWindow) -> DetectorResult:
        table = pd.DataFrame(
            {
                "bucket_utc": list(window.buckets),
                "count": [count_at(histogram, bucket) for bucket in window.buckets],
            }
        )
        return DetectorResult(
            detector=self.name,
            summary={
                "sleep_found": not window.is_empty,
                "sleep_start_utc": window.start,
                "sleep_end_utc": window.end,
                "sleep_midpoint_utc": window.midpoint,
                "sleep_buckets": window.length,
                "nighttime_score": window.nighttime_score,
                "quiet_threshold": quiet_threshold(total_activity(histogram)),
            },
            tables={"sleep_buckets": table},
        )
