"""Everything the scoring rules need to know about one offset hypothesis."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from tz_inference.detectors.global_lunch import GlobalLunchPattern
from tz_inference.detectors.lunch import LunchWindow, detect_lunch_break
from tz_inference.detectors.peak import PeakWindow
from tz_inference.detectors.sleep import SleepWindow
from tz_inference.histogram import (
    ActivityHistogram,
    count_at,
    hourly_counts,
    local_hour_sum,
    total_activity,
)
from tz_inference.tzconvert import utc_to_local, wrap_hour

SIGNIFICANT_HOURLY_COUNT = 5
NIGHT_HOURS_LOCAL = range(0, 8)
LATE_AFTERNOON_HOURS_LOCAL = range(17, 19)
EVENING_HOURS_LOCAL = range(19, 24)
WORK_HOURS_LOCAL = range(9, 18)
EUROPEAN_MORNING_HOURS_LOCAL = range(8, 11)


@dataclass(frozen=True)
class OffsetSignals:
    offset: int
    histogram: ActivityHistogram
    hourly: Mapping[int, int]
    total: int
    sleep: SleepWindow
    lunch: LunchWindow
    global_lunch: GlobalLunchPattern
    peak: PeakWindow
    first_activity_local: int | None
    evening_activity: int
    work_hours_activity: int
    european_morning_activity: int

    @property
    def sleep_mid_local(self) -> float:
        if self.sleep.is_empty:
            return -1.0
        return utc_to_local(self.sleep.midpoint, self.offset)

    @property
    def sleep_start_local_hour(self) -> int | None:
        if self.sleep.is_empty:
            return None
        return int(utc_to_local(self.sleep.start, self.offset))

    @property
    def lunch_start_local(self) -> float:
        return self.lunch.start_local(self.offset)

    @property
    def lunch_dip_strength(self) -> float:
        """Drop from the bucket an hour before lunch to the first lunch bucket."""
        if not self.lunch.found or self.lunch.confidence <= 0:
            return 0.0
        before = count_at(self.histogram, self.lunch.start_utc - 1.0)
        if before <= 0:
            return 0.0
        return (before - count_at(self.histogram, self.lunch.start_utc)) / before

    @property
    def peak_local(self) -> float | None:
        if not self.peak.found:
            return None
        return utc_to_local(self.peak.start, self.offset)

    @property
    def sleep_reasonable(self) -> bool:
        if self.sleep.is_empty:
            return False
        mid = self.sleep_mid_local
        return 0.0 <= mid <= 5.0 or mid >= 22.0

    @property
    def lunch_reasonable(self) -> bool:
        if not self.lunch.found or self.lunch.confidence < 0.3:
            return False
        start = self.lunch_start_local
        if not 10.0 <= start <= 14.5:
            return False
        if self.first_activity_local is not None and start < self.first_activity_local + 1.0:
            return False
        return True

    @property
    def work_hours_reasonable(self) -> bool:
        return self.first_activity_local is not None and 6 <= self.first_activity_local <= 10

    @property
    def peak_time_reasonable(self) -> bool:
        peak = self.peak_local
        if peak is None:
            return False
        hour = int(peak)
        return 9 <= hour <= 16 or 18 <= hour <= 21


def first_significant_local_hour(hourly: Mapping[int, int], offset: int) -> int | None:
    """Earliest local hour whose UTC hour holds more than five events."""
    for local_hour in range(24):
        utc_hour = int(wrap_hour(local_hour - offset))
        if hourly.get(utc_hour, 0) > SIGNIFICANT_HOURLY_COUNT:
            return local_hour
    return None


def last_active_local_hour(hourly: Mapping[int, int], offset: int) -> int | None:
    for local_hour in reversed(range(24)):
        if hourly.get(int(wrap_hour(local_hour - offset)), 0) > 0:
            return local_hour
    return None


def build_offset_signals(
    histogram: ActivityHistogram,
    offset: int,
    *,
    sleep: SleepWindow,
    peak: PeakWindow,
    global_lunch: GlobalLunchPattern,
    hourly: Mapping[int, int] | None = None,
) -> OffsetSignals:
    hours = hourly if hourly is not None else hourly_counts(histogram)
    return OffsetSignals(
        offset=offset,
        histogram=histogram,
        hourly=hours,
        total=total_activity(histogram),
        sleep=sleep,
        lunch=detect_lunch_break(histogram, offset),
        global_lunch=global_lunch,
        peak=peak,
        first_activity_local=first_significant_local_hour(hours, offset),
        evening_activity=local_hour_sum(hours, EVENING_HOURS_LOCAL, offset),
        work_hours_activity=local_hour_sum(hours, WORK_HOURS_LOCAL, offset),
        european_morning_activity=local_hour_sum(hours, EUROPEAN_MORNING_HOURS_LOCAL, offset),
    )
