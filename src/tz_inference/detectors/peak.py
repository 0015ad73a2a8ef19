from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from tz_inference.detectors.base import DetectorResult, SignalDetector
from tz_inference.histogram import ActivityHistogram, normalize_bucket


@dataclass(frozen=True)
class PeakWindow:
    start: float
    end: float
    count: int

    @property
    def found(self) -> bool:
        return self.start >= 0


NO_PEAK = PeakWindow(start=-1.0, end=-1.0, count=0)


def detect_peak_bucket(histogram: ActivityHistogram) -> PeakWindow:
    """Return the single busiest half-hour bucket.

    Buckets are scanned in ascending order and only a strictly larger count replaces
    the running maximum, so ties resolve to the earliest bucket.
    """
    best_bucket = -1.0
    best_count = 0
    for bucket in sorted(histogram):
        count = int(histogram[bucket])
        if count > best_count:
            best_count = count
            best_bucket = normalize_bucket(bucket)
    if best_count == 0:
        return NO_PEAK
    return PeakWindow(start=best_bucket, end=best_bucket + 0.5, count=best_count)


class PeakDetector(SignalDetector):
    name = "peak"

    def detect(self, histogram: ActivityHistogram) -> PeakWindow:
        return detect_peak_bucket(histogram)

    def result_for(self, histogram: ActivityHistogram, peak: PeakWindow) -> DetectorResult:
        table = pd.DataFrame(
            [{"start_utc": peak.start, "end_utc": peak.end, "count": peak.count}]
        )
        return DetectorResult(
            detector=self.name,
            summary={
                "peak_found": peak.found,
                "peak_start_utc": peak.start,
                "peak_end_utc": peak.end,
                "peak_count": peak.count,
            },
            tables={"peak_bucket": table},
        )
