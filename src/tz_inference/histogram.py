from __future__ import annotations

from collections.abc import Iterable, Mapping

from tz_inference.tzconvert import local_to_utc, wrap_hour

# Half-hour bucket index (UTC hour, 0.0..23.5) -> event count. Absent keys count as 0.
ActivityHistogram = Mapping[float, int]

BUCKET_WIDTH = 0.5
BUCKETS: tuple[float, ...] = tuple(index * BUCKET_WIDTH for index in range(48))


def normalize_bucket(bucket: float) -> float:
    """Snap a clock hour onto its half-hour bucket start in ``[0, 24)``."""
    wrapped = wrap_hour(bucket)
    return wrap_hour(int(wrapped * 2) / 2.0)


def count_at(histogram: ActivityHistogram, bucket: float) -> int:
    return int(histogram.get(normalize_bucket(bucket), 0))


def total_activity(histogram: ActivityHistogram) -> int:
    return int(sum(int(count) for count in histogram.values()))


def next_bucket(bucket: float, steps: int = 1) -> float:
    return normalize_bucket(bucket + steps * BUCKET_WIDTH)


def bucket_run(start: float, length: int) -> list[float]:
    return [next_bucket(start, step) for step in range(length)]


def hourly_counts(histogram: ActivityHistogram) -> dict[int, int]:
    """Fold half-hour buckets into whole UTC hours (12.0 and 12.5 both land on 12)."""
    hours = {hour: 0 for hour in range(24)}
    for bucket, count in histogram.items():
        hours[int(normalize_bucket(bucket))] += int(count)
    return hours


def local_hour_sum(hours: Mapping[int, int], local_hours: Iterable[int], offset: int) -> int:
    """Sum hourly UTC counts over the given local hours for ``offset``."""
    return sum(int(hours.get(int(local_to_utc(hour, offset)), 0)) for hour in local_hours)


def local_bucket_sum(
    histogram: ActivityHistogram, local_buckets: Iterable[float], offset: int
) -> int:
    return sum(count_at(histogram, local_to_utc(bucket, offset)) for bucket in local_buckets)


def dense_histogram(histogram: ActivityHistogram) -> dict[float, int]:
    """All 48 buckets in ascending order, zeros included."""
    return {bucket: count_at(histogram, bucket) for bucket in BUCKETS}
