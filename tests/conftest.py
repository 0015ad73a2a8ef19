from __future__ import annotations

from pathlib import Path

import pytest

from tz_inference.histogram import BUCKETS
from tz_inference.tzconvert import local_to_utc

# Local (UTC-4) half-hour counts for a workday with a sharp 11:30 lunch dip.
EASTERN_WORKDAY_LOCAL = {
    8.0: 10,
    8.5: 15,
    9.0: 20,
    9.5: 24,
    10.0: 26,
    10.5: 28,
    11.0: 29,
    11.5: 3,
    12.0: 25,
    12.5: 24,
    13.0: 22,
    13.5: 20,
    14.0: 20,
    14.5: 18,
    15.0: 18,
    15.5: 15,
    16.0: 12,
    16.5: 10,
    17.0: 6,
    17.5: 4,
}


def local_histogram(local_counts: dict[float, int], offset: int) -> dict[float, int]:
    histogram = {bucket: 0 for bucket in BUCKETS}
    for local, count in local_counts.items():
        histogram[local_to_utc(local, offset)] += count
    return histogram


@pytest.fixture
def eastern_workday() -> dict[float, int]:
    return local_histogram(EASTERN_WORKDAY_LOCAL, -4)


@pytest.fixture
def uniform_histogram() -> dict[float, int]:
    return {bucket: 10 for bucket in BUCKETS}


@pytest.fixture
def empty_histogram() -> dict[float, int]:
    return {bucket: 0 for bucket in BUCKETS}


@pytest.fixture
def eastern_events_csv(tmp_path: Path, eastern_workday: dict[float, int]) -> Path:
    rows = ["id,created_at"]
    for bucket, count in eastern_workday.items():
        hour = int(bucket)
        base_minute = 30 if bucket % 1 else 0
        for index in range(count):
            minute = base_minute + index % 30
            day = 4 + index % 5
            rows.append(f"{len(rows)},2024-03-{day:02d}T{hour:02d}:{minute:02d}:00Z")
    path = tmp_path / "events.csv"
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    return path
