from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import numpy as np
import pandas as pd

from tz_inference.histogram import BUCKETS


def parse_utc_timestamps(values: Iterable[Any] | pd.Series) -> pd.Series:
    """Parse timestamps to tz-aware UTC, dropping anything unparseable.

    Naive values are taken to already be UTC.
    """
    series = values if isinstance(values, pd.Series) else pd.Series(list(values), dtype=object)
    timestamps = pd.to_datetime(series, utc=True, errors="coerce", format="mixed")
    return timestamps.dropna()


def half_hour_bucket(timestamps: pd.Series) -> pd.Series:
    offsets = np.where(timestamps.dt.minute >= 30, 0.5, 0.0)
    return timestamps.dt.hour.astype(float) + offsets


def build_half_hour_histogram(values: Iterable[Any] | pd.Series) -> dict[float, int]:
    """Count events per half-hour UTC bucket; every one of the 48 buckets is present."""
    timestamps = parse_utc_timestamps(values)
    if timestamps.empty:
        raise ValueError("No valid timestamps found")
    counts = half_hour_bucket(timestamps).value_counts()
    return {bucket: int(counts.get(bucket, 0)) for bucket in BUCKETS}
