from __future__ import annotations

from pathlib import Path

import pandas as pd

from tz_inference.config import AppConfig
from tz_inference.histogram import BUCKETS, normalize_bucket

JSONL_SUFFIXES = {".jsonl", ".ndjson"}
HISTOGRAM_COLUMNS = ("bucket", "count")


def _resolve_format(path: Path, configured: str) -> str:
    if configured != "auto":
        return configured
    if path.suffix in JSONL_SUFFIXES:
        return "jsonl"
    if path.suffix == ".csv":
        return "csv"
    raise ValueError(f"Unsupported event file type: {path.suffix}")


def load_events(path: Path, config: AppConfig) -> pd.DataFrame:
    """Load an event table and return it with a canonical ``timestamp`` column."""
    fmt = _resolve_format(path, config.input.format)
    if fmt == "jsonl":
        df = pd.read_json(path, lines=True, dtype=False)
    else:
        # utf-8-sig strips BOM-prefixed headers from exported CSV files.
        df = pd.read_csv(path, encoding="utf-8-sig")

    column = config.input.timestamp_column
    if column not in df.columns:
        raise ValueError(f"Missing timestamp column in {path.name}: {column}")
    return df.rename(columns={column: "timestamp"})


def load_histogram(path: Path) -> dict[float, int]:
    """Read a ``bucket,count`` CSV; missing buckets count as zero."""
    df = pd.read_csv(path)
    missing = [column for column in HISTOGRAM_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Missing histogram columns: {', '.join(missing)}")
    histogram = {bucket: 0 for bucket in BUCKETS}
    for bucket, count in zip(df["bucket"], df["count"]):
        histogram[normalize_bucket(float(bucket))] += int(count)
    return histogram


def load_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported table file type: {path.suffix}")
