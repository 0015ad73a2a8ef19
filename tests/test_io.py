from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from tz_inference.config import AppConfig
from tz_inference.io.read import load_events, load_histogram, load_table
from tz_inference.io.write import write_summary, write_table, write_tables
from tz_inference.preprocess.buckets import build_half_hour_histogram


def _config(**input_overrides: str) -> AppConfig:
    return AppConfig.model_validate({"input": input_overrides})


def test_load_events_renames_configured_timestamp_column(tmp_path: Path) -> None:
    csv_path = tmp_path / "events.csv"
    csv_path.write_text(
        "id,When\n1,2024-01-01T15:10:00Z\n2,2024-01-01T16:40:00Z\n", encoding="utf-8"
    )

    events = load_events(csv_path, _config(timestamp_column="When"))

    assert list(events.columns) == ["id", "timestamp"]
    assert len(events) == 2


def test_load_events_reads_json_lines(tmp_path: Path) -> None:
    jsonl_path = tmp_path / "events.jsonl"
    jsonl_path.write_text(
        "\n".join(
            json.dumps({"created_at": value})
            for value in ("2024-01-01T15:10:00Z", "2024-01-01T16:40:00Z")
        ),
        encoding="utf-8",
    )

    events = load_events(jsonl_path, _config())
    histogram = build_half_hour_histogram(events["timestamp"])

    assert len(events) == 2
    assert histogram[15.0] == 1
    assert histogram[16.5] == 1


def test_load_events_rejects_missing_column_and_unknown_suffix(tmp_path: Path) -> None:
    csv_path = tmp_path / "events.csv"
    csv_path.write_text("id,other\n1,x\n", encoding="utf-8")
    txt_path = tmp_path / "events.txt"
    txt_path.write_text("created_at\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Missing timestamp column"):
        load_events(csv_path, _config())
    with pytest.raises(ValueError, match="Unsupported event file type"):
        load_events(txt_path, _config())


def test_load_histogram_fills_missing_buckets(tmp_path: Path) -> None:
    csv_path = tmp_path / "histogram.csv"
    csv_path.write_text("bucket,count\n15.5,3\n0,7\n15.5,1\n", encoding="utf-8")

    histogram = load_histogram(csv_path)

    assert len(histogram) == 48
    assert histogram[15.5] == 4
    assert histogram[0.0] == 7
    assert histogram[12.0] == 0


def test_load_histogram_requires_columns(tmp_path: Path) -> None:
    csv_path = tmp_path / "histogram.csv"
    csv_path.write_text("hour,events\n1,2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Missing histogram columns"):
        load_histogram(csv_path)


def test_tables_round_trip_through_csv(tmp_path: Path) -> None:
    frame = pd.DataFrame({"bucket": [0.0, 0.5], "count": [1, 2]})

    paths = write_tables({"b": frame, "a": frame}, tmp_path / "tables")

    assert [path.name for path in paths] == ["a.csv", "b.csv"]
    assert load_table(paths[0]).equals(frame)
    with pytest.raises(ValueError):
        write_tables({"a": frame}, tmp_path, fmt="xlsx")
    with pytest.raises(ValueError):
        write_table(frame, tmp_path / "a.xlsx", fmt="xlsx")


def test_write_summary_handles_numpy_values(tmp_path: Path) -> None:
    path = write_summary(
        {
            "count": np.int64(3),
            "score": np.float64(1.5),
            "found": np.bool_(True),
            "offsets": {2, -4},
        },
        tmp_path / "summary" / "out.json",
    )

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == {
        "count": 3,
        "score": 1.5,
        "found": True,
        "offsets": [-4, 2],
    }
