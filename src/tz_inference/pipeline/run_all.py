from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from tz_inference.config import AppConfig
from tz_inference.detectors.base import DetectorResult, SignalDetector
from tz_inference.detectors.registry import default_detectors
from tz_inference.histogram import ActivityHistogram, dense_histogram, total_activity
from tz_inference.io.read import load_events, load_histogram
from tz_inference.io.write import write_summary, write_table, write_tables
from tz_inference.paths import build_output_paths
from tz_inference.preprocess.buckets import build_half_hour_histogram
from tz_inference.scoring.evaluator import Candidate, CandidateDetector

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionRun:
    histogram: dict[float, int]
    results: dict[str, DetectorResult]
    candidates: list[Candidate]

    @property
    def top(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None


def histogram_from_events(events_path: Path, config: AppConfig) -> dict[float, int]:
    events = load_events(events_path, config)
    histogram = build_half_hour_histogram(events["timestamp"])
    LOGGER.info(
        "Bucketed %d of %d events from %s",
        total_activity(histogram),
        len(events),
        events_path.name,
    )
    return histogram


def run_detection(histogram: ActivityHistogram, config: AppConfig) -> DetectionRun:
    """Run every detector once; candidates reuse the detected peak, sleep and global lunch."""
    results: dict[str, DetectorResult] = {}
    detected: dict[str, Any] = {}
    candidates: list[Candidate] = []
    for detector in default_detectors(config):
        if isinstance(detector, CandidateDetector):
            candidates = detector.evaluate(
                histogram,
                sleep=detected.get("sleep"),
                peak=detected.get("peak"),
                global_lunch=detected.get("global_lunch"),
            )
            result = detector.result_for(candidates)
        elif isinstance(detector, SignalDetector):
            detected[detector.name] = detector.detect(histogram)
            result = detector.result_for(histogram, detected[detector.name])
        else:
            result = detector.run(histogram)
        results[result.detector] = result

    detection = config.detection
    if candidates:
        LOGGER.info(
            "%d candidate offsets; best %s (score %.1f)",
            len(candidates),
            candidates[0].timezone,
            candidates[0].score,
        )
    else:
        LOGGER.info("No candidate offset reached score %.1f", detection.min_candidate_score)
    return DetectionRun(histogram=dense_histogram(histogram), results=results, candidates=candidates)


def write_detection_outputs(run: DetectionRun, out_dir: Path, config: AppConfig) -> Path:
    paths = build_output_paths(out_dir)
    fmt = config.outputs.tables_format
    extension = "parquet" if fmt == "parquet" else "csv"

    for result in run.results.values():
        write_summary(result.summary, paths.summary / f"{result.detector}.json")
        write_tables(
            {f"{result.detector}__{name}": table for name, table in result.tables.items()},
            paths.tables,
            fmt=fmt,
        )

    histogram_table = pd.DataFrame(
        {"bucket": list(run.histogram), "count": list(run.histogram.values())}
    )
    write_table(histogram_table, paths.tables / f"histogram.{extension}", fmt=fmt)

    top = run.top
    summary = {
        "total_events": total_activity(run.histogram),
        "candidate_count": len(run.candidates),
        "top_candidates": [
            candidate.to_record() for candidate in run.candidates[: config.outputs.top_n]
        ],
        "top_timezone": top.timezone if top else None,
        "detectors": {name: result.summary for name, result in run.results.items()},
    }
    return write_summary(summary, paths.summary / "detection.json")


def run_all(
    events_path: Path | None,
    out_dir: Path,
    config: AppConfig,
    *,
    histogram_path: Path | None = None,
) -> DetectionRun:
    if histogram_path is not None:
        histogram = load_histogram(histogram_path)
    elif events_path is not None:
        histogram = histogram_from_events(events_path, config)
    else:
        raise ValueError("Either an events file or a histogram file is required")

    run = run_detection(histogram, config)
    summary_path = write_detection_outputs(run, out_dir, config)
    LOGGER.info("Wrote detection summary to %s", summary_path)
    return run
