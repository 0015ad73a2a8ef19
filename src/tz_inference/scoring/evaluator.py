"""Score every integer UTC offset against one activity histogram."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from tz_inference.detectors.base import Detector, DetectorResult
from tz_inference.detectors.global_lunch import GlobalLunchPattern, find_global_lunch_pattern
from tz_inference.detectors.peak import PeakWindow, detect_peak_bucket
from tz_inference.detectors.sleep import DEFAULT_NIGHT_START_LOCAL, SleepWindow, detect_sleep_window
from tz_inference.histogram import ActivityHistogram, hourly_counts, normalize_bucket
from tz_inference.scoring.regional import REGIONAL_RULES
from tz_inference.scoring.rules import CORE_RULES, Adjustment
from tz_inference.scoring.signals import OffsetSignals, build_offset_signals
from tz_inference.tzconvert import format_offset, wrap_hour

LOGGER = logging.getLogger(__name__)

OFFSETS = range(-12, 15)
DEFAULT_MIN_SCORE = 10.0


@dataclass(frozen=True)
class Candidate:
    offset: int
    score: float
    evening_activity: int
    lunch_start_local: float
    lunch_start_utc: float
    lunch_end_utc: float
    lunch_confidence: float
    lunch_dip_strength: float
    sleep_mid_local: float
    sleep_buckets_utc: tuple[float, ...]
    work_start_local: int | None
    peak_bucket_utc: float
    peak_local: float | None
    sleep_reasonable: bool
    lunch_reasonable: bool
    work_hours_reasonable: bool
    peak_time_reasonable: bool
    adjustments: tuple[Adjustment, ...] = field(default=())

    @property
    def timezone(self) -> str:
        return format_offset(self.offset)

    @property
    def raw_score(self) -> float:
        return sum(adjustment.delta for adjustment in self.adjustments)

    def trace_lines(self) -> list[str]:
        return [adjustment.describe() for adjustment in self.adjustments]

    def to_record(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "offset": self.offset,
            "score": self.score,
            "raw_score": self.raw_score,
            "evening_activity": self.evening_activity,
            "lunch_start_local": self.lunch_start_local,
            "lunch_start_utc": self.lunch_start_utc,
            "lunch_end_utc": self.lunch_end_utc,
            "lunch_confidence": self.lunch_confidence,
            "lunch_dip_strength": self.lunch_dip_strength,
            "sleep_mid_local": self.sleep_mid_local,
            "sleep_start_utc": self.sleep_buckets_utc[0] if self.sleep_buckets_utc else -1.0,
            "sleep_buckets": len(self.sleep_buckets_utc),
            "work_start_local": self.work_start_local,
            "peak_bucket_utc": self.peak_bucket_utc,
            "peak_local": self.peak_local,
            "sleep_reasonable": self.sleep_reasonable,
            "lunch_reasonable": self.lunch_reasonable,
            "work_hours_reasonable": self.work_hours_reasonable,
            "peak_time_reasonable": self.peak_time_reasonable,
            "adjustments": "; ".join(self.trace_lines()),
        }


def score_adjustments(signals: OffsetSignals) -> list[Adjustment]:
    adjustments: list[Adjustment] = []
    for rule in (*CORE_RULES, *REGIONAL_RULES):
        adjustments.extend(rule(signals))
    return adjustments


def build_candidate(signals: OffsetSignals, adjustments: list[Adjustment]) -> Candidate:
    raw = sum(adjustment.delta for adjustment in adjustments)
    return Candidate(
        offset=signals.offset,
        score=max(0.0, raw),
        evening_activity=signals.evening_activity,
        lunch_start_local=signals.lunch_start_local,
        lunch_start_utc=signals.lunch.start_utc,
        lunch_end_utc=signals.lunch.end_utc,
        lunch_confidence=signals.lunch.confidence,
        lunch_dip_strength=signals.lunch_dip_strength,
        sleep_mid_local=signals.sleep_mid_local,
        sleep_buckets_utc=signals.sleep.buckets,
        work_start_local=signals.first_activity_local,
        peak_bucket_utc=signals.peak.start,
        peak_local=signals.peak_local,
        sleep_reasonable=signals.sleep_reasonable,
        lunch_reasonable=signals.lunch_reasonable,
        work_hours_reasonable=signals.work_hours_reasonable,
        peak_time_reasonable=signals.peak_time_reasonable,
        adjustments=tuple(adjustments),
    )


def rank_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Descending by score using pairwise exchange; equal scores are never swapped."""
    ranked = list(candidates)
    for i in range(len(ranked) - 1):
        for j in range(i + 1, len(ranked)):
            if ranked[j].score > ranked[i].score:
                ranked[i], ranked[j] = ranked[j], ranked[i]
    return ranked


def evaluate_candidates(
    histogram: ActivityHistogram,
    *,
    sleep: SleepWindow | None = None,
    peak: PeakWindow | None = None,
    global_lunch: GlobalLunchPattern | None = None,
    min_score: float = DEFAULT_MIN_SCORE,
    sleep_reference_offset: int = 0,
    night_start_local: float = DEFAULT_NIGHT_START_LOCAL,
) -> list[Candidate]:
    """Ranked candidates for offsets -12..+14 scoring at least ``min_score``.

    Sleep, peak and global lunch are offset-independent; pass them in when they were
    already detected, otherwise they are computed here.
    """
    if sleep is None:
        sleep = detect_sleep_window(
            histogram, offset=sleep_reference_offset, night_start_local=night_start_local
        )
    if peak is None:
        peak = detect_peak_bucket(histogram)
    if global_lunch is None:
        global_lunch = find_global_lunch_pattern(histogram)
    hours = hourly_counts(histogram)

    candidates: list[Candidate] = []
    for offset in OFFSETS:
        signals = build_offset_signals(
            histogram, offset, sleep=sleep, peak=peak, global_lunch=global_lunch, hourly=hours
        )
        candidate = build_candidate(signals, score_adjustments(signals))
        LOGGER.debug(
            "%s score=%.1f raw=%.1f", candidate.timezone, candidate.score, candidate.raw_score
        )
        if candidate.score >= min_score:
            candidates.append(candidate)
    return rank_candidates(candidates)


def in_sleep_window(bucket: float, candidate: Candidate) -> bool:
    return normalize_bucket(bucket) in candidate.sleep_buckets_utc


def in_lunch_window(bucket: float, candidate: Candidate) -> bool:
    start, end = candidate.lunch_start_utc, candidate.lunch_end_utc
    if start < 0 or end < 0:
        return False
    duration = wrap_hour(end - start)
    return wrap_hour(normalize_bucket(bucket) - start) < duration


def is_peak_bucket(bucket: float, candidate: Candidate) -> bool:
    return candidate.peak_bucket_utc >= 0 and normalize_bucket(bucket) == candidate.peak_bucket_utc


class CandidateDetector(Detector):
    name = "candidates"

    def __init__(
        self,
        *,
        min_score: float = DEFAULT_MIN_SCORE,
        sleep_reference_offset: int = 0,
        night_start_local: float = DEFAULT_NIGHT_START_LOCAL,
    ) -> None:
        self.min_score = float(min_score)
        self.sleep_reference_offset = int(sleep_reference_offset)
        self.night_start_local = float(night_start_local)

    def evaluate(
        self,
        histogram: ActivityHistogram,
        *,
        sleep: SleepWindow | None = None,
        peak: PeakWindow | None = None,
        global_lunch: GlobalLunchPattern | None = None,
    ) -> list[Candidate]:
        return evaluate_candidates(
            histogram,
            sleep=sleep,
            peak=peak,
            global_lunch=global_lunch,
            min_score=self.min_score,
            sleep_reference_offset=self.sleep_reference_offset,
            night_start_local=self.night_start_local,
        )

    def run(self, histogram: ActivityHistogram) -> DetectorResult:
        return self.result_for(self.evaluate(histogram))

    def result_for(self, candidates: list[Candidate]) -> DetectorResult:
        table = pd.DataFrame([candidate.to_record() for candidate in candidates])
        trace = pd.DataFrame(
            [
                {
                    "offset": candidate.offset,
                    "rule": adjustment.rule,
                    "delta": adjustment.delta,
                    "detail": adjustment.detail,
                }
                for candidate in candidates
                for adjustment in candidate.adjustments
            ],
            columns=["offset", "rule", "delta", "detail"],
        )
        top = candidates[0] if candidates else None
        return DetectorResult(
            detector=self.name,
            summary={
                "candidate_count": len(candidates),
                "min_score": self.min_score,
                "top_timezone": top.timezone if top else None,
                "top_offset": top.offset if top else None,
                "top_score": top.score if top else None,
            },
            tables={"candidates": table, "candidate_adjustments": trace},
        )
