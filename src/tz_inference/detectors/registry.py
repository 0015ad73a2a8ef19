from __future__ import annotations

from tz_inference.config import AppConfig
from tz_inference.detectors.base import Detector
from tz_inference.detectors.global_lunch import GlobalLunchDetector
from tz_inference.detectors.lunch import LunchDetector
from tz_inference.detectors.peak import PeakDetector
from tz_inference.detectors.sleep import SleepDetector
from tz_inference.scoring.evaluator import OFFSETS, CandidateDetector


def default_detectors(config: AppConfig) -> list[Detector]:
    detection = config.detection
    return [
        PeakDetector(),
        SleepDetector(
            offset=detection.sleep_reference_offset,
            night_start_local=detection.night_start_local,
        ),
        GlobalLunchDetector(),
        LunchDetector(offsets=OFFSETS),
        CandidateDetector(
            min_score=detection.min_candidate_score,
            sleep_reference_offset=detection.sleep_reference_offset,
            night_start_local=detection.night_start_local,
        ),
    ]
