from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd

from tz_inference.histogram import ActivityHistogram


@dataclass(frozen=True)
class DetectorResult:
    detector: str
    summary: dict[str, Any]
    tables: dict[str, pd.DataFrame]


class Detector:
    name: str

    def run(self, histogram: ActivityHistogram) -> DetectorResult:
        raise NotImplementedError


class SignalDetector(Detector):
    """Detector whose finding is reused downstream, so detection and tabulation are separate."""

    def detect(self, histogram: ActivityHistogram) -> Any:
        raise NotImplementedError

    def result_for(self, histogram: ActivityHistogram, detected: Any) -> DetectorResult:
        raise NotImplementedError

    def run(self, histogram: ActivityHistogram) -> DetectorResult:
        return self.result_for(histogram, self.detect(histogram))
