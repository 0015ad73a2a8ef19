"""Additive scoring terms for one offset hypothesis.

Each rule reads an ``OffsetSignals`` and returns the adjustments it applies, possibly
none. A candidate's unfloored score is the sum of every adjustment delta.
"""

from __future__ import annotations

from dataclasses import dataclass

from tz_inference.histogram import local_bucket_sum, local_hour_sum
from tz_inference.scoring.signals import (
    LATE_AFTERNOON_HOURS_LOCAL,
    NIGHT_HOURS_LOCAL,
    OffsetSignals,
    last_active_local_hour,
)

OVERNIGHT_BUCKETS_LOCAL = (1.0, 1.5, 2.0)
AFTERNOON_BUCKETS_LOCAL = (14.0, 14.5, 15.0)


@dataclass(frozen=True)
class Adjustment:
    rule: str
    delta: float
    detail: str = ""

    def describe(self) -> str:
        text = f"{self.delta:+.1f} {self.rule}"
        if self.detail:
            text = f"{text} ({self.detail})"
        return text


def sleep_timing(signals: OffsetSignals) -> list[Adjustment]:
    if not signals.sleep_reasonable:
        return []
    mid = signals.sleep_mid_local
    onset = signals.sleep_start_local_hour
    early_onset = onset is not None and 21 <= onset <= 23
    if 1.0 <= mid <= 4.0:
        adjustments = [Adjustment("sleep_perfect_midpoint", 12.0, f"mid={mid:.1f}")]
        if early_onset:
            adjustments.append(Adjustment("sleep_early_onset", 3.0, f"start={onset}:00"))
        return adjustments
    if 0.0 <= mid <= 5.0:
        adjustments = [Adjustment("sleep_good_midpoint", 8.0, f"mid={mid:.1f}")]
        if early_onset:
            adjustments.append(Adjustment("sleep_early_onset", 2.0, f"start={onset}:00"))
        return adjustments
    return [Adjustment("sleep_unusual_midpoint", 4.0, f"mid={mid:.1f}")]


def global_lunch_proximity(signals: OffsetSignals) -> list[Adjustment]:
    pattern = signals.global_lunch
    if not pattern.found or pattern.confidence <= 0:
        return []
    local_start = pattern.start_local(signals.offset)
    buckets_from_noon = abs(local_start - 12.0) / 0.5
    if buckets_from_noon == 0:
        weight = 10.0
    elif buckets_from_noon <= 1:
        weight = 6.0
    elif buckets_from_noon <= 2:
        weight = 3.0
    elif buckets_from_noon <= 3:
        weight = 1.0
    elif buckets_from_noon <= 4:
        weight = 0.5
    else:
        weight = 0.2
    return [
        Adjustment(
            "global_lunch_proximity",
            weight * pattern.confidence,
            f"local={local_start:.1f} buckets_from_noon={buckets_from_noon:.0f}",
        )
    ]


def lunch_band_score(start_local: float) -> float:
    if 11.75 <= start_local <= 12.25:
        return 15.0
    if 11.5 <= start_local <= 13.5:
        return 10.0
    if 11.0 <= start_local <= 14.0:
        return 8.0
    if 10.5 <= start_local <= 14.5:
        return 6.0
    return 2.0


def lunch_dip_bonus(dip_strength: float) -> float:
    if dip_strength >= 0.8:
        return 5.0
    if dip_strength >= 0.6:
        return 3.0
    if dip_strength >= 0.4:
        return 1.5
    return 0.0


def local_lunch(signals: OffsetSignals) -> list[Adjustment]:
    if not signals.lunch.found:
        return [Adjustment("lunch_missing", -5.0)]
    if not signals.lunch_reasonable:
        return []
    start = signals.lunch_start_local
    dip = signals.lunch_dip_strength
    score = lunch_band_score(start) + lunch_dip_bonus(dip)
    if start > 13.5 and dip < 0.4:
        score *= 0.3
    score = min(20.0, score)
    return [Adjustment("lunch_window", score, f"start={start:.1f} dip={dip:.0%}")]


def lunch_timing(signals: OffsetSignals) -> list[Adjustment]:
    lunch = signals.lunch
    if not lunch.found or lunch.confidence <= 0.3:
        return []
    start = signals.lunch_start_local
    detail = f"start={start:.1f}"
    adjustments = []
    if start < 10.5 or start > 14.5:
        adjustments.append(Adjustment("lunch_unusual_time", -10.0, detail))
    if start < 11.0:
        delta = -2.0 if 10 <= signals.offset <= 11 else -5.0
        adjustments.append(Adjustment("lunch_before_11am", delta, detail))
    if start > 15.0:
        adjustments.append(Adjustment("lunch_after_3pm", -20.0, detail))
    return adjustments


def lunch_at_end_of_day(signals: OffsetSignals) -> list[Adjustment]:
    if not signals.lunch_reasonable:
        return []
    last_active = last_active_local_hour(signals.hourly, signals.offset)
    start = signals.lunch_start_local
    if not last_active or start < last_active - 1.5:
        return []
    return [
        Adjustment("lunch_at_end_of_day", -10.0, f"start={start:.1f} last_active={last_active}:00")
    ]


def work_start(signals: OffsetSignals) -> list[Adjustment]:
    start = signals.first_activity_local
    if start is None:
        return []
    detail = f"start={start}:00"
    if 7 <= start <= 9:
        return [Adjustment("work_start_typical", 8.0, detail)]
    if start == 6:
        return [Adjustment("work_start_early", 4.0, detail)]
    if start in (5, 10):
        return [Adjustment("work_start_unusual", 2.0, detail)]
    if start == 11:
        return [Adjustment("work_start_very_unusual", 1.0, detail)]
    if start < 5:
        return [Adjustment("work_start_before_5am", -min(50.0, 10.0 + 10.0 * (5 - start)), detail)]
    if start >= 14:
        return [Adjustment("work_start_after_2pm", -20.0, detail)]
    return [Adjustment("work_start_after_noon", -10.0, detail)]


def evening_activity(signals: OffsetSignals) -> list[Adjustment]:
    if signals.evening_activity <= 0 or signals.total <= 0:
        return []
    ratio = signals.evening_activity / signals.total
    adjustments = []
    if ratio > 0.3:
        adjustments.append(
            Adjustment("evening_activity", min(1.0, (ratio - 0.3) * 3.33), f"{ratio:.0%} of events")
        )
    if ratio < 0.1 and -5 <= signals.offset <= -3:
        adjustments.append(Adjustment("evening_low_for_eastern", -2.0, f"{ratio:.0%} of events"))
    return adjustments


def late_afternoon_without_evening(signals: OffsetSignals) -> list[Adjustment]:
    """5-7pm busier than the evening usually means afternoon work read in the wrong zone."""
    if signals.evening_activity <= 0 or signals.total <= 0:
        return []
    late = local_hour_sum(signals.hourly, LATE_AFTERNOON_HOURS_LOCAL, signals.offset)
    late_ratio = late / signals.total
    evening_ratio = signals.evening_activity / signals.total
    if late_ratio > 0.15 and evening_ratio < 0.2:
        return [
            Adjustment(
                "late_afternoon_without_evening",
                -3.0,
                f"5-7pm {late_ratio:.0%} evening {evening_ratio:.0%}",
            )
        ]
    return []


def work_hours_occupancy(signals: OffsetSignals) -> list[Adjustment]:
    if signals.work_hours_activity <= 0 or signals.total <= 0:
        return []
    ratio = signals.work_hours_activity / signals.total
    return [Adjustment("work_hours_activity", 2.0 * min(1.0, ratio * 1.5), f"{ratio:.0%} of events")]


def peak_timing(signals: OffsetSignals) -> list[Adjustment]:
    peak = signals.peak_local
    if peak is None:
        return []
    detail = f"peak={peak:.1f}"
    if 13.0 <= peak < 16.0:
        return [Adjustment("peak_afternoon", 5.0, detail)]
    if 12.0 <= peak < 13.0 or 16.0 <= peak < 17.0:
        return [Adjustment("peak_work_hours", 3.0, detail)]
    if 10.0 <= peak < 12.0:
        return [Adjustment("peak_morning", 2.0, detail)]
    if peak >= 19.0 or peak < 6.0:
        return [Adjustment("peak_night", -10.0, detail)]
    return []


def night_activity_above_day(signals: OffsetSignals) -> list[Adjustment]:
    night = local_hour_sum(signals.hourly, NIGHT_HOURS_LOCAL, signals.offset)
    if night <= 10:
        return []
    night_avg = night / len(NIGHT_HOURS_LOCAL)
    day_avg = (signals.total - night) / (24 - len(NIGHT_HOURS_LOCAL))
    if night_avg <= day_avg:
        return []
    return [
        Adjustment(
            "night_activity_above_day", -25.0, f"night {night_avg:.1f} > day {day_avg:.1f} per hour"
        )
    ]


def overnight_productivity(signals: OffsetSignals) -> list[Adjustment]:
    """Penalize 01:00-02:30 local outworking 14:00-15:30 local."""
    overnight = local_bucket_sum(signals.histogram, OVERNIGHT_BUCKETS_LOCAL, signals.offset)
    afternoon = local_bucket_sum(signals.histogram, AFTERNOON_BUCKETS_LOCAL, signals.offset)
    if overnight <= 10 or overnight <= afternoon:
        return []
    ratio = overnight / max(afternoon, 1)
    if ratio > 2.0:
        delta = -30.0
    elif ratio > 1.5:
        delta = -15.0
    else:
        delta = -5.0
    return [
        Adjustment(
            "overnight_productivity", delta, f"overnight {overnight} vs afternoon {afternoon}"
        )
    ]


CORE_RULES = (
    sleep_timing,
    global_lunch_proximity,
    local_lunch,
    lunch_timing,
    lunch_at_end_of_day,
    work_start,
    evening_activity,
    late_afternoon_without_evening,
    work_hours_occupancy,
    peak_timing,
    night_activity_above_day,
    overnight_productivity,
)
