"""Region-specific bucket signatures, the population prior and the European veto.

Region checks overlap (-7 is both Pacific and Mountain) and each contributes on its
own. A region's adjustments only count when their sum is positive, so South
America's dinner-time penalties can cancel its bonuses but never go below zero.
"""

from __future__ import annotations

from tz_inference.histogram import count_at, local_bucket_sum
from tz_inference.scoring.rules import Adjustment
from tz_inference.scoring.signals import OffsetSignals

POPULATION_PRIOR: dict[int, float] = {
    -12: -12.0,
    -11: -12.0,
    -8: 4.5,
    -7: 3.5,
    -6: 2.0,
    -5: 3.5,
    -4: 4.0,
    -3: 2.0,
    -2: -10.0,
    -1: -10.0,
    0: 4.5,
    1: 4.5,
    2: 2.0,
    8: 0.5,
    9: 0.5,
    11: -6.0,
    12: -2.0,
    13: -2.0,
}

EUROPEAN_OFFSETS = range(0, 4)


def _positive_total(adjustments: list[Adjustment]) -> list[Adjustment]:
    if sum(adjustment.delta for adjustment in adjustments) > 0:
        return adjustments
    return []


def pacific_pattern(signals: OffsetSignals) -> list[Adjustment]:
    if signals.offset not in (-8, -7):
        return []
    hours = signals.hourly
    adjustments = []
    morning10, morning11 = hours.get(18, 0), hours.get(19, 0)
    if morning10 > 30 or morning11 > 15:
        adjustments.append(
            Adjustment("pacific_strong_morning", 10.0, f"{morning10}/{morning11} at 18/19 UTC")
        )
    elif morning10 > 20 or morning11 > 10:
        adjustments.append(
            Adjustment("pacific_good_morning", 6.0, f"{morning10}/{morning11} at 18/19 UTC")
        )

    noon = hours.get(20, 0)
    if morning11 > 0 and noon > 0 and noon < morning11 * 0.8:
        adjustments.append(Adjustment("pacific_noon_dip", 5.0, f"{morning11}->{noon}"))

    early6, early7, early8 = hours.get(14, 0), hours.get(15, 0), hours.get(16, 0)
    if early6 > 0 or early7 > 5 or early8 > 10:
        adjustments.append(
            Adjustment("pacific_early_start", 5.0, f"{early6}/{early7}/{early8} at 14-16 UTC")
        )

    late_total = sum(hours.get(hour, 0) for hour in range(0, 5))
    if 0 < late_total < 50:
        adjustments.append(Adjustment("pacific_moderate_evening", 3.0, f"{late_total} events"))

    if all(hours.get(hour, 0) == 0 for hour in (5, 6, 7)):
        adjustments.append(Adjustment("pacific_early_sleep", 2.0, "quiet 5-8 UTC"))
    return _positive_total(adjustments)


def mountain_pattern(signals: OffsetSignals) -> list[Adjustment]:
    if signals.offset not in (-7, -6):
        return []
    lunch_bucket = 20.5 if signals.offset == -7 else 19.5
    before = count_at(signals.histogram, lunch_bucket - 0.5)
    if before <= 10:
        return []
    drop = (before - count_at(signals.histogram, lunch_bucket)) / before
    lunch_start = signals.lunch_start_local
    if drop > 0.5 and signals.lunch.found and 13.0 <= lunch_start <= 14.0:
        return [Adjustment("mountain_late_lunch", 6.0, f"{drop:.0%} drop at 13:30")]
    return []


def _eastern_lunch(signals: OffsetSignals) -> list[Adjustment]:
    lunch_bucket = 16.5 if signals.offset == -5 else 15.5
    before = count_at(signals.histogram, lunch_bucket - 0.5)
    if before <= 20:
        return []
    drop = (before - count_at(signals.histogram, lunch_bucket)) / before
    if not signals.lunch.found:
        return []
    lunch_start = signals.lunch_start_local
    if drop > 0.7 and 11.0 <= lunch_start <= 12.0:
        return [Adjustment("eastern_early_lunch", 8.0, f"{drop:.0%} drop at 11:30")]
    if drop > 0.5 and 11.0 <= lunch_start <= 12.5:
        return [Adjustment("eastern_lunch", 5.0, f"{drop:.0%} drop")]
    return []


def eastern_pattern(signals: OffsetSignals) -> list[Adjustment]:
    if signals.offset not in (-5, -4):
        return []
    hours = signals.hourly
    adjustments = _eastern_lunch(signals)

    morning_buckets = [9.0 + step * 0.5 for step in range(5)]
    morning = local_bucket_sum(signals.histogram, morning_buckets, signals.offset)
    if morning > 50:
        adjustments.append(Adjustment("eastern_morning_activity", 2.0, f"{morning} events 9-11"))

    end_of_day = 22 if signals.offset == -5 else 21
    end_count = hours.get(end_of_day, 0)
    if end_count >= 20:
        adjustments.append(Adjustment("eastern_5pm_activity", 10.0, f"{end_count} events"))
        if all(hours.get(hour, 0) <= end_count for hour in range(24) if hour != end_of_day):
            adjustments.append(Adjustment("eastern_5pm_peak", 5.0, "5pm is the busiest hour"))

    noon = 17 if signals.offset == -5 else 16
    before, at_noon, after = hours.get(noon - 1, 0), hours.get(noon, 0), hours.get(noon + 1, 0)
    if before > at_noon and after > at_noon:
        adjustments.append(
            Adjustment("eastern_noon_dip", 3.0, f"{(before - at_noon) / before:.0%} drop")
        )
    return _positive_total(adjustments)


def south_america_pattern(signals: OffsetSignals) -> list[Adjustment]:
    if signals.offset != -3:
        return []
    hours = signals.hourly
    adjustments = []
    lunch_start = signals.lunch_start_local
    if signals.lunch.found and 11.5 <= lunch_start <= 13.0 and signals.lunch.confidence > 0.5:
        adjustments.append(Adjustment("south_america_noon_lunch", 6.0, f"start={lunch_start:.1f}"))

    five_pm, six_pm = hours.get(20, 0), hours.get(21, 0)
    if five_pm >= 20 or six_pm >= 20:
        adjustments.append(
            Adjustment("south_america_dinner_activity", -25.0, f"{five_pm}/{six_pm} at 17-18 local")
        )
        dinner_peak = max(five_pm, six_pm)
        if all(hours.get(hour, 0) <= dinner_peak for hour in range(24) if hour not in (20, 21)):
            adjustments.append(Adjustment("south_america_dinner_peak", -30.0))

    if hours.get(11, 0) > 10 or hours.get(12, 0) > 10:
        adjustments.append(Adjustment("south_america_morning_start", 3.0, "8-9am local"))

    evening = sum(hours.get(hour, 0) for hour in (22, 23, 0, 1))
    if evening > 40:
        adjustments.append(Adjustment("south_america_evening", 2.0, f"{evening} events"))

    adjustments.append(Adjustment("south_america_population", 2.0))
    return _positive_total(adjustments)


def australia_pattern(signals: OffsetSignals) -> list[Adjustment]:
    if signals.offset == 10 and signals.evening_activity > 50:
        return [Adjustment("australia_evening", 8.0, f"{signals.evening_activity} evening events")]
    return []


def europe_pattern(signals: OffsetSignals) -> list[Adjustment]:
    if signals.offset not in EUROPEAN_OFFSETS:
        return []
    hours = signals.hourly
    adjustments = []
    if signals.offset <= 2:
        commute = 17 - signals.offset
        if hours.get(commute, 0) < 5 and hours.get((commute + 1) % 24, 0) > 10:
            adjustments.append(Adjustment("europe_commute", 5.0, f"quiet {commute}:00 UTC"))
    if signals.offset <= 1:
        tea = 15 - signals.offset
        at_tea = hours.get(tea, 0)
        if at_tea < hours.get(tea - 1, 0) and at_tea < hours.get(tea + 1, 0):
            adjustments.append(Adjustment("europe_tea_time", 3.0, f"dip at {tea}:00 UTC"))
    return _positive_total(adjustments)


def population_prior(signals: OffsetSignals) -> list[Adjustment]:
    weight = POPULATION_PRIOR.get(signals.offset)
    if weight is None:
        return []
    return [Adjustment("population_prior", weight)]


def european_morning_veto(signals: OffsetSignals) -> list[Adjustment]:
    if signals.offset in EUROPEAN_OFFSETS and signals.european_morning_activity == 0:
        return [Adjustment("europe_no_morning_activity", -15.0, "nothing 8-11 local")]
    return []


REGIONAL_RULES = (
    pacific_pattern,
    mountain_pattern,
    eastern_pattern,
    south_america_pattern,
    australia_pattern,
    europe_pattern,
    population_prior,
    european_morning_veto,
)
