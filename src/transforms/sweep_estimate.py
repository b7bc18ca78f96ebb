"""Linear sweep update estimator.

This module models a world update as one sequential sweep over all
nations in nation id order, each nation taking a uniform slice of the
sweep. It derives per-cycle rates and per-region estimates. The region
store's SQL views present the same model over stored rows.

The sweep position used for a region is the global id of its first
nation, not a cumulative count within the sweep; ids are assumed to be
monotonic with update order.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from core.constants import VARIANCE_DECIMALS
from core.types import NationPosition, RegionEstimate, RegionTiming, UpdateRates

_MILLISECONDS_PER_DAY = 86_400_000


def compute_update_rates(regions: Sequence[RegionTiming], num_nations: int) -> UpdateRates:
    """Compute sweep lengths and time-per-nation rates.

    Args:
        regions: All regions of one snapshot.
        num_nations: Total nation count of the world.

    Returns:
        Aggregate rates; lengths are None without data and rates are None
        without nations.
    """
    major_times = [region.last_major_update for region in regions]
    minor_times = [region.last_minor_update for region in regions if region.last_minor_update > 0]
    major_start, major_length = _span(major_times)
    minor_start, minor_length = _span(minor_times)
    return UpdateRates(
        num_nations=num_nations,
        major_start=major_start,
        major_length=major_length,
        minor_start=minor_start,
        minor_length=minor_length,
        tpn_major=_time_per_nation(major_length, num_nations),
        tpn_minor=_time_per_nation(minor_length, num_nations),
    )


def estimate_regions(
    regions: Iterable[RegionTiming],
    nations: Iterable[NationPosition],
    rates: UpdateRates,
) -> list[RegionEstimate]:
    """Estimate update offsets for every region with at least one nation.

    Args:
        regions: Regions to estimate.
        nations: Nation sweep positions.
        rates: Rates from :func:`compute_update_rates`.

    Returns:
        One estimate per populated region, ordered by sweep position.
    """
    first_nation = first_nation_by_region(nations)
    estimates: list[RegionEstimate] = []
    for region in regions:
        nation_id = first_nation.get(region.region_id)
        if nation_id is None or rates.major_start is None:
            continue
        major_estimate = _estimate(nation_id, rates.tpn_major)
        major_actual = region.last_major_update - rates.major_start
        minor_estimate, minor_actual, minor_variance = _minor_offsets(region, nation_id, rates)
        estimates.append(
            RegionEstimate(
                region_id=region.region_id,
                name=region.name,
                nation_id=nation_id,
                has_governor=region.has_governor,
                has_password=region.has_password,
                is_frontier=region.is_frontier,
                major_estimate=major_estimate,
                major_actual=major_actual,
                major_variance=_variance(major_actual, major_estimate),
                minor_estimate=minor_estimate,
                minor_actual=minor_actual,
                minor_variance=minor_variance,
            )
        )
    return sorted(estimates, key=lambda item: item.nation_id)


def first_nation_by_region(nations: Iterable[NationPosition]) -> dict[int, int]:
    """Map each region id to the lowest nation id it contains."""
    first: dict[int, int] = {}
    for nation in nations:
        current = first.get(nation.region_id)
        if current is None or nation.nation_id < current:
            first[nation.region_id] = nation.nation_id
    return first


def format_clock(seconds: float | None) -> str | None:
    """Render a second offset as ``HH:MM:SS.fff`` wall-clock time from the epoch.

    Offsets of a day or more wrap around, matching SQLite ``strftime``.
    """
    if seconds is None:
        return None
    total_ms = math.floor(seconds * 1000 + 0.5) % _MILLISECONDS_PER_DAY
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    whole_seconds, milliseconds = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{whole_seconds:02d}.{milliseconds:03d}"


def round_variance(value: float | None) -> float | None:
    """Round a variance to millisecond precision."""
    if value is None:
        return None
    return round(value, VARIANCE_DECIMALS)


def _span(timestamps: list[int]) -> tuple[int | None, int | None]:
    if not timestamps:
        return None, None
    start = min(timestamps)
    return start, max(timestamps) - start


def _time_per_nation(length: int | None, num_nations: int) -> float | None:
    if length is None or num_nations <= 0:
        return None
    return length / num_nations


def _estimate(nation_id: int, rate: float | None) -> float | None:
    if rate is None:
        return None
    return nation_id * rate


def _variance(actual: int | None, estimate: float | None) -> float | None:
    if actual is None or estimate is None:
        return None
    return actual - estimate


def _minor_offsets(
    region: RegionTiming,
    nation_id: int,
    rates: UpdateRates,
) -> tuple[float | None, int | None, float | None]:
    """Return minor estimate, actual, and variance, all None when unobserved."""
    if region.last_minor_update <= 0 or rates.minor_start is None:
        return None, None, None
    estimate = _estimate(nation_id, rates.tpn_minor)
    actual = region.last_minor_update - rates.minor_start
    return estimate, actual, _variance(actual, estimate)
