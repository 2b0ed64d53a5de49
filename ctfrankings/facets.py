"""Filter domains and defaults derived from the event collection."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ctfrankings import Event, FilterConfig
from ctfrankings.normalize import normalize_format, normalize_restriction, parse_timestamp

DEFAULT_TOP_N = 3
DEFAULT_START_YEAR = 2023
DEFAULT_WEIGHT_FLOOR = 75.0
FALLBACK_WEIGHT_RANGE = (0.0, 100.0)


def compute_years(events: Iterable[Event]) -> list[int]:
    """Distinct start-time years, ascending."""
    return sorted({e.year for e in events if e.year is not None})


def compute_formats(events: Iterable[Event]) -> list[str]:
    return sorted({normalize_format(e.format) for e in events})


def compute_restrictions(events: Iterable[Event]) -> list[str]:
    return sorted({normalize_restriction(e.restriction) for e in events})


def compute_weight_range(events: Iterable[Event]) -> tuple[float, float]:
    """Observed (min, max) weight over events that carry one."""
    weights = [e.weight for e in events if e.has_weight]
    if not weights:
        return FALLBACK_WEIGHT_RANGE
    return min(weights), max(weights)


def latest_event_date(events: Iterable[Event]) -> datetime | None:
    """Most recent end (or start) timestamp in the collection."""
    dates = [parse_timestamp(e.timestamp) for e in events]
    dates = [d for d in dates if d is not None]
    return max(dates) if dates else None


def default_filter(
    years: list[int],
    weight_range: tuple[float, float],
    formats: list[str] | None = None,
    restrictions: list[str] | None = None,
) -> FilterConfig:
    """The leaderboard's reset state for a given dataset.

    Starts at 2023 when the data covers it, and at a weight floor of 75
    when any event is weighted that heavily. Every observed format and
    restriction is selected.
    """
    if years:
        year_start = DEFAULT_START_YEAR if DEFAULT_START_YEAR in years else years[0]
        year_end = years[-1]
    else:
        this_year = datetime.now().year
        year_start = year_end = this_year

    weight_min, weight_max = weight_range
    if weight_max >= DEFAULT_WEIGHT_FLOOR:
        weight_min = DEFAULT_WEIGHT_FLOOR

    return FilterConfig(
        year_start=year_start,
        year_end=year_end,
        top_n=DEFAULT_TOP_N,
        weight_min=weight_min,
        formats=frozenset(formats) if formats is not None else None,
        restrictions=frozenset(restrictions) if restrictions is not None else None,
    )
