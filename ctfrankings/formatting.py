"""Display helpers: flags, numbers and detail ordering."""

from __future__ import annotations

import re
from datetime import datetime
from fractions import Fraction
from typing import Iterable

from ctfrankings import EventDetail, FilterConfig, LeaderboardRow
from ctfrankings.normalize import normalize_country

CTFTIME_URL = "https://ctftime.org"
GLOBE = "\U0001f310"
REGIONAL_INDICATOR_OFFSET = 127397


def country_flag(code: str | None) -> str:
    """Flag emoji for a two-letter country code, globe otherwise."""
    normalized = normalize_country(code)
    if not re.fullmatch(r"[A-Z]{2}", normalized):
        return GLOBE
    return "".join(chr(REGIONAL_INDICATOR_OFFSET + ord(c)) for c in normalized)


def format_number(value: float | Fraction) -> str:
    """en-US grouping; fractional points keep up to three decimals."""
    value = float(value)
    if value.is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_weight(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def format_percent(value: float | Fraction) -> str:
    """A share as a percentage, e.g. 0.5 -> '50%'."""
    pct = float(value) * 100
    if round(pct, 1).is_integer():
        return f"{round(pct):d}%"
    return f"{pct:.1f}%"


def format_event_date(dt: datetime) -> str:
    return f"{dt:%b} {dt.day}, {dt.year}"


def sort_details(details: Iterable[EventDetail]) -> list[EventDetail]:
    """Newest year first, then event name."""
    return sorted(details, key=lambda d: (-d.year, d.event_name.lower(), d.event_name))


def summary_line(rows: list[LeaderboardRow], eligible_events: int, filters: FilterConfig) -> str:
    return (
        f"{len(rows)} institutions listed · "
        f"{format_number(eligible_events)} eligible CTFs · "
        f"top {filters.top_n} academic finishers · "
        f"weight ≥ {format_weight(filters.weight_min)}"
    )


def team_url(team_id: int) -> str:
    return f"{CTFTIME_URL}/team/{team_id}"


def event_url(event_id: int | None) -> str:
    return f"{CTFTIME_URL}/event/{event_id}" if event_id else ""
