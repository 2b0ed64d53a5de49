"""Canonicalization of loosely-typed feed fields."""

from __future__ import annotations

import math
from datetime import datetime, timezone

DEFAULT_COUNTRY = "Unknown"
DEFAULT_FORMAT = "Jeopardy"
DEFAULT_RESTRICTION = "Unknown"


def normalize_country(code: str | None) -> str:
    """Upper-case a country code, or ``"Unknown"`` when missing."""
    if not code:
        return DEFAULT_COUNTRY
    return str(code).upper()


def normalize_format(label: str | None) -> str:
    if not isinstance(label, str) or not label.strip():
        return DEFAULT_FORMAT
    return label.strip()


def normalize_restriction(label: str | None) -> str:
    if not isinstance(label, str) or not label.strip():
        return DEFAULT_RESTRICTION
    return label.strip()


def parse_timestamp(iso: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Naive timestamps (including bare dates) are taken to be UTC. Returns
    None for anything that does not parse.
    """
    if not iso or not isinstance(iso, str):
        return None
    text = iso.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_year(iso: str | None) -> int | None:
    """UTC year of an ISO timestamp, or None."""
    dt = parse_timestamp(iso)
    return dt.year if dt else None


def is_valid_weight(value: object) -> bool:
    """True for real numbers that are not NaN (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def coerce_weight(value: object) -> float:
    """Numeric weight, or 0 when missing or invalid."""
    if not is_valid_weight(value):
        return 0.0
    return float(value)
