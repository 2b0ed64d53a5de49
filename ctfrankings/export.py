"""JSON export of a computed leaderboard."""

from __future__ import annotations

from datetime import datetime, timezone

from ctfrankings import EventDetail, FilterConfig, LeaderboardRow, ScoreResult
from ctfrankings.formatting import (
    country_flag,
    event_url,
    format_number,
    format_percent,
    sort_details,
    summary_line,
    team_url,
)
from ctfrankings.index import RosterIndex


def leaderboard_to_dict(
    rows: list[LeaderboardRow],
    result: ScoreResult,
    filters: FilterConfig,
    index: RosterIndex,
    generated_utc: str | None = None,
) -> dict:
    """Serialize a ranked, filtered leaderboard with its supporting details."""
    if generated_utc is None:
        generated_utc = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    return {
        "generated_utc": generated_utc,
        "filters": filters_to_dict(filters),
        "summary": summary_line(rows, result.eligible_events, filters),
        "stats": {
            "institutions": len(index.institution_meta),
            "teams": index.team_count,
            "eligible_events": result.eligible_events,
        },
        "rows": [
            _row_to_dict(position, row, result.details.get(row.name, []), index)
            for position, row in enumerate(rows, start=1)
        ],
    }


def filters_to_dict(filters: FilterConfig) -> dict:
    return {
        "search": filters.search,
        "top_n": filters.top_n,
        "year_start": filters.year_start,
        "year_end": filters.year_end,
        "weight_min": filters.weight_min,
        "country": filters.country,
        "formats": sorted(filters.formats) if filters.formats is not None else None,
        "restrictions": (
            sorted(filters.restrictions) if filters.restrictions is not None else None
        ),
    }


def _row_to_dict(
    position: int, row: LeaderboardRow, details: list[EventDetail], index: RosterIndex
) -> dict:
    return {
        "position": position,
        "name": row.name,
        "country": row.country,
        "flag": country_flag(row.country),
        "website": row.website,
        "points": float(row.points),
        "points_display": format_number(row.points),
        "last_year": row.last_year,
        "scored_teams": row.scored_team_count,
        "teams": [
            {"id": t.team_id, "name": t.name, "url": team_url(t.team_id)}
            for t in index.teams_of(row.name)
        ],
        "events": [_detail_to_dict(d) for d in sort_details(details)],
    }


def _detail_to_dict(detail: EventDetail) -> dict:
    return {
        "event_id": detail.event_id,
        "event_name": detail.event_name,
        "event_url": event_url(detail.event_id),
        "year": detail.year,
        "timestamp": detail.timestamp,
        "weight": detail.weight,
        "format": detail.format,
        "restriction": detail.restriction,
        "academic_rank": detail.academic_rank,
        "place": detail.place,
        "team_id": detail.team_id,
        "team_name": detail.team_name,
        "share": float(detail.share),
        "share_display": format_percent(detail.share),
        "shared": detail.shared,
    }
