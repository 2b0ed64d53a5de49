"""Ranking order and the search/country view filter."""

from __future__ import annotations

from typing import Iterable, Mapping

from ctfrankings import FilterConfig, Institution, LeaderboardRow, ScoreAggregate
from ctfrankings.normalize import normalize_country

ALL_COUNTRIES = "all"


def rank_institutions(
    scores: Mapping[str, ScoreAggregate],
    institution_meta: Mapping[str, Institution],
) -> list[LeaderboardRow]:
    """One row per scored institution, most points first, ties by name."""
    rows = []
    for name, aggregate in scores.items():
        meta = institution_meta.get(name)
        rows.append(LeaderboardRow(
            name=name,
            points=aggregate.points,
            last_year=aggregate.last_year,
            scored_team_count=len(aggregate.scored_teams),
            country=normalize_country(meta.country) if meta else normalize_country(None),
            website=meta.website if meta else None,
        ))
    rows.sort(key=lambda r: (-r.points, r.name))
    return rows


def apply_filters(
    rows: Iterable[LeaderboardRow],
    filters: FilterConfig,
    institution_meta: Mapping[str, Institution],
) -> list[LeaderboardRow]:
    """Narrow ranked rows by search text and country, keeping their order."""
    search = filters.search.strip().lower()
    country = filters.country

    filtered = []
    for row in rows:
        if search and search not in row.name.lower():
            continue
        if country != ALL_COUNTRIES:
            meta = institution_meta.get(row.name)
            if not meta or normalize_country(meta.country) != country:
                continue
        filtered.append(row)
    return filtered


def build_leaderboard(
    scores: Mapping[str, ScoreAggregate],
    filters: FilterConfig,
    institution_meta: Mapping[str, Institution],
) -> list[LeaderboardRow]:
    return apply_filters(rank_institutions(scores, institution_meta), filters, institution_meta)
