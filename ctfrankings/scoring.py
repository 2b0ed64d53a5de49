"""Per-institution scoring over the full event collection."""

from __future__ import annotations

from fractions import Fraction
from typing import Iterable, Mapping

from ctfrankings import (
    Event,
    EventDetail,
    FilterConfig,
    RankingEntry,
    ScoreAggregate,
    ScoreResult,
    Team,
)
from ctfrankings.normalize import normalize_format, normalize_restriction

UNKNOWN_TEAM = "Unknown team"


def compute_scores(
    events: Iterable[Event],
    team_to_institutions: Mapping[int, frozenset[str]],
    team_meta: Mapping[int, Team],
    filters: FilterConfig,
) -> ScoreResult:
    """Score every institution under ``filters``.

    Each event passing the year, format, restriction and weight filters
    awards one point per academic finisher among its top ``filters.top_n``.
    A team claimed by several institutions splits that point evenly
    between them; shares are exact fractions, so one placement's shares
    always sum to exactly 1.

    ``eligible_events`` counts events that pass the filters and have at
    least one academic finisher; it does not depend on ``top_n``.

    Requires ``filters.year_start <= filters.year_end``. An inverted range
    matches nothing.
    """
    scores: dict[str, ScoreAggregate] = {}
    details: dict[str, list[EventDetail]] = {}
    eligible_events = 0

    for event in events:
        year = event.year
        if year is None or not filters.year_start <= year <= filters.year_end:
            continue
        if not _passes_facets(event, filters):
            continue
        if event.weight < filters.weight_min:
            continue

        academic = academic_rankings(event, team_to_institutions)
        if not academic:
            continue
        eligible_events += 1

        for rank, entry in enumerate(academic[: filters.top_n], start=1):
            owners = team_to_institutions.get(entry.team_id)
            if not owners:
                continue
            share = Fraction(1, len(owners))
            team = team_meta.get(entry.team_id)

            for institution in sorted(owners):
                aggregate = scores.setdefault(institution, ScoreAggregate())
                aggregate.points += share
                aggregate.scored_teams.add(entry.team_id)
                aggregate.last_year = max(aggregate.last_year, year)

                details.setdefault(institution, []).append(EventDetail(
                    event_id=event.event_id,
                    event_name=event.name,
                    weight=event.weight,
                    format=normalize_format(event.format),
                    restriction=normalize_restriction(event.restriction),
                    timestamp=event.timestamp,
                    year=year,
                    academic_rank=rank,
                    place=entry.place,
                    team_id=entry.team_id,
                    team_name=team.name if team else UNKNOWN_TEAM,
                    share=share,
                    shared=len(owners) > 1,
                ))

    return ScoreResult(scores=scores, eligible_events=eligible_events, details=details)


def academic_rankings(
    event: Event, team_to_institutions: Mapping[int, frozenset[str]]
) -> list[RankingEntry]:
    """Placements of known academic teams, best place first.

    The sort is stable: entries sharing a place keep their feed order.
    """
    entries = [r for r in event.rankings if r.team_id in team_to_institutions]
    return sorted(entries, key=lambda r: r.place)


def _passes_facets(event: Event, filters: FilterConfig) -> bool:
    if filters.formats is not None and normalize_format(event.format) not in filters.formats:
        return False
    if (
        filters.restrictions is not None
        and normalize_restriction(event.restriction) not in filters.restrictions
    ):
        return False
    return True
