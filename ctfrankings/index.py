"""Roster indices built once per dataset load."""

from __future__ import annotations

from dataclasses import dataclass

from ctfrankings import Institution, Team
from ctfrankings.normalize import normalize_country


@dataclass(frozen=True)
class RosterIndex:
    """Lookups derived from the institutions mapping.

    ``team_to_institutions`` and the institutions' own rosters are both
    derived from the same mapping, so the two directions of the
    team/institution relation always agree.
    """

    team_to_institutions: dict[int, frozenset[str]]
    institution_meta: dict[str, Institution]
    team_meta: dict[int, Team]
    countries: list[str]
    team_count: int

    def teams_of(self, institution: str) -> tuple[Team, ...]:
        """Roster of an institution (empty if unknown)."""
        meta = self.institution_meta.get(institution)
        return meta.teams if meta else ()

    def owners_of(self, team_id: int) -> frozenset[str]:
        return self.team_to_institutions.get(team_id, frozenset())


def build_index(institutions: dict[str, Institution]) -> RosterIndex:
    """Build the team -> institutions index and metadata lookups."""
    owners: dict[int, set[str]] = {}
    team_meta: dict[int, Team] = {}
    countries: set[str] = set()

    for name, institution in institutions.items():
        countries.add(normalize_country(institution.country))
        for team in institution.teams or ():
            owners.setdefault(team.team_id, set()).add(name)
            # First roster to list a team decides its display name
            team_meta.setdefault(team.team_id, team)

    return RosterIndex(
        team_to_institutions={tid: frozenset(names) for tid, names in owners.items()},
        institution_meta=dict(institutions),
        team_meta=team_meta,
        countries=sorted(countries),
        team_count=len(owners),
    )
