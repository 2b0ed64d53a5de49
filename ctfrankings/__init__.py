"""Academic CTF Rankings: shared data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from fractions import Fraction

from ctfrankings.normalize import parse_year


@dataclass(frozen=True)
class Team:
    """A CTFtime team listed on an institution's roster."""

    team_id: int
    name: str


@dataclass(frozen=True)
class Institution:
    """An academic institution and the teams it claims."""

    name: str
    country: str = "Unknown"
    website: str | None = None
    teams: tuple[Team, ...] = ()


@dataclass(frozen=True)
class RankingEntry:
    """One team's placement in an event."""

    team_id: int
    place: int


@dataclass(frozen=True)
class Event:
    """A single CTF with its weight, time window, facets and placements.

    Fields are normalized by the loader; ``has_weight`` records whether the
    source carried a usable numeric weight before it was defaulted to 0.
    """

    event_id: int | None
    name: str
    start_time: str | None = None
    end_time: str | None = None
    weight: float = 0.0
    format: str = "Jeopardy"
    restriction: str = "Unknown"
    rankings: tuple[RankingEntry, ...] = ()
    has_weight: bool = False

    @property
    def year(self) -> int | None:
        return parse_year(self.start_time)

    @property
    def timestamp(self) -> str | None:
        return self.end_time or self.start_time


@dataclass(frozen=True)
class Dataset:
    """Parsed feed: institutions by name and events in source order."""

    institutions: dict[str, Institution]
    events: tuple[Event, ...]
    skipped_events: int = 0
    skipped_rankings: int = 0


@dataclass(frozen=True)
class FilterConfig:
    """Leaderboard filters.

    ``formats`` and ``restrictions`` are ``None`` when the facet is not
    applied. An empty set matches no events at all.

    The scoring engine expects ``year_start <= year_end``; use
    :meth:`with_year_start` / :meth:`with_year_end` to move one end of the
    range without inverting it.
    """

    year_start: int
    year_end: int
    top_n: int = 3
    weight_min: float = 0.0
    search: str = ""
    country: str = "all"
    formats: frozenset[str] | None = None
    restrictions: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {self.top_n}")

    def with_year_start(self, year: int) -> FilterConfig:
        return replace(self, year_start=year, year_end=max(year, self.year_end))

    def with_year_end(self, year: int) -> FilterConfig:
        return replace(self, year_end=year, year_start=min(year, self.year_start))


@dataclass
class ScoreAggregate:
    """Running totals for one institution within a single computation.

    Points are kept as exact fractions so split credit always adds back up
    to whole points.
    """

    points: Fraction = Fraction(0)
    last_year: int = 0
    scored_teams: set[int] = field(default_factory=set)


@dataclass(frozen=True)
class EventDetail:
    """One scored placement credited to an institution."""

    event_id: int | None
    event_name: str
    weight: float
    format: str
    restriction: str
    timestamp: str | None
    year: int
    academic_rank: int
    place: int
    team_id: int
    team_name: str
    share: Fraction
    shared: bool


@dataclass(frozen=True)
class ScoreResult:
    """Output of the scoring engine."""

    scores: dict[str, ScoreAggregate]
    eligible_events: int
    details: dict[str, list[EventDetail]]


@dataclass(frozen=True)
class LeaderboardRow:
    """A ranked institution as shown in the leaderboard."""

    name: str
    points: Fraction
    last_year: int
    scored_team_count: int
    country: str = "Unknown"
    website: str | None = None
