"""Fetch and parse the ctfrankings.json feed."""

from __future__ import annotations

import json
from pathlib import Path

import requests

from ctfrankings import Dataset, Event, Institution, RankingEntry, Team
from ctfrankings.normalize import (
    coerce_weight,
    is_valid_weight,
    normalize_country,
    normalize_format,
    normalize_restriction,
)

USER_AGENT = "AcademicCTFRankings/1.0 (leaderboard generator)"
DEFAULT_SOURCE = "ctfrankings.json"


class DataUnavailable(Exception):
    """The feed could not be fetched, read or understood."""


def load(source: str | Path = DEFAULT_SOURCE) -> Dataset:
    """Load the dataset from a URL or local path."""
    return parse_feed(fetch_feed(source))


def fetch_feed(source: str | Path) -> str:
    """Return the raw feed text from an http(s) URL or a file."""
    source = str(source)
    if source.startswith(("http://", "https://")):
        headers = {"User-Agent": USER_AGENT}
        try:
            response = requests.get(source, headers=headers, timeout=30)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DataUnavailable(f"Failed to fetch {source}: {e}") from e
        return response.text

    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as e:
        raise DataUnavailable(f"Failed to read {source}: {e}") from e


def parse_feed(text: str) -> Dataset:
    try:
        raw = json.loads(text)
    except ValueError as e:
        raise DataUnavailable(f"Feed is not valid JSON: {e}") from e
    return parse_dataset(raw)


def parse_dataset(raw: object) -> Dataset:
    """Build a Dataset from decoded JSON.

    Only a wrong top-level shape is fatal. Malformed events and ranking
    entries are dropped and counted on the returned Dataset.
    """
    if not isinstance(raw, dict):
        raise DataUnavailable("Feed must be a JSON object")
    raw_institutions = raw.get("institutions")
    raw_events = raw.get("events")
    if not isinstance(raw_institutions, dict):
        raise DataUnavailable("Feed 'institutions' must be an object")
    if not isinstance(raw_events, list):
        raise DataUnavailable("Feed 'events' must be a list")

    institutions = {
        str(name): _parse_institution(str(name), info)
        for name, info in raw_institutions.items()
    }

    events: list[Event] = []
    skipped_events = 0
    skipped_rankings = 0
    for item in raw_events:
        if not isinstance(item, dict):
            skipped_events += 1
            continue
        event, dropped = _parse_event(item)
        events.append(event)
        skipped_rankings += dropped

    return Dataset(
        institutions=institutions,
        events=tuple(events),
        skipped_events=skipped_events,
        skipped_rankings=skipped_rankings,
    )


def _parse_institution(name: str, info: object) -> Institution:
    if not isinstance(info, dict):
        info = {}

    teams: list[Team] = []
    for team in info.get("teams") or []:
        if not isinstance(team, dict):
            continue
        team_id = _as_int(team.get("ctftime_id"))
        if team_id is None:
            continue
        teams.append(Team(team_id=team_id, name=str(team.get("name") or team_id)))

    website = info.get("website")
    return Institution(
        name=name,
        country=normalize_country(info.get("country")),
        website=website if isinstance(website, str) and website else None,
        teams=tuple(teams),
    )


def _parse_event(item: dict) -> tuple[Event, int]:
    """Parse one event; also return how many ranking entries were dropped."""
    rankings: list[RankingEntry] = []
    dropped = 0
    raw_rankings = item.get("rankings")
    for entry in raw_rankings if isinstance(raw_rankings, list) else []:
        ranking = _parse_ranking(entry)
        if ranking is None:
            dropped += 1
        else:
            rankings.append(ranking)

    weight = item.get("ctftime_weight")
    return Event(
        event_id=_as_int(item.get("ctftime_id")),
        name=str(item.get("name") or ""),
        start_time=_as_str(item.get("start_time")),
        end_time=_as_str(item.get("end_time")),
        weight=coerce_weight(weight),
        format=normalize_format(item.get("format")),
        restriction=normalize_restriction(item.get("restrictions", item.get("restriction"))),
        rankings=tuple(rankings),
        has_weight=is_valid_weight(weight),
    ), dropped


def _parse_ranking(entry: object) -> RankingEntry | None:
    if not isinstance(entry, dict):
        return None
    team_id = _as_int(entry.get("ctftime_team_id"))
    place = _as_int(entry.get("place"))
    if team_id is None or place is None or place < 1:
        return None
    return RankingEntry(team_id=team_id, place=place)


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None
