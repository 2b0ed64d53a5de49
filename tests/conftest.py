from __future__ import annotations

from pathlib import Path

import pytest

from ctfrankings import Dataset, Event, FilterConfig, RankingEntry
from ctfrankings.index import RosterIndex, build_index
from ctfrankings.loader import parse_feed

FIXTURE_DIR = Path(__file__).parent / "fixtures"


def make_event(
    rankings: list[tuple[int, int]],
    event_id: int = 1,
    name: str = "Test CTF",
    start_time: str | None = "2024-05-01T00:00:00Z",
    weight: float | None = 50.0,
    format: str = "Jeopardy",
    restriction: str = "Open",
) -> Event:
    return Event(
        event_id=event_id,
        name=name,
        start_time=start_time,
        end_time=None,
        weight=weight if weight is not None else 0.0,
        format=format,
        restriction=restriction,
        rankings=tuple(RankingEntry(team_id=t, place=p) for t, p in rankings),
        has_weight=weight is not None,
    )


def wide_filter(**overrides) -> FilterConfig:
    params = dict(year_start=2000, year_end=2100, top_n=3, weight_min=0.0)
    params.update(overrides)
    return FilterConfig(**params)


@pytest.fixture
def feed_text() -> str:
    return (FIXTURE_DIR / "ctfrankings_sample.json").read_text(encoding="utf-8")


@pytest.fixture
def dataset(feed_text: str) -> Dataset:
    return parse_feed(feed_text)


@pytest.fixture
def index(dataset: Dataset) -> RosterIndex:
    return build_index(dataset.institutions)
