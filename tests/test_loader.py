"""Tests for feed loading, caching, notifications, publishing and export."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import requests

from conftest import FIXTURE_DIR, wide_filter

from ctfrankings import Dataset, RankingEntry
from ctfrankings.cache import load_json_cache, save_json_cache, validate_feed
from ctfrankings.export import leaderboard_to_dict
from ctfrankings.index import RosterIndex
from ctfrankings.leaderboard import build_leaderboard
from ctfrankings.loader import DataUnavailable, fetch_feed, load, parse_dataset, parse_feed
from ctfrankings.notify import PUSHOVER_MESSAGE_LIMIT, error_report, send_error_notification
from ctfrankings.publish import R2_BUCKET, PublishError, publish_leaderboard, r2_credentials
from ctfrankings.scoring import compute_scores


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


# --- Loader tests ---


class TestParse:
    def test_counts(self, dataset: Dataset) -> None:
        assert len(dataset.institutions) == 5
        assert len(dataset.events) == 5
        assert dataset.skipped_events == 1
        assert dataset.skipped_rankings == 1

    def test_event_fields(self, dataset: Dataset) -> None:
        alpha = dataset.events[0]
        assert alpha.event_id == 1
        assert alpha.weight == 80.0
        assert alpha.has_weight is True
        assert alpha.restriction == "Open"
        assert alpha.year == 2024
        assert alpha.timestamp == "2024-03-03T00:00:00Z"
        assert RankingEntry(1003, 2) in alpha.rankings

    def test_defaults_applied_once(self, dataset: Dataset) -> None:
        gamma = dataset.events[2]
        assert gamma.weight == 0.0
        assert gamma.has_weight is False
        assert gamma.format == "Jeopardy"
        assert gamma.restriction == "Unknown"
        assert gamma.timestamp == "2022-11-01T00:00:00Z"

    def test_unparsable_start_has_no_year(self, dataset: Dataset) -> None:
        assert dataset.events[3].year is None

    def test_institution_fields(self, dataset: Dataset) -> None:
        eth = dataset.institutions["ETH Zurich"]
        assert eth.country == "CH"
        nowhere = dataset.institutions["Nowhere College"]
        assert nowhere.country == "Unknown"
        assert nowhere.website is None
        assert nowhere.teams == ()

    def test_nan_and_string_weights_default_to_zero(self) -> None:
        raw = {"institutions": {}, "events": [
            {"name": "a", "ctftime_weight": float("nan")},
            {"name": "b", "ctftime_weight": "50"},
            {"name": "c", "ctftime_weight": True},
        ]}
        dataset = parse_dataset(raw)
        assert [e.weight for e in dataset.events] == [0.0, 0.0, 0.0]
        assert not any(e.has_weight for e in dataset.events)

    def test_bad_ranking_entries_dropped(self) -> None:
        raw = {"institutions": {}, "events": [{"name": "a", "rankings": [
            {"ctftime_team_id": 1, "place": 1},
            {"ctftime_team_id": 2},
            {"ctftime_team_id": 3, "place": 0},
            "junk",
        ]}]}
        dataset = parse_dataset(raw)
        assert dataset.events[0].rankings == (RankingEntry(1, 1),)
        assert dataset.skipped_rankings == 3

    @pytest.mark.parametrize("raw", [
        [],
        {"events": []},
        {"institutions": {}, "events": {}},
        {"institutions": [], "events": []},
    ])
    def test_wrong_shape_is_unavailable(self, raw) -> None:
        with pytest.raises(DataUnavailable):
            parse_dataset(raw)

    def test_invalid_json(self) -> None:
        with pytest.raises(DataUnavailable):
            parse_feed("{not json")


class TestFetch:
    def test_reads_local_file(self) -> None:
        dataset = load(FIXTURE_DIR / "ctfrankings_sample.json")
        assert "TU Berlin" in dataset.institutions

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DataUnavailable):
            fetch_feed(tmp_path / "missing.json")

    def test_fetches_url(self, monkeypatch, feed_text: str) -> None:
        calls = {}

        def fake_get(url, headers=None, timeout=None):
            calls.update(url=url, headers=headers, timeout=timeout)
            return FakeResponse(feed_text)

        monkeypatch.setattr("ctfrankings.loader.requests.get", fake_get)
        assert fetch_feed("https://example.org/ctfrankings.json") == feed_text
        assert calls["timeout"] == 30
        assert "User-Agent" in calls["headers"]

    def test_http_error_is_unavailable(self, monkeypatch) -> None:
        monkeypatch.setattr("ctfrankings.loader.requests.get",
                            lambda *a, **kw: FakeResponse(status_code=503))
        with pytest.raises(DataUnavailable):
            fetch_feed("https://example.org/ctfrankings.json")

    def test_connection_error_is_unavailable(self, monkeypatch) -> None:
        def boom(*args, **kwargs):
            raise requests.ConnectionError("down")

        monkeypatch.setattr("ctfrankings.loader.requests.get", boom)
        with pytest.raises(DataUnavailable):
            load("http://example.org/feed.json")


# --- Cache tests ---


class TestCache:
    def test_save_and_load(self, tmp_path: Path, feed_text: str) -> None:
        save_json_cache(tmp_path, "CTFRankings", feed_text)
        assert load_json_cache(tmp_path, "ctfrankings") == feed_text

    def test_load_missing_returns_none(self, tmp_path: Path) -> None:
        assert load_json_cache(tmp_path, "nonexistent") is None

    def test_validate_feed(self, feed_text: str) -> None:
        assert validate_feed(feed_text)
        assert not validate_feed('{"institutions": {}}')
        assert not validate_feed("[]")
        assert not validate_feed("")


# --- Notify tests ---


class TestNotify:
    def test_unconfigured_returns_false(self, monkeypatch) -> None:
        monkeypatch.delenv("PUSHOVER_USER_KEY", raising=False)
        monkeypatch.delenv("PUSHOVER_API_TOKEN", raising=False)
        assert send_error_notification("boom") is False

    def test_sends_when_configured(self, monkeypatch) -> None:
        sent = {}
        monkeypatch.setenv("PUSHOVER_USER_KEY", "user")
        monkeypatch.setenv("PUSHOVER_API_TOKEN", "token")

        def fake_post(url, data=None, timeout=None):
            sent.update(data)
            return FakeResponse()

        monkeypatch.setattr("ctfrankings.notify.requests.post", fake_post)
        assert send_error_notification("feed down", title="Test") is True
        assert sent["title"] == "Test"
        assert sent["message"] == "feed down"

    def test_send_failure_returns_false(self, monkeypatch) -> None:
        monkeypatch.setenv("PUSHOVER_USER_KEY", "user")
        monkeypatch.setenv("PUSHOVER_API_TOKEN", "token")
        monkeypatch.setattr("ctfrankings.notify.requests.post",
                            lambda *a, **kw: FakeResponse(status_code=500))
        assert send_error_notification("feed down") is False

    def test_error_report_lists_errors(self) -> None:
        report = error_report(["feed down", "cache stale"], "Generation failed:", "No cache.")
        assert report == "Generation failed:\n\n- feed down\n- cache stale\n\nNo cache."

    def test_error_report_summarizes_overflow(self) -> None:
        errors = [f"event {i} failed: " + "x" * 80 for i in range(40)]
        report = error_report(errors, "Generation failed:", "No cache.")
        assert len(report) <= PUSHOVER_MESSAGE_LIMIT
        assert report.endswith("more\n\nNo cache.")
        shown = report.count("\n- ")
        assert f"... and {40 - shown} more" in report


# --- Publish tests ---


class FakeS3:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def put_object(self, **kwargs) -> None:
        self.calls.append(kwargs)


class TestPublish:
    def test_credentials_from_environment(self) -> None:
        env = {"CF_ACCOUNT_ID": "acct", "R2_ACCESS_KEY_ID": "key", "R2_SECRET_ACCESS_KEY": "secret"}
        assert r2_credentials(env) == env

    def test_missing_credentials_named(self) -> None:
        with pytest.raises(PublishError, match="R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY"):
            r2_credentials({"CF_ACCOUNT_ID": "acct", "R2_ACCESS_KEY_ID": ""})

    def test_publishes_latest_and_dated_snapshot(self) -> None:
        s3 = FakeS3()
        keys = publish_leaderboard(s3, '{"rows": []}', "2025-03-05T12:00:00Z")
        assert keys == ["leaderboard.json", "archive/2025-03-05/leaderboard.json"]
        assert [c["Key"] for c in s3.calls] == keys
        assert all(c["Bucket"] == R2_BUCKET for c in s3.calls)
        assert all(c["Body"] == b'{"rows": []}' for c in s3.calls)
        latest, snapshot = s3.calls
        assert latest["CacheControl"] == "max-age=300"
        assert "immutable" in snapshot["CacheControl"]


# --- Export tests ---


class TestExport:
    def test_document_structure(self, dataset: Dataset, index: RosterIndex) -> None:
        filters = wide_filter()
        result = compute_scores(dataset.events, index.team_to_institutions, index.team_meta, filters)
        rows = build_leaderboard(result.scores, filters, index.institution_meta)
        doc = leaderboard_to_dict(rows, result, filters, index, generated_utc="2025-01-01T00:00:00Z")

        assert doc["generated_utc"] == "2025-01-01T00:00:00Z"
        assert doc["stats"] == {"institutions": 5, "teams": 4, "eligible_events": 3}
        assert doc["filters"]["formats"] is None
        assert [r["position"] for r in doc["rows"]] == [1, 2, 3, 4]
        json.dumps(doc)

    def test_shared_detail_rendering(self, dataset: Dataset, index: RosterIndex) -> None:
        filters = wide_filter()
        result = compute_scores(dataset.events, index.team_to_institutions, index.team_meta, filters)
        rows = build_leaderboard(result.scores, filters, index.institution_meta)
        doc = leaderboard_to_dict(rows, result, filters, index)

        tu = next(r for r in doc["rows"] if r["name"] == "TU Berlin")
        assert tu["points_display"] == "0.5"
        assert tu["points"] == 0.5 and type(tu["points"]) is float
        assert tu["flag"] == "\U0001f1e9\U0001f1ea"
        assert tu["teams"] == [{"id": 1004, "name": "Joint Team", "url": "https://ctftime.org/team/1004"}]
        [event] = tu["events"]
        assert event["shared"] is True
        assert event["share_display"] == "50%"
        assert type(event["share"]) is float
        assert event["event_url"] == "https://ctftime.org/event/2"

    def test_details_sorted_newest_first(self, dataset: Dataset, index: RosterIndex) -> None:
        filters = wide_filter()
        result = compute_scores(dataset.events, index.team_to_institutions, index.team_meta, filters)
        rows = build_leaderboard(result.scores, filters, index.institution_meta)
        doc = leaderboard_to_dict(rows, result, filters, index)

        cmu = next(r for r in doc["rows"] if r["name"] == "Carnegie Mellon University")
        assert [e["year"] for e in cmu["events"]] == [2024, 2023]
