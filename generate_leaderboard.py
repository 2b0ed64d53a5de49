#!/usr/bin/env python3
"""
Academic CTF Rankings Generator

Loads the ctfrankings.json feed (URL or local file), scores every
institution under the requested filters, prints the leaderboard and
writes a JSON export. Falls back to the last cached feed when the
source is unavailable.

Usage:
    python generate_leaderboard.py                       # default filters
    python generate_leaderboard.py --top-n 5 --country US
    python generate_leaderboard.py --year-start 2020 --weight-min 0 --format Jeopardy
"""

from __future__ import annotations

import argparse
import json
import math
import os
import sys
from dataclasses import replace
from pathlib import Path

from ctfrankings import Dataset, FilterConfig
from ctfrankings.cache import load_json_cache, save_json_cache, validate_feed
from ctfrankings.export import leaderboard_to_dict
from ctfrankings.facets import (
    compute_formats,
    compute_restrictions,
    compute_weight_range,
    compute_years,
    default_filter,
    latest_event_date,
)
from ctfrankings.formatting import (
    country_flag,
    format_event_date,
    format_number,
    summary_line,
)
from ctfrankings.index import build_index
from ctfrankings.leaderboard import build_leaderboard
from ctfrankings.loader import DEFAULT_SOURCE, DataUnavailable, fetch_feed, parse_feed
from ctfrankings.notify import error_report, send_error_notification
from ctfrankings.publish import create_r2_client, publish_leaderboard, r2_credentials
from ctfrankings.scoring import compute_scores

CACHE_NAME = "ctfrankings"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rank academic institutions by CTF results.")
    parser.add_argument(
        "source", nargs="?",
        default=os.environ.get("CTF_RANKINGS_SOURCE", DEFAULT_SOURCE),
        help="Feed URL or path (default: $CTF_RANKINGS_SOURCE or ctfrankings.json)",
    )
    parser.add_argument("--top-n", type=int, help="Academic finishers counted per event")
    parser.add_argument("--year-start", type=int, help="First year included")
    parser.add_argument("--year-end", type=int, help="Last year included")
    parser.add_argument("--weight-min", type=float, help="Minimum CTFtime weight")
    parser.add_argument("--country", help="Two-letter country code, or 'all'")
    parser.add_argument("--search", help="Substring of the institution name")
    parser.add_argument("--format", dest="formats", action="append",
                        help="Event format to include (repeatable)")
    parser.add_argument("--restriction", dest="restrictions", action="append",
                        help="Restriction category to include (repeatable)")
    parser.add_argument("--no-formats", action="store_true", help="Exclude every format")
    parser.add_argument("--no-restrictions", action="store_true",
                        help="Exclude every restriction category")
    parser.add_argument("--output", type=Path, default=Path("public/leaderboard.json"),
                        help="Where to write the JSON export")
    parser.add_argument("--cache-dir", type=Path, default=Path("cache"))
    parser.add_argument("--limit", type=int, default=25, help="Rows to print")
    parser.add_argument("--r2", action="store_true", help="Also upload the export to R2")
    return parser.parse_args(argv)


def build_filters(
    args: argparse.Namespace, defaults: FilterConfig, weight_range: tuple[float, float]
) -> FilterConfig:
    """Overlay command-line choices on the dataset defaults.

    A non-finite --weight-min falls back to the lowest observed weight.
    """
    filters = defaults
    if args.year_start is not None:
        filters = filters.with_year_start(args.year_start)
    if args.year_end is not None:
        filters = filters.with_year_end(args.year_end)

    changes: dict = {}
    if args.top_n is not None:
        changes["top_n"] = max(1, args.top_n)
    if args.weight_min is not None:
        changes["weight_min"] = (
            args.weight_min if math.isfinite(args.weight_min) else weight_range[0]
        )
    if args.country:
        changes["country"] = args.country if args.country == "all" else args.country.upper()
    if args.search is not None:
        changes["search"] = args.search
    if args.no_formats:
        changes["formats"] = frozenset()
    elif args.formats:
        changes["formats"] = frozenset(args.formats)
    if args.no_restrictions:
        changes["restrictions"] = frozenset()
    elif args.restrictions:
        changes["restrictions"] = frozenset(args.restrictions)
    return replace(filters, **changes)


def load_dataset(source: str, cache_dir: Path, errors: list[str]) -> Dataset | None:
    """Load the feed, falling back to the cached copy on failure."""
    print(f"Loading feed from {source}...")
    try:
        text = fetch_feed(source)
        dataset = parse_feed(text)
    except DataUnavailable as e:
        print(f"  ERROR: {e}")
        errors.append(str(e))
    else:
        save_json_cache(cache_dir, CACHE_NAME, text)
        return dataset

    try:
        cached = load_json_cache(cache_dir, CACHE_NAME)
    except (OSError, UnicodeDecodeError) as e:
        print(f"  ERROR: cached feed unreadable: {e}")
        errors.append(f"Cached feed unreadable: {e}")
        return None
    if cached and validate_feed(cached):
        print("  Using cached feed")
        try:
            return parse_feed(cached)
        except DataUnavailable as e:
            print(f"  ERROR: cached feed unusable: {e}")
            errors.append(f"Cached feed unusable: {e}")
    return None


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    errors: list[str] = []

    dataset = load_dataset(args.source, args.cache_dir, errors)
    if dataset is None:
        send_error_notification(
            error_report(errors, "Leaderboard generation failed:", "No cached feed available.")
        )
        print("Unable to load data.")
        return 1

    print(f"  {len(dataset.institutions)} institutions, {len(dataset.events)} events")
    if dataset.skipped_events or dataset.skipped_rankings:
        print(f"  Skipped {dataset.skipped_events} malformed events, "
              f"{dataset.skipped_rankings} malformed ranking entries")

    index = build_index(dataset.institutions)
    years = compute_years(dataset.events)
    weight_range = compute_weight_range(dataset.events)
    defaults = default_filter(
        years,
        weight_range,
        compute_formats(dataset.events),
        compute_restrictions(dataset.events),
    )
    filters = build_filters(args, defaults, weight_range)

    latest = latest_event_date(dataset.events)
    if latest:
        print(f"  Data through {format_event_date(latest)}")

    result = compute_scores(dataset.events, index.team_to_institutions, index.team_meta, filters)
    rows = build_leaderboard(result.scores, filters, index.institution_meta)

    print(f"\n{summary_line(rows, result.eligible_events, filters)}\n")
    if not rows:
        print("No institutions match these filters.")
    for position, row in enumerate(rows[: args.limit], start=1):
        print(f"  {position:>3}. {country_flag(row.country)} {row.name}  "
              f"{format_number(row.points)}")

    export = leaderboard_to_dict(rows, result, filters, index)
    export_json = json.dumps(export, indent=2, ensure_ascii=False)
    try:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(export_json, encoding="utf-8")
        print(f"\nSaved {args.output}")
    except OSError as e:
        error_msg = f"Failed to write {args.output}: {e}"
        print(f"  ERROR: {error_msg}")
        errors.append(error_msg)

    if args.r2:
        print("\nUploading to R2...")
        try:
            s3 = create_r2_client(r2_credentials())
            for key in publish_leaderboard(s3, export_json, export["generated_utc"], args.output.name):
                print(f"  Uploaded {key}")
        except Exception as e:
            error_msg = f"Failed to upload {args.output.name} to R2: {e}"
            print(f"  ERROR: {error_msg}")
            errors.append(error_msg)

    if errors:
        print(f"\nErrors encountered: {len(errors)}")
        for err in errors:
            print(f"  - {err}")
        send_error_notification(
            error_report(errors, f"Leaderboard generated with {len(errors)} error(s):")
        )
        return 1

    print("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
