"""Feed caching for fallback when the source cannot be loaded."""

from __future__ import annotations

import json
from pathlib import Path


def save_json_cache(cache_dir: Path, name: str, text: str) -> Path:
    """Save raw feed text to the cache directory."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    cache_file = cache_dir / f"{name.lower()}.json"
    cache_file.write_text(text, encoding="utf-8")
    return cache_file


def load_json_cache(cache_dir: Path, name: str) -> str | None:
    """Load cached feed text. Returns None if no cache exists."""
    cache_file = cache_dir / f"{name.lower()}.json"
    if cache_file.exists():
        return cache_file.read_text(encoding="utf-8")
    return None


def validate_feed(text: str) -> bool:
    """Basic check that the text looks like a rankings feed."""
    try:
        data = json.loads(text)
    except ValueError:
        return False
    return isinstance(data, dict) and "institutions" in data and "events" in data
