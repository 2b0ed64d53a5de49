"""Pushover alerts when the leaderboard cannot be generated."""

from __future__ import annotations

import os

import requests

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"
PUSHOVER_MESSAGE_LIMIT = 1024


def error_report(errors: list[str], headline: str, footer: str = "") -> str:
    """Bulleted error list that fits in one Pushover message.

    Errors that would overflow the limit are summarized as
    "... and N more" instead of being cut mid-line.
    """
    tail = f"\n\n{footer}" if footer else ""
    lines = [f"{headline}\n"]
    for shown, err in enumerate(errors):
        line = f"- {err}"
        rest = len(errors) - shown - 1
        more = f"\n... and {rest} more" if rest else ""
        if len("\n".join(lines + [line])) + len(more) + len(tail) > PUSHOVER_MESSAGE_LIMIT:
            lines.append(f"... and {len(errors) - shown} more")
            break
        lines.append(line)
    return ("\n".join(lines) + tail)[:PUSHOVER_MESSAGE_LIMIT]


def send_error_notification(message: str, title: str = "CTF Rankings Error") -> bool:
    """Send an error notification via Pushover.

    Reads PUSHOVER_USER_KEY and PUSHOVER_API_TOKEN from environment.
    Returns True if sent, False if credentials missing or send failed.
    """
    user_key = os.environ.get("PUSHOVER_USER_KEY", "")
    api_token = os.environ.get("PUSHOVER_API_TOKEN", "")

    if not user_key or not api_token:
        print("  Pushover not configured, skipping alert")
        return False

    try:
        resp = requests.post(
            PUSHOVER_URL,
            data={
                "token": api_token,
                "user": user_key,
                "title": title,
                "message": message[:PUSHOVER_MESSAGE_LIMIT],
            },
            timeout=10,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        print(f"  Failed to send alert: {e}")
        return False

    print(f"  Alert sent: {title}")
    return True
