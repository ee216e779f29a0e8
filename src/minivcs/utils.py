"""Utility functions for minivcs."""

import time
from datetime import datetime, timezone
from typing import Optional


def format_timestamp(timestamp: int) -> str:
    """Format a unix timestamp for display (UTC).

    Examples:
        1700000000 -> "2023-11-14 22:13:20"
    """
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def humanize_age(timestamp: int, now: Optional[float] = None) -> str:
    """Convert a unix timestamp to human-readable relative time.

    Examples:
        now - 30    -> "just now"
        now - 7200  -> "2 hours ago"
    """
    if now is None:
        now = time.time()
    seconds = now - timestamp

    if seconds < 60:
        return "just now"
    elif seconds < 3600:  # Less than 1 hour
        minutes = int(seconds / 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    elif seconds < 86400:  # Less than 1 day
        hours = int(seconds / 3600)
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    elif seconds < 2592000:  # Less than 30 days
        days = int(seconds / 86400)
        return f"{days} day{'s' if days != 1 else ''} ago"
    elif seconds < 31536000:  # Less than 1 year
        months = int(seconds / 2592000)
        return f"{months} month{'s' if months != 1 else ''} ago"
    else:
        years = int(seconds / 31536000)
        return f"{years} year{'s' if years != 1 else ''} ago"
