from __future__ import annotations

from datetime import datetime


def parse_iso8601(dt_str: str) -> datetime:
    # GitHub uses e.g. 2024-01-01T00:00:00Z
    if dt_str.endswith("Z"):
        dt_str = dt_str[:-1] + "+00:00"
    return datetime.fromisoformat(dt_str)


def isoformat_z(moment: datetime) -> str:
    """Format an aware UTC datetime the way the GitHub API expects it."""
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
