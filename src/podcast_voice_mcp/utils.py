"""Utility functions."""


def format_timestamp(ms: int) -> str:
    """Format milliseconds as M:SS (minutes are not wrapped into hours)."""
    total_seconds = int(ms) // 1000
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    return f"{minutes}:{seconds:02d}"
