"""
Formatting utilities for display.

Used by the research service and the CLI scripts.
"""

from datetime import timedelta


def format_duration(value: timedelta | int | None) -> str | None:
    """
    Format a finish time as 'H:MM:SS' (or 'M:SS' under an hour).

    Args:
        value: timedelta or whole seconds

    Returns:
        Formatted string, e.g. 15285 -> '4:14:45', 553 -> '9:13'
    """
    if value is None:
        return None
    seconds = int(value.total_seconds()) if isinstance(value, timedelta) else int(value)
    if seconds < 0:
        return None

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def pace_per_mile(finish_time: timedelta | None, distance_miles: float) -> int | None:
    """Average seconds per mile, rounded to the nearest second."""
    if finish_time is None or distance_miles <= 0:
        return None
    return int(round(finish_time.total_seconds() / distance_miles))


def format_pace(pace_seconds: int | None) -> str | None:
    """
    Format pace as 'M:SS' (no unit).

    Args:
        pace_seconds: Seconds per mile

    Returns:
        Formatted string (e.g., '9:43')
    """
    if pace_seconds is None:
        return None
    minutes, seconds = divmod(pace_seconds, 60)
    return f"{minutes}:{seconds:02d}"
