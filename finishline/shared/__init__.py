"""
Shared utilities (NOT business logic).

Usage:
    from finishline.shared import format_duration
    from finishline.shared.formatters import format_pace
"""
from .formatters import (
    format_duration,
    format_pace,
    pace_per_mile,
)

__all__ = [
    "format_duration",
    "format_pace",
    "pace_per_mile",
]
