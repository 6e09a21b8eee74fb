"""
Entry table module

The table itself is supplied by the caller; see entries_from_frame.
"""

from .entries import (
    HistoricalEntry,
    RaceDay,
    Role,
    actual_points,
    available_dates,
    entries_for_date,
    entries_from_frame,
    entries_to_frame,
    horse_id,
    matches,
)

__all__ = [
    "HistoricalEntry",
    "RaceDay",
    "Role",
    "actual_points",
    "available_dates",
    "entries_for_date",
    "entries_from_frame",
    "entries_to_frame",
    "horse_id",
    "matches",
]
