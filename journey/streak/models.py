"""Snapshots produced by the streak engine."""

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel


@dataclass
class ScalarState:
    """Cached scalars persisted alongside the day history."""
    streak: int = 0
    last_action_timestamp: float = 0.0  # epoch seconds, 0 = never


class DerivedViewState(BaseModel):
    """Read-only view of the engine for presentation."""

    selected_date: date
    current_streak: int = 0
    used_freezes: int = 0
    remaining_freezes: int = 0
    has_completed_goal: bool = False

    # Selected day
    is_selected_day_learned: bool = False
    is_selected_day_freezed: bool = False
    can_record_learned: bool = True
    can_record_freezed: bool = True
