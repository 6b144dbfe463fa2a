"""Request and response models for the activity API."""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from ..goals.models import DayStatus, Duration, GoalDefinition
from ..streak.models import DerivedViewState


class GoalRequest(BaseModel):
    """Body for starting or updating a goal."""

    topic: str = ""
    duration: Duration = Duration.WEEK


class DayRequest(BaseModel):
    """Body for intents that target a day."""

    day: Optional[date] = None


class GoalPreview(BaseModel):
    """What a goal would look like before confirming it."""

    topic: str
    duration: Duration
    target_days: int
    allowed_freezes: int


class ActivityResponse(BaseModel):
    """Everything the activity screen renders."""

    goal: GoalDefinition
    topic_display: str
    state: DerivedViewState
    applied: Optional[bool] = None  # set for record intents


class DayStatusResponse(BaseModel):
    day: date
    status: Optional[DayStatus] = None


class HistoryResponse(BaseModel):
    """Day map for calendar views, keyed by ISO date."""

    days: dict[date, DayStatus]
