"""Data models for learning goals and day statuses."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DayStatus(str, Enum):
    """What happened on a given day."""

    LEARNED = "learned"
    FREEZED = "freezed"


class Duration(str, Enum):
    """How long the user commits to a topic."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def freezes(self) -> int:
        """Freeze quota for the whole duration."""
        return FREEZE_QUOTAS[self]


FREEZE_QUOTAS = {
    Duration.WEEK: 2,
    Duration.MONTH: 8,
    Duration.YEAR: 96,
}


class GoalDefinition(BaseModel):
    """A learning goal handed to the streak engine.

    Target days and freeze quota are fixed for the goal's lifetime; a new
    duration means a new definition.
    """

    model_config = ConfigDict(frozen=True)

    topic: str = ""
    duration: Duration
    start_date: datetime
    target_days: int = Field(ge=1)
    allowed_freezes: int = Field(ge=0)

    @field_validator("topic")
    @classmethod
    def _strip_topic(cls, value: str) -> str:
        return value.strip()

    @property
    def scope(self) -> str:
        """Persistence scope for this goal's history and scalars."""
        whole = int(self.start_date.replace(microsecond=0).timestamp())
        return f"goal-{whole}{self.start_date.microsecond:06d}"
