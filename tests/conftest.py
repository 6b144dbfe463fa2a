"""Shared test fixtures."""

from datetime import date, datetime, timedelta

import pytest

from journey.goals.models import Duration
from journey.goals.planner import GoalPlanner
from journey.storage.store import SQLiteDayHistoryStore
from journey.streak.engine import StreakEngine

# Local noon keeps day arithmetic clear of midnight edges.
NOW = datetime(2026, 3, 18, 12, 0, 0)
TODAY = NOW.date()


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class RecordingStore(SQLiteDayHistoryStore):
    """SQLite store that remembers every scalar write."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.saved_streaks: list[int] = []

    def save_scalars(self, scalars):
        self.saved_streaks.append(scalars.streak)
        super().save_scalars(scalars)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "journey.db")


@pytest.fixture
def store(db_path):
    return SQLiteDayHistoryStore(db_path, scope="test")


@pytest.fixture
def planner(store, clock):
    return GoalPlanner(store, clock=clock)


@pytest.fixture
def week_goal(planner):
    return planner.build_goal("Swift", Duration.WEEK, NOW)


@pytest.fixture
def make_engine(store, clock, week_goal):
    """Build an engine over the shared store; call again to simulate a restart."""

    def _make(goal=week_goal, engine_store=store, **kwargs):
        return StreakEngine(goal, engine_store, clock=clock, **kwargs)

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
