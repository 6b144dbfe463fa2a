"""Goal setup: building goal definitions and the engines that track them."""

import calendar
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..storage.store import SQLiteDayHistoryStore
from ..streak.engine import StreakEngine
from .models import Duration, GoalDefinition

logger = logging.getLogger(__name__)


def compute_target_days(duration: Duration, start_date: datetime) -> int:
    """
    Number of learned days needed to finish a goal.

    Args:
        duration: Goal duration
        start_date: When the goal starts

    Returns:
        7 for a week, the length of the start month for a month, 365 for a year

    Example:
        month starting 2026-02-10 = 28
    """
    if duration is Duration.WEEK:
        return 7
    if duration is Duration.MONTH:
        return calendar.monthrange(start_date.year, start_date.month)[1]
    return 365


class GoalPlanner:
    """Creates and updates the active goal."""

    def __init__(
        self,
        store: SQLiteDayHistoryStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize planner.

        Args:
            store: Store holding the goal start date and active goal
            clock: Returns the current local time
        """
        self.store = store
        self.clock = clock

    def build_goal(self, topic: str, duration: Duration, start_date: datetime) -> GoalDefinition:
        return GoalDefinition(
            topic=topic,
            duration=duration,
            start_date=start_date,
            target_days=compute_target_days(duration, start_date),
            allowed_freezes=duration.freezes,
        )

    def preview(self, topic: str, duration: Duration) -> GoalDefinition:
        """Goal as it would look against the stored start date (or now)."""
        stored = self.store.load_goal_start_date()
        start_date = datetime.fromtimestamp(stored) if stored > 0 else self.clock()
        return self.build_goal(topic, duration, start_date)

    def start_goal(self, topic: str, duration: Duration) -> GoalDefinition:
        """Begin a brand-new goal starting now."""
        goal = self._activate(topic, duration)
        logger.info(
            f"Started goal '{goal.topic}' for a {goal.duration.value}: "
            f"{goal.target_days} days, {goal.allowed_freezes} freezes"
        )
        return goal

    def update_goal(self, topic: str, duration: Duration) -> GoalDefinition:
        """
        Replace the in-progress goal.

        The start date moves to now and the new goal gets its own scope, so
        the previous goal's history stays behind untouched.
        """
        previous = self.store.load_active_goal()
        goal = self._activate(topic, duration)
        if previous is not None:
            logger.info(
                f"Updated goal '{previous.topic}' ({previous.duration.value}) -> "
                f"'{goal.topic}' ({goal.duration.value}); "
                f"history in {previous.scope} left behind"
            )
        return goal

    def active_goal(self) -> Optional[GoalDefinition]:
        return self.store.load_active_goal()

    def engine_for(self, goal: GoalDefinition, **kwargs) -> StreakEngine:
        """Streak engine bound to the goal's own history."""
        return StreakEngine(goal, self.store.scoped(goal.scope), clock=self.clock, **kwargs)

    def _activate(self, topic: str, duration: Duration) -> GoalDefinition:
        now = self.clock()
        previous = self.store.load_active_goal()
        if previous is not None and now <= previous.start_date:
            # a new goal always gets a scope of its own
            now = previous.start_date + timedelta(microseconds=1)
        goal = self.build_goal(topic, duration, now)
        self.store.save_goal_start_date(now.timestamp())
        self.store.save_active_goal(goal)
        return goal
