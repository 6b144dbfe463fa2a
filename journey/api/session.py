"""Process-wide learning session backing the API."""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from ..goals.models import Duration, GoalDefinition
from ..goals.planner import GoalPlanner
from ..storage.store import SQLiteDayHistoryStore
from ..streak.engine import StreakEngine

logger = logging.getLogger(__name__)


def topic_display(topic: str) -> str:
    """Topic as shown in "Learning ..." headings."""
    return topic.lower() if topic else "something"


class LearningSession:
    """Active goal plus the engine tracking it.

    Sync routes run in a thread pool, so callers hold `lock` around any
    engine access.
    """

    def __init__(
        self,
        store: SQLiteDayHistoryStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.planner = GoalPlanner(store, clock=clock)
        self.lock = threading.Lock()
        self.engine: Optional[StreakEngine] = None

        goal = self.planner.active_goal()
        if goal is not None:
            logger.info(f"Restoring goal '{goal.topic}' started {goal.start_date:%Y-%m-%d}")
            self.engine = self.planner.engine_for(goal)

    @property
    def goal(self) -> Optional[GoalDefinition]:
        return self.engine.goal if self.engine else None

    def start_goal(self, topic: str, duration: Duration) -> StreakEngine:
        goal = self.planner.start_goal(topic, duration)
        self.engine = self.planner.engine_for(goal)
        return self.engine

    def update_goal(self, topic: str, duration: Duration) -> StreakEngine:
        goal = self.planner.update_goal(topic, duration)
        self.engine = self.planner.engine_for(goal)
        return self.engine
