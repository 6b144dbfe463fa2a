"""Streak and freeze derivation for the active learning goal."""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from ..config import settings
from ..goals.models import DayStatus, GoalDefinition
from ..storage.codec import to_day
from ..storage.store import DayHistoryStore
from .models import DerivedViewState, ScalarState

logger = logging.getLogger(__name__)

DayLike = Union[date, datetime]


class StreakEngine:
    """Owns the day history of one goal and derives streak state from it.

    Every operation runs to completion synchronously and never raises.
    Attempts that break a precondition (day already logged, no freezes
    left) are refused silently and leave state untouched.
    """

    def __init__(
        self,
        goal: GoalDefinition,
        store: DayHistoryStore,
        clock: Callable[[], datetime] = datetime.now,
        staleness_hours: Optional[float] = None,
    ):
        """
        Load persisted state for a goal.

        Args:
            goal: Goal being tracked
            store: Persistence port for history and scalars
            clock: Returns the current local time
            staleness_hours: Idle time before the cached streak is zeroed
        """
        self.goal = goal
        self.store = store
        self.clock = clock
        self.staleness = timedelta(
            hours=settings.staleness_hours if staleness_hours is None else staleness_hours
        )

        self._scalars: ScalarState = store.load_scalars()
        self._history: dict[date, DayStatus] = store.load_history()
        self._selected: date = self._today()
        self.view_state = DerivedViewState(selected_date=self._selected)

        logger.info(
            f"Loaded {len(self._history)} days for '{goal.topic}' "
            f"({goal.duration.value}, target {goal.target_days})"
        )

        self.resume()

    # Intents ---------------------------------------------------------

    def resume(self):
        """Re-derive state when the activity becomes visible again."""
        self._apply_staleness_guard()
        self._recompute()

    def select_date(self, day: DayLike):
        """Change the selected day; history is not touched."""
        self._selected = to_day(day)
        self._recompute()

    def record_learned(self, day: Optional[DayLike] = None) -> bool:
        """
        Mark a day as learned.

        Args:
            day: Day to mark, the selected day if omitted

        Returns:
            True if recorded, False if the day already had a status
        """
        target = self._selected if day is None else to_day(day)
        if self.status_for(target) is not None:
            logger.debug(f"Refusing learned on {target}: already {self.status_for(target).value}")
            return False

        self._record(target, DayStatus.LEARNED)
        return True

    def record_freezed(self, day: Optional[DayLike] = None) -> bool:
        """
        Spend a freeze on a day.

        Args:
            day: Day to mark, the selected day if omitted

        Returns:
            True if recorded, False if no freezes remain or the day is taken
        """
        target = self._selected if day is None else to_day(day)
        if self.view_state.remaining_freezes <= 0:
            logger.debug(f"Refusing freeze on {target}: quota exhausted")
            return False
        if self.status_for(target) is not None:
            logger.debug(f"Refusing freeze on {target}: already {self.status_for(target).value}")
            return False

        self._record(target, DayStatus.FREEZED)
        return True

    def reset_same_goal(self):
        """Start the same goal over with an empty history."""
        self._scalars = ScalarState()
        self._history.clear()
        self._flush()
        self._recompute()
        logger.info(f"Reset history for '{self.goal.topic}'")

    # Queries ---------------------------------------------------------

    def status_for(self, day: DayLike) -> Optional[DayStatus]:
        return self._history.get(to_day(day))

    @property
    def history(self) -> dict[date, DayStatus]:
        return dict(self._history)

    @property
    def selected_date(self) -> date:
        return self._selected

    @property
    def last_action_timestamp(self) -> float:
        return self._scalars.last_action_timestamp

    # Internals -------------------------------------------------------

    def _today(self) -> date:
        return self.clock().date()

    def _record(self, day: date, status: DayStatus):
        self._history[day] = status
        self._scalars.last_action_timestamp = self.clock().timestamp()
        self._flush()
        self._recompute()
        logger.info(f"Recorded {status.value} on {day} (streak {self.view_state.current_streak})")

    def _flush(self):
        self.store.save_history(self._history)
        self.store.save_scalars(self._scalars)

    def _compute_streak(self) -> int:
        """Consecutive learned days ending today.

        The walk stops at the first day that is not learned, so a freezed
        day ends the streak just like an empty one.
        """
        count = 0
        cursor = self._today()
        while self._history.get(cursor) is DayStatus.LEARNED:
            count += 1
            cursor -= timedelta(days=1)
        return count

    def _apply_staleness_guard(self) -> bool:
        """Zero the cached streak after a long idle period.

        Only the cached scalar is written; the next recompute derives the
        real value from history again.
        """
        last = self._scalars.last_action_timestamp
        if last <= 0:
            return False

        elapsed = self.clock().timestamp() - last
        if elapsed <= self.staleness.total_seconds():
            return False

        logger.info(f"No activity for {elapsed / 3600:.1f}h, clearing cached streak")
        self._scalars.streak = 0
        self.store.save_scalars(self._scalars)
        return True

    def _recompute(self):
        """Push derived streak, freeze and selection state into view_state."""
        streak = self._compute_streak()
        if streak != self._scalars.streak:
            self._scalars.streak = streak
            self.store.save_scalars(self._scalars)

        used = sum(1 for s in self._history.values() if s is DayStatus.FREEZED)
        remaining = max(0, self.goal.allowed_freezes - used)
        selected = self._history.get(self._selected)

        self.view_state = DerivedViewState(
            selected_date=self._selected,
            current_streak=streak,
            used_freezes=used,
            remaining_freezes=remaining,
            has_completed_goal=streak >= self.goal.target_days,
            is_selected_day_learned=selected is DayStatus.LEARNED,
            is_selected_day_freezed=selected is DayStatus.FREEZED,
            can_record_learned=selected is None,
            can_record_freezed=selected is None and remaining > 0,
        )
