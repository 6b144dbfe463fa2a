"""Persistence boundary for day history and cached scalars."""

import logging
import math
import sqlite3
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from typing import Mapping, Optional

from pydantic import ValidationError

from ..goals.models import DayStatus, GoalDefinition
from ..streak.models import ScalarState
from .codec import decode_history, encode_history

logger = logging.getLogger(__name__)


class StorageKeys:
    """Keys in the preferences table."""

    CURRENT_STREAK = "currentStreak"
    LAST_ACTION_TIMESTAMP = "lastActionTimestamp"
    DAY_STATUSES_JSON = "dayStatusesJSON"
    GOAL_START_DATE = "goalStartDate"
    ACTIVE_GOAL = "activeGoal"


APP_SCOPE = "app"


class DayHistoryStore(ABC):
    """What the streak engine needs from persistence.

    Loads never raise and fall back to empty/zero state. Saves are best
    effort; the engine does not look at their outcome.
    """

    @abstractmethod
    def load_scalars(self) -> ScalarState:
        pass

    @abstractmethod
    def load_history(self) -> dict[date, DayStatus]:
        pass

    @abstractmethod
    def save_scalars(self, scalars: ScalarState) -> None:
        pass

    @abstractmethod
    def save_history(self, history: Mapping[date, DayStatus]) -> None:
        pass


class SQLiteDayHistoryStore(DayHistoryStore):
    """Key/value SQLite store, one row per (scope, key)."""

    def __init__(self, db_path: str = "data/journey.db", scope: str = "default"):
        """
        Initialize store.

        Args:
            db_path: SQLite file, created with its parent directory if missing
            scope: Namespace for history and scalars (one per goal)
        """
        self.db_path = Path(db_path)
        self.scope = scope
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Create the preferences table if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    scope TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (scope, key)
                )
            """)
            conn.commit()
        logger.debug(f"Store ready at {self.db_path} (scope {self.scope})")

    def scoped(self, scope: str) -> "SQLiteDayHistoryStore":
        """Store over the same database with another scope."""
        return SQLiteDayHistoryStore(str(self.db_path), scope=scope)

    # Day history + scalars -------------------------------------------

    def load_scalars(self) -> ScalarState:
        return ScalarState(
            streak=int(self._get_number(StorageKeys.CURRENT_STREAK)),
            last_action_timestamp=self._get_number(StorageKeys.LAST_ACTION_TIMESTAMP),
        )

    def load_history(self) -> dict[date, DayStatus]:
        payload = self._get(StorageKeys.DAY_STATUSES_JSON)
        if payload is None:
            return {}
        return decode_history(payload)

    def save_scalars(self, scalars: ScalarState) -> None:
        self._set(StorageKeys.CURRENT_STREAK, str(scalars.streak))
        self._set(
            StorageKeys.LAST_ACTION_TIMESTAMP, repr(float(scalars.last_action_timestamp))
        )

    def save_history(self, history: Mapping[date, DayStatus]) -> None:
        self._set(StorageKeys.DAY_STATUSES_JSON, encode_history(history))

    # Application fields ----------------------------------------------

    def load_goal_start_date(self) -> float:
        """Epoch seconds of the active goal's start, 0 if none."""
        return self._get_number(StorageKeys.GOAL_START_DATE, scope=APP_SCOPE)

    def save_goal_start_date(self, timestamp: float) -> None:
        self._set(StorageKeys.GOAL_START_DATE, repr(float(timestamp)), scope=APP_SCOPE)

    def load_active_goal(self) -> Optional[GoalDefinition]:
        payload = self._get(StorageKeys.ACTIVE_GOAL, scope=APP_SCOPE)
        if payload is None:
            return None
        try:
            return GoalDefinition.model_validate_json(payload)
        except ValidationError:
            logger.warning("Stored goal is unreadable, ignoring it")
            return None

    def save_active_goal(self, goal: GoalDefinition) -> None:
        self._set(StorageKeys.ACTIVE_GOAL, goal.model_dump_json(), scope=APP_SCOPE)

    # Raw access ------------------------------------------------------

    def _get(self, key: str, scope: Optional[str] = None) -> Optional[str]:
        """Read one value, None if absent or unreadable."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM preferences WHERE scope = ? AND key = ?",
                    (scope or self.scope, key),
                ).fetchone()
        except sqlite3.Error:
            logger.exception(f"Failed to read {key}")
            return None

        return row[0] if row else None

    def _get_number(self, key: str, scope: Optional[str] = None) -> float:
        raw = self._get(key, scope=scope)
        if raw is None:
            return 0.0
        try:
            value = float(raw)
        except ValueError:
            logger.warning(f"Non-numeric value for {key}: {raw!r}")
            return 0.0
        return value if math.isfinite(value) else 0.0

    def _set(self, key: str, value: str, scope: Optional[str] = None):
        """Upsert one value; failures are logged, not raised."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO preferences (scope, key, value, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(scope, key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (scope or self.scope, key, value, datetime.now().isoformat()),
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception(f"Failed to write {key}")
