"""Main FastAPI application."""

import logging
import threading
from datetime import date, datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from .api.models import (
    ActivityResponse,
    DayRequest,
    DayStatusResponse,
    GoalPreview,
    GoalRequest,
    HistoryResponse,
)
from .api.session import LearningSession, topic_display
from .config import settings
from .goals.models import Duration, GoalDefinition
from .storage.store import SQLiteDayHistoryStore
from .streak.engine import StreakEngine

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="Learning Journey",
    description="Daily learning streak tracker with freeze days",
    version=VERSION,
)

_session: Optional[LearningSession] = None
_session_lock = threading.Lock()


def get_session() -> LearningSession:
    """Lazily open the session on the configured database."""
    global _session
    with _session_lock:
        if _session is None:
            _session = LearningSession(SQLiteDayHistoryStore(settings.db_path))
    return _session


def require_engine(session: LearningSession) -> StreakEngine:
    if session.engine is None:
        raise HTTPException(status_code=404, detail="No active learning goal")
    return session.engine


def activity_response(engine: StreakEngine, applied: Optional[bool] = None) -> ActivityResponse:
    return ActivityResponse(
        goal=engine.goal,
        topic_display=topic_display(engine.goal.topic),
        state=engine.view_state,
        applied=applied,
    )


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Learning Journey",
        "version": VERSION,
        "endpoints": {
            "goal": "/api/goal",
            "preview": "/api/goal/preview",
            "activity": "/api/activity",
            "history": "/api/activity/history",
            "status": "/status",
        },
    }


@app.get("/status")
def status(session: LearningSession = Depends(get_session)):
    """Server status endpoint."""
    return {
        "status": "running",
        "version": VERSION,
        "timestamp": datetime.now().isoformat(),
        "db_path": settings.db_path,
        "has_goal": session.goal is not None,
    }


# Goal ----------------------------------------------------------------


@app.get("/api/goal/preview", response_model=GoalPreview)
def preview_goal(
    topic: str = "",
    duration: Duration = Duration.WEEK,
    session: LearningSession = Depends(get_session),
):
    """Target days and freezes for a duration before committing to it."""
    goal = session.planner.preview(topic, duration)
    return GoalPreview(
        topic=goal.topic,
        duration=goal.duration,
        target_days=goal.target_days,
        allowed_freezes=goal.allowed_freezes,
    )


@app.get("/api/goal", response_model=GoalDefinition)
def get_goal(session: LearningSession = Depends(get_session)):
    with session.lock:
        return require_engine(session).goal


@app.post("/api/goal", response_model=ActivityResponse, status_code=201)
def start_goal(body: GoalRequest, session: LearningSession = Depends(get_session)):
    """Start a new goal from today."""
    with session.lock:
        engine = session.start_goal(body.topic, body.duration)
        return activity_response(engine)


@app.put("/api/goal", response_model=ActivityResponse)
def update_goal(body: GoalRequest, session: LearningSession = Depends(get_session)):
    """
    Change topic and/or duration of the active goal.

    The goal restarts from today with an empty history.
    """
    with session.lock:
        require_engine(session)
        engine = session.update_goal(body.topic, body.duration)
        return activity_response(engine)


# Activity ------------------------------------------------------------


@app.get("/api/activity", response_model=ActivityResponse)
def get_activity(session: LearningSession = Depends(get_session)):
    """Current activity view; re-checks staleness like coming back to the app."""
    with session.lock:
        engine = require_engine(session)
        engine.resume()
        return activity_response(engine)


@app.post("/api/activity/select", response_model=ActivityResponse)
def select_day(body: DayRequest, session: LearningSession = Depends(get_session)):
    with session.lock:
        engine = require_engine(session)
        engine.select_date(body.day or engine.clock().date())
        return activity_response(engine)


@app.post("/api/activity/learned", response_model=ActivityResponse)
def mark_learned(
    body: Optional[DayRequest] = None,
    session: LearningSession = Depends(get_session),
):
    """Log the selected day (or `day`) as learned."""
    with session.lock:
        engine = require_engine(session)
        applied = engine.record_learned(body.day if body else None)
        return activity_response(engine, applied=applied)


@app.post("/api/activity/freezed", response_model=ActivityResponse)
def mark_freezed(
    body: Optional[DayRequest] = None,
    session: LearningSession = Depends(get_session),
):
    """Spend a freeze on the selected day (or `day`)."""
    with session.lock:
        engine = require_engine(session)
        applied = engine.record_freezed(body.day if body else None)
        return activity_response(engine, applied=applied)


@app.post("/api/activity/reset", response_model=ActivityResponse)
def reset_goal(session: LearningSession = Depends(get_session)):
    """Keep topic and duration, drop all logged days."""
    with session.lock:
        engine = require_engine(session)
        engine.reset_same_goal()
        return activity_response(engine)


@app.get("/api/activity/days/{day}", response_model=DayStatusResponse)
def day_status(day: date, session: LearningSession = Depends(get_session)):
    with session.lock:
        engine = require_engine(session)
        return DayStatusResponse(day=day, status=engine.status_for(day))


@app.get("/api/activity/history", response_model=HistoryResponse)
def history(session: LearningSession = Depends(get_session)):
    """All logged days, for calendar views."""
    with session.lock:
        engine = require_engine(session)
        return HistoryResponse(days=engine.history)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
