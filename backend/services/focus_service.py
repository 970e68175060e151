"""
focus_service.py — Pomodoro focus sessions
FocusTimer is the single countdown (idle -> running <-> paused -> completed).
FocusService turns a finished focus interval into rewards and keeps session history.
"""

import logging
import uuid
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

import config
from errors import NotFoundError, ValidationError
from schemas import FOCUS_MODES, SESSION_MOODS, FocusSession, FocusSettings, GardenState

logger = logging.getLogger(__name__)

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"
COMPLETED = "completed"


class FocusTimer:
    """One countdown at a time. Knows nothing about rewards."""

    def __init__(self, settings: FocusSettings):
        self.settings = settings
        self.mode = "focus"
        self.state = IDLE
        self.planned = settings.seconds_for(self.mode)
        self.remaining = self.planned
        self.task_id: str | None = None
        self.started_at: datetime | None = None
        self.distractions = 0

    @property
    def configured(self) -> int:
        """Length of the current interval, fixed when it starts."""
        return self.planned

    @property
    def elapsed(self) -> int:
        return self.configured - self.remaining

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING

    def start(self, now: datetime, mode: str | None = None, task_id: str | None = None):
        if self.state in (RUNNING, PAUSED):
            raise ValidationError("A focus session is already active")
        if mode is not None:
            if mode not in FOCUS_MODES:
                raise ValidationError(f"Invalid mode: {mode!r}")
            self.mode = mode
        self.planned = self.settings.seconds_for(self.mode)
        self.remaining = self.planned
        self.task_id = task_id if self.mode == "focus" else None
        self.started_at = now
        self.distractions = 0
        self.state = RUNNING

    def tick(self) -> bool:
        """Advance one second. Returns True when this tick finished the interval."""
        if self.state != RUNNING:
            return False
        self.remaining = max(0, self.remaining - 1)
        if self.remaining == 0:
            self.state = COMPLETED
            return True
        return False

    def pause(self):
        if self.state != RUNNING:
            raise ValidationError("Timer is not running")
        self.state = PAUSED

    def resume(self):
        if self.state != PAUSED:
            raise ValidationError("Timer is not paused")
        self.state = RUNNING

    def reset(self):
        """Back to the configured length for the current mode; the partial session is dropped."""
        self.state = IDLE
        self.planned = self.settings.seconds_for(self.mode)
        self.remaining = self.planned
        self.task_id = None
        self.started_at = None
        self.distractions = 0

    def switch_to(self, mode: str):
        self.mode = mode
        self.reset()

    def record_distraction(self) -> int:
        if self.state not in (RUNNING, PAUSED):
            raise ValidationError("No active focus session")
        self.distractions += 1
        return self.distractions

    def snapshot(self) -> dict:
        return {
            "mode": self.mode,
            "state": self.state,
            "remaining": self.remaining,
            "configured": self.configured,
            "task_id": self.task_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "distractions": self.distractions,
        }


def focus_score(distractions: int) -> int:
    return max(0, 100 - distractions * 10)


def compost_for(duration_seconds: int) -> int:
    return (duration_seconds // 60) * config.COMPOST_PER_FOCUS_MINUTE


class FocusService:
    @staticmethod
    def finalize(garden: GardenState, timer: FocusTimer, now: datetime,
                 mood: str = "focused", notes: str | None = None) -> FocusSession | None:
        """
        Close out a completed interval and pick the next mode.
        Focus intervals pay out compost and grow every plant; breaks pay nothing.
        """
        if timer.state != COMPLETED:
            raise ValidationError("Timer has not completed")

        if timer.mode != "focus":
            timer.switch_to("focus")
            return None

        duration = timer.elapsed
        session = FocusSession(
            id=str(uuid.uuid4()),
            task_id=timer.task_id,
            duration=duration,
            planned_duration=timer.configured,
            start_time=timer.started_at or now - timedelta(seconds=duration),
            end_time=now,
            distractions_count=timer.distractions,
            focus_score=focus_score(timer.distractions),
            compost_earned=compost_for(duration),
            plant_growth_contributed=config.FOCUS_PLANT_GROWTH,
            mood=mood,
            notes=notes,
        )

        profile = garden.profile
        profile.compost += session.compost_earned
        profile.lifetime_compost += session.compost_earned
        profile.focus_sessions_completed += 1
        profile.total_focus_seconds += duration

        FocusService.grow_plants(garden, session.plant_growth_contributed)
        garden.sessions.insert(0, session)

        every = garden.settings.long_break_every
        next_mode = "long_break" if profile.focus_sessions_completed % every == 0 else "short_break"
        timer.switch_to(next_mode)

        logger.info(
            "Focus session finalized: %ds, score %d, +%d compost, next %s",
            duration, session.focus_score, session.compost_earned, next_mode,
        )
        return session

    @staticmethod
    def grow_plants(garden: GardenState, amount: int):
        for plant in garden.plants:
            plant.growth = max(0, min(100, plant.growth + amount))

    @staticmethod
    def get_session(garden: GardenState, session_id: str) -> FocusSession:
        for session in garden.sessions:
            if session.id == session_id:
                return session
        raise NotFoundError("session", session_id)

    @staticmethod
    def update_session(garden: GardenState, session_id: str, data: dict) -> FocusSession:
        """Only mood and notes are editable after the fact."""
        session = FocusService.get_session(garden, session_id)
        unknown = set(data) - {"mood", "notes"}
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        if "mood" in data and data["mood"] not in SESSION_MOODS:
            raise ValidationError(f"Invalid mood: {data['mood']!r}")
        for key, value in data.items():
            setattr(session, key, value)
        return session

    @staticmethod
    def delete_session(garden: GardenState, session_id: str) -> FocusSession:
        # Compost already credited for this session stays with the profile
        session = FocusService.get_session(garden, session_id)
        garden.sessions = [s for s in garden.sessions if s.id != session_id]
        return session

    @staticmethod
    def update_settings(garden: GardenState, timer: FocusTimer, data: dict) -> FocusSettings:
        try:
            settings = FocusSettings.model_validate({**garden.settings.model_dump(), **data})
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
        garden.settings = settings
        timer.settings = settings
        # An interval already on the clock keeps the length it started with
        if timer.state == IDLE:
            timer.reset()
        return settings
