"""
garden_service.py — Garden engine for one user
Holds the in-memory garden (the source of truth), runs every user action through
the task/focus/achievement services, then updates streaks, requests attestation
and persists. All collaborators are injected; nothing here is a module singleton.
"""

import logging
import random
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Callable

import config
from errors import AttestationError, NotFoundError, PersistenceError, ValidationError
from schemas import (
    SESSION_MOODS,
    WEATHERS,
    Achievement,
    FocusSession,
    FocusSettings,
    GardenState,
    Identity,
    Plant,
    Position,
    Profile,
    Task,
    WeeklyChallenge,
)
from services.achievement_service import AchievementService
from services.attestation_service import AttestationProvider
from services.challenge_service import ChallengeService
from services.focus_service import FocusService, FocusTimer
from services.stats_service import StatsService
from services.storage_service import GardenStore, decode_collection, encode_collection
from services.task_service import TaskService
from services.timer_service import ManualTicker

logger = logging.getLogger(__name__)

STATE_KEYS = ("tasks", "plants", "sessions", "profile", "achievements", "settings", "challenges")


def local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


def sample_garden(profile: Profile, now: datetime) -> GardenState:
    """Starter garden shown on first run."""
    review_done = now - timedelta(hours=2)
    tasks = [
        Task(id=str(uuid.uuid4()), title="Morning workout", description="Complete 30-minute cardio session",
             priority="high", category="health", plant_type="tree", compost_reward=15,
             created_at=now, updated_at=now, due_date=now + timedelta(hours=2)),
        Task(id=str(uuid.uuid4()), title="Review project proposal", description="Read through and provide feedback",
             priority="medium", category="work", status="completed", plant_type="flower", compost_reward=10,
             created_at=now - timedelta(days=1), updated_at=review_done, completed_at=review_done,
             credited_compost=10),
        Task(id=str(uuid.uuid4()), title="Call mom", description="Weekly check-in call",
             priority="low", category="personal", plant_type="sprout", compost_reward=5,
             created_at=now, updated_at=now),
    ]
    plants = [
        Plant(id=str(uuid.uuid4()), task_id=tasks[1].id, type="flower", growth=90,
              position=Position(x=200, y=300), planted_at=review_done),
    ]
    profile.compost = 128
    profile.lifetime_compost = 128
    profile.tasks_completed = 1
    profile.plants_grown = 1
    return GardenState(tasks=tasks, plants=plants, profile=profile)


class GardenEngine:
    def __init__(
        self,
        user_id: str,
        store: GardenStore,
        attestation: AttestationProvider | None = None,
        ticker=None,
        clock: Callable[[], datetime] = None,
        rng: random.Random = None,
        identity: Identity | None = None,
        social_counter: Callable[[str], int] = None,
        seed_sample_data: bool = None,
    ):
        self.user_id = user_id
        self.store = store
        self.attestation = attestation
        self.ticker = ticker or ManualTicker()
        self.clock = clock or local_now
        self.rng = rng or random.Random()
        self.identity = identity or Identity(user_id=user_id)
        self.social_counter = social_counter
        self.seed_sample_data = config.SEED_SAMPLE_DATA if seed_sample_data is None else seed_sample_data

        self.garden = self._default_garden()
        self.timer = FocusTimer(self.garden.settings)
        self._pending_mood = "focused"
        self._pending_notes: str | None = None
        self._saved: dict[str, dict] = {}

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _default_profile(self) -> Profile:
        return Profile(
            user_id=self.user_id,
            display_name=self.identity.display_name,
            avatar_url=self.identity.avatar_url,
        )

    def _default_garden(self) -> GardenState:
        return GardenState(profile=self._default_profile(),
                           achievements=AchievementService.merge_catalog([]))

    def load(self) -> GardenState:
        """Read every collection; anything missing or unreadable falls back to defaults."""
        loaded = {}
        for key in STATE_KEYS:
            try:
                payload = self.store.load(self.user_id, key)
                if payload is not None:
                    loaded[key] = decode_collection(key, payload)
                    self._saved[key] = payload
            except PersistenceError as e:
                logger.warning("Could not load %s for %s, using defaults: %s", key, self.user_id, e)

        if "tasks" not in loaded and self.seed_sample_data:
            garden = sample_garden(self._default_profile(), self.clock())
        else:
            garden = GardenState(
                tasks=loaded.get("tasks", []),
                plants=loaded.get("plants", []),
                sessions=loaded.get("sessions", []),
                profile=loaded.get("profile") or self._default_profile(),
                settings=loaded.get("settings") or FocusSettings(),
            )
        garden.achievements = AchievementService.merge_catalog(loaded.get("achievements", []))
        garden.challenges = loaded.get("challenges", [])

        # Identity fields are read-only inputs and always win over stored copies
        garden.profile.display_name = self.identity.display_name
        garden.profile.avatar_url = self.identity.avatar_url

        self.garden = garden
        self.timer = FocusTimer(garden.settings)
        self._expire_streak()
        return garden

    def save(self) -> bool:
        """Write changed collections. On failure the in-memory garden stays authoritative."""
        ok = True
        values = {
            "tasks": self.garden.tasks,
            "plants": self.garden.plants,
            "sessions": self.garden.sessions,
            "profile": self.garden.profile,
            "achievements": self.garden.achievements,
            "settings": self.garden.settings,
            "challenges": self.garden.challenges,
        }
        for key, value in values.items():
            payload = encode_collection(key, value)
            if self._saved.get(key) == payload:
                continue
            try:
                self.store.save(self.user_id, key, payload)
                self._saved[key] = payload
            except PersistenceError as e:
                ok = False
                logger.warning("Saving %s for %s failed, will retry on next change: %s", key, self.user_id, e)
        return ok

    def _commit(self):
        profile = self.garden.profile
        profile.level = 1 + profile.lifetime_compost // config.COMPOST_PER_LEVEL
        self.save()

    # ------------------------------------------------------------------
    # Side effects shared by several actions
    # ------------------------------------------------------------------
    def _record_activity(self, day: date):
        profile = self.garden.profile
        if profile.last_active_on == day:
            return
        if profile.last_active_on == day - timedelta(days=1):
            profile.current_streak += 1
        else:
            profile.current_streak = 1
        profile.last_active_on = day
        profile.longest_streak = max(profile.longest_streak, profile.current_streak)

    def _attest(self, kind: str, record: Task | FocusSession | Achievement):
        if self.attestation is None:
            return
        try:
            record.proof_handle = self.attestation.attest(kind, record.model_dump(mode="json"))
            record.verified = True
        except AttestationError as e:
            logger.warning("Attestation of %s %s failed: %s", kind, record.id, e)

    def _expire_streak(self):
        """A streak whose last active day is before yesterday is already broken."""
        profile = self.garden.profile
        today = self.clock().date()
        if profile.last_active_on is not None and profile.last_active_on < today - timedelta(days=1):
            profile.current_streak = 0

    def evaluate_challenges(self) -> list[WeeklyChallenge]:
        self._expire_streak()
        completed = ChallengeService.evaluate(self.garden, self.clock())
        if completed:
            self._commit()
        return completed

    def evaluate_achievements(self) -> list[Achievement]:
        interactions = self.social_counter(self.user_id) if self.social_counter else 0
        metrics = StatsService.metrics(self.garden, interactions)
        unlocked = AchievementService.evaluate(self.garden, metrics, self.clock())
        for achievement in unlocked:
            self._attest("achievement", achievement)
        if unlocked:
            self._commit()
        return unlocked

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def list_tasks(self, view: str = "all") -> list[Task]:
        views = {
            "all": lambda g: list(g.tasks),
            "pending": TaskService.pending,
            "completed": TaskService.completed,
            "archived": TaskService.archived,
        }
        if view not in views:
            raise ValidationError(f"Invalid view: {view!r}")
        return views[view](self.garden)

    def get_task(self, task_id: str) -> Task:
        return TaskService.get(self.garden, task_id)

    def create_task(self, data: dict) -> Task:
        task = TaskService.create(self.garden, data, self.clock())
        self._commit()
        return task

    def update_task(self, task_id: str, data: dict) -> Task:
        task = TaskService.update(self.garden, task_id, data, self.clock())
        self._commit()
        return task

    def complete_task(self, task_id: str) -> Task:
        """Idempotent: completing an already completed task credits nothing."""
        now = self.clock()
        plant = TaskService.complete(self.garden, task_id, now, self.rng)
        task = TaskService.get(self.garden, task_id)
        if plant is not None:
            self._record_activity(now.date())
            self._attest("task", task)
            self._commit()
            self.evaluate_challenges()
            self.evaluate_achievements()
        return task

    def toggle_task_completion(self, task_id: str) -> Task:
        task = TaskService.get(self.garden, task_id)
        if task.status == "archived":
            raise ValidationError("Archived tasks cannot be toggled")
        if task.status == "pending":
            return self.complete_task(task_id)
        task = TaskService.uncomplete(self.garden, task_id, self.clock())
        self._commit()
        return task

    def archive_task(self, task_id: str) -> Task:
        task = TaskService.archive(self.garden, task_id, self.clock())
        self._commit()
        return task

    def delete_task(self, task_id: str) -> Task:
        task = TaskService.delete(self.garden, task_id)
        self._commit()
        return task

    # ------------------------------------------------------------------
    # Focus timer
    # ------------------------------------------------------------------
    def _sync_ticker(self):
        if self.timer.is_running:
            if not self.ticker.active:
                self.ticker.start(self.tick)
        else:
            self.ticker.stop()

    def timer_state(self) -> dict:
        state = self.timer.snapshot()
        state["mood"] = self._pending_mood
        state["notes"] = self._pending_notes
        return state

    def start_focus(self, mode: str | None = None, task_id: str | None = None) -> dict:
        if task_id is not None:
            TaskService.get(self.garden, task_id)
        self.timer.start(self.clock(), mode=mode, task_id=task_id)
        self._pending_mood = "focused"
        self._pending_notes = None
        self._sync_ticker()
        return self.timer_state()

    def pause_focus(self) -> dict:
        self.timer.pause()
        self._sync_ticker()
        return self.timer_state()

    def resume_focus(self) -> dict:
        self.timer.resume()
        self._sync_ticker()
        return self.timer_state()

    def reset_focus(self) -> dict:
        self.timer.reset()
        self._sync_ticker()
        return self.timer_state()

    def record_distraction(self) -> dict:
        self.timer.record_distraction()
        return self.timer_state()

    def annotate_focus(self, mood: str | None = None, notes: str | None = None) -> dict:
        """Mood/notes for the session currently on the clock."""
        if mood is not None:
            if mood not in SESSION_MOODS:
                raise ValidationError(f"Invalid mood: {mood!r}")
            self._pending_mood = mood
        if notes is not None:
            self._pending_notes = notes
        return self.timer_state()

    def tick(self) -> FocusSession | None:
        """One second of wall-clock time. Returns the session finalized by this tick, if any."""
        if not self.timer.tick():
            self._sync_ticker()
            return None

        now = self.clock()
        finished_mode = self.timer.mode
        session = FocusService.finalize(self.garden, self.timer, now,
                                        mood=self._pending_mood, notes=self._pending_notes)
        self._pending_mood = "focused"
        self._pending_notes = None

        if session is not None:
            self._record_activity(now.date())
            self._attest("focus_session", session)
        if finished_mode == "focus" and self.garden.settings.auto_start_breaks:
            self.timer.start(now)
        self._commit()
        if session is not None:
            self.evaluate_challenges()
            self.evaluate_achievements()
        self._sync_ticker()
        return session

    def manual_tick(self) -> FocusSession | None:
        """A client-driven second; only allowed when no server-side ticker owns the timer."""
        if not isinstance(self.ticker, ManualTicker):
            raise ValidationError("The focus timer is driven by the server clock")
        return self.tick()

    def list_sessions(self) -> list[FocusSession]:
        return list(self.garden.sessions)

    def update_session(self, session_id: str, data: dict) -> FocusSession:
        session = FocusService.update_session(self.garden, session_id, data)
        self._commit()
        return session

    def delete_session(self, session_id: str) -> FocusSession:
        session = FocusService.delete_session(self.garden, session_id)
        self._commit()
        return session

    def update_settings(self, data: dict) -> FocusSettings:
        settings = FocusService.update_settings(self.garden, self.timer, data)
        self._commit()
        return settings

    # ------------------------------------------------------------------
    # Garden & profile
    # ------------------------------------------------------------------
    def get_plant(self, plant_id: str) -> Plant:
        for plant in self.garden.plants:
            if plant.id == plant_id:
                return plant
        raise NotFoundError("plant", plant_id)

    def water_plant(self, plant_id: str) -> Plant:
        plant = self.get_plant(plant_id)
        plant.last_watered = self.clock()
        plant.health = 100
        self._commit()
        return plant

    def set_weather(self, weather: str) -> Profile:
        if weather not in WEATHERS:
            raise ValidationError(f"Invalid weather: {weather!r}")
        self.garden.profile.weather = weather
        self._commit()
        return self.garden.profile

    def spend_compost(self, amount: int) -> Profile:
        profile = self.garden.profile
        if not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Amount must be a positive integer")
        if amount > profile.compost:
            raise ValidationError(f"Not enough compost: have {profile.compost}, need {amount}")
        profile.compost -= amount
        self._commit()
        return profile

    def buy_rare_seed(self) -> Profile:
        profile = self.spend_compost(config.RARE_SEED_COST)
        profile.rare_seeds += 1
        self._commit()
        logger.info("Rare seed bought by %s", self.user_id)
        return profile

    def profile(self) -> Profile:
        self._expire_streak()
        return self.garden.profile

    def stats(self) -> dict:
        self._expire_streak()
        return StatsService.summary(self.garden, self.clock())

    def challenges(self) -> list[dict]:
        """This week's challenges with the caller's progress."""
        self.evaluate_challenges()
        return ChallengeService.listing(self.garden, self.clock())

    def achievements(self) -> list[dict]:
        interactions = self.social_counter(self.user_id) if self.social_counter else 0
        metrics = StatsService.metrics(self.garden, interactions)
        result = []
        for achievement in self.garden.achievements:
            data = achievement.model_dump(mode="json")
            data["progress"] = AchievementService.progress(achievement, metrics)
            result.append(data)
        return result
