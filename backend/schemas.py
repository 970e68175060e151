"""
schemas.py — Garden domain records
Typed pydantic models for tasks, plants, focus sessions, profile, achievements
and the social feed. These are also the serialization boundary for every store.
"""

from datetime import datetime, date
from typing import Literal, Optional

from pydantic import BaseModel, Field

import config

Priority = Literal["low", "medium", "high"]
Category = Literal["work", "personal", "health", "learning"]
TaskStatus = Literal["pending", "completed", "archived"]
PlantType = Literal["sprout", "sapling", "flower", "tree"]
FocusMode = Literal["focus", "short_break", "long_break"]
SessionMood = Literal["focused", "distracted", "tired", "energized"]
Weather = Literal["sunny", "cloudy", "rainy"]
Metric = Literal[
    "task_count",
    "focus_sessions",
    "focus_hours",
    "streak_days",
    "plant_count",
    "compost_amount",
    "social_interaction",
]
RewardType = Literal["badge", "rare_seed", "compost"]
ChallengeType = Literal["focus_sessions", "tasks_completed", "streak_days"]

PRIORITIES = ("low", "medium", "high")
CATEGORIES = ("work", "personal", "health", "learning")
FOCUS_MODES = ("focus", "short_break", "long_break")
SESSION_MOODS = ("focused", "distracted", "tired", "energized")
WEATHERS = ("sunny", "cloudy", "rainy")


def rewards_for(priority: str) -> tuple[str, int]:
    """(plant_type, compost_reward) for a task priority."""
    return config.PRIORITY_REWARDS[priority]


class Task(BaseModel):
    id: str
    title: str
    description: str = ""
    priority: Priority = "medium"
    category: Category = "personal"
    status: TaskStatus = "pending"
    plant_type: PlantType
    compost_reward: int
    credited_compost: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    verified: bool = False
    proof_handle: Optional[str] = None


class Position(BaseModel):
    x: float
    y: float


class Plant(BaseModel):
    id: str
    task_id: str
    type: PlantType
    growth: int = Field(default=0, ge=0, le=100)
    position: Position
    planted_at: datetime
    health: int = Field(default=100, ge=0, le=100)
    last_watered: Optional[datetime] = None


class FocusSession(BaseModel):
    id: str
    task_id: Optional[str] = None
    duration: int  # seconds actually focused
    planned_duration: int  # seconds
    start_time: datetime
    end_time: datetime
    distractions_count: int = 0
    focus_score: int = 100
    compost_earned: int = 0
    plant_growth_contributed: int = 0
    session_type: Literal["pomodoro"] = "pomodoro"
    mood: SessionMood = "focused"
    notes: Optional[str] = None
    verified: bool = False
    proof_handle: Optional[str] = None


class Profile(BaseModel):
    user_id: str
    display_name: str = "Gardener"
    avatar_url: Optional[str] = None
    compost: int = Field(default=0, ge=0)
    lifetime_compost: int = 0
    level: int = 1
    current_streak: int = 0
    longest_streak: int = 0
    last_active_on: Optional[date] = None
    total_focus_seconds: int = 0
    tasks_completed: int = 0
    focus_sessions_completed: int = 0
    plants_grown: int = 0
    rare_seeds: int = 0
    weather: Weather = "sunny"

    @property
    def total_focus_hours(self) -> float:
        return round(self.total_focus_seconds / 3600, 2)


class Requirement(BaseModel):
    metric: Metric
    target: int


class Achievement(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    requirements: list[Requirement]
    reward_type: RewardType = "badge"
    reward_amount: int = 0
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    verified: bool = False
    proof_handle: Optional[str] = None


class FocusSettings(BaseModel):
    focus_minutes: int = Field(default=config.FOCUS_MINUTES, gt=0)
    short_break_minutes: int = Field(default=config.SHORT_BREAK_MINUTES, gt=0)
    long_break_minutes: int = Field(default=config.LONG_BREAK_MINUTES, gt=0)
    long_break_every: int = Field(default=config.LONG_BREAK_EVERY, gt=0)
    auto_start_breaks: bool = False

    def seconds_for(self, mode: str) -> int:
        minutes = {
            "focus": self.focus_minutes,
            "short_break": self.short_break_minutes,
            "long_break": self.long_break_minutes,
        }[mode]
        return minutes * 60


class WeeklyChallenge(BaseModel):
    id: str
    title: str
    description: str = ""
    challenge_type: ChallengeType
    target: int = Field(gt=0)
    reward_compost: int = 0
    reward_rare_seed: bool = False
    start_date: date
    end_date: date
    is_active: bool = True


class ChallengeProgress(BaseModel):
    challenge_id: str
    current_progress: int = 0
    completed: bool = False
    completed_at: Optional[datetime] = None


class Comment(BaseModel):
    id: str
    author_id: str
    author_name: str = ""
    content: str
    created_at: datetime


class SocialPost(BaseModel):
    id: str
    author_id: str
    author_name: str = ""
    content: str
    achievement_id: Optional[str] = None
    liked_by: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    created_at: datetime

    @property
    def likes(self) -> int:
        return len(self.liked_by)

    @property
    def comments_count(self) -> int:
        return len(self.comments)

    def to_view(self, viewer_id: str | None = None) -> dict:
        data = self.model_dump(mode="json")
        data["likes"] = self.likes
        data["comments_count"] = self.comments_count
        if viewer_id is not None:
            data["liked"] = viewer_id in self.liked_by
        return data


class Identity(BaseModel):
    """Opaque, read-only caller identity supplied by the auth layer."""
    user_id: str
    display_name: str = "Gardener"
    avatar_url: Optional[str] = None


class GardenState(BaseModel):
    """Everything the engine holds in memory for one user."""
    tasks: list[Task] = Field(default_factory=list)
    plants: list[Plant] = Field(default_factory=list)
    sessions: list[FocusSession] = Field(default_factory=list)
    profile: Profile
    achievements: list[Achievement] = Field(default_factory=list)
    settings: FocusSettings = Field(default_factory=FocusSettings)
    challenges: list[ChallengeProgress] = Field(default_factory=list)


class SocialFeed(BaseModel):
    posts: list[SocialPost] = Field(default_factory=list)
