"""
stats_service.py — Derived garden statistics
Read-only aggregation over tasks, plants, sessions and the profile.
Nothing here is cached; every number is recomputed from the current collections.
"""

from datetime import datetime

from schemas import FocusSession, GardenState, Task


def _local_day(moment: datetime):
    return moment.astimezone().date()


class StatsService:
    @staticmethod
    def today_sessions(garden: GardenState, now: datetime) -> list[FocusSession]:
        today = _local_day(now)
        return [s for s in garden.sessions if _local_day(s.start_time) == today]

    @staticmethod
    def total_focus_today(garden: GardenState, now: datetime) -> int:
        return sum(s.duration for s in StatsService.today_sessions(garden, now))

    @staticmethod
    def average_focus_score(garden: GardenState, now: datetime) -> int:
        sessions = StatsService.today_sessions(garden, now)
        if not sessions:
            return 0
        return round(sum(s.focus_score for s in sessions) / len(sessions))

    @staticmethod
    def compost_earned_today(garden: GardenState, now: datetime) -> int:
        return sum(s.compost_earned for s in StatsService.today_sessions(garden, now))

    @staticmethod
    def pending_tasks(garden: GardenState) -> list[Task]:
        return [t for t in garden.tasks if t.status == "pending"]

    @staticmethod
    def completed_tasks(garden: GardenState) -> list[Task]:
        return [t for t in garden.tasks if t.status == "completed"]

    @staticmethod
    def plant_count(garden: GardenState) -> int:
        return len(garden.plants)

    @staticmethod
    def total_focus_hours(garden: GardenState) -> float:
        return garden.profile.total_focus_hours

    @staticmethod
    def average_growth(garden: GardenState) -> int:
        if not garden.plants:
            return 0
        return round(sum(p.growth for p in garden.plants) / len(garden.plants))

    @staticmethod
    def metrics(garden: GardenState, social_interactions: int = 0) -> dict:
        """Current value of every achievement metric."""
        profile = garden.profile
        return {
            "task_count": profile.tasks_completed,
            "focus_sessions": profile.focus_sessions_completed,
            "focus_hours": int(profile.total_focus_seconds // 3600),
            "streak_days": profile.longest_streak,
            "plant_count": profile.plants_grown,
            "compost_amount": profile.lifetime_compost,
            "social_interaction": social_interactions,
        }

    @staticmethod
    def summary(garden: GardenState, now: datetime) -> dict:
        """Dashboard bundle."""
        profile = garden.profile
        pending = StatsService.pending_tasks(garden)
        completed = StatsService.completed_tasks(garden)
        today = StatsService.today_sessions(garden, now)
        return {
            "tasks": {
                "pending": len(pending),
                "completed": len(completed),
                "archived": len(garden.tasks) - len(pending) - len(completed),
            },
            "focus_today": {
                "sessions": len(today),
                "total_seconds": sum(s.duration for s in today),
                "average_score": StatsService.average_focus_score(garden, now),
                "compost_earned": sum(s.compost_earned for s in today),
            },
            "garden": {
                "plants": StatsService.plant_count(garden),
                "average_growth": StatsService.average_growth(garden),
                "fully_grown": len([p for p in garden.plants if p.growth >= 100]),
            },
            "profile": {
                "compost": profile.compost,
                "level": profile.level,
                "current_streak": profile.current_streak,
                "longest_streak": profile.longest_streak,
                "total_focus_hours": StatsService.total_focus_hours(garden),
                "plants_grown": profile.plants_grown,
                "rare_seeds": profile.rare_seeds,
            },
            "achievements_unlocked": len([a for a in garden.achievements if a.unlocked]),
        }
