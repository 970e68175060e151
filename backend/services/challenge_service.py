"""
challenge_service.py — Weekly challenges & focus leaderboard
A week starts on Sunday at local midnight. Progress is recomputed from the garden's
own collections; a completed challenge stays completed and pays its reward once.
"""

import logging
from datetime import datetime, timedelta

from schemas import ChallengeProgress, GardenState, WeeklyChallenge

logger = logging.getLogger(__name__)

# key, title, description, type, target, reward_compost, reward_rare_seed
WEEKLY_CATALOG = (
    ("focus_sprint", "Focus Sprint", "Complete 20 focus sessions this week", "focus_sessions", 20, 50, False),
    ("task_harvest", "Task Harvest", "Complete 15 tasks this week", "tasks_completed", 15, 30, False),
    ("steady_gardener", "Steady Gardener", "Keep a 7-day streak", "streak_days", 7, 0, True),
)


def week_start(now: datetime) -> datetime:
    local = now.astimezone()
    days_since_sunday = (local.weekday() + 1) % 7
    start = local - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


class ChallengeService:
    @staticmethod
    def weekly_challenges(now: datetime) -> list[WeeklyChallenge]:
        start = week_start(now).date()
        return [
            WeeklyChallenge(
                id=f"{key}-{start.isoformat()}",
                title=title,
                description=description,
                challenge_type=challenge_type,
                target=target,
                reward_compost=compost,
                reward_rare_seed=rare_seed,
                start_date=start,
                end_date=start + timedelta(days=6),
            )
            for key, title, description, challenge_type, target, compost, rare_seed in WEEKLY_CATALOG
        ]

    @staticmethod
    def measure(garden: GardenState, challenge: WeeklyChallenge, now: datetime) -> int:
        start = week_start(now)
        if challenge.challenge_type == "focus_sessions":
            return len([s for s in garden.sessions if s.end_time >= start])
        if challenge.challenge_type == "tasks_completed":
            return len([t for t in garden.tasks if t.completed_at is not None and t.completed_at >= start])
        return garden.profile.current_streak

    @staticmethod
    def get_progress(garden: GardenState, challenge_id: str) -> ChallengeProgress:
        for progress in garden.challenges:
            if progress.challenge_id == challenge_id:
                return progress
        progress = ChallengeProgress(challenge_id=challenge_id)
        garden.challenges.append(progress)
        return progress

    @staticmethod
    def evaluate(garden: GardenState, now: datetime) -> list[WeeklyChallenge]:
        """Refresh this week's progress; returns the challenges completed by this call."""
        completed = []
        for challenge in ChallengeService.weekly_challenges(now):
            progress = ChallengeService.get_progress(garden, challenge.id)
            if progress.completed:
                continue
            progress.current_progress = min(challenge.target, ChallengeService.measure(garden, challenge, now))
            if progress.current_progress < challenge.target:
                continue

            progress.completed = True
            progress.completed_at = now
            profile = garden.profile
            profile.compost += challenge.reward_compost
            profile.lifetime_compost += challenge.reward_compost
            if challenge.reward_rare_seed:
                profile.rare_seeds += 1
            completed.append(challenge)
            logger.info("Weekly challenge completed: %s", challenge.id)
        return completed

    @staticmethod
    def listing(garden: GardenState, now: datetime) -> list[dict]:
        result = []
        for challenge in ChallengeService.weekly_challenges(now):
            progress = next((p for p in garden.challenges if p.challenge_id == challenge.id), None)
            current = progress.current_progress if progress else 0
            data = challenge.model_dump(mode="json")
            data["current_progress"] = current
            data["completed"] = bool(progress and progress.completed)
            data["percent"] = int(min(1.0, current / challenge.target) * 100)
            result.append(data)
        return result

    @staticmethod
    def leaderboard(gardens: list[GardenState], now: datetime, limit: int = 10) -> list[dict]:
        """Users ranked by focus sessions finished since the start of the week."""
        start = week_start(now)
        rows = []
        for garden in gardens:
            count = len([s for s in garden.sessions if s.end_time >= start])
            if count == 0:
                continue
            profile = garden.profile
            rows.append({
                "user_id": profile.user_id,
                "display_name": profile.display_name,
                "avatar_url": profile.avatar_url,
                "level": profile.level,
                "sessions": count,
            })
        rows.sort(key=lambda r: (-r["sessions"], r["display_name"]))
        for rank, row in enumerate(rows[:limit], start=1):
            row["rank"] = rank
        return rows[:limit]
