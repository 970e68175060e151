"""
achievement_service.py — Threshold achievements
Every achievement is a list of (metric, target) requirements. Unlocking is one-way.
"""

import logging
from datetime import datetime

from schemas import Achievement, GardenState, Requirement

logger = logging.getLogger(__name__)


def _req(metric: str, target: int) -> Requirement:
    return Requirement(metric=metric, target=target)


def default_catalog() -> list[Achievement]:
    return [
        Achievement(id="first_sprout", name="First Sprout", icon="🌱",
                    description="Completed your first task",
                    requirements=[_req("task_count", 1)]),
        Achievement(id="focus_master", name="Focus Master", icon="🧘",
                    description="Complete 50 focus sessions",
                    requirements=[_req("focus_sessions", 50)]),
        Achievement(id="green_thumb", name="Green Thumb", icon="👍",
                    description="Grow 25 plants",
                    requirements=[_req("plant_count", 25)],
                    reward_type="rare_seed", reward_amount=1),
        Achievement(id="streak_warrior", name="Streak Warrior", icon="🔥",
                    description="Maintain a 30-day streak",
                    requirements=[_req("streak_days", 30)],
                    reward_type="rare_seed", reward_amount=1),
        Achievement(id="garden_guardian", name="Garden Guardian", icon="🛡️",
                    description="Complete 500 tasks",
                    requirements=[_req("task_count", 500)],
                    reward_type="rare_seed", reward_amount=3),
        Achievement(id="zen_master", name="Zen Master", icon="☯️",
                    description="Complete 200 focus sessions",
                    requirements=[_req("focus_sessions", 200)],
                    reward_type="rare_seed", reward_amount=2),
        Achievement(id="social_butterfly", name="Social Butterfly", icon="🦋",
                    description="Like, comment or post 10 times",
                    requirements=[_req("social_interaction", 10)]),
    ]


class AchievementService:
    @staticmethod
    def is_satisfied(achievement: Achievement, metrics: dict) -> bool:
        return all(metrics.get(r.metric, 0) >= r.target for r in achievement.requirements)

    @staticmethod
    def progress(achievement: Achievement, metrics: dict) -> int:
        """0-100, the weakest requirement decides."""
        if achievement.unlocked:
            return 100
        if not achievement.requirements:
            return 0
        ratios = [
            min(1.0, metrics.get(r.metric, 0) / r.target) if r.target > 0 else 1.0
            for r in achievement.requirements
        ]
        return int(min(ratios) * 100)

    @staticmethod
    def evaluate(garden: GardenState, metrics: dict, now: datetime) -> list[Achievement]:
        """Unlock every satisfied, still-locked achievement and grant its reward."""
        unlocked = []
        for achievement in garden.achievements:
            if achievement.unlocked:
                continue
            if not AchievementService.is_satisfied(achievement, metrics):
                continue

            achievement.unlocked = True
            achievement.unlocked_at = now
            AchievementService._grant(garden, achievement)
            unlocked.append(achievement)
            logger.info("Achievement unlocked: %s", achievement.name)
        return unlocked

    @staticmethod
    def _grant(garden: GardenState, achievement: Achievement):
        profile = garden.profile
        if achievement.reward_type == "rare_seed":
            profile.rare_seeds += achievement.reward_amount
        elif achievement.reward_type == "compost":
            profile.compost += achievement.reward_amount
            profile.lifetime_compost += achievement.reward_amount

    @staticmethod
    def merge_catalog(stored: list[Achievement]) -> list[Achievement]:
        """Default catalog with unlock state carried over from storage."""
        by_id = {a.id: a for a in stored}
        merged = []
        for achievement in default_catalog():
            previous = by_id.pop(achievement.id, None)
            if previous is not None and previous.unlocked:
                achievement.unlocked = True
                achievement.unlocked_at = previous.unlocked_at
                achievement.verified = previous.verified
                achievement.proof_handle = previous.proof_handle
            merged.append(achievement)
        # Custom achievements that aren't part of the default catalog
        merged.extend(by_id.values())
        return merged
