from schemas import Achievement, Requirement
from services.achievement_service import AchievementService, default_catalog


def by_id(engine, achievement_id):
    return next(a for a in engine.garden.achievements if a.id == achievement_id)


def test_first_task_unlocks_first_sprout(engine, clock):
    assert not by_id(engine, "first_sprout").unlocked

    engine.complete_task(engine.create_task({"title": "Start"}).id)
    first = by_id(engine, "first_sprout")
    assert first.unlocked
    assert first.unlocked_at == clock()


def test_unlock_is_one_way(engine):
    task = engine.create_task({"title": "Start"})
    engine.complete_task(task.id)
    engine.toggle_task_completion(task.id)
    engine.evaluate_achievements()

    assert engine.garden.profile.tasks_completed == 0
    assert by_id(engine, "first_sprout").unlocked


def test_rare_seed_reward_granted_once(engine):
    garden = engine.garden
    garden.profile.plants_grown = 25

    unlocked = engine.evaluate_achievements()
    assert [a.id for a in unlocked] == ["green_thumb"]
    assert garden.profile.rare_seeds == 1

    assert engine.evaluate_achievements() == []
    assert garden.profile.rare_seeds == 1


def test_compost_reward_credits_profile(engine):
    garden = engine.garden
    garden.achievements.append(Achievement(
        id="hoarder", name="Hoarder", requirements=[Requirement(metric="compost_amount", target=10)],
        reward_type="compost", reward_amount=20,
    ))
    engine.complete_task(engine.create_task({"title": "Earn"}).id)

    assert by_id(engine, "hoarder").unlocked
    assert garden.profile.compost == 30
    assert garden.profile.lifetime_compost == 30


def test_all_requirements_must_hold():
    achievement = Achievement(id="combo", name="Combo", requirements=[
        Requirement(metric="task_count", target=2),
        Requirement(metric="focus_sessions", target=4),
    ])
    metrics = {"task_count": 5, "focus_sessions": 1}
    assert not AchievementService.is_satisfied(achievement, metrics)
    assert AchievementService.progress(achievement, metrics) == 25


def test_merge_catalog_keeps_unlock_state():
    stored = default_catalog()
    stored[0].unlocked = True
    stored[0].proof_handle = "0xabc"
    stored.append(Achievement(id="custom", name="Custom", requirements=[]))

    merged = AchievementService.merge_catalog(stored)
    assert merged[0].unlocked
    assert merged[0].proof_handle == "0xabc"
    assert not merged[1].unlocked
    assert merged[-1].id == "custom"


def test_achievements_listing_reports_progress(engine):
    engine.complete_task(engine.create_task({"title": "One"}).id)
    listing = {a["id"]: a for a in engine.achievements()}
    assert listing["first_sprout"]["progress"] == 100
    assert listing["green_thumb"]["progress"] == 4
