import pytest

from errors import NotFoundError, ValidationError


def test_create_task_derives_plant_and_reward(engine):
    high = engine.create_task({"title": "  Ship release  ", "priority": "high", "category": "work"})
    low = engine.create_task({"title": "Water ferns", "priority": "low"})

    assert high.title == "Ship release"
    assert (high.plant_type, high.compost_reward) == ("tree", 15)
    assert (low.plant_type, low.compost_reward) == ("sprout", 5)
    assert high.status == "pending"
    assert high.completed_at is None
    # Most recent first
    assert [t.id for t in engine.list_tasks()] == [low.id, high.id]


@pytest.mark.parametrize("data", [
    {"title": ""},
    {"title": "   "},
    {"title": "Ok", "priority": "urgent"},
    {"title": "Ok", "category": "chores"},
])
def test_create_task_rejects_invalid_input(engine, data):
    with pytest.raises(ValidationError):
        engine.create_task(data)
    assert engine.list_tasks() == []


def test_update_task_recomputes_rewards_and_keeps_status(engine):
    task = engine.create_task({"title": "Read paper", "priority": "low"})
    updated = engine.update_task(task.id, {"priority": "high", "description": "Section 3"})

    assert updated.plant_type == "tree"
    assert updated.compost_reward == 15
    assert updated.description == "Section 3"
    assert updated.status == "pending"
    assert engine.get_task(task.id).priority == "high"


def test_update_task_rejects_blank_title_and_unknown_fields(engine):
    task = engine.create_task({"title": "Read paper"})
    with pytest.raises(ValidationError):
        engine.update_task(task.id, {"title": " "})
    with pytest.raises(ValidationError):
        engine.update_task(task.id, {"status": "completed"})
    with pytest.raises(NotFoundError):
        engine.update_task("missing", {"title": "x"})
    assert engine.get_task(task.id).title == "Read paper"


def test_complete_task_credits_compost_and_plants_once(engine):
    task = engine.create_task({"title": "Morning run", "priority": "high"})

    engine.complete_task(task.id)
    profile = engine.garden.profile
    assert engine.get_task(task.id).status == "completed"
    assert engine.get_task(task.id).completed_at == engine.clock()
    assert profile.compost == 15
    assert profile.tasks_completed == 1
    assert profile.plants_grown == 1
    assert len(engine.garden.plants) == 1
    plant = engine.garden.plants[0]
    assert plant.task_id == task.id
    assert plant.type == "tree"
    assert plant.growth == 25
    assert 60 <= plant.position.x <= 300
    assert 150 <= plant.position.y <= 350

    # Completing again changes nothing
    engine.complete_task(task.id)
    assert profile.compost == 15
    assert len(engine.garden.plants) == 1


def test_complete_unknown_task_raises(engine):
    with pytest.raises(NotFoundError):
        engine.complete_task("nope")


def test_toggle_round_trip_restores_profile(engine):
    task = engine.create_task({"title": "Tidy desk", "priority": "medium"})
    before = engine.garden.profile.compost

    engine.toggle_task_completion(task.id)
    assert engine.garden.profile.compost == before + 10
    engine.toggle_task_completion(task.id)

    restored = engine.get_task(task.id)
    assert restored.status == "pending"
    assert restored.completed_at is None
    assert engine.garden.profile.compost == before
    assert engine.garden.profile.tasks_completed == 0
    assert engine.garden.plants == []


def test_uncomplete_floors_compost_at_zero(engine):
    task = engine.create_task({"title": "Tidy desk", "priority": "high"})
    engine.complete_task(task.id)
    engine.spend_compost(10)

    engine.toggle_task_completion(task.id)
    assert engine.garden.profile.compost == 0


def test_uncomplete_debits_the_reward_that_was_credited(engine):
    task = engine.create_task({"title": "Ship release", "priority": "high"})
    before = engine.garden.profile.compost
    lifetime_before = engine.garden.profile.lifetime_compost

    engine.complete_task(task.id)
    assert engine.get_task(task.id).credited_compost == 15
    engine.update_task(task.id, {"priority": "low"})
    assert engine.get_task(task.id).compost_reward == 5

    engine.toggle_task_completion(task.id)
    assert engine.garden.profile.compost == before
    assert engine.garden.profile.lifetime_compost == lifetime_before
    assert engine.get_task(task.id).credited_compost is None


def test_archived_task_cannot_be_toggled(engine):
    task = engine.create_task({"title": "Old idea"})
    engine.archive_task(task.id)

    with pytest.raises(ValidationError):
        engine.toggle_task_completion(task.id)
    assert engine.list_tasks("archived")[0].archived_at is not None
    assert engine.list_tasks("pending") == []


def test_views_partition_tasks(engine):
    pending = engine.create_task({"title": "A"})
    done = engine.create_task({"title": "B"})
    shelved = engine.create_task({"title": "C"})
    engine.complete_task(done.id)
    engine.archive_task(shelved.id)

    assert [t.id for t in engine.list_tasks("pending")] == [pending.id]
    assert [t.id for t in engine.list_tasks("completed")] == [done.id]
    assert [t.id for t in engine.list_tasks("archived")] == [shelved.id]
    with pytest.raises(ValidationError):
        engine.list_tasks("someday")


def test_delete_task_cascades_only_its_plant(engine):
    first = engine.create_task({"title": "First"})
    second = engine.create_task({"title": "Second"})
    engine.complete_task(first.id)
    engine.complete_task(second.id)

    engine.delete_task(first.id)
    assert [p.task_id for p in engine.garden.plants] == [second.id]
    with pytest.raises(NotFoundError):
        engine.get_task(first.id)


def test_completion_updates_streak_across_days(engine, clock):
    for _ in range(3):
        task = engine.create_task({"title": "Daily"})
        engine.complete_task(task.id)
        clock.advance(days=1)

    assert engine.garden.profile.current_streak == 3
    assert engine.garden.profile.longest_streak == 3

    clock.advance(days=2)
    task = engine.create_task({"title": "After a gap"})
    engine.complete_task(task.id)
    assert engine.garden.profile.current_streak == 1
    assert engine.garden.profile.longest_streak == 3
