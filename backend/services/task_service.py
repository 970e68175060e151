"""
task_service.py — Task lifecycle
Create, edit, complete/uncomplete, archive and delete tasks. Completing a task
credits its compost reward and plants exactly one plant in the garden.
"""

import logging
import random
import uuid
from datetime import datetime

from pydantic import ValidationError as PydanticValidationError

import config
from errors import NotFoundError, ValidationError
from schemas import CATEGORIES, PRIORITIES, GardenState, Plant, Position, Task, rewards_for

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"title", "description", "priority", "category", "due_date"}


def _clean_title(title) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Task title cannot be empty")
    return title.strip()


def _check_choice(field: str, value, choices) -> str:
    if value not in choices:
        raise ValidationError(f"Invalid {field}: {value!r} (expected one of {', '.join(choices)})")
    return value


class TaskService:
    @staticmethod
    def create(garden: GardenState, data: dict, now: datetime) -> Task:
        """Create a pending task; plant type and reward follow the priority."""
        title = _clean_title(data.get("title"))
        priority = _check_choice("priority", data.get("priority") or "medium", PRIORITIES)
        category = _check_choice("category", data.get("category") or "personal", CATEGORIES)
        plant_type, reward = rewards_for(priority)

        try:
            task = Task(
                id=str(uuid.uuid4()),
                title=title,
                description=(data.get("description") or "").strip(),
                priority=priority,
                category=category,
                status="pending",
                plant_type=plant_type,
                compost_reward=reward,
                created_at=now,
                updated_at=now,
                due_date=data.get("due_date"),
            )
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
        garden.tasks.insert(0, task)
        logger.info("Task created: %s (%s)", task.id, priority)
        return task

    @staticmethod
    def get(garden: GardenState, task_id: str) -> Task:
        for task in garden.tasks:
            if task.id == task_id:
                return task
        raise NotFoundError("task", task_id)

    @staticmethod
    def update(garden: GardenState, task_id: str, data: dict, now: datetime) -> Task:
        """Edit fields; a priority change re-derives plant type and reward. Status is untouched."""
        task = TaskService.get(garden, task_id)

        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        # Validate everything before touching the record
        changes = dict(data)
        if "title" in changes:
            changes["title"] = _clean_title(changes["title"])
        if "priority" in changes:
            _check_choice("priority", changes["priority"], PRIORITIES)
        if "category" in changes:
            _check_choice("category", changes["category"], CATEGORIES)
        if "description" in changes:
            changes["description"] = (changes["description"] or "").strip()

        try:
            updated = Task.model_validate({**task.model_dump(), **changes, "updated_at": now})
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
        if "priority" in changes:
            updated.plant_type, updated.compost_reward = rewards_for(updated.priority)

        index = garden.tasks.index(task)
        garden.tasks[index] = updated
        return updated

    @staticmethod
    def complete(garden: GardenState, task_id: str, now: datetime, rng: random.Random) -> Plant | None:
        """
        Mark a task completed, credit compost and plant one plant.
        Returns the new plant, or None when the task was already completed/archived.
        """
        task = TaskService.get(garden, task_id)
        if task.status != "pending":
            return None

        task.status = "completed"
        task.completed_at = now
        task.credited_compost = task.compost_reward
        task.updated_at = now

        profile = garden.profile
        profile.compost += task.compost_reward
        profile.lifetime_compost += task.compost_reward
        profile.tasks_completed += 1
        profile.plants_grown += 1

        x_low, x_high = config.PLANT_X_RANGE
        y_low, y_high = config.PLANT_Y_RANGE
        plant = Plant(
            id=str(uuid.uuid4()),
            task_id=task.id,
            type=task.plant_type,
            growth=config.INITIAL_PLANT_GROWTH,
            position=Position(x=rng.uniform(x_low, x_high), y=rng.uniform(y_low, y_high)),
            planted_at=now,
        )
        garden.plants.append(plant)
        logger.info("Task completed: %s, +%d compost, planted %s", task.id, task.compost_reward, plant.type)
        return plant

    @staticmethod
    def uncomplete(garden: GardenState, task_id: str, now: datetime) -> Task:
        """
        Reverse a completion: debit the compost that completion credited (floored at 0)
        and pull the task's plant. A priority edit after completion doesn't change the debit.
        """
        task = TaskService.get(garden, task_id)
        if task.status != "completed":
            return task

        # Records stored before credits were tracked fall back to the current reward
        credited = task.credited_compost if task.credited_compost is not None else task.compost_reward
        task.status = "pending"
        task.completed_at = None
        task.credited_compost = None
        task.updated_at = now

        profile = garden.profile
        profile.compost = max(0, profile.compost - credited)
        profile.lifetime_compost = max(0, profile.lifetime_compost - credited)
        profile.tasks_completed = max(0, profile.tasks_completed - 1)
        profile.plants_grown = max(0, profile.plants_grown - 1)

        garden.plants = [p for p in garden.plants if p.task_id != task.id]
        logger.info("Task un-completed: %s, -%d compost", task.id, credited)
        return task

    @staticmethod
    def archive(garden: GardenState, task_id: str, now: datetime) -> Task:
        """Soft delete: hidden from active views, kept in storage."""
        task = TaskService.get(garden, task_id)
        task.status = "archived"
        task.archived_at = now
        task.updated_at = now
        return task

    @staticmethod
    def delete(garden: GardenState, task_id: str) -> Task:
        """Hard delete; cascades to the plants owned by this task."""
        task = TaskService.get(garden, task_id)
        garden.tasks = [t for t in garden.tasks if t.id != task_id]
        garden.plants = [p for p in garden.plants if p.task_id != task_id]
        logger.info("Task deleted: %s", task_id)
        return task

    @staticmethod
    def pending(garden: GardenState) -> list[Task]:
        return [t for t in garden.tasks if t.status == "pending"]

    @staticmethod
    def completed(garden: GardenState) -> list[Task]:
        return [t for t in garden.tasks if t.status == "completed"]

    @staticmethod
    def archived(garden: GardenState) -> list[Task]:
        return [t for t in garden.tasks if t.status == "archived"]
