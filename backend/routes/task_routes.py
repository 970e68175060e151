from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from dependencies import get_engine
from services.garden_service import GardenEngine

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = ""
    priority: Optional[str] = "medium"
    category: Optional[str] = "personal"
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    due_date: Optional[datetime] = None


def _dump(item) -> dict:
    return item.model_dump(mode="json")


@router.get("")
async def list_tasks(view: str = "all", engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": [_dump(t) for t in engine.list_tasks(view)]}


@router.post("")
async def create_task(task_data: TaskCreate, engine: GardenEngine = Depends(get_engine)):
    task = engine.create_task(task_data.model_dump(exclude_unset=True))
    return {"status": "success", "data": _dump(task)}


@router.get("/{task_id}")
async def get_task(task_id: str, engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": _dump(engine.get_task(task_id))}


@router.put("/{task_id}")
async def update_task(task_id: str, task_data: TaskUpdate, engine: GardenEngine = Depends(get_engine)):
    task = engine.update_task(task_id, task_data.model_dump(exclude_unset=True))
    return {"status": "success", "data": _dump(task)}


@router.post("/{task_id}/complete")
async def complete_task(task_id: str, engine: GardenEngine = Depends(get_engine)):
    task = engine.complete_task(task_id)
    return {"status": "success", "data": _dump(task), "profile": _dump(engine.garden.profile)}


@router.post("/{task_id}/toggle")
async def toggle_task(task_id: str, engine: GardenEngine = Depends(get_engine)):
    task = engine.toggle_task_completion(task_id)
    return {"status": "success", "data": _dump(task), "profile": _dump(engine.garden.profile)}


@router.post("/{task_id}/archive")
async def archive_task(task_id: str, engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": _dump(engine.archive_task(task_id))}


@router.delete("/{task_id}")
async def delete_task(task_id: str, engine: GardenEngine = Depends(get_engine)):
    engine.delete_task(task_id)
    return {"status": "success"}
