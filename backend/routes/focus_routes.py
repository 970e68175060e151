from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from dependencies import get_engine
from services.garden_service import GardenEngine

router = APIRouter(prefix="/api/v1/focus", tags=["Focus"])


class FocusStart(BaseModel):
    mode: Optional[str] = None
    task_id: Optional[str] = None


class FocusNote(BaseModel):
    mood: Optional[str] = None
    notes: Optional[str] = None


class SettingsUpdate(BaseModel):
    focus_minutes: Optional[int] = None
    short_break_minutes: Optional[int] = None
    long_break_minutes: Optional[int] = None
    long_break_every: Optional[int] = None
    auto_start_breaks: Optional[bool] = None


@router.get("")
async def focus_state(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.timer_state()}


@router.post("/start")
async def start_focus(body: FocusStart, engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.start_focus(mode=body.mode, task_id=body.task_id)}


@router.post("/pause")
async def pause_focus(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.pause_focus()}


@router.post("/resume")
async def resume_focus(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.resume_focus()}


@router.post("/reset")
async def reset_focus(engine: GardenEngine = Depends(get_engine)):
    """Also serves as stop: the partial session is discarded."""
    return {"status": "success", "data": engine.reset_focus()}


@router.post("/distraction")
async def record_distraction(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.record_distraction()}


@router.put("/note")
async def annotate_focus(body: FocusNote, engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.annotate_focus(mood=body.mood, notes=body.notes)}


@router.post("/tick")
async def tick(engine: GardenEngine = Depends(get_engine)):
    """Advance the timer one second, for deployments where the client drives the clock."""
    session = engine.manual_tick()
    return {
        "status": "success",
        "data": engine.timer_state(),
        "session": session.model_dump(mode="json") if session is not None else None,
    }


@router.get("/sessions")
async def list_sessions(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": [s.model_dump(mode="json") for s in engine.list_sessions()]}


@router.put("/sessions/{session_id}")
async def update_session(session_id: str, body: FocusNote, engine: GardenEngine = Depends(get_engine)):
    session = engine.update_session(session_id, body.model_dump(exclude_unset=True))
    return {"status": "success", "data": session.model_dump(mode="json")}


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, engine: GardenEngine = Depends(get_engine)):
    engine.delete_session(session_id)
    return {"status": "success"}


@router.get("/settings")
async def get_settings(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.garden.settings.model_dump()}


@router.put("/settings")
async def update_settings(body: SettingsUpdate, engine: GardenEngine = Depends(get_engine)):
    settings = engine.update_settings(body.model_dump(exclude_unset=True))
    return {"status": "success", "data": settings.model_dump()}
