from fastapi import APIRouter, Depends
from pydantic import BaseModel

from dependencies import get_engine
from services.garden_service import GardenEngine

router = APIRouter(prefix="/api/v1/garden", tags=["Garden"])


class WeatherUpdate(BaseModel):
    weather: str


class CompostSpend(BaseModel):
    amount: int


def _profile(engine: GardenEngine) -> dict:
    profile = engine.profile()
    data = profile.model_dump(mode="json")
    data["total_focus_hours"] = profile.total_focus_hours
    return data


@router.get("/plants")
async def list_plants(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": [p.model_dump(mode="json") for p in engine.garden.plants]}


@router.post("/plants/{plant_id}/water")
async def water_plant(plant_id: str, engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.water_plant(plant_id).model_dump(mode="json")}


@router.get("/profile")
async def get_profile(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": _profile(engine)}


@router.put("/weather")
async def set_weather(body: WeatherUpdate, engine: GardenEngine = Depends(get_engine)):
    engine.set_weather(body.weather)
    return {"status": "success", "data": _profile(engine)}


@router.post("/compost/spend")
async def spend_compost(body: CompostSpend, engine: GardenEngine = Depends(get_engine)):
    engine.spend_compost(body.amount)
    return {"status": "success", "data": _profile(engine)}


@router.post("/seeds/rare")
async def buy_rare_seed(engine: GardenEngine = Depends(get_engine)):
    engine.buy_rare_seed()
    return {"status": "success", "data": _profile(engine)}


@router.get("/stats")
async def garden_stats(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.stats()}


@router.get("/achievements")
async def list_achievements(engine: GardenEngine = Depends(get_engine)):
    return {"status": "success", "data": engine.achievements()}
