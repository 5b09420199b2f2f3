"""Static catalog endpoints: building kinds and built-in scenarios."""

from __future__ import annotations

from fastapi import APIRouter

from kairo.api.schemas import BuildingInfo, ScenarioInfo
from kairo.core.buildings import BUILDINGS
from kairo.core.scenarios import list_scenarios

router = APIRouter()


@router.get("/buildings", response_model=list[BuildingInfo])
def buildings():
    return [cfg.to_dict() for cfg in BUILDINGS.values()]


@router.get("/scenarios", response_model=list[ScenarioInfo])
def scenarios():
    return [s.to_dict() for s in list_scenarios()]
