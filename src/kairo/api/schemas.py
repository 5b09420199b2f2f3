"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from kairo.core.buildings import BuildingKind


# === Sessions ===

class CreateSessionRequest(BaseModel):
    scenario_id: str = "metro-center"
    config: dict[str, Any] | None = None
    name: str | None = None


class SessionSummary(BaseModel):
    id: str
    name: str
    scenario_id: str
    status: str
    day: int
    treasury: int
    population: int


class SessionResponse(SessionSummary):
    scenario: dict[str, Any]
    grid: dict[str, Any]
    city: dict[str, int]
    goal: dict[str, Any] | None
    goal_phase: str
    news: list[dict[str, Any]]
    clock_running: bool
    config: dict[str, Any]


# === Actions ===

class TickRequest(BaseModel):
    n: int = Field(default=1, ge=1, le=1000)


class TickResponse(BaseModel):
    day: int
    ticks: int
    income_delta: int
    population_delta: int
    counts_by_kind: dict[str, int]
    goal_completed: bool
    city: dict[str, int]
    events: list[dict[str, Any]]


class CommandRequest(BaseModel):
    tool: BuildingKind
    x: int
    y: int


class CommandResponse(BaseModel):
    applied: bool
    event: dict[str, Any] | None
    news: dict[str, Any] | None
    city: dict[str, int]


class ClaimResponse(BaseModel):
    reward: int
    goal: dict[str, Any]
    city: dict[str, int]


# === Catalog ===

class BuildingInfo(BaseModel):
    kind: str
    cost: int
    population_yield: int
    income_yield: int
    name: str
    description: str
    color: str


class ScenarioInfo(BaseModel):
    id: str
    name: str
    terrain: str
    initial_treasury: int
    description: str
    difficulty: str
