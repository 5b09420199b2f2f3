"""
Terrain archetypes: buildability rules and economic modifiers.

A scenario's terrain is fixed for the whole session. It decides which
tiles can be built on and adjusts per-tile income during a tick. All
constants come from ``SimulationConfig``.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING

from kairo.core.buildings import BuildingKind

if TYPE_CHECKING:
    from kairo.core.config import SimulationConfig


class Terrain(str, Enum):
    """Scenario map archetype."""
    PLAINS = "plains"
    ISLAND = "island"
    COAST = "coast"


class IllegalPlacementError(Exception):
    """Raised when terrain forbids building on a tile."""

    def __init__(self, x: int, y: int, reason: str) -> None:
        super().__init__(reason)
        self.x = x
        self.y = y
        self.reason = reason


# Player-facing explanation of each terrain's rules, posted at session start.
TERRAIN_BRIEFINGS: dict[Terrain, str] = {
    Terrain.ISLAND: "Effect: Commercial Tourism +20%. Build space limited to island center.",
    Terrain.COAST: "Effect: Coastal buildings get bonuses. Inland Commercial gets -10% penalty.",
}


def check_placement(terrain: Terrain, x: int, y: int, config: SimulationConfig) -> None:
    """Raise ``IllegalPlacementError`` if ``terrain`` forbids tile ``(x, y)``.

    Island maps only allow tiles within ``island_radius`` (Euclidean) of the
    map center. Coast maps treat every column left of ``coast_water_line``
    as water.
    """
    if terrain is Terrain.ISLAND:
        cx, cy = config.map_center
        if math.hypot(x - cx, y - cy) > config.island_radius:
            raise IllegalPlacementError(x, y, "Terrain unbuildable. Too far from island center.")
    elif terrain is Terrain.COAST:
        if x < config.coast_water_line:
            raise IllegalPlacementError(x, y, "Cannot build on water.")


def is_buildable(terrain: Terrain, x: int, y: int, config: SimulationConfig) -> bool:
    try:
        check_placement(terrain, x, y, config)
    except IllegalPlacementError:
        return False
    return True


def modify_income(
    terrain: Terrain,
    kind: BuildingKind,
    x: int,
    income: int,
    config: SimulationConfig,
) -> int:
    """Apply the terrain's income modifiers to one tile's base income.

    Coast rules are evaluated independently against the same tile: the
    ocean view bonus first, then the inland penalty.
    """
    if terrain is Terrain.ISLAND:
        if kind is BuildingKind.COMMERCIAL:
            income = math.floor(income * config.island_commercial_multiplier)
    elif terrain is Terrain.COAST:
        low, high = config.coast_ocean_view_band
        if low <= x <= high and kind in (BuildingKind.RESIDENTIAL, BuildingKind.COMMERCIAL):
            income += config.coast_ocean_view_bonus
        if x > config.coast_inland_column and kind is BuildingKind.COMMERCIAL:
            income = math.floor(income * config.coast_inland_multiplier)
    return income
