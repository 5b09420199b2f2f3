"""
Economy and demography engine.

One tick folds the grid through the building catalog:

1. Base income/population yields from the catalog
2. Terrain income modifiers (island tourism, coast ocean view / inland)
3. Park adjacency bonus for residential tiles
4. Accumulate totals and per-kind counts

``apply_tick`` then commits the totals to a ``CityState`` under the
population cap. Both steps are pure functions of their arguments.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from kairo.core.buildings import BUILDINGS, BuildingKind, Catalog
from kairo.core.config import SimulationConfig
from kairo.core.grid import Grid, Tile
from kairo.core.state import CityState
from kairo.core.terrain import Terrain, modify_income

_DEFAULT_CONFIG = SimulationConfig()


@dataclass(frozen=True)
class TileYield:
    """Income and population produced by one tile in one tick."""
    income: int
    population: int


@dataclass(frozen=True)
class TickResult:
    """Aggregate deltas produced by one pass over the grid."""
    income_delta: int
    population_delta: int
    counts_by_kind: dict[BuildingKind, int] = field(default_factory=dict)

    def count(self, kind: BuildingKind) -> int:
        return self.counts_by_kind.get(kind, 0)

    @property
    def residential_count(self) -> int:
        return self.count(BuildingKind.RESIDENTIAL)

    def to_dict(self) -> dict[str, object]:
        return {
            "income_delta": self.income_delta,
            "population_delta": self.population_delta,
            "counts_by_kind": {k.value: v for k, v in self.counts_by_kind.items()},
        }


def tile_yield(
    grid: Grid,
    tile: Tile,
    catalog: Catalog = BUILDINGS,
    terrain: Terrain = Terrain.PLAINS,
    config: SimulationConfig = _DEFAULT_CONFIG,
) -> TileYield:
    """Compute the modified yields of a single occupied tile."""
    building = catalog[tile.building_kind]
    income = modify_income(terrain, tile.building_kind, tile.x, building.income_yield, config)
    population = building.population_yield

    if tile.building_kind is BuildingKind.RESIDENTIAL:
        parks = sum(
            1 for n in grid.neighbors(tile.x, tile.y)
            if n.building_kind is BuildingKind.PARK
        )
        population += parks * config.park_adjacency_bonus

    return TileYield(income=income, population=population)


def compute_tick(
    grid: Grid,
    catalog: Catalog = BUILDINGS,
    terrain: Terrain = Terrain.PLAINS,
    config: SimulationConfig = _DEFAULT_CONFIG,
) -> TickResult:
    """Fold the grid into income/population deltas and per-kind counts."""
    income = 0
    population = 0
    counts: dict[BuildingKind, int] = {}

    for tile in grid.occupied():
        yields = tile_yield(grid, tile, catalog, terrain, config)
        income += yields.income
        population += yields.population
        counts[tile.building_kind] = counts.get(tile.building_kind, 0) + 1

    return TickResult(income_delta=income, population_delta=population, counts_by_kind=counts)


def max_population(result: TickResult, config: SimulationConfig = _DEFAULT_CONFIG) -> int:
    return config.population_per_residential * result.residential_count


def next_population(
    current: int,
    result: TickResult,
    config: SimulationConfig = _DEFAULT_CONFIG,
) -> int:
    """Population after one tick.

    Without any residential tiles an inhabited city loses
    ``abandonment_decay`` residents per tick; that rule takes precedence
    over growth. Otherwise growth is clamped to ``[0, max_population]``.
    """
    if result.residential_count == 0 and current > 0:
        return max(0, current - config.abandonment_decay)
    cap = max_population(result, config)
    return min(max(current + result.population_delta, 0), cap)


def apply_tick(
    state: CityState,
    result: TickResult,
    config: SimulationConfig = _DEFAULT_CONFIG,
) -> CityState:
    """Return the city state after committing one tick's deltas."""
    return replace(
        state,
        treasury=state.treasury + result.income_delta,
        population=next_population(state.population, result, config),
        day=state.day + 1,
    )
