"""
Player build/demolish commands.

``apply_command`` is pure: it receives the current grid and city state and
returns the next ones together with the event (and news item) the action
produced. A command either fully succeeds, replacing both grid and treasury,
or returns the inputs unchanged.

Checks run in order: bounds, terrain legality, then the tool-specific
occupancy and affordability rules.
"""

from __future__ import annotations

from dataclasses import dataclass

from kairo.core.buildings import BUILDINGS, BuildingKind, Catalog
from kairo.core.config import SimulationConfig
from kairo.core.events import EventKind, GameEvent
from kairo.core.grid import Grid, OutOfBoundsError
from kairo.core.state import CityState, InsufficientFundsError, NewsItem, Sentiment
from kairo.core.terrain import IllegalPlacementError, Terrain, check_placement

_DEFAULT_CONFIG = SimulationConfig()


@dataclass(frozen=True)
class CommandOutcome:
    """Result of a command. ``event`` is None for silent no-ops."""

    grid: Grid
    city: CityState
    event: GameEvent | None = None
    news: NewsItem | None = None

    @property
    def applied(self) -> bool:
        return self.event is not None and self.event.kind in (EventKind.BUILD, EventKind.DEMOLISH)


def _rejected(grid: Grid, city: CityState, message: str, x: int, y: int) -> CommandOutcome:
    return CommandOutcome(
        grid=grid,
        city=city,
        event=GameEvent(EventKind.ERROR, message, day=city.day, x=x, y=y),
        news=NewsItem.create(message, Sentiment.NEGATIVE),
    )


def apply_command(
    grid: Grid,
    city: CityState,
    tool: BuildingKind,
    x: int,
    y: int,
    terrain: Terrain = Terrain.PLAINS,
    catalog: Catalog = BUILDINGS,
    config: SimulationConfig = _DEFAULT_CONFIG,
) -> CommandOutcome:
    """Apply ``tool`` at ``(x, y)``. ``BuildingKind.NONE`` demolishes."""
    noop = CommandOutcome(grid=grid, city=city)

    try:
        tile = grid.get(x, y)
    except OutOfBoundsError:
        return noop

    try:
        check_placement(terrain, x, y, config)
    except IllegalPlacementError as exc:
        return _rejected(grid, city, exc.reason, x, y)

    if tool is BuildingKind.NONE:
        if tile.is_empty:
            return noop
        demolished = catalog[tile.building_kind]
        try:
            new_city = city.debit(config.demolition_fee)
        except InsufficientFundsError:
            return _rejected(grid, city, "Cannot afford demolition costs.", x, y)
        return CommandOutcome(
            grid=grid.set_building_kind(x, y, BuildingKind.NONE),
            city=new_city,
            event=GameEvent(EventKind.DEMOLISH, f"Demolished {demolished.name}", day=city.day, x=x, y=y),
        )

    if not tile.is_empty:
        return noop

    building = catalog[tool]
    try:
        new_city = city.debit(building.cost)
    except InsufficientFundsError:
        return _rejected(grid, city, f"Treasury insufficient for {building.name}.", x, y)
    return CommandOutcome(
        grid=grid.set_building_kind(x, y, tool),
        city=new_city,
        event=GameEvent(EventKind.BUILD, f"Built {building.name}", day=city.day, x=x, y=y),
    )
