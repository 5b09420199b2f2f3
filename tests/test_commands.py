"""Tests for terrain legality and the build/demolish command."""

import pytest

from kairo.core.buildings import BUILDINGS, BuildingKind
from kairo.core.commands import apply_command
from kairo.core.config import SimulationConfig
from kairo.core.events import EventKind
from kairo.core.grid import create_grid
from kairo.core.state import CityState, Sentiment
from kairo.core.terrain import IllegalPlacementError, Terrain, check_placement, is_buildable

CONFIG = SimulationConfig()


class TestIslandPlacement:
    def test_center_is_seven_seven(self):
        assert CONFIG.map_center == (7.0, 7.0)

    @pytest.mark.parametrize("x,y", [(7, 7), (13, 7), (1, 7), (7, 13), (7, 1)])
    def test_within_radius(self, x, y):
        check_placement(Terrain.ISLAND, x, y, CONFIG)

    @pytest.mark.parametrize("x,y", [(13, 8), (0, 0), (14, 14), (1, 6)])
    def test_beyond_radius(self, x, y):
        with pytest.raises(IllegalPlacementError):
            check_placement(Terrain.ISLAND, x, y, CONFIG)

    def test_radius_is_inclusive(self):
        # (13, 7) is exactly 6.0 from center; shrink radius just below it
        config = SimulationConfig(island_radius=5.99)
        assert is_buildable(Terrain.ISLAND, 13, 7, CONFIG)
        assert not is_buildable(Terrain.ISLAND, 13, 7, config)


class TestCoastPlacement:
    def test_water_columns(self):
        for x in range(4):
            assert not is_buildable(Terrain.COAST, x, 7, CONFIG)

    def test_land_columns(self):
        for x in range(4, 15):
            assert is_buildable(Terrain.COAST, x, 0, CONFIG)

    def test_error_message(self):
        with pytest.raises(IllegalPlacementError, match="water"):
            check_placement(Terrain.COAST, 0, 0, CONFIG)


class TestPlainsPlacement:
    def test_everything_buildable(self):
        assert all(is_buildable(Terrain.PLAINS, x, y, CONFIG) for x in range(15) for y in range(15))


class TestBuild:
    def test_build_on_empty(self):
        grid, city = create_grid(15), CityState(treasury=1000)
        out = apply_command(grid, city, BuildingKind.RESIDENTIAL, 3, 4)

        assert out.applied
        assert out.grid.get(3, 4).building_kind is BuildingKind.RESIDENTIAL
        assert out.city.treasury == 900
        assert out.event.kind is EventKind.BUILD
        assert (out.event.x, out.event.y) == (3, 4)
        assert out.news is None

    def test_exact_funds(self):
        out = apply_command(create_grid(15), CityState(treasury=400), BuildingKind.INDUSTRIAL, 0, 0)
        assert out.applied
        assert out.city.treasury == 0

    def test_insufficient_funds(self):
        grid, city = create_grid(15), CityState(treasury=199)
        out = apply_command(grid, city, BuildingKind.COMMERCIAL, 3, 4)

        assert not out.applied
        assert out.grid is grid
        assert out.city is city
        assert out.event.kind is EventKind.ERROR
        assert out.news.sentiment is Sentiment.NEGATIVE
        assert "Shop" in out.news.text

    def test_build_on_occupied_is_noop(self):
        grid = create_grid(15).set_building_kind(3, 4, BuildingKind.ROAD)
        city = CityState(treasury=1000)
        out = apply_command(grid, city, BuildingKind.PARK, 3, 4)

        assert out.grid is grid
        assert out.city is city
        assert out.event is None
        assert out.news is None


class TestDemolish:
    def test_demolish_occupied(self):
        grid = create_grid(15).set_building_kind(2, 2, BuildingKind.INDUSTRIAL)
        out = apply_command(grid, CityState(treasury=100), BuildingKind.NONE, 2, 2)

        assert out.applied
        assert out.grid.get(2, 2).is_empty
        assert out.city.treasury == 95
        assert out.event.kind is EventKind.DEMOLISH

    def test_demolish_empty_is_silent(self):
        grid, city = create_grid(15), CityState(treasury=100)
        out = apply_command(grid, city, BuildingKind.NONE, 2, 2)
        assert out.grid is grid
        assert out.city is city
        assert out.event is None

    def test_demolish_insufficient_funds(self):
        grid = create_grid(15).set_building_kind(2, 2, BuildingKind.ROAD)
        city = CityState(treasury=4)
        out = apply_command(grid, city, BuildingKind.NONE, 2, 2)

        assert out.grid is grid
        assert out.city is city
        assert out.event.kind is EventKind.ERROR
        assert out.news.text == "Cannot afford demolition costs."

    def test_custom_fee(self):
        grid = create_grid(15).set_building_kind(2, 2, BuildingKind.ROAD)
        config = SimulationConfig(demolition_fee=25)
        out = apply_command(grid, CityState(treasury=100), BuildingKind.NONE, 2, 2, config=config)
        assert out.city.treasury == 75

    def test_demolish_then_rebuild_round_trip(self):
        grid = create_grid(15).set_building_kind(6, 6, BuildingKind.COMMERCIAL)
        city = CityState(treasury=1000)

        demolished = apply_command(grid, city, BuildingKind.NONE, 6, 6)
        rebuilt = apply_command(demolished.grid, demolished.city, BuildingKind.COMMERCIAL, 6, 6)

        spent = city.treasury - rebuilt.city.treasury
        assert spent == BUILDINGS[BuildingKind.COMMERCIAL].cost + 5
        assert rebuilt.grid == grid


class TestGuards:
    @pytest.mark.parametrize("x,y", [(-1, 0), (15, 3), (3, 15), (0, -7)])
    def test_out_of_bounds_is_silent_noop(self, x, y):
        grid, city = create_grid(15), CityState(treasury=1000)
        out = apply_command(grid, city, BuildingKind.ROAD, x, y)
        assert out.grid is grid
        assert out.city is city
        assert out.event is None
        assert out.news is None

    def test_island_far_tile_rejected_without_charge(self):
        grid, city = create_grid(15), CityState(treasury=2000)
        out = apply_command(grid, city, BuildingKind.ROAD, 13, 8, terrain=Terrain.ISLAND)

        assert out.city.treasury == 2000
        assert out.grid is grid
        assert out.event.kind is EventKind.ERROR
        assert "island center" in out.news.text

    def test_island_boundary_tile_accepted(self):
        out = apply_command(create_grid(15), CityState(treasury=2000), BuildingKind.ROAD, 13, 7,
                            terrain=Terrain.ISLAND)
        assert out.applied

    def test_coast_water_rejects_demolish_too(self):
        grid = create_grid(15).set_building_kind(1, 1, BuildingKind.ROAD)
        out = apply_command(grid, CityState(treasury=100), BuildingKind.NONE, 1, 1, terrain=Terrain.COAST)
        assert out.event.kind is EventKind.ERROR
        assert out.grid is grid
