"""
Square tile grid for the city map.

Coordinate system: ``x`` is the column, ``y`` the row, both in
``[0, size)``. Tiles are stored row-major, so ``rows[y][x]`` is the tile at
``(x, y)``.

Grids are immutable snapshots. ``set_building_kind`` returns a new grid in
which exactly one tile differs; every other row and tile object is shared
with the source grid, so observers can detect changes with ``is`` checks.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterator

from kairo.core.buildings import BuildingKind

# Orthogonal neighbor offsets: N, S, W, E
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


class OutOfBoundsError(IndexError):
    """Raised when a coordinate lies outside the grid."""

    def __init__(self, x: int, y: int, size: int) -> None:
        super().__init__(f"Tile ({x}, {y}) is outside a {size}x{size} grid")
        self.x = x
        self.y = y
        self.size = size


@dataclass(frozen=True)
class Tile:
    """A single grid cell. Identity is its ``(x, y)`` coordinate."""

    x: int
    y: int
    building_kind: BuildingKind = BuildingKind.NONE

    @property
    def coords(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def is_empty(self) -> bool:
        return self.building_kind is BuildingKind.NONE

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "building_kind": self.building_kind.value}


class Grid:
    """Immutable square grid of tiles."""

    __slots__ = ("size", "rows")

    def __init__(self, rows: tuple[tuple[Tile, ...], ...]) -> None:
        self.size = len(rows)
        self.rows = rows

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> Tile:
        """Return the tile at ``(x, y)``.

        Raises:
            OutOfBoundsError: if either coordinate is outside ``[0, size)``.
        """
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self.size)
        return self.rows[y][x]

    def neighbors(self, x: int, y: int) -> list[Tile]:
        """Orthogonal neighbors of ``(x, y)`` that lie inside the grid."""
        result: list[Tile] = []
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                result.append(self.rows[ny][nx])
        return result

    def tiles(self) -> Iterator[Tile]:
        """Iterate over every tile, row by row."""
        for row in self.rows:
            yield from row

    def occupied(self) -> Iterator[Tile]:
        for tile in self.tiles():
            if not tile.is_empty:
                yield tile

    def counts_by_kind(self) -> dict[BuildingKind, int]:
        """Count of non-empty tiles per building kind."""
        counts: dict[BuildingKind, int] = {}
        for tile in self.occupied():
            counts[tile.building_kind] = counts.get(tile.building_kind, 0) + 1
        return counts

    # ------------------------------------------------------------------
    # Copy-on-write update
    # ------------------------------------------------------------------

    def set_building_kind(self, x: int, y: int, kind: BuildingKind) -> Grid:
        """Return a new grid with the tile at ``(x, y)`` set to ``kind``.

        All other rows and tiles are shared with ``self``. If the tile
        already holds ``kind`` the grid itself is returned.
        """
        tile = self.get(x, y)
        if tile.building_kind is kind:
            return self
        row = self.rows[y]
        new_row = row[:x] + (replace(tile, building_kind=kind),) + row[x + 1:]
        return Grid(self.rows[:y] + (new_row,) + self.rows[y + 1:])

    # ------------------------------------------------------------------
    # Dunder / serialization
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.rows is other.rows or self.rows == other.rows

    def __hash__(self) -> int:
        return hash(self.rows)

    def __repr__(self) -> str:
        occupied = sum(1 for _ in self.occupied())
        return f"Grid(size={self.size}, occupied={occupied})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize as a size plus a row-major matrix of kind values."""
        return {
            "size": self.size,
            "rows": [[t.building_kind.value for t in row] for row in self.rows],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Grid:
        rows = tuple(
            tuple(Tile(x, y, BuildingKind(v)) for x, v in enumerate(row))
            for y, row in enumerate(d["rows"])
        )
        if any(len(row) != len(rows) for row in rows):
            raise ValueError("Grid rows must form a square matrix")
        return cls(rows)


def create_grid(size: int) -> Grid:
    """Create a ``size`` x ``size`` grid with every tile empty."""
    if size <= 0:
        raise ValueError(f"Grid size must be positive, got {size}")
    return Grid(tuple(
        tuple(Tile(x, y) for x in range(size))
        for y in range(size)
    ))
