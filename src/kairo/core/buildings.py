"""
Building kinds and the static building catalog.

The catalog maps every ``BuildingKind`` to its cost and daily yields. It is
read-only for the lifetime of the process; the economy engine, the command
layer and the API all consume the same ``BUILDINGS`` mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class BuildingKind(str, Enum):
    """What occupies a tile. ``NONE`` is an empty, buildable tile."""
    NONE = "none"
    ROAD = "road"
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    PARK = "park"


@dataclass(frozen=True)
class BuildingConfig:
    """Static cost and yield record for one building kind."""
    kind: BuildingKind
    cost: int
    population_yield: int
    income_yield: int
    name: str
    description: str
    color: str = "#9ca3af"

    def __post_init__(self) -> None:
        if self.cost < 0:
            raise ValueError(f"Building cost must be >= 0, got {self.cost} for {self.kind.value}")

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "cost": self.cost,
            "population_yield": self.population_yield,
            "income_yield": self.income_yield,
            "name": self.name,
            "description": self.description,
            "color": self.color,
        }


Catalog = Mapping[BuildingKind, BuildingConfig]


def _build_catalog(*configs: BuildingConfig) -> Catalog:
    catalog = {c.kind: c for c in configs}
    missing = set(BuildingKind) - set(catalog)
    if missing:
        raise ValueError(f"Catalog missing kinds: {sorted(k.value for k in missing)}")
    return MappingProxyType(catalog)


BUILDINGS: Catalog = _build_catalog(
    BuildingConfig(BuildingKind.NONE, 0, 0, 0, "Bulldoze", "Clear a tile", "#ef4444"),
    BuildingConfig(BuildingKind.ROAD, 10, 0, 0, "Road", "Connects buildings.", "#374151"),
    BuildingConfig(BuildingKind.RESIDENTIAL, 100, 5, 0, "House", "+5 Pop/day", "#f87171"),
    BuildingConfig(BuildingKind.COMMERCIAL, 200, 0, 15, "Shop", "+$15/day", "#60a5fa"),
    BuildingConfig(BuildingKind.INDUSTRIAL, 400, 0, 40, "Factory", "+$40/day", "#facc15"),
    BuildingConfig(BuildingKind.PARK, 50, 1, 0, "Park", "Looks nice.", "#4ade80"),
)


def make_catalog(overrides: dict[BuildingKind, dict[str, object]] | None = None) -> Catalog:
    """Return the default catalog with per-kind field overrides applied."""
    if not overrides:
        return BUILDINGS
    configs = []
    for kind, cfg in BUILDINGS.items():
        fields = cfg.to_dict()
        fields.update(overrides.get(kind, {}))
        fields["kind"] = kind
        configs.append(BuildingConfig(**fields))
    return _build_catalog(*configs)
