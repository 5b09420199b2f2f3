"""
Scenario definitions: the starting conditions of a city session.

A scenario fixes the terrain and the opening treasury. It is loaded once
when a session starts and never changes afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kairo.core.terrain import Terrain


@dataclass(frozen=True)
class Scenario:
    """Immutable scenario configuration."""

    id: str
    name: str
    terrain: Terrain
    initial_treasury: int
    description: str = ""
    difficulty: str = "Medium"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "terrain": self.terrain.value,
            "initial_treasury": self.initial_treasury,
            "description": self.description,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Scenario:
        return cls(
            id=d["id"],
            name=d["name"],
            terrain=Terrain(d["terrain"]),
            initial_treasury=int(d["initial_treasury"]),
            description=d.get("description", ""),
            difficulty=d.get("difficulty", "Medium"),
        )


SUNNY_ISLES = Scenario(
    id="sunny-isles",
    name="Sunny Isles",
    terrain=Terrain.ISLAND,
    initial_treasury=2000,
    description="A beginner-friendly island paradise. Perfect for tourism and relaxed building.",
    difficulty="Easy",
)

METRO_PLAINS = Scenario(
    id="metro-center",
    name="Metro Plains",
    terrain=Terrain.PLAINS,
    initial_treasury=1000,
    description="A vast flat expanse ready for rapid urbanization and high-density blocks.",
    difficulty="Medium",
)

AZURE_COAST = Scenario(
    id="azure-coast",
    name="Azure Coast",
    terrain=Terrain.COAST,
    initial_treasury=800,
    description="A scenic coastline with limited buildable area. Requires strategic planning.",
    difficulty="Hard",
)

SCENARIOS: dict[str, Scenario] = {
    s.id: s for s in (SUNNY_ISLES, METRO_PLAINS, AZURE_COAST)
}


def get_scenario(scenario_id: str) -> Scenario:
    """Look up a built-in scenario by id.

    Raises KeyError with a helpful message if the id is unknown.
    """
    try:
        return SCENARIOS[scenario_id]
    except KeyError:
        available = ", ".join(sorted(SCENARIOS))
        raise KeyError(f"Unknown scenario '{scenario_id}'. Available: {available}")


def list_scenarios() -> list[Scenario]:
    return list(SCENARIOS.values())
