"""
System prompts and context builders for the city's AI advisor.

Three modes:
  - Goal: propose one measurable objective with a reward
  - News: a single short headline reacting to the city's situation
  - Greeting: the hub secretary's one-line welcome
"""

from __future__ import annotations

from typing import Any

from kairo.core.buildings import BuildingKind
from kairo.core.state import CityState


# ---------------------------------------------------------------------------
# System prompts
# ---------------------------------------------------------------------------

GOAL_SYSTEM_PROMPT = """You are the city advisor in a small city-building game.

Propose ONE short-term objective for the mayor that is achievable from the city's current situation within a few minutes of play. Choose exactly one target metric:
- "treasury": reach a treasury amount
- "population": reach a population
- "building_count": own a number of buildings of one kind (road, residential, commercial, industrial, park)

Respond with ONLY a JSON object, no prose:
{"description": "<one sentence>", "target_metric": "treasury|population|building_count", "building_kind": "<kind, only for building_count>", "target_value": <int>, "reward": <int>}

Targets should be ambitious but reachable: slightly above the current value. Rewards are between 100 and 1000."""

NEWS_SYSTEM_PROMPT = """You write headlines for the local newspaper of a small simulated city.

Write ONE short, witty headline (under 15 words) reacting to the city's current state. Respond with ONLY a JSON object:
{"text": "<headline>", "sentiment": "positive|neutral|negative"}"""

GREETING_SYSTEM_PROMPT = """You are the cheerful AI secretary of a city-management simulation hub.

Greet the returning mayor in one short sentence (under 20 words). Respond with ONLY a JSON object:
{"greeting": "<sentence>"}"""


# ---------------------------------------------------------------------------
# Context builders
# ---------------------------------------------------------------------------

def build_city_context(
    state: CityState,
    counts_by_kind: dict[BuildingKind, int] | None = None,
    extra: dict[str, Any] | None = None,
) -> str:
    """Summarize a city for a prompt.

    Parameters
    ----------
    state : CityState
        Current treasury, population and day.
    counts_by_kind : dict | None
        Buildings per kind; kinds with no buildings are reported as 0.
    extra : dict | None
        Additional ``KEY: value`` lines (scenario, terrain, current goal).
    """
    parts = [
        f"DAY: {state.day}",
        f"TREASURY: ${state.treasury}",
        f"POPULATION: {state.population}",
    ]

    if counts_by_kind is not None:
        parts.append("")
        parts.append("BUILDINGS:")
        for kind in BuildingKind:
            if kind is BuildingKind.NONE:
                continue
            parts.append(f"  {kind.value}: {counts_by_kind.get(kind, 0)}")

    if extra:
        parts.append("")
        for key, value in extra.items():
            if value is None or value == {}:
                continue
            if isinstance(value, dict):
                value = ", ".join(f"{k}={v}" for k, v in value.items())
            parts.append(f"{key.upper().replace('_', ' ')}: {value}")

    return "\n".join(parts)
