"""
Master configuration for the Kairo city simulation.

ALL tunable parameters live here. Terrain rules, the population model and
the goal/news cadence read their constants from a ``SimulationConfig``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class SimulationConfig:
    """
    Master configuration for a city session.

    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Map ===
    grid_size: int = 15

    # === Clock ===
    tick_seconds: float = 2.0
    random_seed: int | None = None

    # === Commands ===
    demolition_fee: int = 5

    # === Terrain: island ===
    island_radius: float = 6.0
    island_commercial_multiplier: float = 1.2

    # === Terrain: coast ===
    coast_water_line: int = 4  # Columns with x below this are water
    coast_ocean_view_band: tuple[int, int] = (4, 6)  # Inclusive
    coast_ocean_view_bonus: int = 5
    coast_inland_column: int = 10  # Commercial with x above this is inland
    coast_inland_multiplier: float = 0.9

    # === Population ===
    park_adjacency_bonus: int = 2
    population_per_residential: int = 50
    abandonment_decay: int = 5

    # === Goals & news ===
    news_log_size: int = 13
    goal_retry_delay: float = 20.0
    news_cooldown: float = 45.0
    news_probability: float = 0.05

    # === LLM ===
    llm: dict[str, Any] = field(default_factory=lambda: {
        "provider": "anthropic",
        "model": None,
        "goal_temperature": 0.8,
        "news_temperature": 0.9,
    })

    def __post_init__(self) -> None:
        self.validate()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    _POSITIVE_INTS = ("grid_size", "news_log_size", "population_per_residential")
    _NON_NEGATIVE_INTS = (
        "demolition_fee", "coast_water_line", "coast_ocean_view_bonus",
        "coast_inland_column", "park_adjacency_bonus", "abandonment_decay",
    )
    _POSITIVE_FLOATS = ("tick_seconds",)
    _NON_NEGATIVE_FLOATS = (
        "island_radius", "island_commercial_multiplier", "coast_inland_multiplier",
        "goal_retry_delay", "news_cooldown",
    )

    def validate(self) -> None:
        """Check every tunable.

        Raises:
            TypeError: if a value has the wrong type.
            ValueError: if a value is out of range.
        """
        for name in self._POSITIVE_INTS + self._NON_NEGATIVE_INTS:
            value = getattr(self, name)
            if not _is_int(value):
                raise TypeError(f"{name} must be an int, got {value!r}")
            if name in self._POSITIVE_INTS and value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

        for name in self._POSITIVE_FLOATS + self._NON_NEGATIVE_FLOATS:
            value = getattr(self, name)
            if not _is_number(value):
                raise TypeError(f"{name} must be a number, got {value!r}")
            if name in self._POSITIVE_FLOATS and value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

        if not _is_number(self.news_probability):
            raise TypeError(f"news_probability must be a number, got {self.news_probability!r}")
        if not 0.0 <= self.news_probability <= 1.0:
            raise ValueError(f"news_probability must be in [0, 1], got {self.news_probability}")

        band = self.coast_ocean_view_band
        if not (isinstance(band, tuple) and len(band) == 2 and all(_is_int(b) for b in band)):
            raise TypeError(f"coast_ocean_view_band must be a pair of ints, got {band!r}")
        if band[0] > band[1]:
            raise ValueError(f"coast_ocean_view_band must be ordered, got {band}")

        if self.random_seed is not None and not _is_int(self.random_seed):
            raise TypeError(f"random_seed must be an int or None, got {self.random_seed!r}")
        if not isinstance(self.llm, dict):
            raise TypeError(f"llm must be a dict, got {self.llm!r}")

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = list(v) if isinstance(v, tuple) else v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SimulationConfig:
        """Deserialize from a dict.

        Unknown keys and wrongly typed values raise ``TypeError``;
        out-of-range values raise ``ValueError``.
        """
        values = {k: v for k, v in d.items() if not k.startswith("_")}
        if "coast_ocean_view_band" in values:
            values["coast_ocean_view_band"] = tuple(values["coast_ocean_view_band"])
        if "llm" in values:
            llm = cls().llm
            llm.update(values["llm"] or {})
            values["llm"] = llm
        return cls(**values)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> SimulationConfig:
        return cls.from_dict(json.loads(s))

    def diff(self, other: SimulationConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs

    @property
    def map_center(self) -> tuple[float, float]:
        """Center tile coordinate; (7, 7) on the default 15x15 map."""
        c = (self.grid_size - 1) / 2
        return (c, c)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
