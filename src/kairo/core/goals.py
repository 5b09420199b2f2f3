"""
Goal state machine.

Tracks a single externally generated objective::

    NO_GOAL -> PENDING -> ACTIVE -> COMPLETED -(claim)-> NO_GOAL
                  |
                  +-- generator returned nothing -> NO_GOAL (retry later)

Time is passed in explicitly (seconds, any monotonic origin) so the retry
backoff can be driven by a fake clock in tests.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping

from kairo.core.buildings import BuildingKind
from kairo.core.state import CityState

logger = logging.getLogger(__name__)


class TargetMetric(str, Enum):
    TREASURY = "treasury"
    POPULATION = "population"
    BUILDING_COUNT = "building_count"


class GoalPhase(str, Enum):
    NO_GOAL = "no_goal"
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class GoalNotClaimableError(Exception):
    """Raised when a reward is claimed for a goal that is not completed."""


@dataclass(frozen=True)
class Goal:
    """An objective with a single completion predicate and a reward."""

    id: str
    description: str
    target_metric: TargetMetric
    target_value: int
    reward: int
    target_building_kind: BuildingKind | None = None
    completed: bool = False

    def __post_init__(self) -> None:
        if self.target_metric is TargetMetric.BUILDING_COUNT and self.target_building_kind is None:
            raise ValueError("building_count goals need a target_building_kind")

    @classmethod
    def create(
        cls,
        description: str,
        target_metric: TargetMetric,
        target_value: int,
        reward: int,
        target_building_kind: BuildingKind | None = None,
    ) -> Goal:
        return cls(
            id=uuid.uuid4().hex[:8],
            description=description,
            target_metric=target_metric,
            target_value=target_value,
            reward=reward,
            target_building_kind=target_building_kind,
        )

    def is_met(self, state: CityState, counts_by_kind: Mapping[BuildingKind, int]) -> bool:
        """Evaluate the predicate selected by ``target_metric``."""
        if self.target_metric is TargetMetric.TREASURY:
            return state.treasury >= self.target_value
        if self.target_metric is TargetMetric.POPULATION:
            return state.population >= self.target_value
        return counts_by_kind.get(self.target_building_kind, 0) >= self.target_value

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "target_metric": self.target_metric.value,
            "target_building_kind": (
                self.target_building_kind.value if self.target_building_kind else None
            ),
            "target_value": self.target_value,
            "reward": self.reward,
            "completed": self.completed,
        }


class GoalTracker:
    """Holds at most one goal and enforces the legal phase transitions."""

    def __init__(self, retry_delay: float = 20.0) -> None:
        self.retry_delay = retry_delay
        self.phase = GoalPhase.NO_GOAL
        self.goal: Goal | None = None
        self.retry_at: float | None = None

    def request(self) -> bool:
        """Enter PENDING. Returns False (no-op) unless currently NO_GOAL."""
        if self.phase is not GoalPhase.NO_GOAL:
            return False
        self.phase = GoalPhase.PENDING
        self.retry_at = None
        return True

    def resolve(self, goal: Goal | None, now: float) -> None:
        """Apply the generator's answer to a pending request.

        ``None`` means the generator could not produce a goal; the tracker
        drops back to NO_GOAL and schedules a retry ``retry_delay`` later.
        """
        if self.phase is not GoalPhase.PENDING:
            logger.debug("Ignoring goal result in phase %s", self.phase.value)
            return
        if goal is None:
            self.phase = GoalPhase.NO_GOAL
            self.retry_at = now + self.retry_delay
            return
        self.goal = replace(goal, completed=False)
        self.phase = GoalPhase.ACTIVE

    def retry_due(self, now: float) -> bool:
        return (
            self.phase is GoalPhase.NO_GOAL
            and self.retry_at is not None
            and now >= self.retry_at
        )

    def evaluate(self, state: CityState, counts_by_kind: Mapping[BuildingKind, int]) -> bool:
        """Check an active goal against fresh state. True on completion."""
        if self.phase is not GoalPhase.ACTIVE or self.goal is None:
            return False
        if not self.goal.is_met(state, counts_by_kind):
            return False
        self.goal = replace(self.goal, completed=True)
        self.phase = GoalPhase.COMPLETED
        return True

    def claim(self) -> Goal:
        """Clear a completed goal and return it so its reward can be paid.

        Raises:
            GoalNotClaimableError: if no completed goal is held.
        """
        if self.phase is not GoalPhase.COMPLETED or self.goal is None:
            raise GoalNotClaimableError(f"No completed goal to claim (phase: {self.phase.value})")
        goal = self.goal
        self.goal = None
        self.phase = GoalPhase.NO_GOAL
        return goal
