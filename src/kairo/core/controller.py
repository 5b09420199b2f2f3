"""
Simulation controller.

Owns one city session and sequences everything that changes it:

- ``tick()`` runs the economy engine, commits the new ``CityState``,
  evaluates the goal and occasionally asks for a news headline
- ``apply_command()`` builds or demolishes a tile
- ``claim_goal()`` pays out a completed goal and requests the next one

Calls to the content generator are fire-and-observe: they are submitted to
an executor and their futures are polled at the start of every public
call, so results are applied as ordinary transitions on the caller's
thread. Callers must not drive one controller from two threads at once.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from kairo.core.buildings import BUILDINGS, BuildingKind, Catalog
from kairo.core.commands import CommandOutcome, apply_command
from kairo.core.config import SimulationConfig
from kairo.core.economy import TickResult, apply_tick, compute_tick
from kairo.core.events import EventBus, EventKind, GameEvent
from kairo.core.generator import ContentGenerator, NullGenerator
from kairo.core.goals import Goal, GoalPhase, GoalTracker
from kairo.core.grid import Grid, create_grid
from kairo.core.scenarios import Scenario
from kairo.core.state import CityState, NewsItem, NewsLog, Sentiment
from kairo.core.terrain import TERRAIN_BRIEFINGS, Terrain

logger = logging.getLogger(__name__)


class SessionClosedError(RuntimeError):
    """Raised when a closed session is driven."""


class InlineExecutor(Executor):
    """Executor that runs each call immediately on the submitting thread."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


@dataclass
class TickReport:
    """What happened during one tick."""
    day: int
    result: TickResult
    city: CityState
    goal_completed: bool = False
    events: list[GameEvent] = field(default_factory=list)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of a session for the presentation layer."""
    scenario: Scenario
    grid: Grid
    city: CityState
    goal: Goal | None
    goal_phase: GoalPhase
    news: list[NewsItem]

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario.to_dict(),
            "grid": self.grid.to_dict(),
            "city": self.city.to_dict(),
            "goal": self.goal.to_dict() if self.goal else None,
            "goal_phase": self.goal_phase.value,
            "news": [n.to_dict() for n in self.news],
        }


def _guarded(fn: Callable[..., Any], *args: Any) -> Any:
    """Run a generator call, mapping any failure to ``None``."""
    try:
        return fn(*args)
    except Exception:
        logger.warning("Content generator call %s failed", getattr(fn, "__name__", fn), exc_info=True)
        return None


class SimulationController:
    """Drives a single city session.

    Parameters
    ----------
    scenario : Scenario
        Terrain and opening treasury.
    config : SimulationConfig | None
        Tunables; defaults to ``SimulationConfig()``.
    generator : ContentGenerator | None
        Goal/news source. ``None`` means offline (``NullGenerator``).
    executor : Executor | None
        Where generator calls run. Defaults to a private two-worker
        thread pool, shut down by ``close()``.
    clock : callable
        Monotonic seconds, used for the goal retry backoff and news cooldown.
    """

    def __init__(
        self,
        scenario: Scenario,
        config: SimulationConfig | None = None,
        generator: ContentGenerator | None = None,
        executor: Executor | None = None,
        catalog: Catalog = BUILDINGS,
        clock: Callable[[], float] = time.monotonic,
        rng: np.random.Generator | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.scenario = scenario
        self.config = config or SimulationConfig()
        self.catalog = catalog
        self.generator = generator or NullGenerator()
        self.bus = bus or EventBus()
        self.rng = rng or np.random.default_rng(self.config.random_seed)
        self._clock = clock

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="kairo-gen")

        # State
        self.grid: Grid = create_grid(self.config.grid_size)
        self.city = CityState(treasury=scenario.initial_treasury)
        self.news = NewsLog(self.config.news_log_size)
        self.goals = GoalTracker(retry_delay=self.config.goal_retry_delay)
        self.last_counts: dict[BuildingKind, int] = {}

        self._goal_future: Future | None = None
        self._news_future: Future | None = None
        self._last_news_request: float | None = None
        self._outbox: list[GameEvent] = []
        self.started = False
        self.closed = False

    @property
    def terrain(self) -> Terrain:
        return self.scenario.terrain

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> list[GameEvent]:
        """Post the welcome headlines and request the first goal."""
        self._begin()
        if not self.started:
            self.started = True
            self._post_news(NewsItem.create(
                f"Welcome to {self.scenario.name}. Mayor appointed!", Sentiment.POSITIVE,
            ))
            briefing = TERRAIN_BRIEFINGS.get(self.terrain)
            if briefing:
                self._post_news(NewsItem.create(briefing, Sentiment.NEUTRAL))
            self.request_goal()
        return self._flush()

    def close(self) -> None:
        """End the session. Generator results arriving later are discarded."""
        if self.closed:
            return
        self.closed = True
        self._goal_future = None
        self._news_future = None
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        logger.debug("Closed session for scenario %s", self.scenario.id)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> TickReport:
        """Advance the city by one day."""
        self._begin()
        result = compute_tick(self.grid, self.catalog, self.terrain, self.config)
        self.city = apply_tick(self.city, result, self.config)
        self.last_counts = dict(result.counts_by_kind)

        completed = self.goals.evaluate(self.city, result.counts_by_kind)
        if completed:
            goal = self.goals.goal
            self._emit(EventKind.GOAL_SUCCESS, f"Goal complete: {goal.description}" if goal else "")

        now = self._clock()
        if self.goals.retry_due(now):
            self.request_goal()
        self._maybe_request_news(now)

        return TickReport(
            day=self.city.day,
            result=result,
            city=self.city,
            goal_completed=completed,
            events=self._flush(),
        )

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def apply_command(self, tool: BuildingKind, x: int, y: int) -> CommandOutcome:
        """Build ``tool`` (or demolish, for ``BuildingKind.NONE``) at ``(x, y)``."""
        self._begin()
        outcome = apply_command(
            self.grid, self.city, tool, x, y,
            terrain=self.terrain, catalog=self.catalog, config=self.config,
        )
        self.grid = outcome.grid
        self.city = outcome.city
        if outcome.news is not None:
            self.news.append(outcome.news)
        if outcome.event is not None:
            self._publish(outcome.event)
        self._flush()
        return outcome

    def claim_goal(self) -> Goal:
        """Pay out the completed goal and request a new one.

        Raises:
            GoalNotClaimableError: if the current goal is not completed.
        """
        self._begin()
        goal = self.goals.claim()
        self.city = self.city.credit(goal.reward)
        self._post_news(NewsItem.create(f"Goal achieved! {goal.reward} deposited.", Sentiment.POSITIVE))
        self.request_goal()
        self._flush()
        return goal

    # ------------------------------------------------------------------
    # Generator requests
    # ------------------------------------------------------------------

    def request_goal(self) -> bool:
        """Start a goal fetch. No-op while a goal is pending or held."""
        if not self.goals.request():
            return False
        logger.debug("Requesting goal on day %d", self.city.day)
        self._goal_future = self._executor.submit(
            _guarded, self.generator.generate_goal, self.city, self.grid,
        )
        self.poll()
        return True

    def _maybe_request_news(self, now: float) -> None:
        if self._news_future is not None:
            return
        if self._last_news_request is not None and now - self._last_news_request < self.config.news_cooldown:
            return
        if self.rng.random() >= self.config.news_probability:
            return
        self._last_news_request = now
        self._news_future = self._executor.submit(
            _guarded, self.generator.generate_news, self.city, self.news_context(),
        )
        self.poll()

    def news_context(self) -> dict[str, Any]:
        goal = self.goals.goal
        return {
            "scenario": self.scenario.name,
            "terrain": self.terrain.value,
            "building_counts": {k.value: v for k, v in self.last_counts.items()},
            "goal": goal.description if goal else None,
        }

    def poll(self) -> None:
        """Apply any generator results that have arrived."""
        if self.closed:
            return
        future = self._goal_future
        if future is not None and future.done():
            self._goal_future = None
            goal = future.result()
            self.goals.resolve(goal, self._clock())
            if goal is None:
                logger.info("Goal generator returned nothing; retrying in %.0fs", self.config.goal_retry_delay)
            else:
                self._emit(EventKind.NOTIFICATION, f"New goal: {goal.description}")
        future = self._news_future
        if future is not None and future.done():
            self._news_future = None
            item = future.result()
            if item is not None:
                self._post_news(item)

    @property
    def goal_fetch_in_flight(self) -> bool:
        return self._goal_future is not None

    @property
    def news_fetch_in_flight(self) -> bool:
        return self._news_future is not None

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        if not self.closed:
            self.poll()
        return Snapshot(
            scenario=self.scenario,
            grid=self.grid,
            city=self.city,
            goal=self.goals.goal,
            goal_phase=self.goals.phase,
            news=self.news.items(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        if self.closed:
            raise SessionClosedError(f"Session for scenario '{self.scenario.id}' is closed")
        self._outbox = []
        self.poll()

    def _post_news(self, item: NewsItem) -> None:
        self.news.append(item)
        self._emit(EventKind.NOTIFICATION, item.text)

    def _emit(self, kind: EventKind, message: str) -> None:
        self._publish(GameEvent(kind, message, day=self.city.day))

    def _publish(self, event: GameEvent) -> None:
        self._outbox.append(event)
        self.bus.publish(event)

    def _flush(self) -> list[GameEvent]:
        events, self._outbox = self._outbox, []
        return events
