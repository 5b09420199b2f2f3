"""
In-memory session manager for city games.

Each session wraps one ``SimulationController``. A per-session lock makes
every tick, command and claim a discrete, non-overlapping event, whether
it comes from an HTTP request or from the optional auto-tick clock thread.

Sessions live only as long as the process; nothing is persisted.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Callable

from kairo.core.buildings import BuildingKind
from kairo.core.commands import CommandOutcome
from kairo.core.config import SimulationConfig
from kairo.core.controller import SimulationController, TickReport
from kairo.core.generator import ContentGenerator
from kairo.core.goals import Goal
from kairo.core.scenarios import get_scenario
from kairo.llm.client import client_from_env
from kairo.llm.generators import CityGenerator

logger = logging.getLogger(__name__)

GeneratorFactory = Callable[[SimulationConfig], ContentGenerator]


def default_generator(config: SimulationConfig) -> ContentGenerator:
    """LLM generator configured from the environment (offline if unavailable)."""
    return CityGenerator(
        client_from_env(),
        goal_temperature=config.llm.get("goal_temperature", 0.8),
        news_temperature=config.llm.get("news_temperature", 0.9),
    )


@dataclass
class GameSession:
    """A running city game."""

    id: str
    name: str
    controller: SimulationController
    created_at: float = field(default_factory=time.time)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    status: str = "created"  # created | running | closed
    _clock_stop: threading.Event | None = field(default=None, repr=False)
    _clock_thread: threading.Thread | None = field(default=None, repr=False)

    @property
    def clock_running(self) -> bool:
        return self._clock_thread is not None and self._clock_thread.is_alive()


class SessionManager:
    """Creates, drives and discards city sessions.

    Parameters
    ----------
    generator_factory : callable | None
        Builds the content generator for each new session. Defaults to
        ``default_generator``.
    executor : Executor | None
        Shared executor for generator calls. ``None`` gives every session
        its own small thread pool.
    """

    def __init__(
        self,
        generator_factory: GeneratorFactory | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.sessions: dict[str, GameSession] = {}
        self.generator_factory = generator_factory or default_generator
        self.executor = executor
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_session(
        self,
        scenario_id: str,
        config: SimulationConfig | None = None,
        name: str | None = None,
    ) -> GameSession:
        """Start a new game. Raises KeyError for an unknown scenario."""
        scenario = get_scenario(scenario_id)
        config = config or SimulationConfig()
        controller = SimulationController(
            scenario,
            config=config,
            generator=self.generator_factory(config),
            executor=self.executor,
        )
        session = GameSession(
            id=uuid.uuid4().hex[:8],
            name=name or scenario.name,
            controller=controller,
        )
        with session.lock:
            controller.start()
        with self._lock:
            self.sessions[session.id] = session
        logger.info("Created session %s (%s)", session.id, scenario.id)
        return session

    def get_session(self, session_id: str) -> GameSession:
        """Raises KeyError if not found."""
        try:
            return self.sessions[session_id]
        except KeyError:
            raise KeyError(f"Session '{session_id}' not found")

    def list_sessions(self) -> list[dict[str, Any]]:
        return [self.summary(s) for s in list(self.sessions.values())]

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            session = self.sessions.pop(session_id, None)
        if session is None:
            raise KeyError(f"Session '{session_id}' not found")
        self.stop_clock(session)
        with session.lock:
            session.controller.close()
            session.status = "closed"

    def close(self) -> None:
        """End every session."""
        for sid in list(self.sessions):
            self.delete_session(sid)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def tick(self, session_id: str, n: int = 1) -> list[TickReport]:
        session = self.get_session(session_id)
        with session.lock:
            return [session.controller.tick() for _ in range(n)]

    def command(self, session_id: str, tool: BuildingKind, x: int, y: int) -> CommandOutcome:
        session = self.get_session(session_id)
        with session.lock:
            return session.controller.apply_command(tool, x, y)

    def claim(self, session_id: str) -> Goal:
        """Raises GoalNotClaimableError if the goal is not completed."""
        session = self.get_session(session_id)
        with session.lock:
            return session.controller.claim_goal()

    # ------------------------------------------------------------------
    # Auto-tick clock
    # ------------------------------------------------------------------

    def start_clock(self, session_id: str) -> GameSession:
        """Tick the session every ``config.tick_seconds`` in a background thread."""
        session = self.get_session(session_id)
        with session.lock:
            if session.clock_running:
                return session
            stop = threading.Event()
            period = session.controller.config.tick_seconds

            def _worker() -> None:
                while not stop.wait(period):
                    with session.lock:
                        if session.controller.closed:
                            return
                        try:
                            session.controller.tick()
                        except Exception:
                            logger.exception("Clock tick failed for %s", session.id)
                            session.status = "error"
                            return

            session._clock_stop = stop
            session._clock_thread = threading.Thread(
                target=_worker, name=f"kairo-clock-{session.id}", daemon=True,
            )
            session.status = "running"
            session._clock_thread.start()
        return session

    def stop_clock(self, session: GameSession | str) -> GameSession:
        if isinstance(session, str):
            session = self.get_session(session)
        stop, thread = session._clock_stop, session._clock_thread
        if stop is not None:
            stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)
        session._clock_stop = None
        session._clock_thread = None
        if session.status == "running":
            session.status = "created"
        return session

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @staticmethod
    def summary(session: GameSession) -> dict[str, Any]:
        city = session.controller.city
        return {
            "id": session.id,
            "name": session.name,
            "scenario_id": session.controller.scenario.id,
            "status": session.status,
            "day": city.day,
            "treasury": city.treasury,
            "population": city.population,
        }

    def detail(self, session: GameSession) -> dict[str, Any]:
        with session.lock:
            snap = session.controller.snapshot()
            config = session.controller.config.to_dict()
        data = self.summary(session)
        data.update(snap.to_dict())
        data["clock_running"] = session.clock_running
        data["config"] = config
        return data
