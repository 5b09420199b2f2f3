"""
Interface to the goal/news content generator.

The controller only depends on this abstract interface. The LLM-backed
implementation lives in ``kairo.llm.generators``; ``NullGenerator`` is the
offline stand-in used when no provider is configured.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from kairo.core.goals import Goal
from kairo.core.grid import Grid
from kairo.core.state import CityState, NewsItem


class ContentGenerator(ABC):
    """Source of goals and news headlines.

    Both methods return ``None`` when nothing can be produced; callers
    treat that as a recoverable, silent failure.
    """

    @abstractmethod
    def generate_goal(self, state: CityState, grid: Grid) -> Goal | None: ...

    @abstractmethod
    def generate_news(self, state: CityState, context: dict[str, Any] | None = None) -> NewsItem | None: ...


class NullGenerator(ContentGenerator):
    """Generator that never produces anything."""

    def generate_goal(self, state: CityState, grid: Grid) -> Goal | None:
        return None

    def generate_news(self, state: CityState, context: dict[str, Any] | None = None) -> NewsItem | None:
        return None
