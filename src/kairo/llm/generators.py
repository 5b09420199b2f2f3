"""
LLM-backed goal, news and greeting generators.

The model is asked for a bare JSON object; the reply is located, parsed
and validated with pydantic. Anything unusable (provider errors,
malformed JSON, out-of-range values) is logged and reported as ``None``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from kairo.core.buildings import BuildingKind
from kairo.core.generator import ContentGenerator
from kairo.core.goals import Goal, TargetMetric
from kairo.core.grid import Grid
from kairo.core.state import CityState, NewsItem, Sentiment
from kairo.llm.client import LLMClient, LLMUnavailableError
from kairo.llm.prompts import (
    GOAL_SYSTEM_PROMPT,
    GREETING_SYSTEM_PROMPT,
    NEWS_SYSTEM_PROMPT,
    build_city_context,
)

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Welcome back, Mayor. Pick a city and let's get building!"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)

# Older prompt vocabulary still produced by some models.
_METRIC_ALIASES = {"money": "treasury", "buildings": "building_count"}


class GoalPayload(BaseModel):
    description: str = Field(min_length=1, max_length=300)
    target_metric: TargetMetric
    target_value: int = Field(gt=0)
    reward: int = Field(ge=0)
    building_kind: BuildingKind | None = None

    @field_validator("target_metric", mode="before")
    @classmethod
    def _alias_metric(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return _METRIC_ALIASES.get(v, v)
        return v

    @field_validator("building_kind", mode="before")
    @classmethod
    def _lower_kind(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _kind_for_counts(self) -> GoalPayload:
        if self.target_metric is TargetMetric.BUILDING_COUNT:
            if self.building_kind in (None, BuildingKind.NONE):
                raise ValueError("building_count goals need a building_kind")
        else:
            self.building_kind = None
        return self

    def to_goal(self) -> Goal:
        return Goal.create(
            description=self.description,
            target_metric=self.target_metric,
            target_value=self.target_value,
            reward=self.reward,
            target_building_kind=self.building_kind,
        )


class NewsPayload(BaseModel):
    text: str = Field(min_length=1, max_length=200)
    sentiment: Sentiment = Sentiment.NEUTRAL

    @field_validator("sentiment", mode="before")
    @classmethod
    def _lower_sentiment(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


def extract_json(text: str) -> dict[str, Any]:
    """Parse the first JSON object in a model reply.

    Raises:
        ValueError: if no JSON object can be decoded.
    """
    cleaned = _FENCE_RE.sub("", text.strip())
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError(f"No JSON object in reply: {text[:80]!r}")
    data = json.loads(cleaned[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("Reply JSON is not an object")
    return data


class CityGenerator(ContentGenerator):
    """Produces goals and headlines with an LLM.

    Parameters
    ----------
    client : LLMClient | None
        Any provider. ``None`` disables generation (every call returns None).
    goal_temperature, news_temperature : float
        Sampling temperatures for the two kinds of request.
    """

    def __init__(
        self,
        client: LLMClient | None,
        goal_temperature: float = 0.8,
        news_temperature: float = 0.9,
    ) -> None:
        self.client = client
        self.goal_temperature = goal_temperature
        self.news_temperature = news_temperature

    def _ask(self, system: str, prompt: str, max_tokens: int, temperature: float) -> dict[str, Any] | None:
        if self.client is None:
            return None
        try:
            resp = self.client.complete(
                system=system,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
            return extract_json(resp.text)
        except LLMUnavailableError as e:
            logger.warning("LLM unavailable: %s", e)
        except ValueError as e:
            logger.warning("Unusable LLM reply: %s", e)
        return None

    def generate_goal(self, state: CityState, grid: Grid) -> Goal | None:
        context = build_city_context(state, grid.counts_by_kind())
        data = self._ask(
            GOAL_SYSTEM_PROMPT,
            f"Propose the next goal for this city:\n\n{context}",
            max_tokens=256,
            temperature=self.goal_temperature,
        )
        if data is None:
            return None
        try:
            return GoalPayload.model_validate(data).to_goal()
        except ValidationError as e:
            logger.warning("Rejected generated goal: %s", e.errors())
            return None

    def generate_news(self, state: CityState, context: dict[str, Any] | None = None) -> NewsItem | None:
        extra = dict(context or {})
        counts = extra.pop("building_counts", None)
        counts_by_kind = (
            {BuildingKind(k): v for k, v in counts.items()} if counts is not None else None
        )
        prompt = "Write today's headline:\n\n" + build_city_context(state, counts_by_kind, extra)
        data = self._ask(NEWS_SYSTEM_PROMPT, prompt, max_tokens=128, temperature=self.news_temperature)
        if data is None:
            return None
        try:
            payload = NewsPayload.model_validate(data)
        except ValidationError as e:
            logger.warning("Rejected generated headline: %s", e.errors())
            return None
        return NewsItem.create(payload.text, payload.sentiment)

    def generate_greeting(self) -> str:
        """One-line hub greeting, or a fixed line when the model can't help."""
        data = self._ask(GREETING_SYSTEM_PROMPT, "Greet the mayor.", max_tokens=64, temperature=0.9)
        greeting = data.get("greeting") if data else None
        if isinstance(greeting, str) and greeting.strip():
            return greeting.strip()
        return DEFAULT_GREETING
