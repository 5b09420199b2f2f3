"""
City aggregate state and the news log.

``CityState`` is an immutable snapshot: the tick engine and the command
layer return new instances rather than mutating in place.
"""

from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Iterator


class InsufficientFundsError(Exception):
    """Raised when a debit exceeds the treasury."""

    def __init__(self, amount: int, treasury: int) -> None:
        super().__init__(f"Cannot debit {amount}; treasury holds {treasury}")
        self.amount = amount
        self.treasury = treasury


@dataclass(frozen=True)
class CityState:
    """Treasury, population and elapsed day count of a city."""

    treasury: int
    population: int = 0
    day: int = 1

    def __post_init__(self) -> None:
        if self.population < 0:
            raise ValueError(f"population must be >= 0, got {self.population}")
        if self.day < 1:
            raise ValueError(f"day must be >= 1, got {self.day}")

    def can_afford(self, amount: int) -> bool:
        return self.treasury >= amount

    def debit(self, amount: int) -> CityState:
        """Return a new state with ``amount`` removed from the treasury.

        Raises:
            InsufficientFundsError: if the treasury cannot cover ``amount``.
        """
        if not self.can_afford(amount):
            raise InsufficientFundsError(amount, self.treasury)
        return replace(self, treasury=self.treasury - amount)

    def credit(self, amount: int) -> CityState:
        return replace(self, treasury=self.treasury + amount)

    def to_dict(self) -> dict[str, int]:
        return {"treasury": self.treasury, "population": self.population, "day": self.day}


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class NewsItem:
    """A single headline in the city news feed."""

    id: str
    text: str
    sentiment: Sentiment = Sentiment.NEUTRAL

    @classmethod
    def create(cls, text: str, sentiment: Sentiment = Sentiment.NEUTRAL) -> NewsItem:
        return cls(id=uuid.uuid4().hex[:8], text=text, sentiment=sentiment)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "sentiment": self.sentiment.value}


class NewsLog:
    """Append-only feed that keeps only the most recent ``maxlen`` items."""

    def __init__(self, maxlen: int = 13, items: Iterable[NewsItem] = ()) -> None:
        if maxlen <= 0:
            raise ValueError(f"maxlen must be positive, got {maxlen}")
        self._items: deque[NewsItem] = deque(items, maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._items.maxlen  # type: ignore[return-value]

    def append(self, item: NewsItem) -> None:
        self._items.append(item)

    def items(self) -> list[NewsItem]:
        """Oldest-first copy of the retained items."""
        return list(self._items)

    def latest(self) -> NewsItem | None:
        return self._items[-1] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[NewsItem]:
        return iter(list(self._items))
