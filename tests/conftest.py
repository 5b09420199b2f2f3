"""
Shared test configuration.

Disables the LLM provider for the whole test session so no test reaches
a real API, and provides small controller helpers.
"""

import os
from concurrent.futures import Executor, Future

import pytest


@pytest.fixture(autouse=True, scope="session")
def _offline_llm():
    """Force the offline generator unless a test injects its own."""
    previous = os.environ.get("KAIRO_LLM_PROVIDER")
    os.environ["KAIRO_LLM_PROVIDER"] = "none"
    yield
    if previous is None:
        os.environ.pop("KAIRO_LLM_PROVIDER", None)
    else:
        os.environ["KAIRO_LLM_PROVIDER"] = previous


class ManualExecutor(Executor):
    """Executor that holds calls until ``run_all()``; simulates in-flight requests."""

    def __init__(self):
        self.queued: list[tuple[Future, object, tuple]] = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.queued.append((future, fn, args))
        return future

    def run_all(self):
        queued, self.queued = self.queued, []
        for future, fn, args in queued:
            future.set_result(fn(*args))


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def manual_executor():
    return ManualExecutor()


@pytest.fixture
def fake_clock():
    return FakeClock()
