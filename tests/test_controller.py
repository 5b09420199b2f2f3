"""Tests for SimulationController: tick orchestration, commands, goals and news."""

from __future__ import annotations

import pytest

from kairo.core.buildings import BuildingKind
from kairo.core.config import SimulationConfig
from kairo.core.controller import InlineExecutor, SessionClosedError, SimulationController
from kairo.core.events import EventKind
from kairo.core.generator import ContentGenerator
from kairo.core.goals import Goal, GoalNotClaimableError, GoalPhase, TargetMetric
from kairo.core.scenarios import AZURE_COAST, METRO_PLAINS, SUNNY_ISLES
from kairo.core.state import NewsItem, Sentiment


class StubGenerator(ContentGenerator):
    """Hands out queued goals/headlines and records every call."""

    def __init__(self, goals=(), news=()):
        self.goals = list(goals)
        self.news = list(news)
        self.goal_calls = 0
        self.news_calls = []

    def generate_goal(self, state, grid):
        self.goal_calls += 1
        return self.goals.pop(0) if self.goals else None

    def generate_news(self, state, context=None):
        self.news_calls.append(context)
        return self.news.pop(0) if self.news else None


class ExplodingGenerator(ContentGenerator):
    def generate_goal(self, state, grid):
        raise RuntimeError("boom")

    def generate_news(self, state, context=None):
        raise RuntimeError("boom")


def _treasury_goal(value=1000, reward=250):
    return Goal.create("Reach the target", TargetMetric.TREASURY, value, reward)


def _controller(scenario=METRO_PLAINS, generator=None, executor=None, clock=None, **config):
    config.setdefault("news_probability", 0.0)
    config.setdefault("random_seed", 7)
    kwargs = {}
    if clock is not None:
        kwargs["clock"] = clock
    return SimulationController(
        scenario,
        config=SimulationConfig(**config),
        generator=generator or StubGenerator(),
        executor=executor or InlineExecutor(),
        **kwargs,
    )


class TestStart:
    def test_initial_state(self):
        ctl = _controller()
        assert ctl.city.treasury == 1000
        assert ctl.city.population == 0
        assert ctl.city.day == 1
        assert ctl.grid.size == 15

    def test_welcome_news(self):
        ctl = _controller()
        ctl.start()
        texts = [n.text for n in ctl.news]
        assert texts == ["Welcome to Metro Plains. Mayor appointed!"]

    @pytest.mark.parametrize("scenario,fragment", [(SUNNY_ISLES, "Tourism"), (AZURE_COAST, "Inland")])
    def test_terrain_briefing(self, scenario, fragment):
        ctl = _controller(scenario)
        ctl.start()
        assert len(ctl.news) == 2
        assert fragment in ctl.news.items()[1].text

    def test_start_is_idempotent(self):
        gen = StubGenerator()
        ctl = _controller(generator=gen)
        ctl.start()
        ctl.start()
        assert len(ctl.news) == 1
        assert gen.goal_calls == 1

    def test_first_goal_arrives(self):
        ctl = _controller(generator=StubGenerator(goals=[_treasury_goal(5000)]))
        events = ctl.start()
        assert ctl.goals.phase is GoalPhase.ACTIVE
        assert any(e.kind is EventKind.NOTIFICATION and "New goal" in e.message for e in events)


class TestTick:
    def test_advances_day_and_economy(self):
        ctl = _controller()
        ctl.apply_command(BuildingKind.RESIDENTIAL, 2, 2)
        ctl.apply_command(BuildingKind.COMMERCIAL, 4, 4)

        report = ctl.tick()
        assert report.day == 2
        assert report.city.population == 5
        assert report.city.treasury == 1000 - 100 - 200 + 15
        assert report.result.counts_by_kind[BuildingKind.RESIDENTIAL] == 1
        assert ctl.last_counts == report.result.counts_by_kind

    def test_uses_scenario_terrain(self):
        ctl = _controller(SUNNY_ISLES)
        ctl.apply_command(BuildingKind.COMMERCIAL, 7, 7)
        assert ctl.tick().result.income_delta == 18

    def test_abandoned_city_decays(self):
        ctl = _controller()
        ctl.apply_command(BuildingKind.RESIDENTIAL, 2, 2)
        for _ in range(4):
            ctl.tick()
        assert ctl.city.population == 20
        ctl.apply_command(BuildingKind.NONE, 2, 2)
        ctl.tick()
        assert ctl.city.population == 15


class TestGoalFlow:
    def test_fetch_stays_pending_until_result_arrives(self, manual_executor):
        gen = StubGenerator(goals=[_treasury_goal(5000)])
        ctl = _controller(generator=gen, executor=manual_executor)
        ctl.start()
        assert ctl.goals.phase is GoalPhase.PENDING
        assert ctl.goal_fetch_in_flight

        # Re-entrant request is a no-op
        assert ctl.request_goal() is False
        ctl.tick()
        assert len(manual_executor.queued) == 1

        manual_executor.run_all()
        ctl.tick()
        assert ctl.goals.phase is GoalPhase.ACTIVE
        assert gen.goal_calls == 1

    def test_completion_on_tick(self):
        ctl = _controller(generator=StubGenerator(goals=[_treasury_goal(1010)]))
        ctl.start()
        ctl.apply_command(BuildingKind.INDUSTRIAL, 1, 1)  # 600 left, +40/day
        report = None
        for _ in range(11):
            report = ctl.tick()
            if report.goal_completed:
                break
        assert report.goal_completed
        assert ctl.city.treasury >= 1010
        assert ctl.goals.phase is GoalPhase.COMPLETED
        assert any(e.kind is EventKind.GOAL_SUCCESS for e in report.events)

    def test_building_count_goal(self):
        goal = Goal.create("Two parks", TargetMetric.BUILDING_COUNT, 2, 100, BuildingKind.PARK)
        ctl = _controller(generator=StubGenerator(goals=[goal]))
        ctl.start()
        ctl.apply_command(BuildingKind.PARK, 0, 0)
        assert not ctl.tick().goal_completed
        ctl.apply_command(BuildingKind.PARK, 0, 1)
        assert ctl.tick().goal_completed

    def test_claim_credits_reward_and_refetches(self, manual_executor):
        gen = StubGenerator(goals=[_treasury_goal(1000, reward=300), _treasury_goal(9999)])
        ctl = _controller(generator=gen, executor=manual_executor)
        ctl.start()
        manual_executor.run_all()
        ctl.tick()  # goal arrives and completes on the same tick
        assert ctl.goals.phase is GoalPhase.COMPLETED

        before = ctl.city.treasury
        goal = ctl.claim_goal()
        assert goal.reward == 300
        assert ctl.city.treasury == before + 300
        assert ctl.goals.phase is GoalPhase.PENDING
        assert len(manual_executor.queued) == 1

        latest = ctl.news.latest()
        assert latest.sentiment is Sentiment.POSITIVE
        assert "300" in latest.text

    def test_claim_without_completion(self):
        ctl = _controller(generator=StubGenerator(goals=[_treasury_goal(10**6)]))
        ctl.start()
        treasury = ctl.city.treasury
        with pytest.raises(GoalNotClaimableError):
            ctl.claim_goal()
        assert ctl.city.treasury == treasury

    def test_failed_fetch_retries_after_backoff(self, fake_clock):
        gen = StubGenerator()
        ctl = _controller(generator=gen, clock=fake_clock)
        ctl.start()
        assert gen.goal_calls == 1
        assert ctl.goals.phase is GoalPhase.NO_GOAL

        fake_clock.advance(19)
        ctl.tick()
        assert gen.goal_calls == 1

        fake_clock.advance(1)
        ctl.tick()
        assert gen.goal_calls == 2

    def test_generator_exception_treated_as_no_goal(self, fake_clock):
        ctl = _controller(generator=ExplodingGenerator(), clock=fake_clock)
        ctl.start()
        assert ctl.goals.phase is GoalPhase.NO_GOAL
        assert ctl.goals.retry_at == fake_clock.now + 20


class TestNews:
    def test_never_when_probability_zero(self):
        gen = StubGenerator()
        ctl = _controller(generator=gen, news_probability=0.0)
        for _ in range(50):
            ctl.tick()
        assert gen.news_calls == []

    def test_cooldown_window(self, fake_clock):
        headline = NewsItem.create("Mayor cuts ribbon", Sentiment.POSITIVE)
        gen = StubGenerator(news=[headline])
        ctl = _controller(generator=gen, clock=fake_clock, news_probability=1.0)

        ctl.tick()
        assert len(gen.news_calls) == 1
        assert ctl.news.latest() == headline

        fake_clock.advance(44)
        ctl.tick()
        assert len(gen.news_calls) == 1

        fake_clock.advance(1)
        ctl.tick()
        assert len(gen.news_calls) == 2

    def test_context_describes_city(self, fake_clock):
        gen = StubGenerator()
        ctl = _controller(AZURE_COAST, generator=gen, clock=fake_clock, news_probability=1.0)
        ctl.apply_command(BuildingKind.ROAD, 8, 8)
        ctl.tick()
        context = gen.news_calls[0]
        assert context["terrain"] == "coast"
        assert context["building_counts"] == {"road": 1}

    def test_single_news_fetch_in_flight(self, manual_executor, fake_clock):
        gen = StubGenerator()
        ctl = _controller(generator=gen, executor=manual_executor, clock=fake_clock, news_probability=1.0)
        ctl.tick()
        fake_clock.advance(100)
        ctl.tick()
        assert ctl.news_fetch_in_flight
        assert len(manual_executor.queued) == 1

    def test_news_log_is_bounded(self):
        ctl = _controller(news_log_size=3)
        ctl.start()
        for x in range(6):
            ctl.apply_command(BuildingKind.INDUSTRIAL, x, 0)  # later ones are unaffordable
        assert len(ctl.news) == 3
        assert all(n.sentiment is Sentiment.NEGATIVE for n in ctl.news)


class TestCommands:
    def test_updates_state_and_publishes(self):
        ctl = _controller()
        seen = []
        ctl.bus.subscribe(seen.append)

        outcome = ctl.apply_command(BuildingKind.PARK, 3, 3)
        assert outcome.applied
        assert ctl.grid.get(3, 3).building_kind is BuildingKind.PARK
        assert ctl.city.treasury == 950
        assert [e.kind for e in seen] == [EventKind.BUILD]

    def test_failure_logged_as_news(self):
        ctl = _controller(AZURE_COAST)
        ctl.apply_command(BuildingKind.ROAD, 0, 0)
        assert ctl.news.latest().text == "Cannot build on water."
        assert ctl.city.treasury == 800
        assert ctl.bus.recent(1)[0].kind is EventKind.ERROR

    def test_failing_subscriber_does_not_break_command(self):
        ctl = _controller()

        def broken(event):
            raise RuntimeError("speaker unplugged")

        ctl.bus.subscribe(broken)
        assert ctl.apply_command(BuildingKind.ROAD, 1, 1).applied
        assert ctl.city.treasury == 990


class TestSnapshotAndClose:
    def test_snapshot(self):
        ctl = _controller(generator=StubGenerator(goals=[_treasury_goal(5000)]))
        ctl.start()
        ctl.apply_command(BuildingKind.ROAD, 1, 1)
        snap = ctl.snapshot()
        assert snap.grid is ctl.grid
        assert snap.goal_phase is GoalPhase.ACTIVE
        d = snap.to_dict()
        assert d["city"]["treasury"] == 990
        assert d["grid"]["rows"][1][1] == "road"
        assert d["goal"]["target_value"] == 5000

    def test_snapshot_grid_identity_tracks_changes(self):
        ctl = _controller()
        first = ctl.snapshot().grid
        ctl.tick()
        assert ctl.snapshot().grid is first
        ctl.apply_command(BuildingKind.ROAD, 0, 0)
        assert ctl.snapshot().grid is not first

    def test_closed_session_rejects_calls(self):
        ctl = _controller()
        ctl.close()
        with pytest.raises(SessionClosedError):
            ctl.tick()
        with pytest.raises(SessionClosedError):
            ctl.apply_command(BuildingKind.ROAD, 0, 0)

    def test_late_result_discarded(self, manual_executor):
        ctl = _controller(generator=StubGenerator(goals=[_treasury_goal()]), executor=manual_executor)
        ctl.start()
        ctl.close()
        manual_executor.run_all()
        snap = ctl.snapshot()
        assert snap.goal is None
        assert snap.goal_phase is GoalPhase.PENDING
