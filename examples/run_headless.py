#!/usr/bin/env python3
"""Play a scripted Metro Plains city without an LLM and print the ledger."""

from kairo.core.buildings import BuildingKind
from kairo.core.config import SimulationConfig
from kairo.core.controller import InlineExecutor, SimulationController
from kairo.core.scenarios import get_scenario

BUILD_ORDER = [
    (BuildingKind.RESIDENTIAL, 5, 5),
    (BuildingKind.PARK, 5, 6),
    (BuildingKind.RESIDENTIAL, 5, 7),
    (BuildingKind.COMMERCIAL, 6, 5),
    (BuildingKind.ROAD, 6, 6),
    (BuildingKind.INDUSTRIAL, 9, 9),
]


def main():
    scenario = get_scenario("metro-center")
    config = SimulationConfig(random_seed=42)
    controller = SimulationController(scenario, config=config, executor=InlineExecutor())
    controller.start()

    print(f"=== Kairo: {scenario.name} ({scenario.terrain.value}) ===")
    print(f"Opening treasury: ${controller.city.treasury}")
    print()

    for tool, x, y in BUILD_ORDER:
        outcome = controller.apply_command(tool, x, y)
        msg = outcome.event.message if outcome.event else "no-op"
        print(f"  {tool.value:12s} at ({x:2d},{y:2d}): {msg}")

    print()
    print(f"{'Day':>4} {'Treasury':>9} {'Pop':>5} {'Income':>7} {'Growth':>7}")
    print("-" * 36)
    for _ in range(20):
        report = controller.tick()
        print(
            f"{report.day:4d} {report.city.treasury:9d} {report.city.population:5d} "
            f"{report.result.income_delta:7d} {report.result.population_delta:7d}"
        )

    print()
    print("News:")
    for item in controller.news:
        print(f"  [{item.sentiment.value:8s}] {item.text}")

    controller.close()


if __name__ == "__main__":
    main()
