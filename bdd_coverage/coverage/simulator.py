from __future__ import annotations

import time
from typing import List

from ..models import Feature, SimulatedScenario, SimulatedStep
from ..parsing.step_registry import StepRegistry
from .aggregator import step_text


def simulate_scenarios(
    features: List[Feature],
    registry: StepRegistry,
    sample_size: int = 2,
    timing: bool = False,
) -> List[SimulatedScenario]:
    """Produce a synthetic run of the first ``sample_size`` scenarios of each feature.

    Nothing is executed. A step is ``passed`` when some definition matches it
    and ``pending`` otherwise. The scenario status is a fixed placeholder and
    is not derived from its steps. Durations are 0 unless ``timing`` is set,
    in which case they record the milliseconds spent matching.
    """
    results: List[SimulatedScenario] = []
    for feature in features:
        for scenario in feature.scenarios[: max(0, sample_size)]:
            started = time.perf_counter()
            steps: List[SimulatedStep] = []
            for step in scenario.steps:
                step_started = time.perf_counter()
                status = "passed" if registry.has_match(step_text(step)) else "pending"
                steps.append(
                    SimulatedStep(
                        step=step.raw or f"{step.keyword.value} {step.text}",
                        status=status,
                        duration_estimate=_elapsed_ms(step_started) if timing else 0,
                    )
                )
            results.append(
                SimulatedScenario(
                    feature=feature.display_name,
                    scenario=scenario.name,
                    status="passed",
                    duration_estimate=_elapsed_ms(started) if timing else 0,
                    steps=steps,
                )
            )
    return results


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
