from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ..config import AppConfig
from ..models import (
    CoverageResult,
    Diagnostic,
    Feature,
    FeatureDetail,
    Report,
    ReportSummary,
    ScenarioDetail,
    SimulatedScenario,
    StepDefinition,
    StepDefinitionDetail,
)
from ..parsing.step_registry import StepRegistry


def _definition_detail(definition: StepDefinition) -> StepDefinitionDetail:
    return StepDefinitionDetail(
        pattern=definition.pattern,
        keyword=definition.keyword.value,
        file=definition.source_path,
        line=definition.source_line,
    )


def generate_recommendations(
    feature_count: int,
    definition_count: int,
    coverage: CoverageResult,
    config: AppConfig,
) -> List[str]:
    """Apply the fixed rule table. Every rule is independent and order is stable."""
    recommendations: List[str] = []

    if coverage.missing_steps:
        recommendations.append("Implement missing step definitions to achieve 100% coverage")

    if feature_count < config.min_features:
        recommendations.append("Consider adding more feature files to cover additional scenarios")

    if coverage.coverage_percent < config.coverage_threshold:
        recommendations.append(
            f"Step coverage is below {config.coverage_threshold}% - prioritize implementing missing steps"
        )

    if definition_count > config.dedup_threshold:
        recommendations.append(
            f"{definition_count} step definitions found - consider consolidating duplicate or overlapping definitions"
        )

    if coverage.coverage_percent == 100 and feature_count > 0:
        recommendations.append(
            "Excellent! All steps have definitions - consider adding more comprehensive scenarios"
        )

    if coverage.unused_definitions:
        recommendations.append(
            f"Remove or reuse {len(coverage.unused_definitions)} unused step definitions"
        )

    return recommendations


def build_report(
    features: Sequence[Feature],
    registry: StepRegistry,
    coverage: CoverageResult,
    config: Optional[AppConfig] = None,
    diagnostics: Sequence[Diagnostic] = (),
    test_results: Sequence[SimulatedScenario] = (),
    timestamp: Optional[datetime] = None,
) -> Report:
    config = config or AppConfig()
    stamp = (timestamp or datetime.now(timezone.utc)).isoformat()

    summary = ReportSummary(
        total_features=len(features),
        total_scenarios=sum(len(f.scenarios) for f in features),
        total_steps=coverage.total_unique_steps,
        total_step_definitions=len(registry),
        step_coverage=coverage.coverage_percent,
        missing_steps_count=len(coverage.missing_steps),
    )

    feature_details = [
        FeatureDetail(
            name=f.display_name,
            path=f.path,
            scenario_count=len(f.scenarios),
            scenarios=[
                ScenarioDetail(
                    name=s.name,
                    kind=s.kind.value,
                    step_count=len(s.steps),
                    steps=[step.raw or f"{step.keyword.value} {step.text}" for step in s.steps],
                )
                for s in f.scenarios
            ],
        )
        for f in features
    ]

    return Report(
        timestamp=stamp,
        summary=summary,
        features=feature_details,
        step_definitions=[_definition_detail(d) for d in registry],
        missing_steps=list(coverage.missing_steps),
        recommendations=generate_recommendations(len(features), len(registry), coverage, config),
        unused_step_definitions=[_definition_detail(d) for d in coverage.unused_definitions],
        diagnostics=[str(d) for d in diagnostics],
        test_results=list(test_results),
    )
