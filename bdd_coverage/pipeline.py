from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import AppConfig
from .coverage.aggregator import compute_coverage
from .coverage.simulator import simulate_scenarios
from .errors import DiscoveryRootMissing
from .models import CoverageResult, Diagnostic, Feature, Report, SimulatedScenario
from .parsing.discovery import discover_features, discover_step_definitions, resolve_root
from .parsing.step_registry import StepRegistry
from .reporting.report import build_report


logger = logging.getLogger(__name__)


@dataclass
class ValidationRun:
    features: List[Feature]
    registry: StepRegistry
    coverage: CoverageResult
    test_results: List[SimulatedScenario]
    report: Report
    diagnostics: List[Diagnostic] = field(default_factory=list)


def run_validation(project_root: Path, config: Optional[AppConfig] = None) -> ValidationRun:
    """Discover, parse, match and report on one project tree.

    Every run re-reads the filesystem. Only a missing project root (or a
    missing scan directory with ``strict_roots``) raises; everything else
    becomes a diagnostic attached to the report.
    """
    config = config or AppConfig()
    root = project_root.resolve()
    if not root.is_dir():
        raise DiscoveryRootMissing(str(root))

    features_root = resolve_root(root, config.features_dir)
    steps_root = resolve_root(root, config.steps_dir)
    logger.info("Discovering features in %s and step definitions in %s", features_root, steps_root)

    feature_discovery = discover_features(features_root, config, base=root)
    step_discovery = discover_step_definitions(steps_root, config, base=root)
    diagnostics = feature_discovery.diagnostics + step_discovery.diagnostics

    features = feature_discovery.features
    registry = step_discovery.registry
    coverage = compute_coverage(features, registry)
    test_results = simulate_scenarios(
        features,
        registry,
        sample_size=config.simulation_sample_size,
        timing=config.simulate_timing,
    )
    report = build_report(
        features,
        registry,
        coverage,
        config=config,
        diagnostics=diagnostics,
        test_results=test_results,
    )
    return ValidationRun(
        features=features,
        registry=registry,
        coverage=coverage,
        test_results=test_results,
        report=report,
        diagnostics=diagnostics,
    )
