from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Set

from ..models import CoverageResult, Feature, KeywordStat, Step, StepDefinition
from ..parsing.step_registry import StepRegistry


logger = logging.getLogger(__name__)

LEADING_KEYWORD_RE = re.compile(r"^(?:Given|When|Then|And|But)(?:\s+|$)")


def normalize_step(step: str) -> str:
    """Strip exactly one leading step keyword and surrounding whitespace.

    Applied to text that no longer starts with a keyword, this is a no-op, so
    ``normalize_step(normalize_step(s)) == normalize_step(s)`` for parsed steps.
    """
    return LEADING_KEYWORD_RE.sub("", step.strip(), count=1).strip()


def step_text(step: Step) -> str:
    """Normalized text of a parsed step, keyword stripped exactly once."""
    return normalize_step(step.raw or f"{step.keyword.value} {step.text}")


def coverage_percent(matched: int, total: int) -> int:
    if total <= 0:
        return 100
    # round-half-up, not Python's banker's rounding
    return int(matched * 100 / total + 0.5)


def _keyword_stats(features: Iterable[Feature]) -> Dict[str, KeywordStat]:
    counts: Dict[str, int] = {}
    for feature in features:
        for scenario in feature.scenarios:
            for step in scenario.steps:
                counts[step.keyword.value] = counts.get(step.keyword.value, 0) + 1
    total = sum(counts.values())
    return {
        keyword: KeywordStat(count=count, percentage=round(count * 100 / total, 2))
        for keyword, count in counts.items()
    }


def unique_step_texts(features: Iterable[Feature]) -> List[str]:
    """Every distinct normalized step text, in discovery order."""
    seen: Dict[str, None] = {}
    for feature in features:
        for scenario in feature.scenarios:
            for step in scenario.steps:
                seen.setdefault(step_text(step), None)
    return list(seen)


def compute_coverage(features: List[Feature], registry: StepRegistry) -> CoverageResult:
    """Match every unique step against the whole registry.

    Uniqueness is by normalized text only. A text is covered when any
    definition matches it. An empty corpus has 100% (vacuous) coverage.
    """
    texts = unique_step_texts(features)
    missing: List[str] = []
    used: Set[str] = set()

    for text in texts:
        matched = registry.matching_definitions(text)
        if not matched:
            missing.append(text)
            continue
        used.update(d.key for d in matched)

    unused: List[StepDefinition] = [d for d in registry if d.key not in used]
    covered = len(texts) - len(missing)
    result = CoverageResult(
        total_unique_steps=len(texts),
        matched_count=covered,
        missing_steps=tuple(missing),
        coverage_percent=coverage_percent(covered, len(texts)),
        unused_definitions=tuple(unused),
        keyword_stats=_keyword_stats(features),
    )
    logger.info(
        "Step coverage: %d%% (%d/%d)", result.coverage_percent, covered, result.total_unique_steps
    )
    return result
