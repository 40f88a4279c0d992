import pytest

from bdd_coverage.coverage.aggregator import (
    compute_coverage,
    coverage_percent,
    normalize_step,
    step_text,
    unique_step_texts,
)
from bdd_coverage.parsing.feature_parser import parse_feature
from bdd_coverage.parsing.step_registry import StepRegistry, parse_step_definitions

from conftest import CHECKOUT_FEATURE, CHECKOUT_STEPS


ABC_FEATURE = """Feature: ABC
  Scenario: Three steps
    Given A
    When B
    Then C
"""

AC_STEPS = """Given('A', () => {})
Then('C', () => {})
"""


def _registry(content: str) -> StepRegistry:
    return StepRegistry(parse_step_definitions(content, "tests/steps/x.steps.js"))


def test_normalize_strips_leading_keyword():
    assert normalize_step("Given I am on the home page") == "I am on the home page"
    assert normalize_step("  And   something else ") == "something else"


@pytest.mark.parametrize(
    "text",
    ["Given I am on the home page", "I am on the home page", "But not this", "Thenceforth we go"],
)
def test_normalize_is_idempotent(text):
    once = normalize_step(text)

    assert normalize_step(once) == once


def test_normalize_requires_keyword_boundary():
    assert normalize_step("Thenceforth we go") == "Thenceforth we go"


def test_step_text_strips_only_the_step_keyword():
    feature = parse_feature(
        """Feature: Bells
  Scenario: Keyword inside the text
    Given When the bell rings
    Then
""",
        "bells.feature",
    )

    assert [step_text(s) for s in feature.scenarios[0].steps] == ["When the bell rings", ""]
    result = compute_coverage([feature], StepRegistry())
    assert result.missing_steps == ("When the bell rings", "")


@pytest.mark.parametrize(
    "matched,total,expected",
    [(0, 0, 100), (2, 3, 67), (1, 3, 33), (1, 8, 13), (5, 8, 63), (0, 4, 0), (4, 4, 100)],
)
def test_coverage_percent_rounding(matched, total, expected):
    assert coverage_percent(matched, total) == expected


def test_missing_middle_step():
    feature = parse_feature(ABC_FEATURE, "abc.feature")

    result = compute_coverage([feature], _registry(AC_STEPS))

    assert result.total_unique_steps == 3
    assert result.matched_count == 2
    assert result.missing_steps == ("B",)
    assert result.coverage_percent == 67


def test_empty_corpus_is_fully_covered():
    result = compute_coverage([], StepRegistry())

    assert result.total_unique_steps == 0
    assert result.coverage_percent == 100
    assert result.missing_steps == ()


def test_steps_without_definitions_are_all_missing():
    feature = parse_feature(ABC_FEATURE, "abc.feature")

    result = compute_coverage([feature], StepRegistry())

    assert result.coverage_percent == 0
    assert result.missing_steps == ("A", "B", "C")


def test_duplicate_step_texts_count_once():
    feature = parse_feature(
        """Feature: Dups
  Scenario: One
    Given A
    Then B
  Scenario: Two
    Given A
    And B
""",
        "dups.feature",
    )

    assert unique_step_texts([feature]) == ["A", "B"]
    result = compute_coverage([feature], _registry("Given('A', f)\n"))
    assert result.total_unique_steps == 2
    assert result.missing_steps == ("B",)
    assert result.coverage_percent == 50


def test_checkout_corpus():
    feature = parse_feature(CHECKOUT_FEATURE, "checkout.feature")
    registry = _registry(CHECKOUT_STEPS)

    result = compute_coverage([feature], registry)

    assert result.total_unique_steps == 8
    assert result.matched_count == 5
    assert result.missing_steps == (
        "I receive a receipt",
        "I have a voucher worth <amount>",
        "the total should be reduced",
    )
    assert result.coverage_percent == 63
    assert [d.pattern for d in result.unused_definitions] == ["an unused step {word}"]


def test_keyword_stats_count_every_step():
    feature = parse_feature(CHECKOUT_FEATURE, "checkout.feature")

    stats = compute_coverage([feature], StepRegistry()).keyword_stats

    assert {k: v.count for k, v in stats.items()} == {"Given": 3, "When": 2, "Then": 2, "And": 1}
    assert stats["Given"].percentage == 37.5


def test_coverage_stays_in_bounds():
    feature = parse_feature(CHECKOUT_FEATURE, "checkout.feature")

    for registry in (StepRegistry(), _registry(CHECKOUT_STEPS)):
        result = compute_coverage([feature], registry)
        assert 0 <= result.coverage_percent <= 100
