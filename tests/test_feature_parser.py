from textwrap import dedent

import pytest

from bdd_coverage.errors import MalformedSpecification
from bdd_coverage.models import ScenarioKind, StepKeyword
from bdd_coverage.parsing.feature_parser import parse_feature

from conftest import CHECKOUT_FEATURE


def _parse(text: str, path: str = "tests/features/sample.feature"):
    return parse_feature(dedent(text).lstrip("\n"), path)


def test_parses_feature_header_and_description():
    feature = _parse(CHECKOUT_FEATURE, "tests/features/checkout.feature")

    assert feature.name == "Checkout"
    assert feature.title == "checkout"
    assert feature.path == "tests/features/checkout.feature"
    assert feature.description == "Customers pay for the items in their cart."
    assert feature.tags == frozenset({"@shop"})


def test_background_is_kept_as_its_own_scenario():
    feature = _parse(CHECKOUT_FEATURE)

    assert [s.kind for s in feature.scenarios] == [
        ScenarioKind.BACKGROUND,
        ScenarioKind.SCENARIO,
        ScenarioKind.SCENARIO_OUTLINE,
    ]
    background = feature.scenarios[0]
    assert background.name == "Background"
    assert [s.text for s in background.steps] == ["the store is open"]


def test_steps_keep_source_order_and_lines():
    feature = _parse(CHECKOUT_FEATURE)
    card = feature.scenarios[1]

    assert card.name == "Pay with a card"
    assert [(s.keyword, s.text) for s in card.steps] == [
        (StepKeyword.GIVEN, 'I am on the "cart" page'),
        (StepKeyword.WHEN, "I pay 12.50 with a card"),
        (StepKeyword.THEN, "the order count should be 1"),
        (StepKeyword.AND, "I receive a receipt"),
    ]
    lines = [s.source_line for s in card.steps]
    assert lines == sorted(lines)
    assert card.source_line < lines[0]


def test_tags_before_header_attach_to_next_scenario():
    feature = _parse(CHECKOUT_FEATURE)

    assert feature.scenarios[1].tags == frozenset({"@smoke"})
    assert feature.scenarios[2].tags == frozenset()


def test_examples_end_step_collection_for_outline():
    feature = _parse(CHECKOUT_FEATURE)
    outline = feature.scenarios[2]

    assert outline.kind is ScenarioKind.SCENARIO_OUTLINE
    assert [s.text for s in outline.steps] == [
        "I have a voucher worth <amount>",
        "I redeem the voucher",
        "the total should be reduced",
    ]


def test_comments_and_unknown_lines_are_ignored():
    feature = _parse(
        """
        # leading comment
        Feature: Comments
          Scenario: Commented
            # Given this is not a step
            Given a real step
            * an asterisk line is not a known keyword
            | a | table |
            Then another real step
        """
    )

    steps = feature.scenarios[0].steps
    assert [s.text for s in steps] == ["a real step", "another real step"]


def test_blank_lines_inside_a_scenario_do_not_split_it():
    feature = _parse(
        """
        Feature: Blank lines
          Scenario: Spaced out
            Given one

            When two

          Scenario: Second
            Then three
        """
    )

    assert [len(s.steps) for s in feature.scenarios] == [2, 1]


def test_tags_inside_scenario_body_are_scenario_tags():
    feature = _parse(
        """
        Feature: Tags
          Scenario: Tagged body
            Given one
            @wip
            When two
        """
    )

    scenario = feature.scenarios[0]
    assert scenario.tags == frozenset({"@wip"})
    assert len(scenario.steps) == 2


def test_tagged_examples_block_stays_with_its_outline():
    feature = _parse(
        """
        Feature: Outline tags
          Scenario Outline: Slow outline
            Given <a>

            @slow
            Examples:
              | a |
              | 1 |

          Scenario: Next
            Given something else
        """
    )

    outline, following = feature.scenarios
    assert outline.tags == frozenset({"@slow"})
    assert following.tags == frozenset()
    assert [s.text for s in following.steps] == ["something else"]


def test_doc_string_content_is_not_parsed_as_steps():
    feature = _parse(
        '''
        Feature: Doc strings
          Scenario: With payload
            Given a request body
              """
              Given this line lives inside a doc string
              """
            Then it is accepted
        '''
    )

    assert [s.text for s in feature.scenarios[0].steps] == ["a request body", "it is accepted"]


def test_scenario_count_matches_headers():
    scenarios = "\n".join(f"  Scenario: S{i}\n    Given step {i}" for i in range(5))
    feature = parse_feature(f"Feature: Many\n{scenarios}\n", "many.feature")

    assert len(feature.scenarios) == 5
    assert [s.name for s in feature.scenarios] == [f"S{i}" for i in range(5)]


def test_missing_feature_header_raises():
    with pytest.raises(MalformedSpecification) as info:
        _parse(
            """
            Scenario: Orphan
              Given nothing
            """,
            "orphan.feature",
        )

    assert info.value.path == "orphan.feature"


def test_feature_without_scenarios():
    feature = _parse("Feature: Empty\n")

    assert feature.name == "Empty"
    assert feature.scenarios == ()


def test_parsed_entities_are_immutable():
    feature = _parse(CHECKOUT_FEATURE)

    with pytest.raises(Exception):
        feature.scenarios[0].steps[0].text = "changed"
