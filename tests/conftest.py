"""Shared test fixtures for all test modules."""

from pathlib import Path
from textwrap import dedent

import pytest

from bdd_coverage.config import AppConfig


class ProjectTree:
    """A throwaway project with tests/features and tests/steps directories."""

    def __init__(self, root: Path):
        self.root = root
        self.features_dir = root / "tests" / "features"
        self.steps_dir = root / "tests" / "steps"
        self.features_dir.mkdir(parents=True)
        self.steps_dir.mkdir(parents=True)

    def feature(self, name: str, content: str) -> Path:
        path = self.features_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(content).lstrip("\n"), encoding="utf-8")
        return path

    def steps(self, name: str, content: str) -> Path:
        path = self.steps_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(content).lstrip("\n"), encoding="utf-8")
        return path


@pytest.fixture
def project(tmp_path: Path) -> ProjectTree:
    """Empty project tree rooted at a temporary directory."""
    return ProjectTree(tmp_path)


@pytest.fixture
def config() -> AppConfig:
    """Default configuration, isolated from the caller's environment."""
    return AppConfig(_env_file=None)


CHECKOUT_FEATURE = """
@shop
Feature: Checkout
  Customers pay for the items in their cart.

  Background:
    Given the store is open

  @smoke
  Scenario: Pay with a card
    Given I am on the "cart" page
    When I pay 12.50 with a card
    Then the order count should be 1
    And I receive a receipt

  Scenario Outline: Pay with a voucher
    Given I have a voucher worth <amount>
    When I redeem the voucher
    Then the total should be reduced

    Examples:
      | amount |
      | 5      |
      | 10     |
"""

CHECKOUT_STEPS = """
import { Given, When, Then } from '@cucumber/cucumber'

Given('the store is open', function () {})
Given('I am on the {string} page', function (page) {})
When('I pay {float} with a card', function (amount) {})
Then('the order count should be {int}', function (count) {})
When('I redeem the voucher', function () {})
Then('an unused step {word}', function (w) {})
"""
