from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StepKeyword(str, Enum):
    GIVEN = "Given"
    WHEN = "When"
    THEN = "Then"
    AND = "And"
    BUT = "But"


class ScenarioKind(str, Enum):
    SCENARIO = "Scenario"
    SCENARIO_OUTLINE = "Scenario Outline"
    BACKGROUND = "Background"


class DiagnosticKind(str, Enum):
    MALFORMED_SPECIFICATION = "MalformedSpecification"
    UNREADABLE_ARTIFACT = "UnreadableArtifact"


class Step(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: StepKeyword
    text: str  # keyword excluded
    source_line: int
    raw: str = ""


class Scenario(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ScenarioKind = ScenarioKind.SCENARIO
    steps: Tuple[Step, ...] = ()
    tags: FrozenSet[str] = frozenset()
    source_line: int = 0


class Feature(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    raw_content: str = ""
    title: Optional[str] = None  # file stem, used as a fallback display name
    description: str = ""
    scenarios: Tuple[Scenario, ...] = ()
    tags: FrozenSet[str] = frozenset()

    @property
    def display_name(self) -> str:
        return self.name or self.title or self.path


class StepDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: StepKeyword  # Given | When | Then
    pattern: str
    source_path: str
    source_line: int

    @property
    def key(self) -> str:
        return f"{self.keyword.value}:{self.pattern}"


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    kind: DiagnosticKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.path}: {self.message}"


class KeywordStat(BaseModel):
    count: int = 0
    percentage: float = 0.0


class CoverageResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_unique_steps: int
    matched_count: int
    missing_steps: Tuple[str, ...] = ()
    coverage_percent: int = 100
    unused_definitions: Tuple[StepDefinition, ...] = ()
    keyword_stats: Dict[str, KeywordStat] = Field(default_factory=dict)


class _CamelModel(BaseModel):
    """Base for the report shape handed to renderers (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SimulatedStep(_CamelModel):
    step: str
    status: str  # passed | pending
    duration_estimate: int = 0


class SimulatedScenario(_CamelModel):
    feature: str
    scenario: str
    status: str = "passed"
    duration_estimate: int = 0
    steps: List[SimulatedStep] = Field(default_factory=list)


class ReportSummary(_CamelModel):
    total_features: int = 0
    total_scenarios: int = 0
    total_steps: int = 0
    total_step_definitions: int = 0
    step_coverage: int = 100
    missing_steps_count: int = 0


class ScenarioDetail(_CamelModel):
    name: str
    kind: str
    step_count: int
    steps: List[str] = Field(default_factory=list)


class FeatureDetail(_CamelModel):
    name: str
    path: str
    scenario_count: int
    scenarios: List[ScenarioDetail] = Field(default_factory=list)


class StepDefinitionDetail(_CamelModel):
    pattern: str
    keyword: str
    file: str
    line: int


class Report(_CamelModel):
    timestamp: str
    summary: ReportSummary
    features: List[FeatureDetail] = Field(default_factory=list)
    step_definitions: List[StepDefinitionDetail] = Field(default_factory=list)
    missing_steps: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    unused_step_definitions: List[StepDefinitionDetail] = Field(default_factory=list)
    diagnostics: List[str] = Field(default_factory=list)
    test_results: List[SimulatedScenario] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
