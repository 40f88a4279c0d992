from __future__ import annotations

import re
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..matching.pattern import CompiledPattern, compile_pattern
from ..models import StepDefinition, StepKeyword


# Given('pattern', ...)  |  @given("pattern")  |  @when(parsers.parse(r"pattern"))
STEP_DECLARATION_RE = re.compile(
    r"""^\s*@?(?P<kw>given|when|then)\s*\(\s*"""
    r"""(?:[A-Za-z_][\w.]*\s*\(\s*)?"""
    r"""[rRuU]?(?P<q>['"`])(?P<pat>(?:\\.|(?!(?P=q))[^\\])*)(?P=q)""",
    re.IGNORECASE,
)


def parse_step_definitions(content: str, source_path: str) -> List[StepDefinition]:
    """Extract declared step patterns from one step-implementation file.

    Only the keyword, the quoted pattern and the line are read. Bodies are
    opaque and lines of any other shape are ignored.
    """
    definitions: List[StepDefinition] = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        m = STEP_DECLARATION_RE.match(line)
        if not m:
            continue
        definitions.append(
            StepDefinition(
                keyword=StepKeyword(m.group("kw").capitalize()),
                pattern=m.group("pat"),
                source_path=source_path,
                source_line=line_no,
            )
        )
    return definitions


class StepRegistry:
    """Flat, immutable collection of step definitions from every source file.

    Definitions are not namespaced: identical patterns from different files
    stay distinct entries. Each distinct pattern is compiled once, when the
    registry is built.
    """

    def __init__(self, definitions: Iterable[StepDefinition] = ()):
        self._definitions: Tuple[StepDefinition, ...] = tuple(definitions)
        self._compiled: Dict[str, CompiledPattern] = {}
        for definition in self._definitions:
            if definition.pattern not in self._compiled:
                self._compiled[definition.pattern] = compile_pattern(definition.pattern)

    @classmethod
    def concat(cls, groups: Iterable[Iterable[StepDefinition]]) -> "StepRegistry":
        merged: List[StepDefinition] = []
        for group in groups:
            merged.extend(group)
        return cls(merged)

    @property
    def definitions(self) -> Tuple[StepDefinition, ...]:
        return self._definitions

    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def compiled(self, definition: StepDefinition) -> CompiledPattern:
        return self._compiled[definition.pattern]

    def fallback_patterns(self) -> List[str]:
        return [p for p, c in self._compiled.items() if c.is_fallback]

    def matching_definitions(self, text: str) -> List[StepDefinition]:
        # And/But steps are not resolved to a preceding keyword, so every
        # definition is a candidate regardless of its keyword.
        return [d for d in self._definitions if self._compiled[d.pattern].matches(text)]

    def find_match(self, text: str) -> Optional[StepDefinition]:
        for definition in self._definitions:
            if self._compiled[definition.pattern].matches(text):
                return definition
        return None

    def has_match(self, text: str) -> bool:
        return self.find_match(text) is not None
