from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

from ..errors import MalformedSpecification
from ..models import Feature, Scenario, ScenarioKind, Step, StepKeyword


logger = logging.getLogger(__name__)

STEP_LINE_RE = re.compile(r"^(Given|When|Then|And|But)(?:\s+(.*))?$")
DOC_STRING_DELIMITERS = ('"""', "```")

# Checked in order: "Scenario Outline:" must win over "Scenario:".
HEADERS = (
    ("Scenario Outline:", ScenarioKind.SCENARIO_OUTLINE),
    ("Scenario:", ScenarioKind.SCENARIO),
    ("Background:", ScenarioKind.BACKGROUND),
)


class _ScenarioBuilder:
    def __init__(self, name: str, kind: ScenarioKind, line: int, tags: List[str]):
        self.name = name
        self.kind = kind
        self.line = line
        self.tags = list(tags)
        self.steps: List[Step] = []
        self.collecting = True

    def build(self) -> Scenario:
        return Scenario(
            name=self.name,
            kind=self.kind,
            steps=tuple(self.steps),
            tags=frozenset(self.tags),
            source_line=self.line,
        )


def _parse_tags(line: str) -> List[str]:
    return [tok for tok in line.split() if tok.startswith("@")]


def _match_header(line: str) -> Optional[tuple]:
    for prefix, kind in HEADERS:
        if line.startswith(prefix):
            return kind, line[len(prefix):].strip()
    return None


def parse_feature(content: str, path: str = "unknown") -> Feature:
    """Parse the text of one ``.feature`` file into a :class:`Feature`.

    A single forward scan: lines are classified by literal prefix, comments
    and blank lines are skipped, and unknown lines are ignored. Tags seen
    before a header belong to the next scenario (or to the feature when they
    precede ``Feature:``). ``Examples:`` ends step collection for an outline;
    example rows are not expanded.

    Raises:
        MalformedSpecification: no ``Feature:`` line is present.
    """
    feature_name: Optional[str] = None
    feature_tags: List[str] = []
    description: List[str] = []
    scenarios: List[Scenario] = []
    current: Optional[_ScenarioBuilder] = None
    pending_tags: List[str] = []
    doc_string: Optional[str] = None

    def flush() -> None:
        nonlocal current
        if current is not None:
            scenarios.append(current.build())
            current = None

    for line_no, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()

        # Doc string bodies are opaque
        if doc_string is not None:
            if line.startswith(doc_string):
                doc_string = None
            continue
        if line.startswith(DOC_STRING_DELIMITERS):
            doc_string = line[:3]
            continue

        if not line or line.startswith("#"):
            continue

        if line.startswith("@"):
            pending_tags.extend(_parse_tags(line))
            continue

        if line.startswith("Feature:"):
            if feature_name is None:
                feature_name = line[len("Feature:"):].strip()
                feature_tags.extend(pending_tags)
                pending_tags = []
            continue

        header = _match_header(line)
        if header is not None:
            kind, name = header
            flush()
            if kind is ScenarioKind.BACKGROUND:
                name = name or "Background"
            current = _ScenarioBuilder(name, kind, line_no, pending_tags)
            pending_tags = []
            continue

        if line.startswith("Examples:"):
            # tags on an Examples block stay with the outline that owns it
            if current is not None:
                current.tags.extend(pending_tags)
                current.collecting = False
            pending_tags = []
            continue

        step_match = STEP_LINE_RE.match(line)
        if step_match:
            if current is None or not current.collecting:
                continue
            if pending_tags:
                # tags inside a scenario body describe the scenario
                current.tags.extend(pending_tags)
                pending_tags = []
            current.steps.append(
                Step(
                    keyword=StepKeyword(step_match.group(1)),
                    text=(step_match.group(2) or "").strip(),
                    source_line=line_no,
                    raw=line,
                )
            )
            continue

        if feature_name is not None and current is None and not scenarios and not line.startswith("|"):
            description.append(line)

    if current is not None and pending_tags:
        current.tags.extend(pending_tags)
    flush()

    if feature_name is None:
        raise MalformedSpecification(path)

    title = Path(path).stem if path != "unknown" else None
    logger.debug("Parsed %s: %d scenarios", path, len(scenarios))
    return Feature(
        name=feature_name or (title or ""),
        path=path,
        raw_content=content,
        title=title,
        description="\n".join(description),
        scenarios=tuple(scenarios),
        tags=frozenset(feature_tags),
    )
