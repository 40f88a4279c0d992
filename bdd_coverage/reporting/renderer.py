from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from ..coverage.aggregator import step_text
from ..matching.pattern import PLACEHOLDER_TOKEN_RE
from ..models import Feature, Report, StepKeyword


def parameterize_step(text: str) -> str:
    """Turn concrete step text into a pattern suggestion."""
    pattern = re.sub(r"\d+\.\d+", "{float}", text)
    pattern = re.sub(r"(?<![{\w])\d+", "{int}", pattern)
    pattern = re.sub(r'"[^"]+"', "{string}", pattern)
    return pattern


def function_name_for(text: str) -> str:
    name = re.sub(r"[^a-z0-9\s]", "", text.lower())
    name = re.sub(r"\s+", "_", name).strip("_")[:50].strip("_")
    if not name or name[0].isdigit():
        return "step_function" if not name else f"step_{name}"
    return name


def _parameters(pattern: str) -> List[str]:
    # behave's parse matcher passes each named field as a keyword argument
    # of the same name, and a repeated field name binds a single value.
    params: List[str] = []
    for token in PLACEHOLDER_TOKEN_RE.findall(pattern):
        name = token[1:-1]
        if name not in params:
            params.append(name)
    return params


def missing_step_keywords(features: Iterable[Feature], missing: Iterable[str]) -> Dict[str, StepKeyword]:
    """Pick a Given/When/Then keyword for each missing step text.

    And/But take the keyword of the closest preceding concrete step. This is
    only used to label stubs and plays no part in matching.
    """
    wanted = set(missing)
    keywords: Dict[str, StepKeyword] = {}
    for feature in features:
        for scenario in feature.scenarios:
            last = StepKeyword.GIVEN
            for step in scenario.steps:
                if step.keyword in (StepKeyword.AND, StepKeyword.BUT):
                    keyword = last
                else:
                    keyword = last = step.keyword
                text = step_text(step)
                if text in wanted and text not in keywords:
                    keywords[text] = keyword
    return keywords


def _to_stub(keyword: StepKeyword, text: str, taken: Dict[str, int]) -> str:
    pattern = parameterize_step(text)
    name = function_name_for(text)
    taken[name] = taken.get(name, 0) + 1
    if taken[name] > 1:
        name = f"{name}_{taken[name]}"
    params = ", ".join(["context"] + _parameters(pattern))
    message = f"Step definition not implemented: {keyword.value} {text}"
    return "\n".join(
        [
            f"@{keyword.value.lower()}({pattern!r})",
            f"def {name}({params}):",
            f"    raise NotImplementedError({message!r})",
        ]
    )


def render_step_stubs(
    missing: Iterable[str],
    keyword_hints: Optional[Dict[str, StepKeyword]] = None,
) -> str:
    """Render Python step stubs for ``missing`` step texts.

    The stubs use the ``@given("pattern")`` decorator shape, so a later run
    discovers them as definitions.
    """
    keyword_hints = keyword_hints or {}
    taken: Dict[str, int] = {}
    blocks = [
        _to_stub(keyword_hints.get(text, StepKeyword.GIVEN), text, taken) for text in missing
    ]
    header = "from behave import given, when, then\n"
    if not blocks:
        return header
    return header + "\n\n" + "\n\n\n".join(blocks) + "\n"


def write_report(report: Report, out_file: Path) -> Path:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(report.to_json(indent=2), encoding="utf-8")
    return out_file


def write_stubs(
    content: str,
    out_file: Path,
    progress_callback: Optional[Callable[[Path], None]] = None,
) -> Path:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(content, encoding="utf-8")
    if progress_callback:
        progress_callback(out_file)
    return out_file
