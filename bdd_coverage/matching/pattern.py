"""Compile cucumber-style step patterns into matchers.

A pattern such as ``the count should be {int}`` is tokenized into a sequence
of typed fragments (literal text and placeholders) once, then turned into an
anchored, case-insensitive regular expression. Patterns that cannot be
tokenized (unbalanced braces, unknown placeholder types, a dangling escape)
do not fail the run: they degrade to a substring test over their literal
fragments.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Tuple

from ..errors import PatternCompileFailure


logger = logging.getLogger(__name__)


class FragmentKind(str, Enum):
    LITERAL = "literal"
    INT = "int"
    FLOAT = "float"
    QUOTED_STRING = "string"
    WORD = "word"


PLACEHOLDERS = {
    "int": FragmentKind.INT,
    "float": FragmentKind.FLOAT,
    "string": FragmentKind.QUOTED_STRING,
    "word": FragmentKind.WORD,
}

SUB_EXPRESSIONS = {
    FragmentKind.INT: r"\d+",
    FragmentKind.FLOAT: r"\d+(?:\.\d+)?",
    FragmentKind.QUOTED_STRING: r'"[^"]*"',
    FragmentKind.WORD: r"\w+",
}

PLACEHOLDER_TOKEN_RE = re.compile(r"\{[^{}]*\}")


@dataclass(frozen=True)
class Fragment:
    kind: FragmentKind
    text: str = ""

    def to_regex(self) -> str:
        if self.kind is FragmentKind.LITERAL:
            return re.escape(self.text)
        return SUB_EXPRESSIONS[self.kind]


def tokenize(pattern: str) -> List[Fragment]:
    """Split ``pattern`` into literal and placeholder fragments.

    Backslash escapes are unescaped (``\\{int\\}`` is the literal text
    ``{int}``). Raises :class:`PatternCompileFailure` on malformed input.
    """
    fragments: List[Fragment] = []
    literal: List[str] = []

    def push_literal() -> None:
        if literal:
            fragments.append(Fragment(FragmentKind.LITERAL, "".join(literal)))
            literal.clear()

    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            if i + 1 >= n:
                raise PatternCompileFailure(pattern, "dangling escape at end of pattern")
            literal.append(pattern[i + 1])
            i += 2
            continue
        if ch == "{":
            end = pattern.find("}", i + 1)
            if end == -1:
                raise PatternCompileFailure(pattern, f"unbalanced '{{' at offset {i}")
            name = pattern[i + 1:end]
            if "{" in name:
                raise PatternCompileFailure(pattern, f"nested '{{' at offset {i}")
            kind = PLACEHOLDERS.get(name.strip())
            if kind is None:
                raise PatternCompileFailure(pattern, f"unknown placeholder {{{name}}}")
            push_literal()
            fragments.append(Fragment(kind))
            i = end + 1
            continue
        if ch == "}":
            raise PatternCompileFailure(pattern, f"unbalanced '}}' at offset {i}")
        literal.append(ch)
        i += 1

    push_literal()
    return fragments


def literal_fragments(pattern: str) -> Tuple[str, ...]:
    """Literal pieces left once every ``{...}`` token is removed, lower-cased."""
    pieces = (piece.strip().lower() for piece in PLACEHOLDER_TOKEN_RE.split(pattern))
    return tuple(piece for piece in pieces if piece)


@dataclass(frozen=True)
class CompiledPattern:
    pattern: str
    fragments: Tuple[Fragment, ...] = ()
    regex: Optional[re.Pattern] = None
    fallback: Tuple[str, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.regex is None

    def matches(self, text: str) -> bool:
        if self.regex is not None:
            return self.regex.fullmatch(text) is not None
        if not self.fallback:
            return False
        lowered = text.lower()
        return all(piece in lowered for piece in self.fallback)


def compile_pattern(pattern: str) -> CompiledPattern:
    try:
        fragments = tokenize(pattern)
        regex = re.compile("".join(f.to_regex() for f in fragments), re.IGNORECASE)
    except (PatternCompileFailure, re.error) as exc:
        logger.debug("Falling back to substring matching for %r: %s", pattern, exc)
        return CompiledPattern(pattern=pattern, fallback=literal_fragments(pattern), error=str(exc))
    return CompiledPattern(pattern=pattern, fragments=tuple(fragments), regex=regex)


@lru_cache(maxsize=1024)
def _cached(pattern: str) -> CompiledPattern:
    return compile_pattern(pattern)


def matches(pattern: str, text: str) -> bool:
    """Return True when ``text`` matches ``pattern`` in full. Never raises."""
    return _cached(pattern).matches(text)
