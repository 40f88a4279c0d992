from __future__ import annotations

from typing import Optional


class BDDCoverageError(Exception):
    """Base class for every error raised by bdd_coverage."""


class MalformedSpecification(BDDCoverageError):
    def __init__(self, path: str, reason: str = "no 'Feature:' header found"):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class UnreadableArtifact(BDDCoverageError):
    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not read {path}{detail}")


class PatternCompileFailure(BDDCoverageError):
    """Raised when a step pattern cannot be turned into a matcher.

    The matcher recovers from this with a substring fallback, so callers
    outside ``bdd_coverage.matching`` never see it.
    """

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Cannot compile step pattern {pattern!r}: {reason}")


class DiscoveryRootMissing(BDDCoverageError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path not found: {path}")
