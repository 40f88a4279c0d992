from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple, TypeVar

from pathspec import PathSpec

from ..config import AppConfig
from ..errors import DiscoveryRootMissing, MalformedSpecification, UnreadableArtifact
from ..models import Diagnostic, DiagnosticKind, Feature, StepDefinition
from .feature_parser import parse_feature
from .step_registry import StepRegistry, parse_step_definitions


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FeatureDiscovery:
    features: List[Feature] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class StepDiscovery:
    registry: StepRegistry = field(default_factory=StepRegistry)
    files: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def _build_spec(globs: List[str]) -> PathSpec:
    return PathSpec.from_lines("gitwildmatch", globs)


def _display_path(path: Path, base: Optional[Path]) -> str:
    if base is not None:
        try:
            return str(path.relative_to(base))
        except ValueError:
            pass
    return str(path)


def find_files(root: Path, include_globs: List[str], ignore_globs: List[str]) -> List[Path]:
    """Recursively list files under ``root`` matching ``include_globs``, in sorted order."""
    include_spec = _build_spec(include_globs)
    ignore_spec = _build_spec(ignore_globs)
    found: List[Path] = []

    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root)
        if ignore_spec.match_file(str(rel)):
            continue
        if path.is_dir():
            continue
        if include_spec.match_file(str(rel)):
            found.append(path)

    return found


def read_artifact(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        raise UnreadableArtifact(str(path), exc) from exc


def _check_root(root: Path, strict: bool) -> Optional[Diagnostic]:
    if root.is_dir():
        return None
    if strict:
        raise DiscoveryRootMissing(str(root))
    logger.warning("Scan directory %s does not exist; treating it as empty", root)
    return Diagnostic(
        path=str(root),
        kind=DiagnosticKind.UNREADABLE_ARTIFACT,
        message="directory does not exist",
    )


def _load_concurrently(
    paths: List[Path],
    loader: Callable[[Path], T],
    concurrency: int,
) -> List[Tuple[Path, Optional[T], Optional[Exception]]]:
    # Results are returned in the order of ``paths`` whatever the completion order.
    results: List[Tuple[Path, Optional[T], Optional[Exception]]] = [None] * len(paths)  # type: ignore
    if not paths:
        return []

    with ThreadPoolExecutor(max_workers=max(1, concurrency)) as executor:
        future_to_info = {executor.submit(loader, p): (idx, p) for idx, p in enumerate(paths)}
        for future in as_completed(future_to_info):
            idx, path = future_to_info[future]
            try:
                results[idx] = (path, future.result(), None)
            except (UnreadableArtifact, MalformedSpecification) as exc:
                results[idx] = (path, None, exc)

    return results


def discover_features(root: Path, config: AppConfig, base: Optional[Path] = None) -> FeatureDiscovery:
    """Find and parse every feature file below ``root``.

    Unreadable and malformed files are skipped and reported as diagnostics.
    """
    result = FeatureDiscovery()
    missing = _check_root(root, config.strict_roots)
    if missing is not None:
        result.diagnostics.append(missing)
        return result

    paths = find_files(root, config.feature_globs, config.ignore_globs)

    def load(path: Path) -> Feature:
        return parse_feature(read_artifact(path), _display_path(path, base))

    for path, feature, error in _load_concurrently(paths, load, config.discovery_concurrency):
        if feature is not None:
            result.features.append(feature)
            continue
        kind = (
            DiagnosticKind.MALFORMED_SPECIFICATION
            if isinstance(error, MalformedSpecification)
            else DiagnosticKind.UNREADABLE_ARTIFACT
        )
        logger.warning("Skipping %s: %s", path, error)
        result.diagnostics.append(Diagnostic(path=_display_path(path, base), kind=kind, message=str(error)))

    logger.info("Found %d feature files in %s", len(result.features), root)
    return result


def discover_step_definitions(root: Path, config: AppConfig, base: Optional[Path] = None) -> StepDiscovery:
    """Find every step-definition file below ``root`` and build one flat registry."""
    result = StepDiscovery()
    missing = _check_root(root, config.strict_roots)
    if missing is not None:
        result.diagnostics.append(missing)
        return result

    paths = find_files(root, config.step_globs, config.ignore_globs)

    def load(path: Path) -> List[StepDefinition]:
        return parse_step_definitions(read_artifact(path), _display_path(path, base))

    groups: List[List[StepDefinition]] = []
    for path, definitions, error in _load_concurrently(paths, load, config.discovery_concurrency):
        if definitions is None:
            logger.warning("Skipping %s: %s", path, error)
            result.diagnostics.append(
                Diagnostic(
                    path=_display_path(path, base),
                    kind=DiagnosticKind.UNREADABLE_ARTIFACT,
                    message=str(error),
                )
            )
            continue
        groups.append(definitions)
        result.files.append(_display_path(path, base))

    result.registry = StepRegistry.concat(groups)
    for pattern in result.registry.fallback_patterns():
        logger.debug("Pattern %r will use substring matching", pattern)
    logger.info("Found %d step definitions in %d files", len(result.registry), len(result.files))
    return result


def resolve_root(project_root: Path, directory: str) -> Path:
    candidate = Path(os.path.expanduser(directory))
    if not candidate.is_absolute():
        candidate = project_root / candidate
    return candidate.resolve()
