"""Scope selection - narrows a build order with exclusions, --start-from and --stop-at."""

from pathlib import Path

from kodrdriv.errors import ConfigurationError, WorkspaceIntegrityError
from kodrdriv.utils.helpers import relative_to_cwd
from kodrdriv.utils.logging import logger

from .patterns import is_excluded_manifest, is_excluded_package
from .scanner import find_package_manifests, parse_package_json
from .types import DependencyGraph, ScopeResult


def apply_exclusions(graph: DependencyGraph, patterns) -> DependencyGraph:
    """Drop packages whose name or relative directory matches a pattern, with their edges."""
    if not patterns:
        return graph

    dropped = [
        name
        for name, record in graph.packages.items()
        if is_excluded_package(name, relative_to_cwd(record.path), patterns)
    ]
    for name in dropped:
        logger.debug(f"Excluding package {name} (matches exclusion pattern)")
    return graph.without(dropped) if dropped else graph


def find_package(graph: DependencyGraph, order: list[str], target: str) -> str | None:
    """Resolve ``target`` as a package name or a package directory name."""
    for name in order:
        if name == target or graph.packages[name].directory_name == target:
            return name
    return None


def _was_excluded(target: str, directories, patterns) -> bool:
    if not patterns:
        return False
    for directory in directories:
        root = Path(directory).resolve()
        for manifest in find_package_manifests(root, ()):
            try:
                record = parse_package_json(manifest)
            except WorkspaceIntegrityError:
                continue
            if target in (record.name, record.directory_name) and is_excluded_manifest(manifest, patterns, root):
                return True
    return False


def resolve_package(
    graph: DependencyGraph,
    order: list[str],
    target: str,
    role: str,
    directories=(),
    exclude=(),
) -> str:
    """
    Find the package a --start-from / --stop-at value refers to.

    Args:
        role: "starting" or "stop", used in error messages

    Raises:
        ConfigurationError: The package is unknown or was excluded by a pattern
    """
    name = find_package(graph, order, target)
    if name is not None:
        return name

    if _was_excluded(target, directories, exclude):
        raise ConfigurationError(
            f"Package directory '{target}' was excluded by exclusion patterns: {', '.join(exclude)}. "
            f"Remove the exclusion pattern or choose a different {role} package."
        )

    available = ", ".join(f"{graph.packages[n].directory_name} ({n})" for n in order)
    raise ConfigurationError(f"Package directory '{target}' not found. Available packages: {available}")


def related_packages(graph: DependencyGraph, name: str) -> set[str]:
    """``name``, everything that depends on it, and everything those packages depend on."""
    upstream = {name} | graph.transitive_dependents(name)
    return upstream | graph.transitive_dependencies(upstream)


def select_scope(
    graph: DependencyGraph,
    order: list[str],
    start_from: str | None = None,
    stop_at: str | None = None,
    directories=(),
    exclude=(),
    dry_run: bool = False,
) -> ScopeResult:
    """
    Narrow ``order`` to the requested window.

    The start window keeps the related set of the start package in original
    order. The stop window keeps only what builds before the stop package in
    the full order. Both constraints apply together.

    Returns:
        ScopeResult with the narrowed order, the number of packages removed
        from ``order`` and the log lines emitted
    """
    prefix = "DRY RUN: " if dry_run else ""
    result = list(order)
    messages: list[str] = []

    if start_from:
        logger.debug(f"{prefix}Looking for start package: {start_from}")
        start = resolve_package(graph, order, start_from, "starting", directories, exclude)
        related = related_packages(graph, start)
        result = [name for name in result if name in related]
        message = (
            f"{prefix}Starting from package '{start_from}' "
            f"({len(result)} of {len(order)} packages are related)."
        )
        logger.info(message)
        messages.append(message)

    if stop_at:
        logger.debug(f"{prefix}Looking for stop package: {stop_at}")
        stop = resolve_package(graph, order, stop_at, "stop", directories, exclude)
        before_stop = set(order[: order.index(stop)])
        narrowed = [name for name in result if name in before_stop]
        stopped = len(result) - len(narrowed)
        result = narrowed
        if stopped > 0:
            message = f"{prefix}Stopping before '{stop_at}' - excluding {stopped} package{'' if stopped == 1 else 's'}"
            logger.info(message)
            messages.append(message)

    return ScopeResult(build_order=result, excluded_count=len(order) - len(result), messages=messages)
