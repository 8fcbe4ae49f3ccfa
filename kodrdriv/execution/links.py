"""`kodrdriv tree link status` / `unlink status` - which local packages are symlinked."""

from kodrdriv.git import get_link_compatibility_problems, get_linked_dependencies
from kodrdriv.utils.logging import logger
from kodrdriv.workspace.types import DependencyGraph


def collect_link_status(graph: DependencyGraph, build_order: list[str]) -> dict[str, list[str]]:
    """Local dependencies currently symlinked in each package's node_modules."""
    status = {}
    for name in build_order:
        linked = get_linked_dependencies(graph.packages[name].path)
        status[name] = [dep for dep in graph.dependencies_of(name) if dep in linked]
    return status


def report_link_status(graph: DependencyGraph, build_order: list[str]) -> str:
    """Log per-package link state. Nothing is linked or unlinked."""
    status = collect_link_status(graph, build_order)
    linked_count = 0

    for name, linked in status.items():
        if not linked:
            logger.info(f"{name}: no local dependencies linked")
            continue
        linked_count += 1
        problems = get_link_compatibility_problems(graph.packages[name].path, graph.packages)
        shown = [f"{dep} [LINK PROBLEM]" if dep in problems else dep for dep in linked]
        logger.info(f"{name}: linked -> {', '.join(shown)}")

    return f"Link status: {linked_count} of {len(status)} packages have linked local dependencies."
