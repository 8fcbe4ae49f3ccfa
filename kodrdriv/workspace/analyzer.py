"""Build-order analysis over the local dependency graph.

Both functions are plain depth-first searches with a recursion stack. Packages
are visited in scan order and dependencies in declaration order, which makes
the resulting order reproducible.
"""

from kodrdriv.errors import CircularDependencyError
from kodrdriv.utils.logging import logger

from .types import DependencyGraph


def detect_cycles(graph: DependencyGraph) -> list[list[str]]:
    """
    Detect cycles in the dependency graph using DFS.

    Args:
        graph: Local dependency graph

    Returns:
        List of cycle chains, each closing with its first package repeated
        (e.g. ["a", "b", "a"])
    """
    visited = set()
    rec_stack = set()
    cycles = []

    def dfs(node: str, path: list[str]) -> None:
        """DFS to detect cycles."""
        visited.add(node)
        rec_stack.add(node)
        path.append(node)

        for neighbor in graph.dependencies_of(node):
            if neighbor not in visited:
                dfs(neighbor, path)
            elif neighbor in rec_stack:
                cycle_start = path.index(neighbor)
                cycles.append(path[cycle_start:] + [neighbor])

        path.pop()
        rec_stack.remove(node)

    for node in graph.packages:
        if node not in visited:
            dfs(node, [])

    return cycles


def topological_sort(graph: DependencyGraph) -> list[str]:
    """
    Compute a dependency-first build order.

    Every local dependency of a package appears before the package itself.

    Raises:
        CircularDependencyError: On the first cycle met; no partial order is returned
    """
    visited: set[str] = set()
    visiting: list[str] = []
    result: list[str] = []

    def visit(name: str) -> None:
        if name in visited:
            return
        if name in visiting:
            raise CircularDependencyError(visiting[visiting.index(name):] + [name])

        visiting.append(name)
        for dep in graph.dependencies_of(name):
            visit(dep)
        visiting.pop()

        visited.add(name)
        result.append(name)

    for name in graph.packages:
        visit(name)

    logger.debug(f"Topological sort completed. Build order determined for {len(result)} packages.")
    return result
