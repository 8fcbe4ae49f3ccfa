"""Dependency graph builder - pure function from package records to a graph."""

from dataclasses import replace

from kodrdriv.utils.logging import logger

from .types import DependencyGraph, PackageRecord


def build_dependency_graph(records: list[PackageRecord]) -> DependencyGraph:
    """
    Build the local dependency graph.

    An edge R -> D exists for every dependency D of R that is the name of
    another record. External dependencies and self-references are dropped.

    Args:
        records: Package records in scan order

    Returns:
        DependencyGraph whose records carry their local_dependencies
    """
    names = {record.name for record in records}
    packages = {}
    edges = {}

    for record in records:
        local = {dep for dep in record.dependencies if dep in names and dep != record.name}
        for dep in record.dependency_order:
            if dep in local:
                logger.debug(f"{record.name} depends on local package: {dep}")
        packages[record.name] = replace(record, local_dependencies=frozenset(local))
        edges[record.name] = local

    return DependencyGraph(packages=packages, edges=edges)
