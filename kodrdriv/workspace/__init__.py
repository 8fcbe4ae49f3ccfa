"""Workspace discovery: scanning, the dependency graph and build-order scoping."""

from .analyzer import detect_cycles, topological_sort
from .builder import build_dependency_graph
from .scanner import find_package_manifests, parse_package_json, scan_workspace
from .scope import apply_exclusions, related_packages, select_scope
from .types import DependencyGraph, PackageRecord, ScopeResult

__all__ = [
    "PackageRecord",
    "DependencyGraph",
    "ScopeResult",
    "find_package_manifests",
    "parse_package_json",
    "scan_workspace",
    "build_dependency_graph",
    "topological_sort",
    "detect_cycles",
    "apply_exclusions",
    "related_packages",
    "select_scope",
]
