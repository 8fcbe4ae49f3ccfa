"""Workspace data model: package records and the local dependency graph."""

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class PackageRecord:
    """One package.json found by the scanner.

    ``dependencies`` holds every declared dependency name; ``local_dependencies``
    is filled by the graph builder with the names that are packages of the same
    workspace. ``dependency_ranges`` keeps the declared range per name.
    """

    name: str
    path: Path
    manifest_path: Path
    version: str = "0.0.0"
    dependencies: frozenset[str] = frozenset()
    local_dependencies: frozenset[str] = frozenset()
    dependency_order: tuple[str, ...] = ()
    dependency_ranges: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def directory_name(self) -> str:
        return self.path.name


@dataclass
class DependencyGraph:
    """Local packages and the edges between them.

    Attributes:
        packages: name -> record, in scan order
        edges: name -> names of local packages it depends on
    """

    packages: dict[str, PackageRecord] = field(default_factory=dict)
    edges: dict[str, set[str]] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.packages

    def __len__(self) -> int:
        return len(self.packages)

    def dependencies_of(self, name: str) -> list[str]:
        """Direct local dependencies of ``name`` in declaration order."""
        record = self.packages[name]
        deps = self.edges.get(name, set())
        return [dep for dep in record.dependency_order if dep in deps]

    def dependents_of(self, name: str) -> list[str]:
        """Packages that directly depend on ``name``, in scan order."""
        return [pkg for pkg, deps in self.edges.items() if name in deps]

    def transitive_dependencies(self, names) -> set[str]:
        """Every package reachable from ``names`` along dependency edges (excluding the seeds)."""
        seeds = set(names)
        seen: set[str] = set()
        queue = deque(seeds)
        while queue:
            current = queue.popleft()
            for dep in self.edges.get(current, ()):
                if dep not in seen:
                    seen.add(dep)
                    queue.append(dep)
        return seen - seeds

    def transitive_dependents(self, name: str) -> set[str]:
        """Every package that depends on ``name`` directly or indirectly."""
        seen: set[str] = set()
        queue = deque([name])
        while queue:
            current = queue.popleft()
            for dependent in self.dependents_of(current):
                if dependent not in seen:
                    seen.add(dependent)
                    queue.append(dependent)
        seen.discard(name)
        return seen

    def without(self, names) -> "DependencyGraph":
        """Copy of the graph with ``names`` removed, edges to them included."""
        dropped = set(names)
        return DependencyGraph(
            packages={n: r for n, r in self.packages.items() if n not in dropped},
            edges={n: deps - dropped for n, deps in self.edges.items() if n not in dropped},
        )


@dataclass
class ScopeResult:
    """Build order after start/stop narrowing."""

    build_order: list[str]
    excluded_count: int = 0
    messages: list[str] = field(default_factory=list)
