"""`kodrdriv tree branches` - read-only branch, status and link report."""

from dataclasses import dataclass, field

from kodrdriv.git import (
    get_git_status_summary,
    get_globally_linked_packages,
    get_link_compatibility_problems,
    get_linked_dependencies,
)
from kodrdriv.process import ProcessError
from kodrdriv.ui import console, print_header
from kodrdriv.utils.logging import logger
from kodrdriv.versions import version_scope_indicator
from kodrdriv.workspace.types import DependencyGraph

HEADERS = ("Package", "Branch", "Version", "Status", "Linked", "Consumers")

LEGEND = [
    "Legend:",
    "  * = Consumer is actively linking to this package",
    '  (^P) = Patch-level dependency (e.g., "^4.4.32")',
    '  (^m) = Minor-level dependency (e.g., "^4.4")',
    '  (^M) = Major-level dependency (e.g., "^4")',
    "  (~P), (>=M), etc. = Other version prefixes preserved",
    "  [LINK PROBLEM] = Consumer has link problems (version mismatches) with this package",
]


@dataclass
class BranchRow:
    name: str
    branch: str
    version: str
    status: str
    linked: str
    consumers: list[str] = field(default_factory=list)


def consumer_display_name(consumer: str, target: str) -> str:
    """Shorten a consumer in the target's npm scope: @scope/app -> ./app."""
    if "/" in target:
        scope = target.split("/")[0] + "/"
        if consumer.startswith(scope):
            return "./" + consumer[len(scope):]
    return consumer


def find_consumers(graph: DependencyGraph, target: str) -> list[tuple[str, str]]:
    """
    Packages that declare ``target`` as a dependency.

    Returns:
        Sorted (display_text, consumer_name) pairs, display_text like "./app (^P)"
    """
    consumers = []
    for name, record in graph.packages.items():
        if name == target:
            continue
        version_range = record.dependency_ranges.get(target)
        if version_range is None:
            continue
        display = f"{consumer_display_name(name, target)} ({version_scope_indicator(version_range)})"
        consumers.append((display, name))
    return sorted(consumers)


class _LinkCache:
    """Per-consumer node_modules inspection, done once per report."""

    def __init__(self, graph: DependencyGraph):
        self.graph = graph
        self._linked: dict[str, set[str]] = {}
        self._problems: dict[str, set[str]] = {}

    def linked(self, consumer: str) -> set[str]:
        if consumer not in self._linked:
            self._linked[consumer] = get_linked_dependencies(self.graph.packages[consumer].path)
        return self._linked[consumer]

    def problems(self, consumer: str) -> set[str]:
        if consumer not in self._problems:
            self._problems[consumer] = get_link_compatibility_problems(
                self.graph.packages[consumer].path, self.graph.packages
            )
        return self._problems[consumer]


def collect_branch_rows(graph: DependencyGraph, build_order: list[str]) -> list[BranchRow]:
    """Gather one row per package. A failed git lookup yields an error row and a warning."""
    globally_linked = get_globally_linked_packages()
    links = _LinkCache(graph)
    rows = []

    for name in build_order:
        record = graph.packages[name]
        try:
            status = get_git_status_summary(record.path)
        except (ProcessError, OSError) as e:
            logger.warning(f"Failed to get git status for {name}: {e}")
            rows.append(BranchRow(name, "error", record.version, "error", "x", ["error"]))
            continue

        consumers = []
        for display, consumer in find_consumers(graph, name):
            if name in links.linked(consumer):
                display += "*"
            if name in links.problems(consumer):
                display += " [LINK PROBLEM]"
            consumers.append(display)

        rows.append(
            BranchRow(
                name=name,
                branch=status.branch,
                version=record.version,
                status=status.status,
                linked="Y" if name in globally_linked else "",
                consumers=consumers,
            )
        )

    return rows


def render_branch_table(rows: list[BranchRow]) -> list[str]:
    """Fixed-width table; extra consumers go on continuation rows."""
    widths = [len(h) for h in HEADERS[:-1]]
    for row in rows:
        for i, value in enumerate((row.name, row.branch, row.version, row.status, row.linked)):
            widths[i] = max(widths[i], len(value))

    def line(cells, consumer: str) -> str:
        padded = [cell.ljust(width) for cell, width in zip(cells, widths)]
        return " | ".join(padded + [consumer]).rstrip()

    lines = [
        line(HEADERS[:-1], HEADERS[-1]),
        line(["-" * w for w in widths], "-" * len(HEADERS[-1])),
    ]
    blank = [""] * len(widths)
    for row in rows:
        cells = [row.name, row.branch, row.version, row.status, row.linked]
        first, *rest = row.consumers or [""]
        lines.append(line(cells, first))
        for consumer in rest:
            lines.append(line(blank, consumer))
    return lines


def report_branches(graph: DependencyGraph, build_order: list[str]) -> str:
    """Print the branch table and legend. Nothing in the workspace is modified."""
    logger.info(f"Analyzing {len(build_order)} packages...")
    rows = collect_branch_rows(graph, build_order)

    console.print()
    print_header("BRANCH STATUS")
    for text in render_branch_table(rows) + [""] + LEGEND:
        console.print(text, markup=False, highlight=False)
    console.print()

    return f"Branch status summary for {len(rows)} packages completed."
