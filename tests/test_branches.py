"""Tests for the branches and link-status reports."""

import os

import pytest

from kodrdriv.execution import branches
from kodrdriv.execution.branches import (
    BranchRow,
    collect_branch_rows,
    consumer_display_name,
    find_consumers,
    render_branch_table,
    report_branches,
)
from kodrdriv.execution.links import report_link_status
from kodrdriv.git import GitStatusSummary
from kodrdriv.process import ProcessError
from kodrdriv.workspace import build_dependency_graph, scan_workspace, topological_sort


@pytest.fixture
def scoped_graph(make_workspace):
    root = make_workspace({
        "core": {"name": "@acme/core", "version": "1.2.0"},
        "api": {"name": "@acme/api", "version": "0.4.0", "dependencies": {"@acme/core": "^1.2.0"}},
        "web": {"name": "web", "version": "2.0.0", "dependencies": {"@acme/core": "~1.2", "@acme/api": "^0.4.0"}},
    })
    graph = build_dependency_graph(scan_workspace([root]))
    return root, graph


class TestConsumers:
    def test_same_scope_is_shortened(self):
        assert consumer_display_name("@acme/api", "@acme/core") == "./api"
        assert consumer_display_name("web", "@acme/core") == "web"
        assert consumer_display_name("@other/x", "@acme/core") == "@other/x"

    def test_find_consumers_with_scope_indicator(self, scoped_graph):
        _, graph = scoped_graph

        consumers = find_consumers(graph, "@acme/core")

        assert consumers == [("./api (^P)", "@acme/api"), ("web (~m)", "web")]


class TestCollectRows:
    @pytest.fixture(autouse=True)
    def no_global_links(self, monkeypatch):
        monkeypatch.setattr(branches, "get_globally_linked_packages", lambda: {"@acme/core"})

    def test_rows_mark_linking_consumers(self, scoped_graph, monkeypatch):
        root, graph = scoped_graph
        monkeypatch.setattr(branches, "get_git_status_summary", lambda path: GitStatusSummary("main"))
        node_modules = root / "web" / "node_modules" / "@acme"
        node_modules.mkdir(parents=True)
        os.symlink(root / "core", node_modules / "core")

        rows = collect_branch_rows(graph, topological_sort(graph))
        core = rows[0]

        assert core.name == "@acme/core"
        assert core.linked == "Y"
        # web links core but wants ~1.2 while core is 1.2.0, so no problem
        assert core.consumers == ["./api (^P)", "web (~m)*"]

    def test_version_mismatch_is_a_link_problem(self, scoped_graph, monkeypatch):
        root, graph = scoped_graph
        monkeypatch.setattr(branches, "get_git_status_summary", lambda path: GitStatusSummary("main"))
        node_modules = root / "api" / "node_modules" / "@acme"
        node_modules.mkdir(parents=True)
        os.symlink(root / "core", node_modules / "core")
        manifest = root / "api" / "package.json"
        manifest.write_text(manifest.read_text().replace("^1.2.0", "^2.0.0"))

        rows = collect_branch_rows(graph, ["@acme/core"])

        assert rows[0].consumers[0] == "./api (^P)* [LINK PROBLEM]"

    def test_git_failure_yields_error_row(self, scoped_graph, monkeypatch, log_messages):
        _, graph = scoped_graph

        def broken(path):
            raise ProcessError("git rev-parse --abbrev-ref HEAD", 128)

        monkeypatch.setattr(branches, "get_git_status_summary", broken)

        rows = collect_branch_rows(graph, ["web"])

        assert rows == [BranchRow("web", "error", "2.0.0", "error", "x", ["error"])]
        assert any("Failed to get git status for web" in m for m in log_messages)


class TestRenderTable:
    def test_columns_and_continuation_rows(self):
        rows = [
            BranchRow("@acme/core", "main", "1.2.0", "clean", "Y", ["./api (^P)", "web (~m)*"]),
            BranchRow("web", "feature/x", "2.0.0", "1 unstaged", ""),
        ]

        lines = render_branch_table(rows)

        assert lines[0].split(" | ") == [
            "Package   ", "Branch   ", "Version", "Status    ", "Linked", "Consumers",
        ]
        assert set(lines[1].replace(" | ", "")) == {"-"}
        assert lines[2].startswith("@acme/core | main      | 1.2.0   | clean      | Y      | ./api (^P)")
        assert lines[3].strip().endswith("| web (~m)*")
        assert lines[3].startswith(" " * len("@acme/core"))
        assert lines[4].startswith("web        | feature/x |")
        assert all(line == line.rstrip() for line in lines)
        assert all(line.isascii() for line in lines)

    def test_report_prints_legend(self, scoped_graph, monkeypatch, capsys):
        _, graph = scoped_graph
        monkeypatch.setattr(branches, "get_globally_linked_packages", set)
        monkeypatch.setattr(branches, "get_git_status_summary", lambda path: GitStatusSummary("main"))

        summary = report_branches(graph, topological_sort(graph))

        assert summary == "Branch status summary for 3 packages completed."
        out = capsys.readouterr().out
        assert "Legend:" in out
        assert "[LINK PROBLEM]" in out


def test_link_status_report(scoped_graph, log_messages):
    root, graph = scoped_graph
    node_modules = root / "web" / "node_modules" / "@acme"
    node_modules.mkdir(parents=True)
    os.symlink(root / "api", node_modules / "api")

    summary = report_link_status(graph, topological_sort(graph))

    assert summary == "Link status: 1 of 3 packages have linked local dependencies."
    assert "web: linked -> @acme/api" in log_messages
    assert "@acme/core: no local dependencies linked" in log_messages
