"""Tests for build-order scoping: exclusions, --start-from and --stop-at."""

import pytest

from kodrdriv.errors import ConfigurationError
from kodrdriv.workspace import (
    apply_exclusions,
    build_dependency_graph,
    related_packages,
    scan_workspace,
    select_scope,
    topological_sort,
)


def _order(graph):
    return topological_sort(graph)


class TestStartFrom:
    def test_related_set_of_middle_package(self, make_graph):
        # a -> b -> c chain, d independent
        graph = make_graph({"a": ["b"], "b": ["c"], "c": [], "d": []})

        result = select_scope(graph, _order(graph), start_from="b")

        assert set(result.build_order) == {"a", "b", "c"}
        assert result.build_order == ["c", "b", "a"]
        assert result.excluded_count == 1

    def test_includes_dependencies_of_dependents(self, make_graph):
        graph = make_graph({"core": [], "util": [], "app": ["core", "util"], "other": []})

        assert related_packages(graph, "core") == {"core", "app", "util"}

    def test_matches_directory_name(self, make_workspace):
        root = make_workspace({"pkg-core": {"name": "@acme/core"}, "pkg-app": {"name": "@acme/app"}})
        graph = build_dependency_graph(scan_workspace([root]))

        result = select_scope(graph, _order(graph), start_from="pkg-core")

        assert result.build_order == ["@acme/core"]

    def test_unknown_package_lists_available(self, make_graph):
        graph = make_graph({"core": [], "app": ["core"]})

        with pytest.raises(ConfigurationError) as exc_info:
            select_scope(graph, _order(graph), start_from="nope")

        message = str(exc_info.value)
        assert "'nope' not found" in message
        assert "core (core)" in message


class TestStopAt:
    def test_stop_before_package(self, make_graph, log_messages):
        graph = make_graph({"core": [], "plugin": ["core"]})

        result = select_scope(graph, _order(graph), stop_at="plugin")

        assert result.build_order == ["core"]
        assert result.excluded_count == 1
        assert any("excluding 1 package" in m for m in log_messages)

    def test_excluded_count_matches_difference(self, make_graph):
        graph = make_graph({"a": [], "b": ["a"], "c": ["b"], "d": ["c"]})
        order = _order(graph)

        result = select_scope(graph, order, stop_at="c")

        assert result.build_order == ["a", "b"]
        assert result.excluded_count == len(order) - len(result.build_order)
        assert "c" not in result.build_order and "d" not in result.build_order

    def test_combined_with_start_from(self, make_graph):
        graph = make_graph({"a": [], "b": ["a"], "c": ["b"], "x": []})
        order = _order(graph)

        result = select_scope(graph, order, start_from="b", stop_at="c")

        assert result.build_order == ["a", "b"]

    def test_unknown_stop_package(self, make_graph):
        graph = make_graph({"core": []})

        with pytest.raises(ConfigurationError, match="not found"):
            select_scope(graph, _order(graph), stop_at="missing")


class TestExclusions:
    def test_excluded_start_package_reports_patterns(self, make_workspace):
        root = make_workspace({"core": [], "legacy": ["core"]})
        graph = build_dependency_graph(scan_workspace([root], ["legacy"]))

        with pytest.raises(ConfigurationError) as exc_info:
            select_scope(graph, _order(graph), start_from="legacy", directories=[root], exclude=["legacy"])

        assert "was excluded by exclusion patterns: legacy" in str(exc_info.value)

    def test_apply_exclusions_by_name_removes_edges(self, make_graph):
        graph = make_graph({"core": [], "shim": ["core"], "app": ["shim", "core"]})

        trimmed = apply_exclusions(graph, ["shim"])

        assert "shim" not in trimmed.packages
        assert all("shim" not in deps for deps in trimmed.edges.values())
        assert _order(trimmed) == ["core", "app"]
