"""Tests for workspace-wide branch checkout."""

import pytest

from kodrdriv.errors import ConfigurationError, KodrdrivError
from kodrdriv.execution import checkout
from kodrdriv.execution.checkout import checkout_workspace, find_blocking_packages
from kodrdriv.git import GitStatusSummary
from kodrdriv.process import ProcessError


@pytest.fixture
def graph(make_graph):
    return make_graph({"core": [], "api": ["core"], "web": ["api"]})


ORDER = ["core", "api", "web"]


def _statuses(monkeypatch, statuses):
    def fake_status(path):
        value = statuses.get(path.name, GitStatusSummary("main"))
        if isinstance(value, Exception):
            raise value
        return value

    monkeypatch.setattr(checkout, "get_git_status_summary", fake_status)


class TestPhaseOne:
    def test_dirty_packages_block(self, graph, monkeypatch):
        _statuses(monkeypatch, {"api": GitStatusSummary("main", unstaged_count=2)})

        assert find_blocking_packages(graph, ORDER) == [("api", "2 unstaged")]

    def test_status_failure_blocks_as_error(self, graph, monkeypatch):
        _statuses(monkeypatch, {"web": ProcessError("git status --porcelain", 128)})

        assert find_blocking_packages(graph, ORDER) == [("web", "error")]

    def test_blocked_checkout_touches_nothing(self, graph, monkeypatch):
        _statuses(monkeypatch, {"core": GitStatusSummary("main", uncommitted_count=1)})
        monkeypatch.setattr(checkout, "checkout_branch", lambda path, branch: pytest.fail("checked out"))

        with pytest.raises(ConfigurationError, match="1 packages have uncommitted changes or errors"):
            checkout_workspace(graph, ORDER, "develop")

    def test_unpushed_commits_do_not_block(self, graph, monkeypatch):
        _statuses(monkeypatch, {"core": GitStatusSummary("main", unpushed_count=3)})

        assert find_blocking_packages(graph, ORDER) == []


class TestPhaseTwo:
    def test_checks_out_every_package(self, graph, monkeypatch, log_messages):
        _statuses(monkeypatch, {})
        seen = []

        def fake_checkout(path, branch):
            seen.append((path.name, branch))
            return "created" if path.name == "web" else "existing"

        monkeypatch.setattr(checkout, "checkout_branch", fake_checkout)

        summary = checkout_workspace(graph, ORDER, "develop")

        assert seen == [("core", "develop"), ("api", "develop"), ("web", "develop")]
        assert summary == "Workspace checkout complete: 3 packages checked out to 'develop'"
        assert "[3/3] web: Created new branch develop" in log_messages

    def test_continues_past_failures(self, graph, monkeypatch):
        _statuses(monkeypatch, {})
        seen = []

        def fake_checkout(path, branch):
            seen.append(path.name)
            if path.name == "api":
                raise ProcessError("git checkout develop", 1)
            return "existing"

        monkeypatch.setattr(checkout, "checkout_branch", fake_checkout)

        with pytest.raises(KodrdrivError, match="Checkout failed for 1 packages"):
            checkout_workspace(graph, ORDER, "develop")

        assert seen == ["core", "api", "web"]

    def test_dry_run(self, graph, monkeypatch, log_messages):
        _statuses(monkeypatch, {})
        monkeypatch.setattr(checkout, "checkout_branch", lambda path, branch: pytest.fail("checked out"))

        summary = checkout_workspace(graph, ORDER, "develop", dry_run=True)

        assert summary.startswith("DRY RUN: Workspace checkout complete: 3 packages")
        assert "[1/3] core: Would checkout develop" in log_messages
