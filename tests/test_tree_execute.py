"""End-to-end tests for tree.execute against real workspaces on disk."""

import pytest

from kodrdriv.errors import CircularDependencyError, ConfigurationError, PackageExecutionError
from kodrdriv.execution.context import ContextStore
from kodrdriv.execution.executor import TreeSession
from kodrdriv.execution.types import TreeConfig
from kodrdriv.tree import execute


def _record_cmd(log_file):
    """Shell command appending the package directory name to log_file, failing where a 'fail' marker exists."""
    return f'test ! -f fail && basename "$PWD" >> "{log_file}"'


def _ran(log_file):
    if not log_file.exists():
        return []
    return log_file.read_text().split()


@pytest.fixture
def chain(make_workspace, in_tmp):
    """Three packages a <- b <- c."""
    return make_workspace({"a": [], "b": ["a"], "c": ["b"]})


def _config(root, tmp_path, **overrides):
    values = {"directories": [str(root)], "output_dir": str(tmp_path)}
    values.update(overrides)
    return TreeConfig(**values)


class TestScenarios:
    def test_runs_command_once_per_package_in_order(self, make_workspace, in_tmp):
        root = make_workspace({"B": ["A"], "A": []})
        log_file = in_tmp / "order.log"

        summary = execute(_config(root, in_tmp, cmd=_record_cmd(log_file)))

        assert _ran(log_file) == ["A", "B"]
        assert "Build order: A -> B" in summary
        assert "All 2 packages completed successfully!" in summary

    def test_cycle_is_rejected(self, make_workspace, in_tmp, log_messages):
        root = make_workspace({"A": ["B"], "B": ["A"]})

        with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
            execute(_config(root, in_tmp, cmd="true"))

        assert "Dependency cycle: A -> B -> A" in log_messages

    def test_stop_at(self, make_workspace, in_tmp, log_messages):
        root = make_workspace({"core": [], "plugin": ["core"]})
        log_file = in_tmp / "order.log"

        execute(_config(root, in_tmp, cmd=_record_cmd(log_file), stop_at="plugin"))

        assert _ran(log_file) == ["core"]
        assert any("excluding 1 package" in m for m in log_messages)

    def test_start_from_runs_related_set(self, make_workspace, in_tmp):
        root = make_workspace({"a": ["b"], "b": ["c"], "c": [], "d": []})
        log_file = in_tmp / "order.log"

        execute(_config(root, in_tmp, cmd=_record_cmd(log_file), start_from="b"))

        assert _ran(log_file) == ["c", "b", "a"]

    def test_empty_workspace_is_a_message(self, tmp_path, in_tmp):
        (tmp_path / "empty").mkdir()

        summary = execute(_config(tmp_path / "empty", in_tmp, cmd="true"))

        assert "No package.json files found" in summary

    def test_failure_halts_with_resume_command(self, chain, in_tmp):
        log_file = in_tmp / "order.log"
        (chain / "b" / "fail").touch()

        with pytest.raises(PackageExecutionError) as exc_info:
            execute(_config(chain, in_tmp, cmd=_record_cmd(log_file)))

        assert _ran(log_file) == ["a"]
        message = str(exc_info.value)
        assert "b" == exc_info.value.package_name
        assert "package b" in message
        assert "kodrdriv tree --continue --cmd" in message


class TestCheckpoint:
    def test_left_behind_on_failure(self, chain, in_tmp):
        (chain / "b" / "fail").touch()

        with pytest.raises(PackageExecutionError):
            execute(_config(chain, in_tmp, cmd=_record_cmd(in_tmp / "order.log")))

        saved = ContextStore(in_tmp / ".kodrdriv-context").load()
        assert saved.completed_packages == ["a"]
        assert saved.remaining_packages == ["b", "c"]
        assert saved.built_in_command is None

    def test_removed_after_success(self, chain, in_tmp):
        execute(_config(chain, in_tmp, cmd=_record_cmd(in_tmp / "order.log")))

        assert not (in_tmp / ".kodrdriv-context").exists()

    def test_continue_resumes_at_failed_package(self, chain, in_tmp):
        log_file = in_tmp / "order.log"
        (chain / "b" / "fail").touch()
        with pytest.raises(PackageExecutionError):
            execute(_config(chain, in_tmp, cmd=_record_cmd(log_file)))
        (chain / "b" / "fail").unlink()

        summary = execute(_config(chain, in_tmp, continue_run=True))

        assert _ran(log_file) == ["a", "b", "c"]
        assert "All 3 packages completed successfully!" in summary
        assert not (in_tmp / ".kodrdriv-context").exists()

    def test_promote_then_continue_skips_package(self, chain, in_tmp):
        log_file = in_tmp / "order.log"
        (chain / "b" / "fail").touch()
        with pytest.raises(PackageExecutionError):
            execute(_config(chain, in_tmp, cmd=_record_cmd(log_file)))

        message = execute(_config(chain, in_tmp, promote="b"))
        execute(_config(chain, in_tmp, continue_run=True))

        assert message == "Package 'b' promoted to completed status."
        assert _ran(log_file) == ["a", "c"]

    def test_promote_without_checkpoint(self, chain, in_tmp):
        with pytest.raises(ConfigurationError, match="Cannot promote"):
            execute(_config(chain, in_tmp, promote="b"))

    def test_continue_without_checkpoint_starts_fresh(self, chain, in_tmp, log_messages):
        log_file = in_tmp / "order.log"

        execute(_config(chain, in_tmp, cmd=_record_cmd(log_file), continue_run=True))

        assert _ran(log_file) == ["a", "b", "c"]
        assert "No previous execution context found. Starting new execution..." in log_messages


class TestDryRun:
    def test_nothing_runs_and_nothing_is_written(self, chain, in_tmp, log_messages):
        log_file = in_tmp / "order.log"

        summary = execute(_config(chain, in_tmp, cmd=_record_cmd(log_file), dry_run=True))

        assert not log_file.exists()
        assert not (in_tmp / ".kodrdriv-context").exists()
        assert summary.startswith("DRY RUN: Build order: a -> b -> c")
        assert any(m.startswith("DRY RUN: Would execute:") for m in log_messages)


def test_without_command_returns_build_order(chain, in_tmp):
    assert execute(_config(chain, in_tmp)) == "Build order: a -> b -> c"


def test_excluded_packages_never_run(chain, in_tmp):
    log_file = in_tmp / "order.log"

    execute(_config(chain, in_tmp, cmd=_record_cmd(log_file), exclude=["c"]))

    assert _ran(log_file) == ["a", "b"]


def test_run_validates_scripts_before_executing(make_workspace, in_tmp):
    root = make_workspace({"core": {"scripts": {"build": "tsc"}}, "app": {"scripts": {}}})

    with pytest.raises(ConfigurationError, match="app: build"):
        execute(_config(root, in_tmp, built_in="run", package_argument="build"))

    assert not (in_tmp / ".kodrdriv-context").exists()


def test_caller_session_collects_completed_packages(chain, in_tmp):
    session = TreeSession()

    execute(_config(chain, in_tmp, cmd="true"), session=session)

    assert session.completed == ["a", "b", "c"]
    assert session.store is not None
