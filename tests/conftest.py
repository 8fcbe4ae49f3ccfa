"""Pytest configuration and fixtures."""
import json
from pathlib import Path

import pytest

from kodrdriv.utils.logging import logger
from kodrdriv.workspace import build_dependency_graph
from kodrdriv.workspace.types import PackageRecord


def _manifest(dir_name, definition):
    """Accept either a full package.json dict or a list of local dependency names."""
    if isinstance(definition, dict):
        manifest = dict(definition)
        manifest.setdefault("name", dir_name)
        return manifest
    return {
        "name": dir_name,
        "version": "1.0.0",
        "dependencies": {dep: "^1.0.0" for dep in definition},
    }


@pytest.fixture
def make_workspace(tmp_path):
    """
    Build a workspace of package directories under tmp_path/ws.

    Usage:
        root = make_workspace({"core": [], "app": ["core"]})
        root = make_workspace({"core": {"name": "@acme/core", "version": "2.0.0"}})

    Keys are directory paths relative to the workspace root.
    """

    def _make(packages, root_name="ws"):
        root = tmp_path / root_name
        root.mkdir(exist_ok=True)
        for dir_name, definition in packages.items():
            package_dir = root / dir_name
            package_dir.mkdir(parents=True, exist_ok=True)
            manifest = _manifest(Path(dir_name).name, definition)
            (package_dir / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        return root

    return _make


@pytest.fixture
def make_graph():
    """Build a DependencyGraph in memory from {name: [deps...]} (insertion order = scan order)."""

    def _make(packages):
        records = [
            PackageRecord(
                name=name,
                path=Path("/workspace") / name,
                manifest_path=Path("/workspace") / name / "package.json",
                dependencies=frozenset(deps),
                dependency_order=tuple(deps),
                dependency_ranges={dep: "^1.0.0" for dep in deps},
            )
            for name, deps in packages.items()
        ]
        return build_dependency_graph(records)

    return _make


@pytest.fixture
def log_messages():
    """Collect every loguru message emitted during the test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
    """Run the test with tmp_path as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
