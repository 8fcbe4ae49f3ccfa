"""Git and npm-link queries for workspace packages.

Every function takes the package directory explicitly and shells out with
``cwd`` set, so callers never depend on the process working directory.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from kodrdriv.process import ProcessError, run
from kodrdriv.utils.constants import DEPENDENCY_SECTIONS, NODE_MODULES, PACKAGE_JSON
from kodrdriv.utils.logging import logger
from kodrdriv.versions import check_version_mismatch


@dataclass
class GitStatusSummary:
    """Condensed `git status` for one package."""

    branch: str
    unstaged_count: int = 0
    uncommitted_count: int = 0
    unpushed_count: int = 0

    @property
    def has_unstaged_files(self) -> bool:
        return self.unstaged_count > 0

    @property
    def has_uncommitted_changes(self) -> bool:
        return self.uncommitted_count > 0

    @property
    def has_unpushed_commits(self) -> bool:
        return self.unpushed_count > 0

    @property
    def status(self) -> str:
        parts = []
        if self.unstaged_count:
            parts.append(f"{self.unstaged_count} unstaged")
        if self.uncommitted_count:
            parts.append(f"{self.uncommitted_count} uncommitted")
        if self.unpushed_count:
            parts.append(f"{self.unpushed_count} unpushed")
        return ", ".join(parts) if parts else "clean"


def get_git_status_summary(path: str | Path) -> GitStatusSummary:
    """
    Summarize branch and pending work of the repository at ``path``.

    Porcelain lines are counted as unstaged when the work-tree column is set
    (untracked files included) and as uncommitted when the index column is
    set. A branch without an upstream has no unpushed commits.

    Raises:
        ProcessError: If ``path`` is not inside a git repository
    """
    branch = run(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=path).stdout.strip()
    porcelain = run(["git", "status", "--porcelain"], cwd=path).stdout

    unstaged = 0
    uncommitted = 0
    for line in porcelain.splitlines():
        if len(line) < 2:
            continue
        index_state, tree_state = line[0], line[1]
        if line.startswith("??") or tree_state != " ":
            unstaged += 1
        if index_state not in (" ", "?"):
            uncommitted += 1

    try:
        unpushed = int(run(["git", "rev-list", "--count", "@{u}..HEAD"], cwd=path).stdout.strip() or 0)
    except (ProcessError, ValueError):
        unpushed = 0

    return GitStatusSummary(
        branch=branch,
        unstaged_count=unstaged,
        uncommitted_count=uncommitted,
        unpushed_count=unpushed,
    )


def get_latest_tag(path: str | Path) -> str | None:
    """Most recently created tag of the repository at ``path``, or None."""
    output = run(["git", "tag", "--sort=-creatordate"], cwd=path).stdout
    for line in output.splitlines():
        if line.strip():
            return line.strip()
    return None


def branch_exists(path: str | Path, branch: str) -> bool:
    try:
        run(["git", "rev-parse", "--verify", branch], cwd=path)
        return True
    except ProcessError:
        return False


def checkout_branch(path: str | Path, branch: str) -> str:
    """
    Switch the repository at ``path`` to ``branch``.

    Uses the local branch when it exists, otherwise tracks ``origin/<branch>``,
    otherwise creates the branch from the current HEAD.

    Returns:
        How the branch was obtained: "existing", "tracked" or "created"
    """
    if branch_exists(path, branch):
        run(["git", "checkout", branch], cwd=path)
        return "existing"

    try:
        run(["git", "checkout", "-b", branch, f"origin/{branch}"], cwd=path)
        return "tracked"
    except ProcessError:
        logger.debug(f"No remote branch origin/{branch} in {path}, creating it")

    run(["git", "checkout", "-b", branch], cwd=path)
    return "created"


def get_globally_linked_packages() -> set[str]:
    """Names of packages registered with `npm link` in the global prefix.

    npm being unavailable or printing invalid JSON yields an empty set.
    """
    try:
        output = run(["npm", "ls", "-g", "--link", "--depth=0", "--json"]).stdout
    except (ProcessError, OSError) as e:
        logger.debug(f"Could not list globally linked packages: {e}")
        return set()

    try:
        data = json.loads(output or "{}")
    except json.JSONDecodeError:
        logger.debug("npm ls printed invalid JSON, assuming no global links")
        return set()

    return set((data.get("dependencies") or {}).keys())


def _node_modules_entries(node_modules: Path):
    """Yield (package_name, entry_path) for node_modules, descending into @scopes."""
    try:
        names = sorted(os.listdir(node_modules))
    except OSError:
        return

    for name in names:
        entry = node_modules / name
        if name.startswith("@") and entry.is_dir() and not entry.is_symlink():
            try:
                scoped = sorted(os.listdir(entry))
            except OSError:
                continue
            for sub in scoped:
                yield f"{name}/{sub}", entry / sub
        else:
            yield name, entry


def get_linked_dependencies(path: str | Path) -> set[str]:
    """Dependencies of the package at ``path`` that are symlinks in node_modules."""
    linked = set()
    for name, entry in _node_modules_entries(Path(path) / NODE_MODULES):
        if entry.is_symlink():
            linked.add(name)
    return linked


def _read_manifest(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def get_link_compatibility_problems(path: str | Path, local_packages) -> set[str]:
    """
    Linked local dependencies whose version does not satisfy the declared range.

    Args:
        path: Consumer package directory
        local_packages: Names of the packages in the workspace

    Returns:
        Names of dependencies with a version mismatch
    """
    consumer = _read_manifest(Path(path) / PACKAGE_JSON)
    problems = set()

    for name in get_linked_dependencies(path):
        if name not in local_packages:
            continue

        requirement = None
        for section in DEPENDENCY_SECTIONS:
            ranges = consumer.get(section)
            if isinstance(ranges, dict) and isinstance(ranges.get(name), str):
                requirement = ranges[name]
                break
        if requirement is None:
            continue

        linked_manifest = _read_manifest(Path(path) / NODE_MODULES / name / PACKAGE_JSON)
        version = linked_manifest.get("version")
        if not isinstance(version, str):
            continue

        reason = check_version_mismatch(requirement, version)
        if reason:
            logger.debug(f"Link problem in {path}: {name}@{version} vs {requirement} ({reason})")
            problems.add(name)

    return problems
