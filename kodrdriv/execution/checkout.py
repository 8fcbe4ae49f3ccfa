"""`kodrdriv tree checkout <branch>` - switch every package to one branch.

Runs in two phases. Phase 1 refuses to touch anything while any package has
local changes or its status cannot be read. Phase 2 checks the branch out in
each package and keeps going past individual failures.
"""

from kodrdriv.errors import ConfigurationError, KodrdrivError
from kodrdriv.git import checkout_branch, get_git_status_summary
from kodrdriv.process import ProcessError
from kodrdriv.utils.logging import logger
from kodrdriv.workspace.types import DependencyGraph

CHECKOUT_MESSAGES = {
    "existing": "Checked out {branch}",
    "tracked": "Checked out {branch} from origin",
    "created": "Created new branch {branch}",
}


def find_blocking_packages(graph: DependencyGraph, build_order: list[str]) -> list[tuple[str, str]]:
    """
    Phase 1: packages whose working tree is not clean.

    A package whose status lookup fails is blocking as well, with status "error".

    Returns:
        (package_name, status) pairs
    """
    blocking = []
    for name in build_order:
        record = graph.packages[name]
        try:
            summary = get_git_status_summary(record.path)
        except (ProcessError, OSError) as e:
            logger.warning(f"{name}: error checking status - {e}")
            blocking.append((name, "error"))
            continue

        if summary.has_uncommitted_changes or summary.has_unstaged_files:
            logger.warning(f"{name}: {summary.status}")
            blocking.append((name, summary.status))
        else:
            logger.debug(f"{name}: clean")
    return blocking


def checkout_workspace(
    graph: DependencyGraph,
    build_order: list[str],
    branch: str,
    dry_run: bool = False,
) -> str:
    """
    Check out ``branch`` in every package of ``build_order``.

    Raises:
        ConfigurationError: Phase 1 found packages with changes or errors
        KodrdrivError: One or more packages failed to check out
    """
    prefix = "DRY RUN: " if dry_run else ""
    total = len(build_order)
    logger.info(f"{prefix}Workspace Checkout to Branch: {branch}")

    logger.info("Phase 1: Checking for uncommitted changes across workspace...")
    blocking = find_blocking_packages(graph, build_order)
    if blocking:
        logger.error(
            f"Cannot proceed with checkout: {len(blocking)} packages have uncommitted changes or errors:"
        )
        for name, status in blocking:
            logger.error(f"  {name} ({graph.packages[name].path}):")
            logger.error(f"      Status: {status}")
        logger.error("Commit or stash the changes listed above, then re-run the checkout command.")
        raise ConfigurationError(
            f"Workspace checkout blocked: {len(blocking)} packages have uncommitted changes or errors"
        )
    logger.info(f"Phase 1 complete: All {total} packages are clean")

    logger.info(f"Phase 2: Checking out all packages to branch '{branch}'...")
    successful = 0
    failed: list[tuple[str, str]] = []

    for index, name in enumerate(build_order, start=1):
        if dry_run:
            logger.info(f"[{index}/{total}] {name}: Would checkout {branch}")
            successful += 1
            continue

        try:
            how = checkout_branch(graph.packages[name].path, branch)
        except (ProcessError, OSError) as e:
            logger.error(f"[{index}/{total}] {name}: Failed - {e}")
            failed.append((name, str(e)))
            continue

        logger.info(f"[{index}/{total}] {name}: " + CHECKOUT_MESSAGES[how].format(branch=branch))
        successful += 1

    if failed:
        logger.error(f"Checkout completed with errors: {successful}/{total} packages successful")
        logger.error("Failed packages:")
        for name, reason in failed:
            logger.error(f"  - {name}: {reason}")
        raise KodrdrivError(f"Checkout failed for {len(failed)} packages")

    logger.info(f"Checkout complete: All {total} packages successfully checked out to '{branch}'")
    return f"{prefix}Workspace checkout complete: {successful} packages checked out to '{branch}'"
