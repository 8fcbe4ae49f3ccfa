"""Tree orchestration - scan, order, scope and execute across a package workspace.

    directories -> scan -> graph -> topological order -> scope -> execute

``execute`` is the single entry point used by the CLI. It returns a summary
string on success and raises a KodrdrivError subclass on any fatal condition.
"""

import os
from dataclasses import replace
from pathlib import Path

from kodrdriv.errors import CircularDependencyError, ConfigurationError
from kodrdriv.execution.branches import report_branches
from kodrdriv.execution.checkout import checkout_workspace
from kodrdriv.execution.context import ContextStore, ExecutionContext
from kodrdriv.execution.executor import TreeSession, execute_build_order
from kodrdriv.execution.links import report_link_status
from kodrdriv.execution.operations import (
    build_operation,
    parse_scripts,
    validate_scripts,
    validate_tree_config,
)
from kodrdriv.execution.types import OperationKind, TreeConfig
from kodrdriv.storage import Storage
from kodrdriv.utils.logging import logger
from kodrdriv.workspace import (
    apply_exclusions,
    build_dependency_graph,
    detect_cycles,
    scan_workspace,
    select_scope,
    topological_sort,
)
from kodrdriv.workspace.types import DependencyGraph


def context_store_for(config: TreeConfig, storage: Storage | None = None) -> ContextStore:
    """Checkpoint location: <output_dir>/<context_file>, output_dir defaulting to the cwd."""
    return ContextStore(Path(config.output_dir or ".") / config.context_file, storage)


def _resume_config(config: TreeConfig, saved: ExecutionContext) -> TreeConfig:
    """Reapply the saved invocation; only dry-run and output locations come from the new call."""
    logger.info("Continuing previous tree execution...")
    logger.info(f"Original command: {saved.command}")
    logger.info(f"Started: {saved.created_at.isoformat()}")
    logger.info(
        f"Previously completed: {len(saved.completed_packages)}/{len(saved.build_order)} packages"
    )
    return replace(
        config,
        built_in=saved.built_in_command,
        cmd=None if saved.built_in_command else saved.command,
        package_argument=saved.package_argument,
        clean_node_modules=saved.clean_node_modules,
        externals=list(saved.externals),
        start_from=None,
        stop_at=None,
    )


def _log_build_order(graph: DependencyGraph, order: list[str], config: TreeConfig, prefix: str) -> None:
    logger.info(f"{prefix}Build order determined:")
    for index, name in enumerate(order, start=1):
        record = graph.packages[name]
        deps = graph.dependencies_of(name)
        if config.verbose or config.debug:
            logger.info(f"{index}. {name} ({record.version})")
            logger.info(f"   Path: {record.path}")
            logger.info(f"   Local Dependencies: {', '.join(deps) if deps else 'none'}")
        elif deps:
            logger.info(f"{index}. {name} (depends on: {', '.join(deps)})")
        else:
            logger.info(f"{index}. {name} (no local dependencies)")


def load_build_order(config: TreeConfig, storage: Storage | None = None):
    """
    Scan the workspace and compute the full build order.

    Returns:
        (graph, order), or (None, message) when no package.json was found
    """
    prefix = "DRY RUN: " if config.dry_run else ""
    directories = config.directories or [os.getcwd()]

    if config.exclude:
        logger.debug(f"{prefix}Using exclusion patterns: {', '.join(config.exclude)}")

    logger.debug(f"{prefix}Scanning for package.json files...")
    records = scan_workspace(directories, config.exclude, storage)
    if not records:
        message = f"No package.json files found in subdirectories of: {', '.join(map(str, directories))}"
        logger.warning(message)
        return None, message

    logger.info(f"{prefix}Found {len(records)} package.json files")

    logger.debug(f"{prefix}Building dependency graph...")
    graph = apply_exclusions(build_dependency_graph(records), config.exclude)

    logger.debug(f"{prefix}Determining build order...")
    try:
        order = topological_sort(graph)
    except CircularDependencyError:
        for cycle in detect_cycles(graph):
            logger.error(f"Dependency cycle: {' -> '.join(cycle)}")
        raise
    return graph, order


def execute(config: TreeConfig, session: TreeSession | None = None, storage: Storage | None = None) -> str:
    """
    Run one `kodrdriv tree` invocation.

    Args:
        config: Merged CLI and file configuration
        session: Run state; a fresh one is created when omitted
        storage: Filesystem facade for manifests and the checkpoint

    Returns:
        Human-readable summary

    Raises:
        ConfigurationError: Bad options, unknown start/stop package, failed validation
        WorkspaceIntegrityError: Unparseable package.json
        CircularDependencyError: The local dependency graph has a cycle
        PackageExecutionError: A package failed; the message holds the resume command
    """
    store = context_store_for(config, storage)

    if config.promote:
        logger.info(f"Promoting package '{config.promote}' to completed status...")
        if not store.promote(config.promote):
            raise ConfigurationError(
                f"Cannot promote '{config.promote}': no usable execution context at {store.path}"
            )
        logger.info("You can now run the tree command with --continue to resume from the next package.")
        return f"Package '{config.promote}' promoted to completed status."

    saved = None
    if config.continue_run:
        saved = store.load()
        if saved is None:
            logger.warning("No previous execution context found. Starting new execution...")
        else:
            config = _resume_config(config, saved)

    kind = validate_tree_config(config)
    prefix = "DRY RUN: " if config.dry_run else ""

    graph, order = load_build_order(config, storage)
    if graph is None:
        return order

    if saved is not None:
        missing = [name for name in saved.remaining_packages if name not in graph]
        if missing:
            logger.warning(f"Skipping packages no longer in the workspace: {', '.join(missing)}")
        order = [name for name in saved.remaining_packages if name in graph]
    else:
        scope = select_scope(
            graph,
            order,
            start_from=config.start_from,
            stop_at=config.stop_at,
            directories=config.directories or [os.getcwd()],
            exclude=config.exclude,
            dry_run=config.dry_run,
        )
        order = scope.build_order

    _log_build_order(graph, order, config, prefix)
    build_order_line = f"{prefix}Build order: {' -> '.join(order)}"

    if kind is OperationKind.BRANCHES:
        return report_branches(graph, order)
    if kind is OperationKind.CHECKOUT:
        return checkout_workspace(graph, order, config.package_argument, dry_run=config.dry_run)
    if kind in (OperationKind.LINK, OperationKind.UNLINK) and config.package_argument == "status":
        return report_link_status(graph, order)

    operation = build_operation(config, storage)
    if operation is None:
        return build_order_line

    if kind is OperationKind.RUN:
        validate_scripts([graph.packages[name] for name in order], parse_scripts(config.package_argument), storage)

    if session is None:
        session = TreeSession(store, dry_run=config.dry_run)
    else:
        session.store = session.store or store
        session.dry_run = session.dry_run or config.dry_run

    if saved is not None:
        session.begin(saved)
    else:
        session.begin(
            ExecutionContext(
                command=operation.describe(),
                built_in_command=kind.value if kind else None,
                package_argument=config.package_argument,
                clean_node_modules=config.clean_node_modules,
                externals=list(config.externals),
                build_order=list(order),
                remaining_packages=list(order),
            )
        )

    description = f'built-in command "{kind.value}"' if kind else f'"{operation.describe()}"'
    logger.info(f"{prefix}Executing {description} in {len(order)} packages...")
    if kind is OperationKind.PUBLISH:
        logger.info("Inter-project dependencies will be automatically updated before each publish.")

    offset = len(saved.completed_packages) if saved is not None else 0
    completed = execute_build_order(
        session, graph, order, operation, output_level=config.output_level, offset=offset
    )

    summary = f"{prefix}All {completed + offset} packages completed successfully!"
    logger.info(summary)
    return f"{build_order_line}\n{summary}"
