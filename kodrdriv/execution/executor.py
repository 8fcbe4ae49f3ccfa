"""Sequential executor - runs one operation per package, in build order.

Packages are processed strictly one at a time. The executor changes into each
package directory, runs the operation and always changes back. The first
failure stops the run and raises PackageExecutionError carrying the command
that resumes it.
"""

import os
from pathlib import Path

from kodrdriv.errors import PackageExecutionError
from kodrdriv.utils.logging import logger
from kodrdriv.workspace.types import DependencyGraph

from .context import ContextStore, ExecutionContext
from .operations import Operation
from .types import OperationResult, PackageContext, PublishedVersion

TIMEOUT_MARKERS = ("timeout", "timed out", "timed_out")


class TreeSession:
    """Caller-owned state of one tree run.

    Holds what earlier packages produced for later ones (published versions)
    and the checkpoint being kept up to date. Nothing is shared between
    sessions.
    """

    def __init__(self, store: ContextStore | None = None, dry_run: bool = False):
        self.store = store
        self.dry_run = dry_run
        self.context: ExecutionContext | None = None
        self.published_versions: list[PublishedVersion] = []
        self.completed: list[str] = []

    @property
    def persists(self) -> bool:
        return self.store is not None and self.context is not None and not self.dry_run

    def begin(self, context: ExecutionContext) -> None:
        """Adopt a new or resumed checkpoint and write it out."""
        self.context = context
        self.published_versions = list(context.published_versions)
        if self.persists:
            self.store.save(context)

    def record_success(self, package_name: str, result: OperationResult) -> None:
        self.completed.append(package_name)
        if result.published_version is not None:
            self.published_versions.append(result.published_version)
        if self.persists:
            self.context.mark_completed(package_name)
            self.context.published_versions = list(self.published_versions)
            self.store.save(self.context)

    def finish(self) -> None:
        """Drop the checkpoint after every package succeeded."""
        if self.persists:
            self.store.clear()


def is_timeout_error(error: BaseException) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in TIMEOUT_MARKERS)


def _indent_block(title: str, text: str) -> list[str]:
    lines = [line for line in (text or "").splitlines() if line.strip()]
    if not lines:
        return []
    return [f"    {title}:"] + [f"      {line}" for line in lines]


def format_package_error(package_name: str, error: BaseException) -> str:
    """Failure report: the message indented, then any captured STDERR/STDOUT."""
    lines = [f"Command failed in package {package_name}:"]
    lines += [f"    {line}" for line in str(error).splitlines()]
    lines += _indent_block("STDERR", getattr(error, "stderr", ""))
    lines += _indent_block("STDOUT", getattr(error, "stdout", ""))
    return "\n".join(lines)


def run_in_directory(operation: Operation, package: PackageContext) -> OperationResult:
    """
    Run ``operation`` with the package directory as working directory.

    The previous working directory is restored on every exit path; a failure
    to restore it is logged and never replaces the operation's own error.
    """
    path = Path(package.path)
    if not path.exists():
        raise FileNotFoundError(f"Cannot access package directory: {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {path}")

    original_cwd = os.getcwd()
    os.chdir(path)
    package.debug(f"Changed to directory: {path}")
    try:
        return operation.execute(package)
    finally:
        try:
            os.chdir(original_cwd)
            package.debug(f"Restored working directory to: {original_cwd}")
        except OSError as e:
            package.error(f"Failed to restore working directory to {original_cwd}: {e}")
            package.error(f"Current working directory is now: {os.getcwd()}")


def _report_failure(
    package: PackageContext,
    operation: Operation,
    error: BaseException,
    successful: int,
) -> None:
    hint = operation.resume_hint()

    package.error(f"Failed - {str(error).splitlines()[0] if str(error) else type(error).__name__}")
    logger.error(format_package_error(package.name, error))
    logger.error(f"Failed after {successful} successful packages.")

    if is_timeout_error(error):
        logger.error("")
        logger.error("TIMEOUT DETECTED: This appears to be a timeout error.")
        logger.error("   The execution context has been saved for recovery.")
        logger.error("   Once the package is finished by hand, mark it completed with:")
        logger.error(f"      {hint.replace('--continue', f'--promote {package.name}')}")
        logger.error("")

    logger.error("To resume from this point, run:")
    logger.error(f"    {hint}")

    logger.error("")
    logger.error("ERROR SUMMARY:")
    logger.error(f"   Project that failed: {package.name}")
    logger.error(f"   Location: {package.path}")
    logger.error(f"   Position in tree: {package.index} of {package.total} packages")
    logger.error(f"   What failed: {str(error) or type(error).__name__}")
    logger.error("")


def execute_build_order(
    session: TreeSession,
    graph: DependencyGraph,
    build_order: list[str],
    operation: Operation,
    output_level: str = "none",
    offset: int = 0,
) -> int:
    """
    Run ``operation`` once per package of ``build_order``.

    Args:
        session: Run state; receives published versions and checkpoint updates
        graph: Graph the order was computed from
        build_order: Packages to run, in order
        operation: What to run in each package
        output_level: full / minimal / none child-output echo
        offset: Packages already completed by an earlier run (numbering only)

    Returns:
        Number of packages that succeeded

    Raises:
        PackageExecutionError: On the first failure; later packages do not run
    """
    total = len(build_order) + offset
    all_packages = frozenset(graph.packages)
    successful = 0

    for position, name in enumerate(build_order, start=offset + 1):
        package = PackageContext(
            record=graph.packages[name],
            index=position,
            total=total,
            all_packages=all_packages,
            published_versions=tuple(session.published_versions),
            dry_run=session.dry_run,
            output_level=output_level,
        )

        if session.dry_run:
            verb = "Would run" if operation.is_built_in else "Would execute"
            logger.info(f"DRY RUN: {verb}: {operation.describe()}")
            package.debug(f"In directory: {package.path}")
            successful += 1
            continue

        logger.info(f"[{position}/{total}] {name}: Running {operation.describe()}...")
        try:
            result = run_in_directory(operation, package)
        except Exception as e:
            _report_failure(package, operation, e, successful + offset)
            raise PackageExecutionError(
                name,
                operation.resume_hint(),
                cause=str(e).splitlines()[0] if str(e) else type(e).__name__,
                completed=successful + offset,
            ) from e

        session.record_success(name, result)
        successful += 1
        logger.info(f"[{position}/{total}] {name}: {'Skipped' if result.skipped else 'Completed'}")

    session.finish()
    return successful
