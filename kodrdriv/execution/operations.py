"""Per-package operations of a tree run.

Every operation exposes the same three methods:

    execute(package)  -> OperationResult, raises on failure
    describe()        -> the literal command line, used in progress logs
    resume_hint()     -> the command that resumes a failed run

Built-in operations shell out to a separate ``kodrdriv`` process in the package
directory so each package keeps its own configuration.
"""

import json

from kodrdriv.errors import ConfigurationError
from kodrdriv.git import get_latest_tag
from kodrdriv.process import ProcessError, ProcessResult, run
from kodrdriv.security import is_scoped_target, quote_command, validate_branch_name, validate_script_name
from kodrdriv.storage import Storage
from kodrdriv.utils.constants import PROGRAM_NAME, PUBLISH_SKIPPED_MARKER, PUBLISH_UPDATE_SECTIONS
from kodrdriv.utils.logging import logger
from kodrdriv.versions import is_prerelease, version_from_tag

from .types import OperationKind, OperationResult, PackageContext, PublishedVersion, TreeConfig

# Built-ins that report on the whole workspace instead of running per package
REPORT_KINDS = frozenset({OperationKind.BRANCHES, OperationKind.CHECKOUT})


def _echo_output(package: PackageContext, result: ProcessResult) -> None:
    if package.output_level == "none":
        return
    level = "INFO" if package.output_level == "full" else "DEBUG"
    for stream in (result.stdout, result.stderr):
        for line in stream.splitlines():
            if line.strip():
                package.log(level, line)


class Operation:
    """Base class for everything the executor runs once per package."""

    kind = OperationKind.SHELL

    def execute(self, package: PackageContext) -> OperationResult:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def resume_hint(self) -> str:
        raise NotImplementedError

    @property
    def is_built_in(self) -> bool:
        return self.kind is not OperationKind.SHELL


class ShellOperation(Operation):
    """Run a shell command line in the package directory."""

    def __init__(self, command: str, kind: OperationKind = OperationKind.SHELL):
        self.command = command
        self.kind = kind

    def execute(self, package: PackageContext) -> OperationResult:
        result = run(self.command, cwd=package.path)
        _echo_output(package, result)
        return OperationResult(stdout=result.stdout, stderr=result.stderr)

    def describe(self) -> str:
        return self.command

    def resume_hint(self) -> str:
        if self.kind is OperationKind.SHELL:
            return f"{PROGRAM_NAME} tree --continue --cmd {quote_command(self.command)}"
        return f"{PROGRAM_NAME} tree {self.kind.value} --continue"


class BuiltInOperation(Operation):
    """Run ``kodrdriv <kind>`` with the run's global flags in the package directory."""

    def __init__(self, kind: OperationKind, config: TreeConfig):
        self.kind = kind
        self.config = config

    def argv(self) -> list[str]:
        config = self.config
        args = [config.executable, self.kind.value]

        if config.debug:
            args.append("--debug")
        if config.verbose:
            args.append("--verbose")
        if config.dry_run:
            args.append("--dry-run")
        if config.config_dir:
            args += ["--config-dir", config.config_dir]
        if config.output_dir:
            args += ["--output-dir", config.output_dir]

        if config.package_argument and self.kind in (OperationKind.LINK, OperationKind.UNLINK):
            args.append(config.package_argument)
        if self.kind is OperationKind.UNLINK and config.clean_node_modules:
            args.append("--clean-node-modules")
        if config.externals and self.kind in (OperationKind.LINK, OperationKind.UNLINK):
            args += ["--externals", *config.externals]

        return args

    def describe(self) -> str:
        parts = []
        for arg in self.argv():
            if arg == self.config.package_argument or " " in arg:
                parts.append(f'"{arg}"')
            else:
                parts.append(arg)
        return " ".join(parts)

    def resume_hint(self) -> str:
        return f"{PROGRAM_NAME} tree {self.kind.value} --continue"

    def execute(self, package: PackageContext) -> OperationResult:
        package.debug(f"Shelling out to separate {PROGRAM_NAME} process for {self.kind.value} command")
        result = run(self.argv(), cwd=package.path)
        _echo_output(package, result)
        return OperationResult(stdout=result.stdout, stderr=result.stderr)


class PublishOperation(BuiltInOperation):
    """`kodrdriv publish` with inter-project version propagation.

    Before a package is published, ranges pointing at packages released
    earlier in the same run are bumped to ``^<version>`` and committed. After
    it is published, the newest git tag tells which version went out.
    """

    def __init__(self, config: TreeConfig, storage: Storage | None = None):
        super().__init__(OperationKind.PUBLISH, config)
        self.storage = storage or Storage()

    def update_dependencies(self, package: PackageContext) -> bool:
        """
        Rewrite local dependency ranges to freshly published versions.

        Returns:
            True if package.json changed (or would change, in a dry run)
        """
        manifest = package.record.manifest_path
        try:
            data = json.loads(self.storage.read_file(manifest))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            package.warning(f"Failed to update inter-project dependencies: {e}")
            return False

        changed = False
        for published in package.published_versions:
            if published.package_name not in package.all_packages:
                continue
            if is_prerelease(published.version):
                package.debug(
                    f"Skipping prerelease version {published.package_name}@{published.version} "
                    "- not updating dependencies"
                )
                continue

            wanted = f"^{published.version}"
            for section in PUBLISH_UPDATE_SECTIONS:
                deps = data.get(section)
                if not isinstance(deps, dict) or published.package_name not in deps:
                    continue
                current = deps[published.package_name]
                if current == wanted:
                    continue
                verb = "Would update" if package.dry_run else "Updating"
                package.info(f"{verb} {section}.{published.package_name}: {current} -> {wanted}")
                deps[published.package_name] = wanted
                changed = True

        if changed and not package.dry_run:
            try:
                self.storage.write_file(manifest, json.dumps(data, indent=2) + "\n")
            except OSError as e:
                package.warning(f"Failed to update inter-project dependencies: {e}")
                return False
            package.info("Inter-project dependencies updated successfully")

        return changed

    def commit_dependency_updates(self, package: PackageContext) -> None:
        package.info("Committing inter-project dependency updates...")
        commit = BuiltInOperation(OperationKind.COMMIT, self.config)
        try:
            commit.execute(package)
            package.info("Inter-project dependency updates committed successfully")
        except (ProcessError, OSError) as e:
            package.warning(f"Failed to commit inter-project dependency updates: {e}")

    def read_published_version(self, package: PackageContext) -> PublishedVersion | None:
        try:
            tag = get_latest_tag(package.path)
        except (ProcessError, OSError) as e:
            package.warning(f"Could not read git tags after publish: {e}")
            return None
        if not tag:
            package.warning("No git tags found after publish")
            return None
        version = version_from_tag(tag)
        package.debug(f"Extracted published version from tag: {tag} -> {version}")
        return PublishedVersion(package_name=package.name, version=version)

    def execute(self, package: PackageContext) -> OperationResult:
        if package.published_versions:
            package.info("Updating inter-project dependencies based on previously published packages...")
            if self.update_dependencies(package):
                self.commit_dependency_updates(package)
            else:
                package.info("No inter-project dependency updates needed")

        package.info("Starting publish process...")
        result = super().execute(package)

        if PUBLISH_SKIPPED_MARKER in result.stdout:
            package.info("Publish skipped for this package; will not record or propagate a version.")
            result.skipped = True
            return result

        result.published_version = self.read_published_version(package)
        if result.published_version:
            package.info(
                f"Tracked published version: {result.published_version.package_name}"
                f"@{result.published_version.version}"
            )
        return result


def run_script_command(scripts: list[str]) -> str:
    """`clean build test` -> `npm run clean && npm run build && npm run test`."""
    return " && ".join(f"npm run {script}" for script in scripts)


def parse_scripts(package_argument: str | None) -> list[str]:
    return [s for s in (package_argument or "").split() if s]


def validate_scripts(records, scripts: list[str], storage: Storage | None = None) -> None:
    """
    Check that every package defines every script.

    Raises:
        ConfigurationError: Listing the missing scripts per package
    """
    storage = storage or Storage()
    missing: dict[str, list[str]] = {}

    logger.info(f"Validating scripts before execution: {', '.join(scripts)}")
    for record in records:
        try:
            data = json.loads(storage.read_file(record.manifest_path))
            defined = data.get("scripts") if isinstance(data, dict) else None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Error reading package.json for {record.name}: {e}")
            defined = None
        if not isinstance(defined, dict):
            defined = {}
        absent = [script for script in scripts if not defined.get(script)]
        if absent:
            missing[record.name] = absent

    if missing:
        details = "; ".join(f"{name}: {', '.join(absent)}" for name, absent in missing.items())
        for name, absent in missing.items():
            logger.error(f"  {name}: {', '.join(absent)}")
        raise ConfigurationError(f"Script validation failed. Missing scripts: {details}")

    logger.info(f"All packages have the required scripts: {', '.join(scripts)}")


def validate_tree_config(config: TreeConfig) -> OperationKind | None:
    """
    Reject invalid built-in invocations before any package is touched.

    Returns:
        The built-in kind, or None for a custom --cmd run

    Raises:
        ConfigurationError: Unsupported built-in or bad package argument
    """
    if not config.built_in:
        return None

    try:
        kind = OperationKind.from_built_in(config.built_in)
    except ValueError:
        supported = ", ".join(k.value for k in OperationKind.built_ins())
        raise ConfigurationError(
            f"Unsupported built-in command: {config.built_in}. Supported built-in commands: {supported}"
        ) from None

    argument = config.package_argument
    if kind in (OperationKind.LINK, OperationKind.UNLINK) and argument:
        if argument != "status" and not is_scoped_target(argument):
            raise ConfigurationError(
                f"Package argument for {kind.value} must be 'status' or a scope "
                f"(@scope or @scope/name), got: {argument}"
            )

    if kind is OperationKind.RUN:
        scripts = parse_scripts(argument)
        if not scripts:
            raise ConfigurationError(
                'run requires script names, e.g. kodrdriv tree run "clean build test"'
            )
        invalid = [s for s in scripts if not validate_script_name(s)]
        if invalid:
            raise ConfigurationError(f"Invalid script names: {', '.join(invalid)}")

    if kind is OperationKind.CHECKOUT:
        if not argument:
            raise ConfigurationError("checkout requires a branch name, e.g. kodrdriv tree checkout main")
        if not validate_branch_name(argument):
            raise ConfigurationError(f"Invalid branch name: {argument}")

    return kind


def build_operation(config: TreeConfig, storage: Storage | None = None) -> Operation | None:
    """
    Pick the per-package operation for a validated config.

    Returns:
        None when there is nothing to run per package (no --cmd and no built-in)
    """
    kind = validate_tree_config(config)

    if kind is None:
        if config.cmd:
            return ShellOperation(config.cmd)
        return None

    if kind in REPORT_KINDS:
        raise ValueError(f"{kind.value} is a workspace report, not a per-package operation")

    if kind is OperationKind.RUN:
        command = run_script_command(parse_scripts(config.package_argument))
        logger.debug(f"Converted run scripts to: {command}")
        return ShellOperation(command, kind=OperationKind.RUN)

    if kind is OperationKind.PUBLISH:
        return PublishOperation(config, storage)

    return BuiltInOperation(kind, config)
