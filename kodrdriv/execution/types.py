"""Types shared by the tree executor and its operations."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from kodrdriv.utils.constants import CONTEXT_FILE_NAME, PROGRAM_NAME
from kodrdriv.utils.logging import logger
from kodrdriv.workspace.types import PackageRecord


class OperationKind(str, Enum):
    """Closed set of things a tree run can do."""

    SHELL = "shell"
    COMMIT = "commit"
    PUBLISH = "publish"
    LINK = "link"
    UNLINK = "unlink"
    BRANCHES = "branches"
    RUN = "run"
    CHECKOUT = "checkout"

    @classmethod
    def built_ins(cls) -> list["OperationKind"]:
        return [kind for kind in cls if kind is not cls.SHELL]

    @classmethod
    def from_built_in(cls, name: str) -> "OperationKind":
        """Look up a built-in command name.

        Raises:
            ValueError: ``name`` is not a built-in
        """
        kind = cls(name)
        if kind is cls.SHELL:
            raise ValueError(name)
        return kind


@dataclass
class TreeConfig:
    """Everything a tree run needs, after CLI flags and config files are merged."""

    directories: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    cmd: str | None = None
    built_in: str | None = None
    package_argument: str | None = None
    start_from: str | None = None
    stop_at: str | None = None
    continue_run: bool = False
    promote: str | None = None
    clean_node_modules: bool = False
    externals: list[str] = field(default_factory=list)
    dry_run: bool = False
    verbose: bool = False
    debug: bool = False
    config_dir: str | None = None
    output_dir: str | None = None
    executable: str = PROGRAM_NAME
    context_file: str = CONTEXT_FILE_NAME

    @property
    def output_level(self) -> str:
        """How much child-process output to echo: full, minimal or none."""
        if self.debug:
            return "full"
        if self.verbose:
            return "minimal"
        if self.built_in == OperationKind.PUBLISH.value:
            return "full"
        return "none"


@dataclass
class PublishedVersion:
    """A version released during the current tree publish."""

    package_name: str
    version: str
    publish_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "package_name": self.package_name,
            "version": self.version,
            "publish_time": self.publish_time.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PublishedVersion":
        return cls(
            package_name=data["package_name"],
            version=data["version"],
            publish_time=datetime.fromisoformat(data["publish_time"]),
        )


@dataclass
class PackageContext:
    """One package's slot in a run, handed to Operation.execute()."""

    record: PackageRecord
    index: int
    total: int
    all_packages: frozenset[str] = frozenset()
    published_versions: tuple[PublishedVersion, ...] = ()
    dry_run: bool = False
    output_level: str = "none"

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def path(self):
        return self.record.path

    @property
    def prefix(self) -> str:
        dry = "DRY RUN: " if self.dry_run else ""
        return f"{dry}[{self.index}/{self.total}] {self.name}:"

    def log(self, level: str, message: str) -> None:
        logger.bind(package=self.name).log(level, f"{self.prefix} {message}")

    def info(self, message: str) -> None:
        self.log("INFO", message)

    def debug(self, message: str) -> None:
        self.log("DEBUG", message)

    def warning(self, message: str) -> None:
        self.log("WARNING", message)

    def error(self, message: str) -> None:
        self.log("ERROR", message)


@dataclass
class OperationResult:
    """Outcome of one successful per-package operation."""

    stdout: str = ""
    stderr: str = ""
    published_version: PublishedVersion | None = None
    skipped: bool = False
