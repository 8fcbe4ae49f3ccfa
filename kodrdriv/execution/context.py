"""Resumable checkpoint of a tree run (.kodrdriv-context).

The file is plain JSON with a ``schema_version``. Anything that cannot be read
back as the current schema is treated as if no checkpoint existed.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from kodrdriv.storage import Storage
from kodrdriv.utils.constants import CONTEXT_SCHEMA_VERSION
from kodrdriv.utils.logging import logger

from .types import PublishedVersion

REQUIRED_FIELDS = ("schema_version", "command", "build_order", "remaining_packages", "completed_packages")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ExecutionContext:
    """State needed to pick a failed run back up with --continue."""

    command: str
    build_order: list[str]
    remaining_packages: list[str]
    built_in_command: str | None = None
    package_argument: str | None = None
    clean_node_modules: bool = False
    externals: list[str] = field(default_factory=list)
    completed_packages: list[str] = field(default_factory=list)
    published_versions: list[PublishedVersion] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    schema_version: int = CONTEXT_SCHEMA_VERSION

    def mark_completed(self, package_name: str) -> None:
        if package_name in self.remaining_packages:
            self.remaining_packages.remove(package_name)
        if package_name not in self.completed_packages:
            self.completed_packages.append(package_name)
        self.updated_at = _now()

    def to_dict(self) -> dict:
        return {
            "schema_version": self.schema_version,
            "command": self.command,
            "built_in_command": self.built_in_command,
            "package_argument": self.package_argument,
            "clean_node_modules": self.clean_node_modules,
            "externals": list(self.externals),
            "build_order": list(self.build_order),
            "remaining_packages": list(self.remaining_packages),
            "completed_packages": list(self.completed_packages),
            "published_versions": [v.to_dict() for v in self.published_versions],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExecutionContext":
        """
        Rebuild a context from its JSON form.

        Raises:
            ValueError: Wrong schema version, missing fields, or malformed values
        """
        if not isinstance(data, dict):
            raise ValueError("checkpoint is not a JSON object")
        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise ValueError(f"checkpoint is missing fields: {', '.join(missing)}")
        if data["schema_version"] != CONTEXT_SCHEMA_VERSION:
            raise ValueError(
                f"checkpoint schema version {data['schema_version']} != {CONTEXT_SCHEMA_VERSION}"
            )

        try:
            return cls(
                command=str(data["command"]),
                built_in_command=data.get("built_in_command"),
                package_argument=data.get("package_argument"),
                clean_node_modules=bool(data.get("clean_node_modules", False)),
                externals=list(data.get("externals") or []),
                build_order=list(data["build_order"]),
                remaining_packages=list(data["remaining_packages"]),
                completed_packages=list(data["completed_packages"]),
                published_versions=[
                    PublishedVersion.from_dict(v) for v in data.get("published_versions") or []
                ],
                created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else _now(),
                updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else _now(),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed checkpoint: {e}") from e


class ContextStore:
    """Reads and writes the checkpoint file. I/O failures are warnings, never fatal."""

    def __init__(self, path: str | Path, storage: Storage | None = None):
        self.path = Path(path)
        self.storage = storage or Storage()

    def load(self) -> ExecutionContext | None:
        """Return the saved context, or None when absent, corrupt or from another schema."""
        try:
            if not self.storage.exists(self.path):
                return None
            content = self.storage.read_file(self.path)
        except UnicodeDecodeError as e:
            logger.warning(f"Ignoring execution context at {self.path}: not UTF-8 text ({e})")
            return None
        except OSError as e:
            logger.warning(f"Failed to load execution context: {e}")
            return None

        try:
            return ExecutionContext.from_dict(json.loads(content))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Ignoring execution context at {self.path}: {e}")
            return None

    def save(self, context: ExecutionContext) -> bool:
        try:
            self.storage.ensure_directory(self.path.parent)
            self.storage.write_file(self.path, json.dumps(context.to_dict(), indent=2) + "\n")
        except OSError as e:
            logger.warning(f"Failed to save execution context: {e}")
            return False
        logger.debug(f"Saved execution context to {self.path}")
        return True

    def clear(self) -> None:
        try:
            if self.storage.exists(self.path):
                self.storage.delete_file(self.path)
                logger.debug(f"Removed execution context {self.path}")
        except OSError as e:
            logger.warning(f"Failed to cleanup execution context: {e}")

    def promote(self, package_name: str) -> bool:
        """
        Mark ``package_name`` completed in the saved context.

        Returns:
            True when a context existed and now lists the package as completed
        """
        context = self.load()
        if context is None:
            logger.warning(f"No execution context to promote {package_name} in")
            return False
        if package_name in context.completed_packages:
            logger.info(f"Package {package_name} is already marked as completed")
            return True
        context.mark_completed(package_name)
        if self.save(context):
            logger.info(f"Promoted {package_name} to completed status")
            return True
        return False
