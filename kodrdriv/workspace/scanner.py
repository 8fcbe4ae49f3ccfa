"""Workspace scanner - finds and parses package.json files beneath root directories."""

import json
from pathlib import Path

from kodrdriv.errors import WorkspaceIntegrityError
from kodrdriv.storage import Storage
from kodrdriv.utils.constants import DEPENDENCY_SECTIONS, PACKAGE_JSON, SCAN_SKIP_DIRS
from kodrdriv.utils.logging import logger

from .patterns import is_excluded_directory, is_excluded_manifest
from .types import PackageRecord


def find_package_manifests(directory: str | Path, exclude=(), storage: Storage | None = None) -> list[Path]:
    """
    Recursively collect package.json paths under ``directory``.

    Entries are visited in sorted order. node_modules and .git are never
    entered, and neither is any directory matching an exclusion pattern.

    Args:
        directory: Root to scan
        exclude: Glob exclusion patterns
        storage: Filesystem facade (default: real filesystem)

    Returns:
        Absolute manifest paths, parents before children
    """
    storage = storage or Storage()
    root = Path(directory).resolve()

    if not storage.is_directory(root):
        logger.warning(f"Directory does not exist or is not a directory: {directory}")
        return []

    manifests: list[Path] = []
    stack = [root]

    while stack:
        current = stack.pop()

        manifest = current / PACKAGE_JSON
        if storage.exists(manifest):
            if is_excluded_manifest(manifest, exclude, root):
                logger.debug(f"Excluding package.json at: {manifest} (matches exclusion pattern)")
            else:
                manifests.append(manifest)
                logger.debug(f"Found package.json at: {manifest}")

        try:
            entries = storage.list_directory(current)
        except OSError as e:
            logger.warning(f"Failed to scan directory {current}: {e}")
            continue

        children = []
        for entry in entries:
            if entry in SCAN_SKIP_DIRS:
                continue
            child = current / entry
            if child.is_symlink() or not storage.is_directory(child):
                continue
            if is_excluded_directory(child, exclude, root):
                logger.debug(f"Skipping excluded directory: {child}")
                continue
            children.append(child)

        # Reversed so the stack pops children in sorted order
        stack.extend(reversed(children))

    return manifests


def parse_package_json(manifest_path: str | Path, storage: Storage | None = None) -> PackageRecord:
    """
    Read one manifest into a PackageRecord.

    Raises:
        WorkspaceIntegrityError: Unreadable file, invalid JSON, or missing name
    """
    storage = storage or Storage()
    manifest_path = Path(manifest_path)

    try:
        content = storage.read_file(manifest_path)
    except (OSError, UnicodeDecodeError) as e:
        raise WorkspaceIntegrityError(f"Failed to read {manifest_path}: {e}", manifest_path) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise WorkspaceIntegrityError(f"Invalid JSON in {manifest_path}: {e}", manifest_path) from e

    if not isinstance(data, dict):
        raise WorkspaceIntegrityError(
            f"Invalid package.json at {manifest_path}: expected an object", manifest_path
        )

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise WorkspaceIntegrityError(
            f"Invalid package.json at {manifest_path}: name must be a string", manifest_path
        )

    version = data.get("version")
    if not isinstance(version, str) or not version:
        version = "0.0.0"

    order: list[str] = []
    ranges: dict[str, str] = {}
    for section in DEPENDENCY_SECTIONS:
        deps = data.get(section)
        if not isinstance(deps, dict):
            continue
        for dep, version_range in deps.items():
            if dep not in ranges:
                order.append(dep)
                ranges[dep] = version_range if isinstance(version_range, str) else ""

    return PackageRecord(
        name=name,
        version=version,
        path=manifest_path.parent,
        manifest_path=manifest_path,
        dependencies=frozenset(order),
        dependency_order=tuple(order),
        dependency_ranges=ranges,
    )


def scan_workspace(directories, exclude=(), storage: Storage | None = None) -> list[PackageRecord]:
    """
    Scan every root and parse each manifest found.

    A missing root contributes no packages. When two manifests declare the
    same name the later one wins and a warning names both paths.

    Returns:
        Records in scan order
    """
    storage = storage or Storage()
    records: dict[str, PackageRecord] = {}

    for directory in directories:
        logger.debug(f"Scanning directory: {directory}")
        for manifest in find_package_manifests(directory, exclude, storage):
            record = parse_package_json(manifest, storage)
            previous = records.get(record.name)
            if previous is not None and previous.manifest_path != record.manifest_path:
                logger.warning(
                    f"Duplicate package name '{record.name}': {previous.manifest_path} "
                    f"is replaced by {record.manifest_path}"
                )
            records[record.name] = record
            logger.debug(f"Parsed package: {record.name} at {record.path}")

    return list(records.values())
