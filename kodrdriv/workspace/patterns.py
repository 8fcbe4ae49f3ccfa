"""Glob exclusion patterns for workspace scanning.

Patterns follow gitignore rules (pathspec's ``gitwildmatch``): ``*`` stays
inside one path segment, ``**`` spans any number of segments and ``?``
matches one character. A pattern without a slash matches a path segment at
any depth; a pattern with a slash is anchored at the start of the path.
Matching a directory also matches everything beneath it.

Paths are matched relative to the scan root and, when inside it, to the
current directory. Absolute paths are never matched, so directories above the
workspace cannot exclude it.
"""

import os
from functools import lru_cache
from pathlib import Path

from pathspec import PathSpec

from kodrdriv.utils.helpers import normalize_path


@lru_cache(maxsize=128)
def compile_patterns(patterns: tuple[str, ...]) -> PathSpec:
    return PathSpec.from_lines("gitwildmatch", [normalize_path(p) for p in patterns])


def matches_pattern(path: str | Path, pattern: str) -> bool:
    return compile_patterns((pattern,)).match_file(normalize_path(path))


def _relative(path: Path, base: Path) -> str | None:
    try:
        relative = os.path.relpath(path, base)
    except ValueError:
        return None
    relative = normalize_path(relative)
    if relative == ".." or relative.startswith("../"):
        return None
    return relative


def _candidates(path: str | Path, root: str | Path | None) -> list[str]:
    path = Path(path).absolute()
    bases = [Path(root).absolute()] if root is not None else []
    bases.append(Path.cwd())
    candidates = []
    for base in bases:
        relative = _relative(path, base)
        if relative and relative != "." and relative not in candidates:
            candidates.append(relative)
    return candidates


def _matches_any(candidates, patterns) -> bool:
    spec = compile_patterns(tuple(patterns))
    return any(spec.match_file(candidate) for candidate in candidates)


def is_excluded_manifest(manifest_path: str | Path, patterns, root: str | Path | None = None) -> bool:
    """True when a package.json path or its directory matches a pattern."""
    if not patterns:
        return False
    candidates = []
    for candidate in _candidates(manifest_path, root):
        candidates.append(candidate)
        directory = os.path.dirname(candidate)
        if directory:
            candidates.append(directory)
    return _matches_any(candidates, patterns)


def is_excluded_directory(directory: str | Path, patterns, root: str | Path | None = None) -> bool:
    """True when a directory below the scan root matches a pattern."""
    if not patterns:
        return False
    return _matches_any(_candidates(directory, root), patterns)


def is_excluded_package(name: str, relative_path: str, patterns) -> bool:
    """True when a package name or its relative directory matches a pattern."""
    if not patterns:
        return False
    candidates = [name]
    relative_path = normalize_path(relative_path)
    if relative_path not in (".", "..") and not relative_path.startswith("../") and not os.path.isabs(relative_path):
        candidates.append(relative_path)
    return _matches_any(candidates, patterns)
