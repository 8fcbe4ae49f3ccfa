"""Helper utility functions for kodrdriv."""

import os
from pathlib import Path


def normalize_path(path: str | Path) -> str:
    """Normalize a path to POSIX style without a leading ./ prefix.

    Examples:
        >>> normalize_path("packages\\\\core")
        'packages/core'
        >>> normalize_path("./packages/core")
        'packages/core'
    """
    normalized = str(path).replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def relative_to_cwd(path: str | Path) -> str:
    """Return ``path`` relative to the current directory, POSIX style.

    Paths on another drive (Windows) cannot be made relative and come back
    normalized but absolute.
    """
    try:
        return normalize_path(os.path.relpath(path, Path.cwd()))
    except ValueError:
        return normalize_path(path)
