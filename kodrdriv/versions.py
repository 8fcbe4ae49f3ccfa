"""npm version and range helpers.

Handles the subset of semver ranges that appear between sibling packages of
one workspace:
- Caret ranges (^17.0.0): major version must match
- Tilde ranges (~17.0.0): major.minor must match
- OR ranges (^16.0.0 || ^17.0.0)
- Comparison operators (>=, >, <, <=)
- Wildcards (*, x, X) and workspace/link protocols
"""

import re


def parse_version(version: str) -> tuple[int, int, int] | None:
    """Parse version string into (major, minor, patch) tuple.

    Handles:
    - Standard semver: 1.2.3
    - With v prefix: v1.2.3
    - With prerelease: 1.2.3-alpha.1
    - Partial versions: 1.2, 1

    Returns:
        Tuple of (major, minor, patch) or None if unparseable
    """
    version = version.lstrip("vV").strip()

    # Remove prerelease and build metadata
    version = re.split(r"[-+]", version)[0]

    parts = version.split(".")

    try:
        major = int(parts[0]) if len(parts) > 0 and parts[0] else 0
        minor = int(parts[1]) if len(parts) > 1 and parts[1] else 0
        patch = int(parts[2]) if len(parts) > 2 and parts[2] else 0
        return (major, minor, patch)
    except (ValueError, IndexError):
        return None


def is_prerelease(version: str) -> bool:
    """npm prerelease versions carry a '-' suffix (1.0.0-beta.1)."""
    return "-" in version


def version_from_tag(tag: str) -> str:
    """Extract the version from a release tag.

    Examples:
        v1.2.3 -> 1.2.3
        working/v1.2.3 -> 1.2.3
    """
    version = tag.strip()
    if "/" in version:
        version = version.rsplit("/", 1)[-1] or version
    if version.startswith("v"):
        version = version[1:]
    return version


def version_scope_indicator(version_range: str) -> str:
    """Summarize how tightly a range pins its dependency.

    The operator prefix is preserved; P = patch-level (x.y.z), m = minor-level
    (x.y), M = major-level (x). Anything else is returned as-is.

    Examples:
        ^4.4.32 -> ^P
        ~4.4 -> ~m
        >=4 -> >=M
    """
    clean = version_range.strip()
    prefix = re.match(r"^([^0-9]*)", clean).group(1)
    version_part = clean[len(prefix):]
    dot_count = version_part.count(".")

    if dot_count >= 2:
        return prefix + "P"
    if dot_count == 1:
        return prefix + "m"
    if dot_count == 0 and re.fullmatch(r"\d+", version_part):
        return prefix + "M"
    return clean


def check_version_mismatch(requirement: str, actual: str) -> str | None:
    """Check if a requirement range and an actual version are incompatible.

    Args:
        requirement: Semver requirement string (e.g., "^17.0.0", ">=16.0.0")
        actual: Actual version (e.g., "18.2.0")

    Returns:
        Mismatch reason string if incompatible, None if compatible
    """
    requirement = requirement.strip()

    if "||" in requirement:
        ranges = [r.strip() for r in requirement.split("||")]
        for r in ranges:
            if _check_single_range(r, actual) is None:
                return None
        return f"no matching range (tried: {', '.join(ranges)})"

    return _check_single_range(requirement, actual)


def _compare(requirement: str, operator: str, actual_parts: tuple[int, int, int], actual: str) -> str | None:
    req_parts = parse_version(requirement[len(operator):])
    if req_parts is None:
        return None
    wanted = requirement[len(operator):]
    if operator == ">=" and actual_parts < req_parts:
        return f"version {actual} < {wanted}"
    if operator == ">" and actual_parts <= req_parts:
        return f"version {actual} <= {wanted}"
    if operator == "<=" and actual_parts > req_parts:
        return f"version {actual} > {wanted}"
    if operator == "<" and actual_parts >= req_parts:
        return f"version {actual} >= {wanted}"
    return None


def _check_single_range(requirement: str, actual: str) -> str | None:
    actual_parts = parse_version(actual)
    if actual_parts is None:
        return None  # Can't parse, assume OK

    actual_major, actual_minor, _actual_patch = actual_parts

    if requirement in ("*", "x", "X", "", "latest"):
        return None

    # Protocol references (workspace:*, link:../core, file:../core) always resolve locally
    if re.match(r"^(workspace|link|file):", requirement):
        return None

    if requirement.startswith("^"):
        req_parts = parse_version(requirement[1:])
        if req_parts is None:
            return None
        req_major, req_minor, _req_patch = req_parts

        if actual_major != req_major:
            return f"major version {actual_major} != {req_major}"
        # For 0.x versions, caret is more restrictive
        if req_major == 0 and actual_minor != req_minor:
            return f"minor version {actual_minor} != {req_minor} (0.x range)"
        if actual_parts < req_parts:
            return f"version {actual} < {requirement[1:]}"
        return None

    if requirement.startswith("~"):
        req_parts = parse_version(requirement[1:])
        if req_parts is None:
            return None
        req_major, req_minor, _req_patch = req_parts

        if actual_major != req_major:
            return f"major version {actual_major} != {req_major}"
        if actual_minor != req_minor:
            return f"minor version {actual_minor} != {req_minor}"
        return None

    for operator in (">=", "<=", ">", "<"):
        if requirement.startswith(operator):
            return _compare(requirement, operator, actual_parts, actual)

    # Exact version
    req_parts = parse_version(requirement)
    if req_parts is None:
        return None
    if actual_parts != req_parts:
        return f"version {actual} != {requirement}"

    return None
