"""Centralized constants for kodrdriv.

Single source of truth for file names, directories and the environment
variables read across modules.
"""

from pathlib import Path

PROGRAM_NAME = "kodrdriv"

# ============================================================================
# FILES AND DIRECTORIES
# ============================================================================

# Per-project configuration directory
DEFAULT_CONFIG_DIR = Path(f".{PROGRAM_NAME}")
CONFIG_FILE_NAME = "config.yaml"

# Error log written by handle_exceptions
ERROR_LOG_NAME = "error.log"

# Resumable checkpoint of a tree run, relative to the output directory
CONTEXT_FILE_NAME = f".{PROGRAM_NAME}-context"
CONTEXT_SCHEMA_VERSION = 1

PACKAGE_JSON = "package.json"
NODE_MODULES = "node_modules"

# Directories the workspace scanner never descends into
SCAN_SKIP_DIRS = frozenset({NODE_MODULES, ".git"})

# ============================================================================
# PACKAGE.JSON SECTIONS
# ============================================================================

DEPENDENCY_SECTIONS = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)

# Sections rewritten when propagating freshly published versions
PUBLISH_UPDATE_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")

# Marker printed by `kodrdriv publish` when nothing was released
PUBLISH_SKIPPED_MARKER = "KODRDRIV_PUBLISH_SKIPPED"

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

ENV_PREFIX = "KODRDRIV"
