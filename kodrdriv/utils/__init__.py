"""kodrdriv utilities package."""

from .constants import (
    CONTEXT_FILE_NAME,
    CONTEXT_SCHEMA_VERSION,
    DEFAULT_CONFIG_DIR,
    DEPENDENCY_SECTIONS,
    PACKAGE_JSON,
    PROGRAM_NAME,
)
from .error_handler import exit_code_for, handle_exceptions
from .exit_codes import ExitCodes
from .helpers import (
    normalize_path,
    relative_to_cwd,
)
from .logging import logger

__all__ = [
    "PROGRAM_NAME",
    "DEFAULT_CONFIG_DIR",
    "CONTEXT_FILE_NAME",
    "CONTEXT_SCHEMA_VERSION",
    "DEPENDENCY_SECTIONS",
    "PACKAGE_JSON",
    "handle_exceptions",
    "exit_code_for",
    "ExitCodes",
    "normalize_path",
    "relative_to_cwd",
    "logger",
]
