"""Centralized error handler for kodrdriv commands."""

import traceback
from collections.abc import Callable
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any

import click

from kodrdriv.errors import (
    CircularDependencyError,
    ConfigurationError,
    PackageExecutionError,
    WorkspaceIntegrityError,
)
from kodrdriv.utils.logging import logger

from .constants import DEFAULT_CONFIG_DIR, ERROR_LOG_NAME
from .exit_codes import ExitCodes


def exit_code_for(error: Exception) -> int:
    """Map an exception to the CLI exit code it should produce."""
    if isinstance(error, PackageExecutionError):
        return ExitCodes.TASK_INCOMPLETE
    if isinstance(error, (ConfigurationError, WorkspaceIntegrityError, CircularDependencyError)):
        return ExitCodes.CONFIGURATION_ERROR
    return ExitCodes.FAILURE


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator that logs failures, appends the traceback to error.log and exits non-zero."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        """Inner wrapper that implements the try-except logic."""
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except Exception as e:
            config_dir = Path(kwargs.get("config_dir") or DEFAULT_CONFIG_DIR)
            error_log_path = config_dir / ERROR_LOG_NAME
            error_type = type(e).__name__
            error_msg = str(e)
            tb = traceback.format_exc()

            logger.opt(exception=True).debug(
                "Command '{cmd}' failed: {err}",
                cmd=func.__name__,
                err=error_msg,
            )

            try:
                config_dir.mkdir(parents=True, exist_ok=True)
                with open(error_log_path, "a", encoding="utf-8") as f:
                    f.write("\n" + "=" * 80 + "\n")
                    f.write(f"[{datetime.now().isoformat()}] Error in command: {func.__name__}\n")
                    f.write("=" * 80 + "\n")
                    f.write(f"{error_type}: {error_msg}\n\n")
                    f.write(tb)
                    f.write("=" * 80 + "\n\n")
            except OSError as log_error:
                logger.warning(f"Could not write {error_log_path}: {log_error}")

            user_message = f"{error_type}: {error_msg}\n\nFull traceback logged to: {error_log_path}"

            exc = click.ClickException(user_message)
            exc.exit_code = exit_code_for(e)
            raise exc from e

    return wrapper
