"""Centralized logging configuration using Loguru with Pino-compatible output.

This module provides a unified logging interface. The human-readable console
format is the default; NDJSON compatible with Pino can be enabled so tree runs
can be collected next to the Node.js tooling they drive.

Usage:
    from kodrdriv.utils.logging import logger
    logger.info("Message")
    logger.debug("Debug message")  # Only shows if KODRDRIV_LOG_LEVEL=DEBUG

Environment Variables:
    KODRDRIV_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    KODRDRIV_LOG_JSON: 0|1 (default: 0, human-readable)
    KODRDRIV_LOG_FILE: path to log file (optional)
    KODRDRIV_REQUEST_ID: correlation ID shared with child processes
"""

import json
import os
import sys
import uuid

from loguru import logger

# Remove default handler
logger.remove()

# Pino-compatible numeric levels
PINO_LEVELS = {
    "TRACE": 10,
    "DEBUG": 20,
    "INFO": 30,
    "SUCCESS": 30,
    "WARNING": 40,
    "ERROR": 50,
    "CRITICAL": 60,
}

_log_level = os.environ.get("KODRDRIV_LOG_LEVEL", "INFO").upper()
_json_mode = os.environ.get("KODRDRIV_LOG_JSON", "0") == "1"
_log_file = os.environ.get("KODRDRIV_LOG_FILE")
_request_id = os.environ.get("KODRDRIV_REQUEST_ID") or str(uuid.uuid4())


def _to_pino(record) -> dict:
    pino_log = {
        "level": PINO_LEVELS.get(record["level"].name, 30),
        "time": int(record["time"].timestamp() * 1000),
        "msg": record["message"],
        "pid": record["process"].id,
        "request_id": record["extra"].get("request_id", _request_id),
    }

    for key, value in record["extra"].items():
        if key not in ("request_id",):
            pino_log[key] = value

    if record["exception"]:
        pino_log["err"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else "Error",
            "message": str(record["exception"].value) if record["exception"].value else "",
        }
    return pino_log


def pino_compatible_sink(message):
    """Format log records as Pino-compatible NDJSON on stdout.

    {"level":30,"time":1715629847123,"msg":"...","pid":12345,"request_id":"..."}
    """
    # Never call logger.* inside a sink - causes infinite recursion
    sys.stdout.write(json.dumps(_to_pino(message.record)) + "\n")
    sys.stdout.flush()


# Human-readable format, no emojis (Windows CP1252 consoles)
_human_format = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<level>{message}</level>"
)

logger.level("DEBUG", color="<blue>")
logger.level("INFO", color="<white>")
logger.level("WARNING", color="<yellow>")
logger.level("ERROR", color="<red>")
logger.level("CRITICAL", color="<red><bold>")

_console_handler_id: int | None = None


def _add_console_handler(level: str) -> int:
    if _json_mode:
        return logger.add(pino_compatible_sink, level=level, colorize=False)
    return logger.add(
        sys.stderr,
        level=level,
        format=_human_format,
        colorize=None,  # Auto-detect: colors if TTY, plain if piped
    )


_console_handler_id = _add_console_handler(_log_level)

if _log_file:

    def _file_pino_sink(message):
        """Write Pino-format JSON to the configured log file."""
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(_to_pino(message.record)) + "\n")

    logger.add(_file_pino_sink, level="DEBUG")


def set_console_level(level: str) -> None:
    """Replace the console handler so it emits records at or above ``level``.

    Used by --verbose / --debug. The environment variable still wins when it is
    more verbose than the requested level.
    """
    global _console_handler_id, _log_level

    requested = level.upper()
    if logger.level(_log_level).no < logger.level(requested).no:
        requested = _log_level

    if _console_handler_id is not None:
        try:
            logger.remove(_console_handler_id)
        except ValueError:
            pass  # Already removed

    _log_level = requested
    _console_handler_id = _add_console_handler(requested)


def get_request_id() -> str:
    """Get the current request ID for correlation."""
    return _request_id


def get_subprocess_env() -> dict:
    """Get environment dict with KODRDRIV_REQUEST_ID for subprocess calls.

    Child ``kodrdriv`` processes started by tree runs pick the ID up so their
    logs correlate with the parent run.
    """
    env = os.environ.copy()
    env["KODRDRIV_REQUEST_ID"] = _request_id
    return env


__all__ = [
    "logger",
    "set_console_level",
    "get_request_id",
    "get_subprocess_env",
]
