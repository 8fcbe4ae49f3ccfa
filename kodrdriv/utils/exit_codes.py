"""Centralized exit codes for the kodrdriv CLI."""


class ExitCodes:
    """Standard exit codes for kodrdriv CLI commands."""

    SUCCESS = 0

    FAILURE = 1
    CONFIGURATION_ERROR = 2

    TASK_INCOMPLETE = 3
