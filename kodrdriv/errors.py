"""Exception hierarchy for kodrdriv.

Each class maps to one failure mode of a tree run. Configuration and workspace
problems are raised before any package is touched; PackageExecutionError is
raised after a package failed and always carries the command that resumes the
run.
"""


class KodrdrivError(Exception):
    """Base class for all kodrdriv failures."""


class ConfigurationError(KodrdrivError):
    """Raised for invalid options: unknown packages, unsupported built-ins, bad arguments."""


class WorkspaceIntegrityError(KodrdrivError):
    """Raised when a package.json cannot be trusted (invalid JSON, missing name).

    Attributes:
        path: The offending manifest
    """

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class CircularDependencyError(KodrdrivError):
    """Raised when the local dependency graph contains a cycle.

    Attributes:
        cycle: Package names forming the chain, first name repeated at the end
    """

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        chain = " -> ".join(self.cycle)
        super().__init__(
            f"Circular dependency detected involving package: {self.cycle[0]} ({chain})"
        )


class PackageExecutionError(KodrdrivError):
    """Raised when a package fails mid-run. Later packages were not executed.

    Attributes:
        package_name: The package that failed
        recovery_command: Literal command line that resumes the run
        completed: Number of packages that succeeded before the failure
    """

    def __init__(self, package_name: str, recovery_command: str, cause: str = "", completed: int = 0):
        self.package_name = package_name
        self.recovery_command = recovery_command
        self.cause = cause
        self.completed = completed
        message = f"Command failed in package {package_name}"
        if cause:
            message += f": {cause}"
        message += f"\nTo resume from this point, run:\n    {recovery_command}"
        super().__init__(message)
