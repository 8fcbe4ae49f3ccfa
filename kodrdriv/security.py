"""Input validation for values that end up on a command line."""

import re
import shlex

NPM_PACKAGE_PATTERN = re.compile(r"^(@[a-z0-9][\w.-]*\/)?[a-z0-9][\w.-]*$")
NPM_SCOPE_PATTERN = re.compile(r"^@[a-z0-9][\w.-]*$")
SCRIPT_NAME_PATTERN = re.compile(r"^[\w:.-]+$")
BRANCH_NAME_PATTERN = re.compile(r"^(?!-)(?!.*\.\.)[\w./-]+$")


def validate_package_name(name: str) -> bool:
    """Validate that a name follows npm package naming (optionally scoped)."""
    if not name or len(name) > 214:
        return False
    return bool(NPM_PACKAGE_PATTERN.match(name))


def is_scoped_target(argument: str) -> bool:
    """True for '@scope' or '@scope/name', the targets link/unlink accept."""
    if NPM_SCOPE_PATTERN.match(argument):
        return True
    return argument.startswith("@") and validate_package_name(argument)


def validate_script_name(name: str) -> bool:
    """Validate an npm script name passed to `tree run`."""
    return bool(SCRIPT_NAME_PATTERN.match(name))


def validate_branch_name(name: str) -> bool:
    """Reject branch names git would refuse or that look like options."""
    return bool(name) and bool(BRANCH_NAME_PATTERN.match(name)) and not name.endswith((".", "/", ".lock"))


def quote_command(command: str) -> str:
    """Quote a command for pasting back into a shell.

    Plain commands keep the familiar double quotes; anything a shell would
    expand inside double quotes gets single-quoted instead.
    """
    if any(char in command for char in '"$`\\!'):
        return shlex.quote(command)
    return f'"{command}"'
