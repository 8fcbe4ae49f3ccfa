"""Run a command or built-in operation across all packages in dependency order."""

import click

from kodrdriv.ui import console
from kodrdriv.utils.error_handler import handle_exceptions


@click.command()
@handle_exceptions
@click.argument("built_in", required=False, metavar="[BUILT_IN]")
@click.argument("package_argument", required=False, metavar="[PACKAGE_ARGUMENT]")
@click.option("--cmd", default=None, help="Shell command to run in every package")
@click.option("--directories", "-d", multiple=True, help="Root directories to scan (default: current directory)")
@click.option("--exclude", "-e", multiple=True, help="Glob patterns of package paths to skip")
@click.option("--start-from", default=None, help="Package name or directory to start from")
@click.option("--stop-at", default=None, help="Package name or directory to stop before")
@click.option("--continue", "continue_run", is_flag=True, help="Resume the last failed run")
@click.option("--promote", default=None, help="Mark a package as completed in the saved run")
@click.option("--clean-node-modules", is_flag=True, help="unlink: also remove node_modules")
@click.option("--externals", multiple=True, help="link/unlink: external packages to include")
@click.option("--dry-run", is_flag=True, help="Show what would run without running it")
@click.option("--verbose", is_flag=True, help="Show detailed progress and child output")
@click.option("--debug", is_flag=True, help="Show debug logging and full child output")
@click.option("--output-dir", default=None, help="Directory for the .kodrdriv-context checkpoint")
@click.option("--config-dir", default=None, help="Configuration directory (default: .kodrdriv)")
def tree(
    built_in,
    package_argument,
    cmd,
    directories,
    exclude,
    start_from,
    stop_at,
    continue_run,
    promote,
    clean_node_modules,
    externals,
    dry_run,
    verbose,
    debug,
    output_dir,
    config_dir,
):
    """Run a command across all workspace packages in dependency order.

    Scans the given directories for package.json files, orders the packages
    so every local dependency comes before its dependents, and runs the
    command (or built-in operation) once per package. A failed run leaves a
    checkpoint behind and prints the command that resumes it.

    \b
    Built-in operations:
      commit, publish        Run `kodrdriv <op>` in every package
      link, unlink [@scope]  Link local packages (or "status" to report)
      run "a b c"            npm run a && npm run b && npm run c
      branches               Branch/status/link table, read-only
      checkout <branch>      Switch every package to one branch

    \b
    Examples:
      kodrdriv tree                               # Show the build order
      kodrdriv tree --cmd "npm install"           # Shell command per package
      kodrdriv tree --start-from core --cmd "npm test"
      kodrdriv tree publish --stop-at app
      kodrdriv tree --continue --cmd "npm test"   # Resume after a failure
      kodrdriv tree publish --promote core        # Mark core done, then --continue

    \b
    Configuration (.kodrdriv/config.yaml):
      tree:
        directories: [packages]
        exclude: ["**/examples/**"]

    \b
    Exit codes:
      0 success, 1 failure, 2 configuration error, 3 package failed (resumable)"""
    from kodrdriv.config_runtime import load_runtime_config
    from kodrdriv.execution.types import TreeConfig
    from kodrdriv.tree import execute
    from kodrdriv.utils.logging import set_console_level

    if debug:
        set_console_level("TRACE")
    elif verbose:
        set_console_level("DEBUG")

    cfg = load_runtime_config(".", config_dir)
    configured_output = cfg["paths"]["output_directory"]

    config = TreeConfig(
        directories=list(directories) or list(cfg["tree"]["directories"]),
        exclude=list(exclude) or list(cfg["tree"]["exclude"]),
        cmd=cmd,
        built_in=built_in,
        package_argument=package_argument,
        start_from=start_from,
        stop_at=stop_at,
        continue_run=continue_run,
        promote=promote,
        clean_node_modules=clean_node_modules,
        externals=list(externals),
        dry_run=dry_run,
        verbose=verbose,
        debug=debug,
        config_dir=config_dir,
        output_dir=output_dir or (configured_output if configured_output != "." else None),
        executable=cfg["tree"]["executable"],
        context_file=cfg["paths"]["context_file"],
    )

    result = execute(config)
    console.print(result, markup=False, highlight=False)
