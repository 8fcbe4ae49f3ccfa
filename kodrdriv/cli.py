"""kodrdriv CLI - Main entry point and command registration hub."""
# ruff: noqa: E402 - Intentional lazy loading: commands imported after cli group definition

import click
from rich.table import Table

from kodrdriv import __version__
from kodrdriv.ui import console


class CategorizedGroup(click.Group):
    """Help output grouped by workflow instead of click's flat command list."""

    def format_commands(self, ctx, formatter):
        """Override to suppress default command listing (we use categorized format in format_help)."""
        pass

    COMMAND_CATEGORIES = {
        "WORKSPACE": {
            "title": "WORKSPACE",
            "description": "Run commands across every package of a workspace in dependency order",
            "commands": ["tree"],
            "command_meta": {
                "tree": {
                    "use_when": "Build, publish, link or inspect all packages at once",
                },
            },
        },
    }

    def format_help(self, ctx, formatter):
        """Generate Rich-styled categorized help."""
        super().format_help(ctx, formatter)

        registered = {
            name: cmd
            for name, cmd in self.commands.items()
            if not getattr(cmd, "hidden", False)
        }

        console.print()
        console.rule("[bold]COMMANDS[/bold]", characters="-")

        for category_data in self.COMMAND_CATEGORIES.values():
            console.print(f"\n[bold cyan]{category_data['title']}[/bold cyan]")
            console.print(f"[dim]{category_data['description']}[/dim]")

            table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
            table.add_column("Command", style="cmd", width=12)
            table.add_column("Description", style="white")
            table.add_column("When", style="dim", width=40)

            for cmd_name in category_data["commands"]:
                if cmd_name not in registered:
                    continue
                cmd = registered[cmd_name]

                first_line = (cmd.help or "").split("\n")[0].strip()
                period_idx = first_line.find(".")
                short_help = first_line[:period_idx] if period_idx > 0 else first_line

                cmd_meta = category_data.get("command_meta", {}).get(cmd_name, {})
                hint = f"USE: {cmd_meta['use_when']}" if "use_when" in cmd_meta else ""

                table.add_row(cmd_name, short_help, hint)

            console.print(table)

        console.print()
        console.rule(characters="-")
        console.print("For detailed options: [cmd]kodrdriv <command> --help[/cmd]")


@click.group(cls=CategorizedGroup)
@click.version_option(version=__version__, prog_name="kodrdriv")
@click.help_option("-h", "--help")
def cli():
    """kodrdriv - Workspace orchestration for npm packages

    \b
    QUICK START:
      kodrdriv tree                     # Show the build order
      kodrdriv tree --cmd "npm test"    # Run a command in every package
      kodrdriv tree publish             # Publish in dependency order"""
    pass


from kodrdriv.commands.tree import tree

cli.add_command(tree)


def main():
    """Main entry point for console script."""
    cli()


if __name__ == "__main__":
    main()
