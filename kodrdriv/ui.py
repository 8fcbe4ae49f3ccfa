"""Central UI handler for kodrdriv.

Single source of truth for Rich console styling. Import this instead of
instantiating Console() in every command file.

Usage:
    from kodrdriv.ui import console, print_header

    console.print("[success]All packages completed[/success]")
    print_header("BRANCH STATUS")
"""

import sys

from rich.console import Console
from rich.theme import Theme

KODRDRIV_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "cmd": "bold magenta",
    "path": "bold cyan",
    "dim": "dim white",
})

# Single console instance - import this, don't create your own
console = Console(
    theme=KODRDRIV_THEME,
    force_terminal=sys.stdout.isatty()
)


def print_header(title: str) -> None:
    """Print a section header between ASCII horizontal rules."""
    console.rule(f"[bold]{title}[/bold]", characters="-")
