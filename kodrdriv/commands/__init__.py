"""Commands module for kodrdriv CLI."""

from kodrdriv.commands.tree import tree

__all__ = ["tree"]
