"""kodrdriv - dependency-ordered command orchestration for npm package workspaces."""

__version__ = "0.9.0"
