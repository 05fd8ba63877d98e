"""CLI subcommands."""

from .eks import eks

__all__ = ["eks"]
