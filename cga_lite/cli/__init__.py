"""Command-line interface tools."""

from .run import main, run_program

__all__ = [
    "main",
    "run_program",
]
