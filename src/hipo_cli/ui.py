"""Shared Rich console for user-facing output.

Everything hipo prints goes to stderr so the launched artifact owns stdout.
"""

from rich.console import Console

console = Console(stderr=True)
