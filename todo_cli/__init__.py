"""Command-line client for the todo REST API.

The command surface is implemented with Typer and Rich. Every command prints
JSON to stdout; errors go to stderr.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
