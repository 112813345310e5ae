"""Command line interface (python -m client_import.cli)."""

from .app import main

__all__ = ["main"]
