"""Command-line interface."""

from callcontract.cli.main import cli

__all__ = ["cli"]
