"""Command-line entry point for trajconvert."""

from trajconvert.cli.convert import convert

cli = convert

__all__ = ["cli", "convert"]
