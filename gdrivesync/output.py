"""Line-oriented output for the CLI and the sync engine."""

import json
from typing import Any

import click


class OutputFormatter:
    """Writes informational lines to stdout and errors to stderr.

    With ``quiet`` set, informational lines are suppressed while errors and
    warnings are still written. With ``json_output`` set, human-oriented
    lines are suppressed so stdout carries only the JSON document.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        self.json_output = json_output
        self.quiet = quiet

    @property
    def _silent(self) -> bool:
        return self.quiet or self.json_output

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self._silent:
            click.echo(message)

    def info(self, message: str) -> None:
        """Print an informational line."""
        if not self._silent:
            click.echo(message)

    def success(self, message: str) -> None:
        """Print a success line."""
        if not self._silent:
            click.secho(message, fg="green")

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        click.secho(message, fg="yellow", err=True)

    def error(self, message: str) -> None:
        """Print an error to stderr."""
        click.secho(message, fg="red", err=True)

    def print_summary(self, title: str, items: list[tuple[str, Any]]) -> None:
        """Print a titled block of ``label: value`` lines."""
        if self._silent:
            return
        click.echo(f"{title}:")
        for label, value in items:
            click.echo(f"  {label}: {value}")

    def output_json(self, data: Any) -> None:
        """Print data as indented JSON."""
        click.echo(json.dumps(data, indent=2, default=str))
