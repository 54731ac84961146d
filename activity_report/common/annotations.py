"""GitHub Actions workflow commands.

The invoking workflow picks these lines up from stdout/stderr and turns them
into job annotations.
"""
from __future__ import annotations

from dataclasses import dataclass

import typer


def _escape(message: str) -> str:
    # Workflow command data must not contain raw newlines.
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


@dataclass(frozen=True)
class ActionsAnnotations:
    default_file: str = "activity_report/cli.py"

    def error(self, message: str, file: str | None = None) -> None:
        typer.echo(f"::error file={file or self.default_file}::{_escape(message)}", err=True)

    def warning(self, message: str) -> None:
        typer.echo(f"::warning::{_escape(message)}")

    def notice(self, message: str) -> None:
        typer.echo(f"::notice::{_escape(message)}")


annotations = ActionsAnnotations()
