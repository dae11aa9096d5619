"""
Terminal reporter — the operator-facing side of a run.

Every step announces itself before it starts; warnings and errors go to
stderr so a redirected summary stays clean.  With ``err=True`` the
progress lines go to stderr as well, leaving stdout to ``--json``.
"""

from __future__ import annotations

import click


class ClickReporter:
    """Reporter printing with click colours."""

    def __init__(self, quiet: bool = False, err: bool = False):
        self.quiet = quiet
        self.err = err

    def step(self, name: str, label: str) -> None:
        click.secho(f"\n==> {label}", bold=True, err=self.err)

    def info(self, message: str) -> None:
        if not self.quiet:
            click.secho(f"* {message}", fg="white", err=self.err)

    def warning(self, message: str) -> None:
        click.secho(f"* WARNING: {message}", fg="yellow", err=True)

    def error(self, message: str) -> None:
        click.secho(f"* ERROR: {message}", fg="red", err=True)
