"""
Shared CLI plumbing — configuration and host bindings for commands.
"""

from __future__ import annotations

import sys

import click

from provisioner.adapters.http import HttpFetcher
from provisioner.adapters.shell.command import ShellRunner
from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.config.loader import ConfigError, ProvisionConfig, load_config
from provisioner.core.engine.executor import RunReport
from provisioner.core.errors import ExitStatus


def load_config_or_exit(ctx: click.Context) -> ProvisionConfig:
    """Load provisioner.yml; a broken file ends the process with status 3."""
    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(ExitStatus.CONFIG)


def host_bindings(ctx: click.Context) -> tuple:
    """Runner, filesystem and fetcher for this invocation.

    The real host by default.  Embedders (and the test-suite) can
    pre-seed ``runner``, ``fs``, ``fetcher``, ``machine``, ``kernel`` and
    ``euid`` in the click context object.
    """
    obj = ctx.obj
    return (
        obj.get("runner") or ShellRunner(),
        obj.get("fs") or FilesystemAdapter(),
        obj.get("fetcher") or HttpFetcher(),
    )


def print_results(report: RunReport, verbose: bool = False) -> None:
    """Per-step outcome lines, in run order."""
    click.echo()
    for r in report.results:
        timing = f" ({r.duration_ms}ms)" if r.duration_ms else ""
        if r.ok:
            click.secho(f"   ✓ {r.step}", fg="green", nl=False)
            click.echo(timing)
            if verbose and r.message:
                click.echo(f"     │ {r.message}")
        elif r.failed:
            click.secho(f"   ✗ {r.step}", fg="red", nl=False)
            click.echo(timing)
        else:
            click.secho(f"   ⊘ {r.step} ", fg="yellow", nl=False)
            click.echo(f"({r.message})")
    click.echo()
