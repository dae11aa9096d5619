"""
CLI command ``db-host-reset`` — new credentials for the remote database host.

Thin wrapper over ``provisioner.core.use_cases.db_host_reset``.
"""

from __future__ import annotations

import json
import sys

import click

from provisioner.ui.cli.common import host_bindings, load_config_or_exit
from provisioner.ui.cli.reporter import ClickReporter


@click.command("db-host-reset")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def db_host_reset(ctx: click.Context, as_json: bool) -> None:
    """Reset the password of the database host user and print its details."""
    from provisioner.core.use_cases.db_host_reset import reset_database_host

    config = load_config_or_exit(ctx)
    runner, fs, fetcher = host_bindings(ctx)

    result = reset_database_host(
        runner=runner,
        fs=fs,
        fetcher=fetcher,
        config=config,
        reporter=ClickReporter(quiet=ctx.obj.get("quiet", False), err=as_json),
        machine=ctx.obj.get("machine"),
        euid=ctx.obj.get("euid"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.report.exit_status)

    if not result.ok:
        click.secho(f"❌ Database host reset failed: {result.report.error}", fg="red", bold=True, err=True)
        sys.exit(result.report.exit_status)

    host = result.host or "this server's public IP"
    click.echo()
    click.secho("🗄  Database host", fg="cyan", bold=True)
    click.echo(f"   Host:     {host}")
    click.echo(f"   Port:     {result.port}")
    click.echo(f"   User:     {result.user}")
    click.echo(f"   Password: {result.password.get_secret_value()}")
    click.echo()
    click.echo("   Update the database host in the panel (Admin → Databases) with these details.")
    click.echo()
