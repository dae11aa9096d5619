"""
Provisioner — CLI entrypoint.

Usage:
    provisioner --help
    provisioner install
    provisioner detect
    provisioner render /tmp/preview --target both
    provisioner audit
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from provisioner import __version__
from provisioner.core.observability.logging_config import level_from_flags, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="provisioner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provisioner.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Provisioner — install the Pterodactyl panel and Wings on this host."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("PROV_LOG_FILE"),
        log_file_level=os.environ.get("PROV_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """Show the detected host and whether it can be provisioned."""
    from provisioner.core.use_cases.detect import run_detect, supported_releases

    result = run_detect(
        fs=ctx.obj.get("fs"),
        machine=ctx.obj.get("machine"),
        runner=ctx.obj.get("runner"),
        kernel=ctx.obj.get("kernel"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.supported else 2)

    if not result.supported:
        click.secho(f"❌ {result.error}", fg="red")
        if ctx.obj.get("verbose"):
            click.echo()
            for distro, versions in supported_releases().items():
                click.echo(f"   • {distro}: {', '.join(versions)}")
        sys.exit(2)

    profile = result.profile
    preflight = result.preflight
    assert profile is not None and preflight is not None

    click.secho(f"\n🔍 {profile.label}", fg="cyan", bold=True)
    click.echo(f"   Family:          {profile.family}")
    if profile.codename:
        click.echo(f"   Codename:        {profile.codename}")
    click.echo(f"   Timezone:        {profile.timezone}")
    click.echo(f"   Virtualization:  {preflight.virtualization}")
    click.echo(f"   Kernel:          {preflight.kernel}")
    click.echo(f"   Package manager: {result.package_manager}")
    click.echo(f"   PHP-FPM socket:  {result.php_fpm_socket}")
    for warning in preflight.warnings:
        click.secho(f"   ⚠ {warning}", fg="yellow")
    click.secho("   ✓ supported", fg="green")
    click.echo()


# ── Register sub-commands ───────────────────────────────────────

from provisioner.ui.cli.audit import audit  # noqa: E402
from provisioner.ui.cli.database import db_host_reset  # noqa: E402
from provisioner.ui.cli.install import install  # noqa: E402
from provisioner.ui.cli.render import render  # noqa: E402

cli.add_command(install)
cli.add_command(db_host_reset)
cli.add_command(render)
cli.add_command(audit)


if __name__ == "__main__":
    cli()
