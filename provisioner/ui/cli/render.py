"""
CLI command ``render`` — preview every generated file for a plan.

Thin wrapper over ``provisioner.core.use_cases.render``.  Works on any
machine: the host profile comes from the options, not from detection.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from provisioner.core.errors import PreconditionError
from provisioner.core.models.plan import InstallPlan
from provisioner.core.services.detection import build_profile
from provisioner.ui.cli.common import load_config_or_exit


@click.command("render")
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--os", "distro", default="ubuntu", show_default=True, help="Distribution ID.")
@click.option("--os-version", default="22.04", show_default=True, help="Distribution VERSION_ID.")
@click.option("--arch", default="x86_64", show_default=True, help="Machine architecture.")
@click.option("--timezone", default="UTC", show_default=True, help="Host timezone.")
@click.option(
    "--target",
    type=click.Choice(["panel", "agent", "both", "phpmyadmin"]),
    default="panel",
    show_default=True,
)
@click.option("--webserver", type=click.Choice(["nginx", "apache"]), default="nginx", show_default=True)
@click.option("--domain", default="panel.example.com", show_default=True)
@click.option("--email", default="admin@example.com", show_default=True)
@click.option("--tls/--no-tls", default=True, show_default=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def render(
    ctx: click.Context,
    output_dir: Path,
    distro: str,
    os_version: str,
    arch: str,
    timezone: str,
    target: str,
    webserver: str,
    domain: str,
    email: str,
    tls: bool,
    as_json: bool,
) -> None:
    """Render all files a plan would write into OUTPUT_DIR.

    Generated credentials are written in clear text; treat the output
    as secret.
    """
    from provisioner.core.use_cases.render import run_render

    config = load_config_or_exit(ctx)
    try:
        profile = build_profile({"ID": distro, "VERSION_ID": os_version}, arch, timezone=timezone)
    except PreconditionError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(e.status)

    plan = InstallPlan(
        target=target,
        webserver=webserver,
        domain=domain,
        email=email,
        tls=tls,
    )
    result = run_render(profile, plan, output_dir, config)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"\n📝 {profile.label}: {target} ({webserver})", fg="cyan", bold=True)
    for generated in result.files:
        click.echo(f"   • {generated.path}  ", nl=False)
        click.secho(generated.reason, fg="white", dim=True)
    click.echo(f"\n   {len(result.files)} files written to {output_dir}")
    click.echo()
