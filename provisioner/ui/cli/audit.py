"""
CLI command ``audit`` — the most recent runs recorded in the audit ledger.

Usage::

    provisioner audit
    provisioner audit -n 5 --json
"""

from __future__ import annotations

import json

import click

from provisioner.ui.cli.common import load_config_or_exit

_PHASE_ICONS = {"done": "✅", "failed": "❌"}


@click.command("audit")
@click.option("-n", "--limit", default=10, show_default=True, type=click.IntRange(min=1), help="Entries to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def audit(ctx: click.Context, limit: int, as_json: bool) -> None:
    """Show the latest provisioning runs, newest last."""
    from provisioner.core.persistence.audit import AuditWriter

    config = load_config_or_exit(ctx)
    ledger = AuditWriter(config.audit.path)
    entries = ledger.read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.secho(f"No runs recorded in {ledger.path}", fg="yellow")
        return

    click.secho(f"\n📜 Last {len(entries)} run(s) in {ledger.path}:\n", fg="cyan", bold=True)
    for entry in entries:
        icon = _PHASE_ICONS.get(entry.phase, "❓")
        what = entry.operation if entry.operation != "install" else f"install {entry.target or '?'}"
        click.echo(f"   {icon} {entry.timestamp[:19]}  {what:<20} {entry.host or '-':<24} {entry.run_id}")
        if entry.failed_step:
            click.secho(f"      failed at '{entry.failed_step}': {entry.error}", fg="red")
        for step in entry.steps:
            if step.warning and ctx.obj.get("verbose"):
                click.secho(f"      ⚠ {step.step}: {step.warning.splitlines()[0]}", fg="yellow")
    click.echo()
