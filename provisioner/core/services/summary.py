"""
Final summary — the block operators copy their credentials from.

This is the single place generated secrets are shown in clear text.
Layout and labels are stable; operators and their runbooks rely on
them.
"""

from __future__ import annotations

from provisioner.core.context import ProvisionContext
from provisioner.core.engine.executor import RunReport
from provisioner.core.services.generators.env_file import panel_url
from provisioner.core.services.generators.units import WINGS_CONFIG_DIR

RULE = "#" * 63


def _section(title: str, rows: list[tuple[str, str]]) -> list[str]:
    width = max(len(label) for label, _ in rows) + 1
    return [RULE, title, ""] + [f"{label + ':':<{width}} {value}" for label, value in rows] + [RULE, ""]


def render_summary(ctx: ProvisionContext, report: RunReport) -> str:
    plan = ctx.plan
    cfg = ctx.config
    values = ctx.values
    lines: list[str] = []

    if plan.installs_panel:
        creds = ctx.credentials
        if values.get("admin_created", True):
            password = creds.admin_password.get_secret_value()
        else:
            password = "(unchanged, account already existed)"
        lines += _section("PANEL", [
            ("URL", panel_url(plan)),
            ("Version", values.get("panel_version", cfg.versions.panel)),
            ("Admin email", creds.admin_email),
            ("Admin username", creds.admin_username),
            ("Admin password", password),
        ])
        lines += _section("MARIADB / MYSQL", [
            ("Database", creds.database_name),
            ("User", f"{creds.database_user}@{cfg.database.host}"),
            ("Password", creds.database_password.get_secret_value()),
            ("Root password", creds.database_root_password.get_secret_value()),
        ])
        if cfg.database.remote_access:
            lines += _section("DATABASE HOST (add it in the panel under Databases)", [
                ("Host", values.get("public_ip") or "this server's public IP"),
                ("Port", str(cfg.database.port)),
                ("User", creds.database_admin_user),
                ("Password", creds.database_admin_password.get_secret_value()),
            ])

    if plan.installs_agent:
        version = values.get("wings_version", cfg.versions.wings)
        if values.get("wings_configured"):
            status = "configured and running"
        else:
            status = (
                "not configured yet: create the node in the panel, paste its "
                f"configuration into {WINGS_CONFIG_DIR}/config.yml, then run "
                "'systemctl start wings'"
            )
        rows = [("Version", version), ("Status", status)]
        if plan.domain and not plan.installs_panel:
            rows.insert(0, ("Node FQDN", plan.domain))
        lines += _section("WINGS", rows)

    if plan.target == "phpmyadmin":
        lines += _section("PHPMYADMIN", [
            ("Version", values.get("phpmyadmin_version", cfg.versions.phpmyadmin)),
            ("URL", f"{panel_url(plan)}/phpmyadmin" if plan.domain else "<panel URL>/phpmyadmin"),
        ])

    if "open_ports" in values:
        hint = (
            "Use 'ufw allow <port>' to open more ports."
            if ctx.adapter.family == "debian"
            else "Use 'firewall-cmd --permanent --add-port=<port>/tcp' to open more ports."
        )
        lines += _section("FIREWALL", [
            ("Open ports", ", ".join(str(p) for p in values["open_ports"])),
            ("Note", "All other incoming ports are blocked. " + hint),
        ])

    if report.warnings:
        lines += [RULE, "WARNINGS", ""] + [f"- {w}" for w in report.warnings] + [RULE, ""]

    return "\n".join(lines)


def credentials_payload(ctx: ProvisionContext) -> dict:
    """The summary's secrets as structured data, for ``install --json``.

    Empty for plans that generate no credentials.
    """
    if not ctx.has_plan or not ctx.plan.installs_panel:
        return {}
    creds = ctx.credentials
    cfg = ctx.config
    values = ctx.values

    admin_created = values.get("admin_created", True)
    payload: dict = {
        "panel_url": panel_url(ctx.plan),
        "admin": {
            "email": creds.admin_email,
            "username": creds.admin_username,
            "password": creds.admin_password.get_secret_value() if admin_created else None,
            "created": admin_created,
        },
        "database": {
            "name": creds.database_name,
            "user": creds.database_user,
            "host": cfg.database.host,
            "password": creds.database_password.get_secret_value(),
            "root_password": creds.database_root_password.get_secret_value(),
        },
    }
    if cfg.database.remote_access:
        payload["database_host"] = {
            "host": values.get("public_ip"),
            "port": cfg.database.port,
            "user": creds.database_admin_user,
            "password": creds.database_admin_password.get_secret_value(),
        }
    return payload
