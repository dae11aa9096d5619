"""
Firewall step — default-deny with an allow-list derived from the plan.

    panel   80, 443 (+3306 when MariaDB accepts remote database hosts)
    agent   8080 (Wings API), 2022 (SFTP)

SSH is always allowed.  fail2ban guards it when enabled.  An agent-only
host opens 80 just for the certificate challenge (see certificates).
"""

from __future__ import annotations

from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.context import ProvisionContext
from provisioner.core.errors import ExternalToolError
from provisioner.core.models.plan import InstallPlan
from provisioner.core.models.step import StepResult
from provisioner.core.services.generators.units import generate_fail2ban_jail

STEP = "firewall"

PANEL_PORTS = (80, 443)
AGENT_PORTS = (8080, 2022)
DATABASE_PORT = 3306


def firewall_ports(plan: InstallPlan, config: ProvisionConfig) -> list[int]:
    ports: set[int] = set()
    if plan.installs_panel:
        ports.update(PANEL_PORTS)
        if config.database.remote_access:
            ports.add(DATABASE_PORT)
    if plan.installs_agent:
        ports.update(AGENT_PORTS)
    return sorted(ports)


def configure_firewall(ctx: ProvisionContext) -> StepResult:
    fw = ctx.config.firewall
    if not fw.enabled:
        return StepResult.skip(STEP, "Firewall management disabled in configuration")

    adapter = ctx.adapter
    ports = firewall_ports(ctx.plan, ctx.config)
    ctx.run_all(adapter.firewall_commands(ports, fw.ssh_port), env=adapter.package_env, error=ExternalToolError)

    if fw.fail2ban:
        ctx.run_all(adapter.fail2ban_prerequisites(), env=adapter.package_env)
        ctx.install(["fail2ban"])
        ctx.fs.write_generated(generate_fail2ban_jail(adapter.family, fw.ssh_port))
        ctx.run(["systemctl", "enable", "fail2ban"], error=ExternalToolError)
        ctx.run(["systemctl", "restart", "fail2ban"], error=ExternalToolError)

    ctx.values["open_ports"] = [fw.ssh_port, *ports]
    return StepResult.success(
        STEP,
        f"Allowing ports {', '.join(str(p) for p in [fw.ssh_port, *ports])}",
        metadata={"ports": ports, "ssh_port": fw.ssh_port, "fail2ban": fw.fail2ban},
    )
