"""
Certificate step — Let's Encrypt via certbot's standalone authenticator.

The only step whose failure does not stop the run.  When certbot
cannot be installed or issuance fails on a panel host, the TLS vhost
is parked next to the live one, a plain-HTTP vhost takes its place so
the panel is still reachable, and the operator gets the commands to
finish by hand.

Agent-only hosts keep port 80 closed: it is opened for the challenge
and closed again, both now and in the renewal hooks.
"""

from __future__ import annotations

import logging
import shlex

from provisioner.adapters.os_family import OSAdapter
from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.context import ProvisionContext
from provisioner.core.errors import CertificateError, DependencyInstallError, ExternalToolError
from provisioner.core.models.plan import InstallPlan
from provisioner.core.models.step import StepResult
from provisioner.core.services.generators.units import generate_certbot_cron
from provisioner.core.services.generators.webserver import generate_vhost

logger = logging.getLogger(__name__)

STEP = "certificate"

PENDING_SUFFIX = ".ssl-pending"

CHALLENGE_PORT = 80


def certbot_command(domain: str, email: str) -> list[str]:
    return [
        "certbot", "certonly", "--standalone",
        "--email", email,
        "--agree-tos",
        "-d", domain,
        "--non-interactive",
    ]


def challenge_port_toggle(
    plan: InstallPlan, config: ProvisionConfig, adapter: OSAdapter
) -> tuple[list[str], list[str]] | None:
    """Open/close commands for the challenge port, when the firewall keeps it shut."""
    if plan.installs_panel or not config.firewall.enabled:
        return None
    return adapter.challenge_port_commands(CHALLENGE_PORT)


def request_certificate(ctx: ProvisionContext) -> StepResult:
    plan = ctx.plan
    adapter = ctx.adapter
    if not plan.tls or not plan.domain:
        return StepResult.skip(STEP, "TLS not requested")

    webserver = adapter.webserver_service(plan.webserver) if plan.installs_panel else None
    renewal_stops = [s for s in (webserver, "wings" if plan.installs_agent else None) if s]
    cmd = certbot_command(plan.domain, plan.email)

    try:
        ctx.run_all(adapter.certbot_prerequisites(), env=adapter.package_env)
        ctx.install(["certbot"])
    except DependencyInstallError as e:
        setup = [*adapter.certbot_prerequisites(), adapter.install_command(["certbot"])]
        instructions = _fallback(ctx, webserver, [*setup, cmd])
        raise CertificateError(
            f"certbot could not be installed; no certificate was requested for {plan.domain}.\n{instructions}",
            step=STEP,
            exit_code=e.exit_code,
            output=e.output,
        ) from e

    if webserver:
        ctx.run(["systemctl", "stop", webserver], error=ExternalToolError)

    toggle = challenge_port_toggle(plan, ctx.config, adapter)
    port_managed = toggle is not None and ctx.runner.is_available(adapter.firewall_tool)
    if port_managed:
        ctx.run(toggle[0], error=ExternalToolError)

    result = ctx.runner.run(cmd, secrets=ctx.secrets())

    if port_managed:
        closed = ctx.runner.run(toggle[1])
        if not closed.ok:
            ctx.reporter.warning(f"Port {CHALLENGE_PORT} is still open: {closed.command} failed")

    if not result.ok:
        instructions = _fallback(ctx, webserver, [cmd])
        raise CertificateError(
            f"Certificate issuance for {plan.domain} failed.\n{instructions}",
            step=STEP,
            exit_code=result.returncode,
            output=result.output,
        )

    pre, post = ([toggle[0]], [toggle[1]]) if toggle else ([], [])
    ctx.fs.write_generated(generate_certbot_cron(renewal_stops, pre_commands=pre, post_commands=post))
    if webserver:
        ctx.run(["systemctl", "start", webserver], error=ExternalToolError)

    ctx.values["certificate"] = True
    return StepResult.success(
        STEP,
        f"Certificate issued for {plan.domain}",
        metadata={"domain": plan.domain},
    )


def _fallback(ctx: ProvisionContext, webserver: str | None, commands: list[list[str]]) -> str:
    """Serve the panel over HTTP and return the manual follow-up."""
    ctx.values["certificate"] = False
    lines = ["Make sure the domain's A record points at this server and port 80 is reachable, then run:"]
    if webserver is None:
        lines += [f"  {shlex.join(c)}" for c in commands]
        return "\n".join(lines)

    plan = ctx.plan
    install_dir = ctx.config.panel.install_dir
    tls_vhost = generate_vhost(plan, ctx.adapter, install_dir, tls=True)
    pending = tls_vhost.path + PENDING_SUFFIX
    ctx.fs.write_text(pending, tls_vhost.content)
    ctx.fs.write_generated(generate_vhost(plan, ctx.adapter, install_dir, tls=False))
    ctx.run(["systemctl", "restart", webserver], error=ExternalToolError)
    logger.info("Serving %s over HTTP, TLS vhost parked at %s", plan.domain, pending)

    *setup, cmd = commands
    lines += [f"  {shlex.join(c)}" for c in setup]
    lines += [
        "  " + shlex.join(["systemctl", "stop", webserver]) + " && " + shlex.join(cmd),
        f"  mv {pending} {tls_vhost.path}",
        f"  systemctl start {webserver}",
        "The panel is served over plain HTTP until then.",
    ]
    return "\n".join(lines)
