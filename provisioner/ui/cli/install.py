"""
CLI command ``install`` — the interactive installer.

Anything passed as an option is not asked for.  All questions are
asked after the host passed the OS, architecture and root checks, so
an unsupported host never reaches the menu.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable

import click

from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.errors import ExitStatus, PreconditionError
from provisioner.core.models.host import HostProfile
from provisioner.core.models.plan import InstallPlan, Target, WebServer
from provisioner.core.services.detection.network import is_valid_email, is_valid_fqdn
from provisioner.ui.cli import prompts
from provisioner.ui.cli.common import host_bindings, load_config_or_exit, print_results
from provisioner.ui.cli.reporter import ClickReporter


def plan_resolver(
    config: ProvisionConfig,
    fetcher,
    *,
    target: Target | None = None,
    webserver: WebServer | None = None,
    domain: str | None = None,
    email: str | None = None,
    tls: bool | None = None,
    deploy_command: str | None = None,
    check_dns: bool = True,
) -> Callable[[HostProfile], InstallPlan]:
    """Build the Planning callback: options first, prompts for the rest."""

    def _resolve(profile: HostProfile) -> InstallPlan:
        if domain and not is_valid_fqdn(domain):
            raise PreconditionError(f"'{domain}' is not a fully qualified domain name")
        if email and not is_valid_email(email):
            raise PreconditionError(f"'{email}' is not a valid email address")

        chosen = target or prompts.choose_target()
        fqdn, mail = domain or "", email or ""
        use_tls = False

        ws: WebServer = webserver or "nginx"
        if chosen != "agent" and webserver is None:
            ws = prompts.choose_webserver()

        if chosen in ("panel", "both"):
            fqdn = fqdn or prompts.prompt_fqdn()
            mail = mail or prompts.prompt_email()
            if config.tls.enabled:
                use_tls = tls if tls is not None else prompts.confirm_tls(fqdn)
        elif chosen == "agent" and config.tls.enabled:
            use_tls = tls if tls is not None else click.confirm(
                "Configure HTTPS for Wings with a Let's Encrypt certificate?", default=True
            )
            if use_tls:
                fqdn = fqdn or prompts.prompt_fqdn("Enter the FQDN of this node (node.example.com)")
                mail = mail or prompts.prompt_email("Enter an email address for Let's Encrypt")

        if fqdn and check_dns and chosen != "phpmyadmin":
            prompts.confirm_dns(fqdn, fetcher)

        deploy = deploy_command
        if deploy is None:
            deploy = prompts.prompt_deploy_command() if chosen == "agent" else ""

        return InstallPlan(
            target=chosen,
            webserver=ws,
            domain=fqdn,
            email=mail,
            tls=use_tls,
            agent_deploy_command=deploy,
        )

    return _resolve


@click.command("install")
@click.option(
    "--target",
    type=click.Choice(["panel", "agent", "both", "phpmyadmin"]),
    default=None,
    help="What to install (default: ask).",
)
@click.option("--webserver", type=click.Choice(["nginx", "apache"]), default=None, help="Web server for the panel.")
@click.option("--domain", default=None, help="FQDN of the panel or node.")
@click.option("--email", default=None, help="Admin and Let's Encrypt email.")
@click.option("--tls/--no-tls", default=None, help="Request a Let's Encrypt certificate.")
@click.option("--admin-username", default=None, help="Panel admin username.")
@click.option("--admin-first-name", default=None, help="Panel admin first name.")
@click.option("--admin-last-name", default=None, help="Panel admin last name.")
@click.option(
    "--admin-password",
    envvar="PROV_ADMIN_PASSWORD",
    default=None,
    help="Panel admin password (default: ask, empty generates one).",
)
@click.option("--deploy-command", default=None, help="Wings 'Auto Deploy' command from the panel.")
@click.option("--skip-dns-check", is_flag=True, help="Don't compare the domain with the public IP.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the run report as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    target: Target | None,
    webserver: WebServer | None,
    domain: str | None,
    email: str | None,
    tls: bool | None,
    admin_username: str | None,
    admin_first_name: str | None,
    admin_last_name: str | None,
    admin_password: str | None,
    deploy_command: str | None,
    skip_dns_check: bool,
    as_json: bool,
) -> None:
    """Install the panel, Wings, or both on this host.

    Examples:

        provisioner install

        provisioner install --target panel --webserver nginx --domain panel.example.com
    """
    from provisioner.core.use_cases.install import AdminIdentity, run_install

    config = load_config_or_exit(ctx)
    runner, fs, fetcher = host_bindings(ctx)

    resolve_plan = plan_resolver(
        config,
        fetcher,
        target=target,
        webserver=webserver,
        domain=domain,
        email=email,
        tls=tls,
        deploy_command=deploy_command,
        check_dns=not skip_dns_check,
    )

    def resolve_admin(plan: InstallPlan) -> AdminIdentity:
        if admin_password is not None:
            return AdminIdentity(
                username=admin_username or "admin",
                first_name=admin_first_name or "Admin",
                last_name=admin_last_name or "User",
                password=admin_password or None,
            )
        return prompts.prompt_admin()

    try:
        result = run_install(
            resolve_plan,
            runner=runner,
            fs=fs,
            fetcher=fetcher,
            config=config,
            reporter=ClickReporter(quiet=ctx.obj.get("quiet", False), err=as_json),
            resolve_admin=resolve_admin,
            machine=ctx.obj.get("machine"),
            kernel=ctx.obj.get("kernel"),
            euid=ctx.obj.get("euid"),
        )
    except KeyboardInterrupt:
        click.secho("\n❌ Interrupted.  Completed steps were not rolled back.", fg="red", err=True)
        sys.exit(ExitStatus.INTERRUPTED)

    report = result.report
    assert report is not None

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(report.exit_status)

    print_results(report, verbose=ctx.obj.get("verbose", False))

    if not report.ok:
        step = report.failed_step or "unknown"
        click.secho(f"❌ Installation failed at '{step}': {report.error}", fg="red", bold=True, err=True)
        sys.exit(report.exit_status)

    click.echo(report.summary)
    click.secho(f"✅ Done in {report.duration_ms / 1000:.1f}s (run {report.run_id})", fg="green", bold=True)
