"""
Interactive prompts — menu, web server, FQDN, email, admin identity.

Every prompt loops until it gets a valid answer.  Input that can never
become valid (the domain does not point here and the operator refuses
to continue) raises ``PreconditionError`` so the run stops at Planning.
"""

from __future__ import annotations

from collections.abc import Callable

import click

from provisioner.core.errors import PreconditionError
from provisioner.core.models.plan import MENU_TARGETS, Target, WebServer
from provisioner.core.services.detection.network import (
    DNS_GUIDANCE,
    check_dns,
    is_valid_email,
    is_valid_fqdn,
    resolve_domain,
)
from provisioner.core.use_cases.install import AdminIdentity

INVALID_SELECTION = "You did not enter a valid selection."

MENU = """\
What would you like to do?
[1] Install the panel
[2] Install Wings
[3] Install the panel and Wings on this machine
[4] Install or update phpMyAdmin (only after the panel is installed)"""

WEBSERVERS: dict[str, WebServer] = {"1": "nginx", "2": "apache"}


def _choose(menu: str, choices: dict, prompt: str):
    click.echo(menu)
    while True:
        answer = click.prompt(prompt, type=str).strip()
        if answer in choices:
            return choices[answer]
        click.secho(INVALID_SELECTION, fg="red", err=True)


def choose_target() -> Target:
    return _choose(MENU, MENU_TARGETS, "Input 1-4")


def choose_webserver() -> WebServer:
    return _choose(
        "Which web server would you like to use?\n[1] nginx (recommended)\n[2] Apache",
        WEBSERVERS,
        "Input 1-2",
    )


def prompt_fqdn(label: str = "Enter the FQDN of the panel (panel.example.com)") -> str:
    while True:
        value = click.prompt(label, type=str).strip().lower()
        if is_valid_fqdn(value):
            return value
        click.secho(f"'{value}' is not a fully qualified domain name.", fg="red", err=True)


def prompt_email(label: str = "Enter an email address for the admin account and Let's Encrypt") -> str:
    while True:
        value = click.prompt(label, type=str).strip()
        if is_valid_email(value):
            return value
        click.secho(f"'{value}' is not a valid email address.", fg="red", err=True)


def confirm_dns(
    domain: str,
    fetcher,
    resolver: Callable[[str], list[str]] = resolve_domain,
) -> None:
    """Warn when ``domain`` does not resolve to this host; the operator decides.

    Raises:
        PreconditionError: The operator chose not to continue.
    """
    check = check_dns(domain, fetcher, resolver)
    if check.matches:
        click.secho(f"* {domain} resolves to this server ({check.public_ip}).", fg="white")
        return

    if check.error:
        click.secho(f"* WARNING: {check.error}", fg="yellow", err=True)
    for line in DNS_GUIDANCE:
        click.secho(f"* {line}", fg="yellow", err=True)
    if not click.confirm("Proceed anyway? Certificate issuance will most likely fail", default=False):
        raise PreconditionError(f"{domain} does not point at this server")


def prompt_admin() -> AdminIdentity:
    """Administrator identity; an empty password means one is generated."""
    username = click.prompt("Admin username", default="admin")
    first_name = click.prompt("Admin first name", default="Admin")
    last_name = click.prompt("Admin last name", default="User")
    password = click.prompt(
        "Admin password (leave empty to generate one)",
        default="",
        show_default=False,
        hide_input=True,
        confirmation_prompt=True,
    )
    return AdminIdentity(
        username=username,
        first_name=first_name,
        last_name=last_name,
        password=password or None,
    )


def confirm_tls(domain: str) -> bool:
    return click.confirm(f"Request a Let's Encrypt certificate for {domain}?", default=True)


def prompt_deploy_command() -> str:
    click.echo(
        "Create the node in the panel, open its Configuration tab and generate an\n"
        "Auto Deploy command.  Paste it here, or leave empty to configure Wings later."
    )
    return click.prompt("Auto Deploy command", default="", show_default=False).strip()
