"""
Dependencies step — repositories and packages for each selected target.

Panel: PHP and its extensions, the web server, Redis, MariaDB and
Composer, from the family's extra repositories.  Agent: the Docker
engine and, on Debian-like hosts, swap accounting for containers.
Every package name and repository comes from the OS adapter.
"""

from __future__ import annotations

import logging

from provisioner.adapters.os_family.base import DOCKER_INSTALL
from provisioner.core.context import ProvisionContext
from provisioner.core.errors import ExternalToolError
from provisioner.core.models.step import StepResult

logger = logging.getLogger(__name__)

STEP = "dependencies"

COMPOSER_INSTALL = (
    "curl -sS https://getcomposer.org/installer"
    " | php -- --install-dir=/usr/local/bin --filename=composer"
)


def install_dependencies(ctx: ProvisionContext) -> StepResult:
    plan = ctx.plan
    installed: list[str] = []

    if plan.installs_panel:
        install_panel_stack(ctx)
        installed.append("panel")
    if plan.installs_agent:
        install_container_runtime(ctx)
        installed.append("agent")

    return StepResult.success(
        STEP,
        f"Dependencies installed for {' and '.join(installed)}",
        metadata={"targets": installed},
    )


def install_panel_stack(ctx: ProvisionContext) -> None:
    adapter = ctx.adapter
    webserver = ctx.plan.webserver
    env = adapter.package_env

    for repo_file in adapter.panel_repository_files():
        ctx.fs.write_generated(repo_file)
    ctx.run_all(adapter.panel_repository_commands(), env=env)
    ctx.run_all(adapter.panel_pre_install_commands(), env=env)

    ctx.install(adapter.panel_packages(webserver))
    ctx.run(adapter.database_install_command(), env=env)
    ctx.run(["bash", "-c", COMPOSER_INSTALL])

    for service in adapter.panel_services(webserver):
        ctx.run(["systemctl", "enable", "--now", service], error=ExternalToolError)


def install_container_runtime(ctx: ProvisionContext) -> None:
    adapter = ctx.adapter
    ctx.install(adapter.agent_packages)

    if ctx.runner.is_available("docker"):
        logger.info("Docker already installed, skipping the upstream installer")
    else:
        ctx.run(["bash", "-c", DOCKER_INSTALL])
    ctx.run(["systemctl", "enable", "--now", "docker"], error=ExternalToolError)

    ctx.run_all(adapter.swap_accounting_commands(), error=ExternalToolError)
