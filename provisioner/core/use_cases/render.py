"""
Render use case — every artifact of a plan, written into a directory.

Nothing on the host is touched and no command runs: the generators
are fed a chosen profile and plan, and their output lands under
``output_dir`` at the path it would have on the host.  The database
script and the firewall commands, which are never files on the host,
go to ``<output_dir>/provisioner/``.

Credentials are generated as for a real run so the output is
complete.  Treat the directory as secret.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from provisioner.adapters.os_family import select_adapter
from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.errors import ProvisionError
from provisioner.core.models.host import HostProfile
from provisioner.core.models.plan import InstallPlan
from provisioner.core.models.template import GeneratedFile
from provisioner.core.services.credentials import build_credentials, generate_password
from provisioner.core.services.generators import (
    generate_certbot_cron,
    generate_fail2ban_jail,
    generate_mariadb_bind,
    generate_panel_env,
    generate_php_fpm_pool,
    generate_phpmyadmin_config,
    generate_pteroq_service,
    generate_scheduler_cron,
    generate_vhost,
    generate_wings_service,
    panel_database_sql,
)
from provisioner.core.services.steps.certificates import challenge_port_toggle
from provisioner.core.services.steps.firewall import firewall_ports

logger = logging.getLogger(__name__)

EXTRAS_DIR = "/provisioner"


@dataclass
class RenderResult:
    """Files rendered for a plan."""

    output_dir: Path | None = None
    files: list[GeneratedFile] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result
        result["output_dir"] = str(self.output_dir)
        result["files"] = [
            {"path": f.path, "mode": oct(f.mode), "reason": f.reason}
            for f in self.files
        ]
        return result


def render_artifacts(
    profile: HostProfile,
    plan: InstallPlan,
    config: ProvisionConfig | None = None,
) -> list[GeneratedFile]:
    """Generate every file ``plan`` would write on a host like ``profile``.

    Raises:
        CredentialError: Panel plan without an administrator email.
        ConfigRenderError: A template could not be fully rendered.
    """
    config = config or ProvisionConfig()
    adapter = select_adapter(profile, php_version=config.panel.php_version)
    install_dir = config.panel.install_dir
    files: list[GeneratedFile] = []

    if plan.installs_panel:
        creds = build_credentials(config, admin_email=plan.email)
        files += adapter.panel_repository_files()
        files.append(generate_panel_env(plan, creds, config, profile.timezone))
        pool = generate_php_fpm_pool(plan, adapter)
        if pool is not None:
            files.append(pool)
        files.append(generate_vhost(plan, adapter, install_dir))
        files.append(
            generate_pteroq_service(install_dir, adapter.run_as_user(plan.webserver), adapter.redis_service)
        )
        files.append(generate_scheduler_cron(install_dir))
        files.append(
            GeneratedFile(
                path=f"{EXTRAS_DIR}/database.sql",
                content=panel_database_sql(
                    creds,
                    grant_host=config.database.host,
                    remote_access=config.database.remote_access,
                ),
                mode=0o600,
                reason="Piped to 'mysql -u root' by the database step",
            )
        )
        if config.database.remote_access:
            files.append(generate_mariadb_bind(adapter.mariadb_conf_dir))

    if plan.installs_agent:
        files.append(generate_wings_service())

    if plan.tls and plan.domain and plan.target != "phpmyadmin":
        stops = []
        if plan.installs_panel:
            stops.append(adapter.webserver_service(plan.webserver))
        if plan.installs_agent:
            stops.append("wings")
        toggle = challenge_port_toggle(plan, config, adapter)
        pre, post = ([toggle[0]], [toggle[1]]) if toggle else ([], [])
        files.append(generate_certbot_cron(stops, pre_commands=pre, post_commands=post))

    if plan.target == "phpmyadmin":
        files.append(
            generate_phpmyadmin_config(
                install_dir,
                generate_password(32),
                db_host=config.database.host,
                db_port=config.database.port,
            )
        )
    elif config.firewall.enabled:
        commands = adapter.firewall_commands(firewall_ports(plan, config), config.firewall.ssh_port)
        files.append(
            GeneratedFile(
                path=f"{EXTRAS_DIR}/firewall.sh",
                content="#!/bin/sh\nset -e\n" + "".join(shlex.join(c) + "\n" for c in commands),
                mode=0o755,
                reason="Commands run by the firewall step",
            )
        )
        if config.firewall.fail2ban:
            files.append(generate_fail2ban_jail(adapter.family, config.firewall.ssh_port))

    return files


def run_render(
    profile: HostProfile,
    plan: InstallPlan,
    output_dir: Path,
    config: ProvisionConfig | None = None,
) -> RenderResult:
    """Render ``plan`` for ``profile`` into ``output_dir``."""
    result = RenderResult(output_dir=output_dir)
    try:
        files = render_artifacts(profile, plan, config)
    except ProvisionError as e:
        result.error = str(e)
        return result

    fs = FilesystemAdapter(root=output_dir)
    for generated in files:
        fs.write_generated(generated)
        logger.info("Rendered %s", generated.path)

    result.files = files
    return result
