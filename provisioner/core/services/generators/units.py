"""
Service and schedule generators — systemd units, cron.d files, drop-ins.

Every file here is written whole, never appended to, so re-running the
provisioner leaves exactly one copy of each entry behind.
"""

from __future__ import annotations

import shlex

from provisioner.core.models.template import GeneratedFile
from provisioner.core.services.rendering import render

WINGS_BINARY = "/usr/local/bin/wings"
WINGS_CONFIG_DIR = "/etc/pterodactyl"
WINGS_CONFIG = f"{WINGS_CONFIG_DIR}/config.yml"

_PTEROQ_SERVICE = """\
# Pterodactyl Queue Worker File
# ----------------------------------

[Unit]
Description=Pterodactyl Queue Worker
After={{redis_service}}

[Service]
User={{user}}
Group={{user}}
Restart=always
ExecStart=/usr/bin/php {{install_dir}}/artisan queue:work --queue=high,standard,low --sleep=3 --tries=3
StartLimitInterval=180
StartLimitBurst=30
RestartSec=5s

[Install]
WantedBy=multi-user.target
"""

_WINGS_SERVICE = """\
[Unit]
Description=Pterodactyl Wings Daemon
After=docker.service
Requires=docker.service
PartOf=docker.service

[Service]
User=root
WorkingDirectory={{config_dir}}
LimitNOFILE=4096
PIDFile=/var/run/wings/daemon.pid
ExecStart={{binary}}
Restart=on-failure
StartLimitInterval=180
StartLimitBurst=30
RestartSec=5s

[Install]
WantedBy=multi-user.target
"""

_SCHEDULER_CRON = """\
# Pterodactyl panel scheduler
* * * * * root php {{install_dir}}/artisan schedule:run >> /dev/null 2>&1
"""

_CERTBOT_CRON = """\
# Renew Let's Encrypt certificates twice a day
0 0,12 * * * root certbot renew --quiet{{hooks}} >> /dev/null 2>&1
"""

_FAIL2BAN_JAIL = """\
[DEFAULT]
# Ban hosts for ten hours:
bantime = 36000
banaction = {{banaction}}

[sshd]
enabled = true
port = {{ssh_port}}
"""

_MARIADB_BIND = """\
[mysqld]
bind-address = {{bind_address}}
"""


def generate_pteroq_service(install_dir: str, user: str, redis_service: str) -> GeneratedFile:
    path = "/etc/systemd/system/pteroq.service"
    values = {"install_dir": install_dir, "user": user, "redis_service": redis_service}
    return GeneratedFile(
        path=path,
        content=render(_PTEROQ_SERVICE, values, name=path),
        reason="Panel queue worker",
    )


def generate_wings_service() -> GeneratedFile:
    path = "/etc/systemd/system/wings.service"
    values = {"config_dir": WINGS_CONFIG_DIR, "binary": WINGS_BINARY}
    return GeneratedFile(
        path=path,
        content=render(_WINGS_SERVICE, values, name=path),
        reason="Wings daemon",
    )


def generate_scheduler_cron(install_dir: str) -> GeneratedFile:
    path = "/etc/cron.d/pterodactyl"
    return GeneratedFile(
        path=path,
        content=render(_SCHEDULER_CRON, {"install_dir": install_dir}, name=path),
        reason="Panel scheduler",
    )


def generate_certbot_cron(
    stop_services: list[str],
    pre_commands: list[list[str]] | None = None,
    post_commands: list[list[str]] | None = None,
) -> GeneratedFile:
    """Renewal cron stopping ``stop_services`` around the standalone challenge.

    ``pre_commands`` run before the services stop, ``post_commands``
    after they start again.
    """
    path = "/etc/cron.d/certbot-renew"
    names = " ".join(stop_services)
    pre = [shlex.join(c) for c in pre_commands or []]
    post = [shlex.join(c) for c in post_commands or []]
    if names:
        pre.append(f"systemctl stop {names}")
        post.insert(0, f"systemctl start {names}")
    hooks = ""
    if pre:
        hooks += f' --pre-hook "{" && ".join(pre)}"'
    if post:
        hooks += f' --post-hook "{" && ".join(post)}"'
    return GeneratedFile(
        path=path,
        content=render(_CERTBOT_CRON, {"hooks": hooks}, name=path),
        reason="Certificate renewal",
    )


def generate_fail2ban_jail(family: str, ssh_port: int) -> GeneratedFile:
    path = "/etc/fail2ban/jail.local"
    banaction = "ufw" if family == "debian" else "firewallcmd-rich-rules"
    values = {"banaction": banaction, "ssh_port": ssh_port}
    return GeneratedFile(
        path=path,
        content=render(_FAIL2BAN_JAIL, values, name=path),
        reason="fail2ban sshd jail",
    )


def generate_mariadb_bind(conf_dir: str, bind_address: str = "0.0.0.0") -> GeneratedFile:
    """Drop-in overriding MariaDB's listen address; sorts after the stock files."""
    path = f"{conf_dir}/99-provisioner.cnf"
    return GeneratedFile(
        path=path,
        content=render(_MARIADB_BIND, {"bind_address": bind_address}, name=path),
        reason="MariaDB listen address",
    )
