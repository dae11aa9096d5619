"""
RHEL-like adapter — RHEL 8 and its rebuilds, managed with dnf.
"""

from __future__ import annotations

from provisioner.adapters.os_family.base import MARIADB_REPO_SETUP, OSAdapter
from provisioner.core.models.plan import WebServer

EPEL_RELEASE_RHEL8 = "https://dl.fedoraproject.org/pub/epel/epel-release-latest-8.noarch.rpm"
REMI_RELEASE_EL8 = "http://rpms.remirepo.net/enterprise/remi-release-8.rpm"

_SELINUX_BOOLEANS = ("httpd_can_network_connect", "httpd_execmem", "httpd_unified")


class RhelAdapter(OSAdapter):
    family = "rhel"
    package_manager = "dnf"
    firewall_tool = "firewall-cmd"

    def install_command(self, packages: list[str]) -> list[str]:
        return ["dnf", "-y", "install", *packages]

    def baseline_commands(self) -> list[list[str]]:
        return [
            ["dnf", "-y", "makecache"],
            ["dnf", "-y", "upgrade"],
        ]

    @property
    def base_packages(self) -> list[str]:
        return ["curl", "tar", "unzip", "wget", "bind-utils", "cronie", "yum-utils", "dnf-plugins-core"]

    # ── Panel ───────────────────────────────────────────────────

    def _epel_command(self) -> list[str]:
        if self.profile.distro_id == "rhel":
            return ["dnf", "-y", "install", EPEL_RELEASE_RHEL8]
        return ["dnf", "-y", "install", "epel-release"]

    def panel_repository_commands(self) -> list[list[str]]:
        return [
            self._epel_command(),
            ["dnf", "-y", "install", "boost-program-options"],
            ["dnf", "-y", "install", REMI_RELEASE_EL8],
            ["dnf", "config-manager", "--set-enabled", "remi"],
            ["dnf", "-y", "module", "reset", "php"],
            ["dnf", "-y", "module", "enable", f"php:remi-{self.php_version}"],
            ["dnf", "-y", "module", "enable", "nginx:mainline/common"],
            ["bash", "-c", MARIADB_REPO_SETUP],
            ["dnf", "config-manager", "--set-enabled", "mariadb"],
        ]

    def panel_pre_install_commands(self) -> list[list[str]]:
        return [["dnf", "-y", "module", "install", f"php:remi-{self.php_version}"]]

    def panel_packages(self, webserver: WebServer) -> list[str]:
        common = ["redis", "git", "policycoreutils-python-utils", "unzip", "wget", "jq",
                  "php-mysql", "php-zip", "php-bcmath", "tar"]
        if webserver == "nginx":
            return ["nginx"] + common
        return ["httpd", "mod_ssl"] + common

    def database_install_command(self) -> list[str]:
        return ["dnf", "-y", "install", "MariaDB-server", "MariaDB-client", "--disablerepo=AppStream"]

    def panel_services(self, webserver: WebServer) -> list[str]:
        return [
            "redis",
            self.php_fpm_service,
            self.cron_service,
            "mariadb",
            self.webserver_service(webserver),
        ]

    def webserver_service(self, webserver: WebServer) -> str:
        return "nginx" if webserver == "nginx" else "httpd"

    def php_fpm_socket(self) -> str:
        return "/var/run/php-fpm/pterodactyl.sock"

    def run_as_user(self, webserver: WebServer) -> str:
        return "nginx" if webserver == "nginx" else "apache"

    @property
    def redis_service(self) -> str:
        return "redis.service"

    @property
    def cron_service(self) -> str:
        return "crond"

    # ── Web server layout ───────────────────────────────────────

    def vhost_path(self, webserver: WebServer) -> str:
        if webserver == "nginx":
            return "/etc/nginx/conf.d/pterodactyl.conf"
        return "/etc/httpd/conf.d/pterodactyl.conf"

    def php_fpm_pool_path(self, webserver: WebServer) -> str | None:
        if webserver == "nginx":
            return "/etc/php-fpm.d/www-pterodactyl.conf"
        return None

    def selinux_commands(self, install_dir: str) -> list[list[str]]:
        context = f"{install_dir}/storage(/.*)?"
        commands = [
            [
                "bash", "-c",
                f"semanage fcontext -a -t httpd_sys_rw_content_t '{context}' || "
                f"semanage fcontext -m -t httpd_sys_rw_content_t '{context}'",
            ],
            ["restorecon", "-R", install_dir],
        ]
        commands += [["setsebool", "-P", flag, "1"] for flag in _SELINUX_BOOLEANS]
        return commands

    # ── Database ────────────────────────────────────────────────

    @property
    def mariadb_conf_dir(self) -> str:
        return "/etc/my.cnf.d"

    # ── Certificates / firewall ─────────────────────────────────

    def certbot_prerequisites(self) -> list[list[str]]:
        return [self._epel_command()]

    def fail2ban_prerequisites(self) -> list[list[str]]:
        return [self._epel_command()]

    def firewall_commands(self, ports: list[int], ssh_port: int) -> list[list[str]]:
        commands = [
            self.install_command(["firewalld"]),
            ["systemctl", "enable", "--now", "firewalld"],
            ["firewall-cmd", "--permanent", f"--add-port={ssh_port}/tcp"],
        ]
        commands += [["firewall-cmd", "--permanent", f"--add-port={port}/tcp"] for port in ports]
        commands.append(["firewall-cmd", "--reload"])
        return commands

    def challenge_port_commands(self, port: int) -> tuple[list[str], list[str]]:
        # runtime rules only; the next --reload drops them
        return ["firewall-cmd", f"--add-port={port}/tcp"], ["firewall-cmd", f"--remove-port={port}/tcp"]
