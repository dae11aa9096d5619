"""
Debian-like adapter — Ubuntu and Debian hosts managed with apt.
"""

from __future__ import annotations

from provisioner.adapters.os_family.base import MARIADB_REPO_SETUP, OSAdapter
from provisioner.core.models.plan import WebServer
from provisioner.core.models.template import GeneratedFile

_PHP_EXTENSIONS = ("cli", "gd", "mysql", "pdo", "mbstring", "tokenizer", "bcmath", "xml", "fpm", "curl", "zip")

# Ubuntu releases that still need the certbot and nginx PPAs
_UBUNTU_LEGACY_PPAS = ("18.04",)

SURY_PHP_REPO = "https://packages.sury.org/php/"
SURY_PHP_KEY = "https://packages.sury.org/php/apt.gpg"


class DebianAdapter(OSAdapter):
    family = "debian"
    package_manager = "apt"
    firewall_tool = "ufw"

    @property
    def package_env(self) -> dict[str, str]:
        return {"DEBIAN_FRONTEND": "noninteractive"}

    def install_command(self, packages: list[str]) -> list[str]:
        return ["apt-get", "-y", "install", *packages]

    def baseline_commands(self) -> list[list[str]]:
        return [
            ["apt-get", "-y", "update"],
            ["apt-get", "-y", "upgrade"],
            ["apt-get", "-y", "autoremove"],
        ]

    @property
    def base_packages(self) -> list[str]:
        return [
            "software-properties-common", "curl", "apt-transport-https",
            "ca-certificates", "gnupg", "lsb-release", "tar", "unzip", "wget", "dnsutils",
        ]

    # ── Panel ───────────────────────────────────────────────────

    def panel_repository_files(self) -> list[GeneratedFile]:
        files = [
            GeneratedFile(
                path="/etc/apt/apt.conf.d/99force-ipv4",
                content='Acquire::ForceIPv4 "true";\n',
                reason="Force IPv4 for apt",
            ),
        ]
        if self.profile.distro_id == "debian":
            files.append(
                GeneratedFile(
                    path="/etc/apt/sources.list.d/php.list",
                    content=f"deb {SURY_PHP_REPO} {self.profile.codename} main\n",
                    reason="Sury PHP repository",
                )
            )
        return files

    def panel_repository_commands(self) -> list[list[str]]:
        commands: list[list[str]] = []
        if self.profile.distro_id == "ubuntu":
            commands.append(["env", "LC_ALL=C.UTF-8", "add-apt-repository", "-y", "ppa:ondrej/php"])
            commands.append(["add-apt-repository", "-y", "ppa:chris-lea/redis-server"])
            if self.profile.version in _UBUNTU_LEGACY_PPAS:
                commands.append(["add-apt-repository", "-y", "ppa:certbot/certbot"])
                commands.append(["add-apt-repository", "-y", "ppa:nginx/development"])
        else:
            commands.append(
                ["curl", "-sSLo", "/etc/apt/trusted.gpg.d/php.gpg", SURY_PHP_KEY]
            )
        commands.append(["bash", "-c", MARIADB_REPO_SETUP])
        commands.append(["apt-get", "-y", "update"])
        return commands

    def panel_packages(self, webserver: WebServer) -> list[str]:
        v = self.php_version
        php = [f"php{v}"] + [f"php{v}-{ext}" for ext in _PHP_EXTENSIONS]
        common = ["tar", "unzip", "git", "redis-server", "wget"]
        if webserver == "nginx":
            return php + ["nginx"] + common
        return php + ["apache2", f"libapache2-mod-php{v}"] + common

    def database_install_command(self) -> list[str]:
        return self.install_command(["mariadb-server"])

    def panel_services(self, webserver: WebServer) -> list[str]:
        return [
            "redis-server",
            self.php_fpm_service,
            self.cron_service,
            "mariadb",
            self.webserver_service(webserver),
        ]

    def webserver_service(self, webserver: WebServer) -> str:
        return "nginx" if webserver == "nginx" else "apache2"

    @property
    def php_fpm_service(self) -> str:
        return f"php{self.php_version}-fpm"

    def php_fpm_socket(self) -> str:
        return f"/run/php/php{self.php_version}-fpm.sock"

    def run_as_user(self, webserver: WebServer) -> str:
        return "www-data"

    @property
    def redis_service(self) -> str:
        return "redis-server.service"

    @property
    def cron_service(self) -> str:
        return "cron"

    # ── Web server layout ───────────────────────────────────────

    def vhost_path(self, webserver: WebServer) -> str:
        if webserver == "nginx":
            return "/etc/nginx/sites-available/pterodactyl.conf"
        return "/etc/apache2/sites-available/pterodactyl.conf"

    def vhost_enabled_link(self, webserver: WebServer) -> str | None:
        if webserver == "nginx":
            return "/etc/nginx/sites-enabled/pterodactyl.conf"
        return "/etc/apache2/sites-enabled/pterodactyl.conf"

    def default_site_paths(self, webserver: WebServer) -> list[str]:
        if webserver == "nginx":
            return ["/etc/nginx/sites-enabled/default"]
        return ["/etc/apache2/sites-enabled/000-default.conf"]

    def webserver_module_commands(self, webserver: WebServer) -> list[list[str]]:
        if webserver == "apache":
            return [["a2enmod", "ssl"], ["a2enmod", "rewrite"]]
        return []

    # ── Database ────────────────────────────────────────────────

    @property
    def mariadb_conf_dir(self) -> str:
        return "/etc/mysql/mariadb.conf.d"

    # ── Agent ───────────────────────────────────────────────────

    def swap_accounting_commands(self) -> list[list[str]]:
        return [
            [
                "bash", "-c",
                "grep -q 'swapaccount=1' /etc/default/grub || "
                "sed -i 's/GRUB_CMDLINE_LINUX_DEFAULT=\"[^\"]*/& swapaccount=1/' /etc/default/grub",
            ],
            ["update-grub"],
        ]

    # ── Firewall ────────────────────────────────────────────────

    def firewall_commands(self, ports: list[int], ssh_port: int) -> list[list[str]]:
        commands = [
            self.install_command(["ufw"]),
            ["ufw", "default", "deny", "incoming"],
            ["ufw", "default", "allow", "outgoing"],
            ["ufw", "allow", f"{ssh_port}/tcp"],
        ]
        commands += [["ufw", "allow", f"{port}/tcp"] for port in ports]
        commands.append(["ufw", "--force", "enable"])
        return commands

    def challenge_port_commands(self, port: int) -> tuple[list[str], list[str]]:
        return ["ufw", "allow", f"{port}/tcp"], ["ufw", "delete", "allow", f"{port}/tcp"]
