"""
OS-family adapter base — everything that differs between apt and dnf hosts.

One adapter is selected from the HostProfile before any step runs and
is passed down through the context.  Steps ask it for package names,
repository setup, service names, socket paths and run-as users instead
of branching on the distro themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from provisioner.core.models.host import HostProfile
from provisioner.core.models.plan import WebServer
from provisioner.core.models.template import GeneratedFile

# Upstream MariaDB repository bootstrap, shared by both families
MARIADB_REPO_SETUP = "curl -sS https://downloads.mariadb.com/MariaDB/mariadb_repo_setup | bash"

# Upstream Docker convenience installer
DOCKER_INSTALL = "curl -sSL https://get.docker.com/ | CHANNEL=stable bash"


class OSAdapter(ABC):
    """Package manager, repositories, services and paths for one OS family."""

    family: str = ""
    package_manager: str = ""

    def __init__(self, profile: HostProfile, php_version: str = "8.2"):
        self.profile = profile
        self.php_version = php_version

    # ── Package manager ─────────────────────────────────────────

    @property
    def package_env(self) -> dict[str, str]:
        """Environment for package manager invocations."""
        return {}

    @abstractmethod
    def install_command(self, packages: list[str]) -> list[str]:
        """Command that installs ``packages`` non-interactively."""

    @abstractmethod
    def baseline_commands(self) -> list[list[str]]:
        """Refresh package metadata and upgrade the installed set."""

    @property
    @abstractmethod
    def base_packages(self) -> list[str]:
        """Tools every run needs (curl, tar, unzip, ...)."""

    # ── Panel ───────────────────────────────────────────────────

    @abstractmethod
    def panel_repository_commands(self) -> list[list[str]]:
        """Register the PHP / MariaDB / Redis repositories for the panel."""

    def panel_repository_files(self) -> list[GeneratedFile]:
        """Repository definition files written before the commands run."""
        return []

    def panel_pre_install_commands(self) -> list[list[str]]:
        """Commands run between repository setup and package install."""
        return []

    @abstractmethod
    def panel_packages(self, webserver: WebServer) -> list[str]:
        """PHP, extensions, web server, Redis and tooling for the panel."""

    @abstractmethod
    def database_install_command(self) -> list[str]:
        """Install the MariaDB server."""

    @abstractmethod
    def panel_services(self, webserver: WebServer) -> list[str]:
        """Services enabled and started after the panel packages install."""

    @abstractmethod
    def webserver_service(self, webserver: WebServer) -> str:
        """systemd unit name of the web server."""

    @abstractmethod
    def php_fpm_socket(self) -> str:
        """Socket nginx passes PHP requests to."""

    @abstractmethod
    def run_as_user(self, webserver: WebServer) -> str:
        """User (and group) that owns the panel files and runs its worker."""

    @property
    @abstractmethod
    def redis_service(self) -> str:
        """Redis unit name, used for worker unit ordering."""

    @property
    @abstractmethod
    def cron_service(self) -> str:
        ...

    # ── Web server layout ───────────────────────────────────────

    @abstractmethod
    def vhost_path(self, webserver: WebServer) -> str:
        ...

    def vhost_enabled_link(self, webserver: WebServer) -> str | None:
        """Link that enables the vhost, for sites-available layouts."""
        return None

    def default_site_paths(self, webserver: WebServer) -> list[str]:
        """Stock sites removed so the panel is the default server."""
        return []

    def webserver_module_commands(self, webserver: WebServer) -> list[list[str]]:
        return []

    def php_fpm_pool_path(self, webserver: WebServer) -> str | None:
        """Dedicated PHP-FPM pool file, where the family needs one."""
        return None

    @property
    def php_fpm_service(self) -> str:
        return "php-fpm"

    def selinux_commands(self, install_dir: str) -> list[list[str]]:
        return []

    # ── Database ────────────────────────────────────────────────

    @property
    @abstractmethod
    def mariadb_conf_dir(self) -> str:
        """Drop-in directory read by mariadbd."""

    # ── Agent ───────────────────────────────────────────────────

    @property
    def agent_packages(self) -> list[str]:
        return ["curl", "tar", "unzip"]

    def swap_accounting_commands(self) -> list[list[str]]:
        """Kernel flag enabling container swap limits, if the family needs it."""
        return []

    # ── Certificates ────────────────────────────────────────────

    def certbot_prerequisites(self) -> list[list[str]]:
        """Repository setup needed before certbot can be installed."""
        return []

    # ── Firewall ────────────────────────────────────────────────

    firewall_tool: str

    def fail2ban_prerequisites(self) -> list[list[str]]:
        """Repository setup needed before fail2ban can be installed."""
        return []

    @abstractmethod
    def firewall_commands(self, ports: list[int], ssh_port: int) -> list[list[str]]:
        """Default-deny firewall allowing only ``ssh_port`` and ``ports``."""

    @abstractmethod
    def challenge_port_commands(self, port: int) -> tuple[list[str], list[str]]:
        """Commands opening ``port`` and closing it again, without persisting the rule."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.profile.label}>"
