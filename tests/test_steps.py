"""
Tests for the provisioning steps, one concern at a time.

Each step runs against the mock runner and a scratch filesystem, so
the assertions are about the commands issued and the files written.
"""

import io
import tarfile

import pytest

from provisioner.adapters.mock import MockFetcher, MockRunner
from provisioner.core.config.loader import DatabaseConfig, FirewallConfig, VersionsConfig
from provisioner.core.context import ProvisionContext
from provisioner.core.errors import (
    ArtifactFetchError,
    CertificateError,
    CredentialError,
    DependencyInstallError,
    ExternalToolError,
    PreconditionError,
)
from provisioner.core.models.plan import InstallPlan
from provisioner.core.services.credentials import parse_env
from provisioner.core.services.steps import build_steps
from provisioner.core.services.steps.agent import deploy_token, install_agent, parse_deploy_command
from provisioner.core.services.steps.baseline import update_system
from provisioner.core.services.steps.certificates import PENDING_SUFFIX, request_certificate
from provisioner.core.services.steps.database import bootstrap_database
from provisioner.core.services.steps.dependencies import install_dependencies
from provisioner.core.services.steps.firewall import configure_firewall, firewall_ports
from provisioner.core.services.steps.panel import fetch_panel, render_environment, setup_panel
from provisioner.core.services.steps.phpmyadmin import install_phpmyadmin
from provisioner.core.services.steps.webserver import configure_webserver
from provisioner.core.services.steps.workers import install_workers
from tests.conftest import PUBLIC_IP, make_profile, panel_tarball

INSTALL_DIR = "/var/www/pterodactyl"
DEPLOY = (
    "cd /etc/pterodactyl && sudo wings configure --panel-url https://panel.example.com "
    "--token ptla_secret --node 3"
)

ROCKY = make_profile("rocky", "8", "")


# ── build_steps ──────────────────────────────────────────────────────


class TestBuildSteps:
    @pytest.mark.parametrize(
        "plan, names",
        [
            (
                InstallPlan(target="panel", domain="p.example.com", tls=False),
                ["baseline", "dependencies", "database", "panel-fetch", "panel-env",
                 "panel-setup", "webserver", "workers", "firewall"],
            ),
            (
                InstallPlan(target="panel", domain="p.example.com", tls=True),
                ["baseline", "dependencies", "database", "panel-fetch", "panel-env",
                 "panel-setup", "webserver", "certificate", "workers", "firewall"],
            ),
            (
                InstallPlan(target="agent"),
                ["baseline", "dependencies", "agent", "firewall"],
            ),
            (
                InstallPlan(target="agent", domain="node.example.com", tls=True),
                ["baseline", "dependencies", "certificate", "agent", "firewall"],
            ),
            (
                InstallPlan(target="both", domain="p.example.com", tls=False),
                ["baseline", "dependencies", "database", "panel-fetch", "panel-env",
                 "panel-setup", "webserver", "workers", "agent", "firewall"],
            ),
            (InstallPlan(target="phpmyadmin"), ["phpmyadmin"]),
        ],
    )
    def test_order(self, plan, names):
        assert [s.name for s in build_steps(plan)] == names

    def test_webserver_label(self):
        steps = build_steps(InstallPlan(target="panel", webserver="apache", tls=False))
        assert "Configuring apache" in [s.label for s in steps]


# ── Baseline / dependencies ──────────────────────────────────────────


class TestBaseline:
    def test_debian(self, make_context, runner, panel_plan):
        update_system(make_context(panel_plan))
        assert runner.lines[:3] == ["apt-get -y update", "apt-get -y upgrade", "apt-get -y autoremove"]
        assert runner.calls[0].env == {"DEBIAN_FRONTEND": "noninteractive"}
        assert runner.lines[3].startswith("apt-get -y install software-properties-common curl")

    def test_rhel(self, make_context, runner, panel_plan):
        update_system(make_context(panel_plan, profile=ROCKY))
        assert runner.lines[:2] == ["dnf -y makecache", "dnf -y upgrade"]

    def test_failure(self, make_context, runner, panel_plan):
        runner.set_failure("apt-get -y upgrade", returncode=100, stderr="E: broken packages")
        with pytest.raises(DependencyInstallError) as exc:
            update_system(make_context(panel_plan))
        assert exc.value.exit_code == 100
        assert exc.value.output == "E: broken packages"


class TestDependencies:
    def test_panel_on_ubuntu(self, make_context, runner, fs, panel_plan):
        result = install_dependencies(make_context(panel_plan))

        assert result.metadata == {"targets": ["panel"]}
        assert fs.read_text("/etc/apt/apt.conf.d/99force-ipv4") == 'Acquire::ForceIPv4 "true";\n'
        assert runner.ran("add-apt-repository -y ppa:ondrej/php")
        assert runner.ran("apt-get -y install php8.2 php8.2-cli")
        assert runner.ran("apt-get -y install mariadb-server")
        assert runner.ran("getcomposer.org/installer")
        for service in ("redis-server", "php8.2-fpm", "cron", "mariadb", "nginx"):
            assert runner.ran(f"systemctl enable --now {service}")
        assert not runner.ran("get.docker.com")

    def test_panel_on_debian_writes_sury_list(self, make_context, fs, panel_plan):
        install_dependencies(make_context(panel_plan, profile=make_profile("debian", "11", "bullseye")))
        assert fs.read_text("/etc/apt/sources.list.d/php.list") == (
            "deb https://packages.sury.org/php/ bullseye main\n"
        )

    def test_panel_on_rhel(self, make_context, runner, panel_plan):
        install_dependencies(make_context(panel_plan, profile=ROCKY))
        assert runner.ran("dnf -y module enable php:remi-8.2")
        assert runner.ran("dnf -y module install php:remi-8.2")
        assert runner.ran("MariaDB-server")
        assert runner.ran("systemctl enable --now crond")

    def test_agent_installs_docker(self, make_context, runner):
        install_dependencies(make_context(InstallPlan(target="agent")))
        assert runner.ran("get.docker.com")
        assert runner.ran("systemctl enable --now docker")
        assert runner.ran("update-grub")
        assert not runner.ran("php8.2")

    def test_agent_skips_existing_docker(self, fs, fetcher, config, reporter):
        runner = MockRunner(available=["docker"])
        ctx = ProvisionContext(runner=runner, fs=fs, fetcher=fetcher, config=config, reporter=reporter)
        ctx.set_profile(make_profile())
        ctx.set_plan(InstallPlan(target="agent"))
        install_dependencies(ctx)
        assert not runner.ran("get.docker.com")
        assert runner.ran("systemctl enable --now docker")

    def test_service_failure_is_external(self, make_context, runner, panel_plan):
        runner.set_failure("systemctl enable --now mariadb")
        with pytest.raises(ExternalToolError):
            install_dependencies(make_context(panel_plan))


# ── Database ─────────────────────────────────────────────────────────


class TestDatabase:
    def test_sql_on_stdin(self, make_context, runner, fs, panel_plan):
        ctx = make_context(panel_plan)
        password = ctx.credentials.database_password.get_secret_value()
        result = bootstrap_database(ctx)

        call = runner.find("mysql -u root")[0]
        assert call.cmd == ["mysql", "-u", "root"]
        assert f"'pterodactyl'@'127.0.0.1' IDENTIFIED BY '{password}'" in call.input
        assert password not in call.line
        assert result.metadata["user"] == "pterodactyl@127.0.0.1"

    def test_remote_access(self, make_context, runner, fs, panel_plan):
        ctx = make_context(panel_plan)
        bootstrap_database(ctx)
        assert "bind-address = 0.0.0.0" in fs.read_text("/etc/mysql/mariadb.conf.d/99-provisioner.cnf")
        assert runner.ran("systemctl restart mariadb")
        assert ctx.values["public_ip"] == PUBLIC_IP

    def test_rhel_drop_in_dir(self, make_context, fs, panel_plan):
        bootstrap_database(make_context(panel_plan, profile=ROCKY))
        assert fs.exists("/etc/my.cnf.d/99-provisioner.cnf")

    def test_local_only(self, make_context, runner, fs, panel_plan):
        ctx = make_context(panel_plan, database=DatabaseConfig(remote_access=False))
        bootstrap_database(ctx)
        assert "'admin'@'%'" not in runner.calls[0].input
        assert not fs.exists("/etc/mysql/mariadb.conf.d/99-provisioner.cnf")
        assert "public_ip" not in ctx.values

    def test_failure_is_credential_error(self, make_context, runner, panel_plan):
        runner.set_failure("mysql -u root", stderr="ERROR 1045 (28000): Access denied")
        with pytest.raises(CredentialError) as exc:
            bootstrap_database(make_context(panel_plan))
        assert "Access denied" in exc.value.output


# ── Panel ────────────────────────────────────────────────────────────


class TestPanelFetch:
    def test_unpacks_release(self, make_context, runner, fs, panel_plan):
        ctx = make_context(panel_plan)
        result = fetch_panel(ctx)
        assert fs.exists(f"{INSTALL_DIR}/artisan")
        assert ctx.values["panel_version"] == "v1.11.11"
        assert result.metadata["files"] == 4
        assert runner.ran(f"chmod -R 755 {INSTALL_DIR}/storage {INSTALL_DIR}/bootstrap/cache")

    def test_download_failure(self, runner, fs, config, reporter, panel_plan):
        ctx = ProvisionContext(runner=runner, fs=fs, fetcher=MockFetcher(), config=config, reporter=reporter)
        ctx.set_profile(make_profile())
        ctx.set_plan(panel_plan)
        with pytest.raises(ArtifactFetchError, match="Download failed"):
            fetch_panel(ctx)
        assert runner.call_count == 0

    def test_archive_without_panel(self, make_context, fetcher, config, panel_plan):
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            info = tarfile.TarInfo("README.md")
            info.size = 2
            tar.addfile(info, io.BytesIO(b"hi"))
        fetcher.add(
            f"https://github.com/pterodactyl/panel/releases/download/{config.versions.panel}/panel.tar.gz",
            buf.getvalue(),
        )
        with pytest.raises(ArtifactFetchError, match="did not unpack a panel"):
            fetch_panel(make_context(panel_plan))

    def test_latest_resolved(self, make_context, fetcher, panel_plan):
        fetcher.add_json("https://api.github.com/repos/pterodactyl/panel/releases/latest", {"tag_name": "v1.12.0"})
        fetcher.add("https://github.com/pterodactyl/panel/releases/download/v1.12.0/panel.tar.gz", panel_tarball())
        ctx = make_context(panel_plan, versions=VersionsConfig(panel="latest"))
        fetch_panel(ctx)
        assert ctx.values["panel_version"] == "v1.12.0"


class TestPanelEnvironment:
    def test_writes_env(self, make_context, fs, panel_plan):
        ctx = make_context(panel_plan)
        render_environment(ctx)
        env = parse_env(fs.read_text(f"{INSTALL_DIR}/.env"))
        assert env["DB_PASSWORD"] == ctx.credentials.database_password.get_secret_value()
        assert env["APP_URL"] == "http://panel.example.com"
        assert env["APP_TIMEZONE"] == "UTC"
        assert fs.resolve(f"{INSTALL_DIR}/.env").stat().st_mode & 0o777 == 0o640


class TestPanelSetup:
    def test_runs_artisan_and_creates_admin(self, make_context, runner, panel_plan):
        ctx = make_context(panel_plan)
        result = setup_panel(ctx)

        composer = runner.find("composer install")[0]
        assert composer.cwd == INSTALL_DIR
        assert composer.env == {"COMPOSER_ALLOW_SUPERUSER": "1"}
        assert runner.ran("php artisan migrate --seed --force")

        make = runner.find("p:user:make")[0]
        assert "--email=admin@example.com" in make.cmd
        assert "--admin=1" in make.cmd
        assert f"--password={ctx.credentials.admin_password.get_secret_value()}" in make.cmd
        assert runner.ran(f"chown -R www-data:www-data {INSTALL_DIR}")
        assert ctx.values["admin_created"] is True
        assert result.metadata == {"admin_created": True}

    def test_existing_admin_left_alone(self, make_context, runner, reporter, panel_plan):
        runner.set_output("mysql -u root -N -B", stdout="1\n")
        ctx = make_context(panel_plan)
        setup_panel(ctx)
        assert not runner.ran("p:user:make")
        assert ctx.values["admin_created"] is False
        assert any("already exists" in w for w in reporter.warnings)

    def test_rhel_selinux_and_user(self, make_context, runner, panel_plan):
        setup_panel(make_context(panel_plan, profile=ROCKY))
        assert runner.ran(f"chown -R nginx:nginx {INSTALL_DIR}")
        assert runner.ran(f"restorecon -R {INSTALL_DIR}")

    def test_migration_failure(self, make_context, runner, panel_plan):
        runner.set_failure("artisan migrate", stderr="SQLSTATE[HY000] [1045]")
        with pytest.raises(ExternalToolError) as exc:
            setup_panel(make_context(panel_plan))
        assert exc.value.output == "SQLSTATE[HY000] [1045]"


# ── Web server ───────────────────────────────────────────────────────


class TestWebserver:
    def test_nginx_on_ubuntu(self, make_context, runner, fs, panel_plan):
        fs.write_text("/etc/nginx/sites-enabled/default", "stock")
        configure_webserver(make_context(panel_plan))

        vhost = fs.read_text("/etc/nginx/sites-available/pterodactyl.conf")
        assert "server_name panel.example.com;" in vhost
        assert fs.readlink("/etc/nginx/sites-enabled/pterodactyl.conf") == (
            "/etc/nginx/sites-available/pterodactyl.conf"
        )
        assert not fs.exists("/etc/nginx/sites-enabled/default")
        assert runner.lines[-2:] == ["systemctl enable nginx", "systemctl restart nginx"]

    def test_tls_defers_restart(self, make_context, runner):
        plan = InstallPlan(target="panel", domain="panel.example.com", email="a@example.com", tls=True)
        configure_webserver(make_context(plan))
        assert runner.ran("systemctl enable nginx")
        assert not runner.ran("systemctl restart nginx")

    def test_apache_on_debian(self, make_context, runner, fs):
        plan = InstallPlan(target="panel", webserver="apache", domain="panel.example.com", tls=False)
        configure_webserver(make_context(plan))
        assert fs.exists("/etc/apache2/sites-available/pterodactyl.conf")
        assert runner.ran("a2enmod rewrite")
        assert runner.ran("systemctl restart apache2")

    def test_nginx_on_rocky_gets_pool(self, make_context, runner, fs, panel_plan):
        configure_webserver(make_context(panel_plan, profile=ROCKY))
        assert "user = nginx" in fs.read_text("/etc/php-fpm.d/www-pterodactyl.conf")
        assert fs.exists("/etc/nginx/conf.d/pterodactyl.conf")
        assert runner.ran("systemctl restart php-fpm")
        assert runner.ran("chown -R nginx:nginx /var/lib/php/session")


# ── Certificate ──────────────────────────────────────────────────────


class TestCertificate:
    @pytest.fixture
    def tls_plan(self) -> InstallPlan:
        return InstallPlan(target="panel", domain="panel.example.com", email="admin@example.com", tls=True)

    def test_issued(self, make_context, runner, fs, tls_plan):
        ctx = make_context(tls_plan)
        result = request_certificate(ctx)

        assert result.ok
        lines = runner.lines
        stop = lines.index("systemctl stop nginx")
        certbot = next(i for i, line in enumerate(lines) if line.startswith("certbot certonly"))
        start = lines.index("systemctl start nginx")
        assert stop < certbot < start
        assert "--standalone" in runner.calls[certbot].cmd
        assert "admin@example.com" in runner.calls[certbot].cmd
        cron = fs.read_text("/etc/cron.d/certbot-renew")
        assert '--pre-hook "systemctl stop nginx"' in cron
        assert ctx.values["certificate"] is True

    def test_failure_falls_back_to_http(self, make_context, runner, fs, tls_plan):
        runner.set_failure("certbot certonly", returncode=1, stderr="Challenge failed")
        ctx = make_context(tls_plan)

        with pytest.raises(CertificateError) as exc:
            request_certificate(ctx)

        vhost = "/etc/nginx/sites-available/pterodactyl.conf"
        assert "listen 443" in fs.read_text(vhost + PENDING_SUFFIX)
        assert "listen 443" not in fs.read_text(vhost)
        assert runner.lines[-1] == "systemctl restart nginx"
        assert exc.value.output == "Challenge failed"
        assert f"mv {vhost}{PENDING_SUFFIX} {vhost}" in exc.value.message
        assert ctx.values["certificate"] is False
        assert not fs.exists("/etc/cron.d/certbot-renew")

    def test_certbot_install_failure_falls_back_to_http(self, make_context, runner, fs, tls_plan):
        runner.set_failure("install certbot", returncode=100, stderr="Unable to locate package certbot")
        ctx = make_context(tls_plan)

        with pytest.raises(CertificateError) as exc:
            request_certificate(ctx)

        vhost = "/etc/nginx/sites-available/pterodactyl.conf"
        assert fs.exists(vhost + PENDING_SUFFIX)
        assert "listen 443" not in fs.read_text(vhost)
        assert not runner.ran("certbot certonly")
        assert runner.lines[-1] == "systemctl restart nginx"
        assert exc.value.exit_code == 100
        assert "certbot could not be installed" in exc.value.message
        assert "apt-get -y install certbot" in exc.value.message
        assert ctx.values["certificate"] is False

    def test_rhel_enables_epel_first(self, make_context, runner, tls_plan):
        request_certificate(make_context(tls_plan, profile=ROCKY))
        lines = runner.lines
        epel = lines.index("dnf -y install epel-release")
        assert epel < lines.index("dnf -y install certbot")

    def test_rhel_agent_only(self, make_context, runner, fs):
        plan = InstallPlan(target="agent", domain="node.example.com", email="ops@example.com", tls=True)
        result = request_certificate(make_context(plan, profile=ROCKY))
        assert result.ok
        assert runner.ran("dnf -y install epel-release")
        cron = fs.read_text("/etc/cron.d/certbot-renew")
        assert '--pre-hook "firewall-cmd --add-port=80/tcp && systemctl stop wings"' in cron
        assert '--post-hook "systemctl start wings && firewall-cmd --remove-port=80/tcp"' in cron

    def test_agent_only(self, make_context, runner, fs):
        plan = InstallPlan(target="agent", domain="node.example.com", email="ops@example.com", tls=True)
        request_certificate(make_context(plan))
        assert not runner.ran("systemctl stop")
        assert not runner.ran("ufw")
        cron = fs.read_text("/etc/cron.d/certbot-renew")
        assert '--pre-hook "ufw allow 80/tcp && systemctl stop wings"' in cron
        assert '--post-hook "systemctl start wings && ufw delete allow 80/tcp"' in cron

    def test_agent_only_opens_port_for_challenge(self, fs, fetcher, config, reporter):
        runner = MockRunner(available=["ufw"])
        ctx = ProvisionContext(runner=runner, fs=fs, fetcher=fetcher, config=config, reporter=reporter)
        ctx.set_profile(make_profile())
        ctx.set_plan(InstallPlan(target="agent", domain="node.example.com", email="ops@example.com", tls=True))

        assert request_certificate(ctx).ok
        lines = runner.lines
        certbot = next(i for i, line in enumerate(lines) if line.startswith("certbot certonly"))
        assert lines[certbot - 1] == "ufw allow 80/tcp"
        assert lines[certbot + 1] == "ufw delete allow 80/tcp"

    def test_agent_only_closes_port_after_failure(self, fs, fetcher, config, reporter):
        runner = MockRunner(available=["ufw"])
        runner.set_failure("certbot certonly")
        ctx = ProvisionContext(runner=runner, fs=fs, fetcher=fetcher, config=config, reporter=reporter)
        ctx.set_profile(make_profile())
        ctx.set_plan(InstallPlan(target="agent", domain="node.example.com", email="ops@example.com", tls=True))

        with pytest.raises(CertificateError):
            request_certificate(ctx)
        assert runner.lines[-1] == "ufw delete allow 80/tcp"

    def test_agent_only_without_firewall(self, make_context, fs):
        plan = InstallPlan(target="agent", domain="node.example.com", email="ops@example.com", tls=True)
        request_certificate(make_context(plan, firewall=FirewallConfig(enabled=False)))
        cron = fs.read_text("/etc/cron.d/certbot-renew")
        assert '--pre-hook "systemctl stop wings"' in cron
        assert "ufw" not in cron

    def test_both_stops_webserver_and_wings_on_renewal(self, make_context, fs):
        plan = InstallPlan(target="both", domain="panel.example.com", email="a@example.com", tls=True)
        request_certificate(make_context(plan))
        cron = fs.read_text("/etc/cron.d/certbot-renew")
        assert '--pre-hook "systemctl stop nginx wings"' in cron
        assert "ufw" not in cron

    def test_not_requested(self, make_context, runner, panel_plan):
        assert request_certificate(make_context(panel_plan)).status == "skipped"
        assert runner.call_count == 0


# ── Workers ──────────────────────────────────────────────────────────


class TestWorkers:
    def test_units(self, make_context, runner, fs, panel_plan):
        install_workers(make_context(panel_plan))
        assert "User=www-data" in fs.read_text("/etc/systemd/system/pteroq.service")
        assert "schedule:run" in fs.read_text("/etc/cron.d/pterodactyl")
        assert runner.lines == [
            "systemctl daemon-reload",
            "systemctl enable --now pteroq.service",
            "systemctl restart cron",
        ]

    def test_rerun_leaves_one_cron_entry(self, make_context, fs, panel_plan):
        install_workers(make_context(panel_plan))
        install_workers(make_context(panel_plan))
        assert fs.read_text("/etc/cron.d/pterodactyl").count("schedule:run") == 1


# ── Agent ────────────────────────────────────────────────────────────


class TestDeployCommand:
    def test_parse_panel_snippet(self):
        argv = parse_deploy_command(DEPLOY)
        assert argv == [
            "/usr/local/bin/wings", "configure",
            "--panel-url", "https://panel.example.com",
            "--token", "ptla_secret",
            "--node", "3",
        ]
        assert deploy_token(argv) == "ptla_secret"

    def test_parse_bare(self):
        assert parse_deploy_command("wings configure --token=abc")[0] == "/usr/local/bin/wings"
        assert deploy_token(["wings", "--token=abc"]) == "abc"

    @pytest.mark.parametrize("text", ["rm -rf /", "wings", "echo 'unterminated", "sudo bash -c 'x'"])
    def test_rejects(self, text):
        with pytest.raises(PreconditionError):
            parse_deploy_command(text)


class TestAgent:
    def test_installs_binary_and_unit(self, make_context, runner, fs):
        ctx = make_context(InstallPlan(target="agent"))
        result = install_agent(ctx)

        binary = fs.resolve("/usr/local/bin/wings")
        assert binary.read_bytes() == b"\x7fELF wings"
        assert binary.stat().st_mode & 0o777 == 0o755
        assert fs.exists("/etc/systemd/system/wings.service")
        assert runner.ran("systemctl enable wings")
        assert not runner.ran("systemctl restart wings")
        assert ctx.values["wings_configured"] is False
        assert result.metadata == {"version": "v1.11.13", "configured": False}

    def test_arm64_binary(self, make_context, fetcher):
        install_agent(make_context(InstallPlan(target="agent"), profile=make_profile(arch="arm64")))
        assert any(url.endswith("wings_linux_arm64") for url in fetcher.requested)

    def test_deploy_command_runs_and_starts(self, make_context, runner, fs):
        fs.write_text("/etc/pterodactyl/config.yml", "uuid: x\n")
        ctx = make_context(InstallPlan(target="agent", agent_deploy_command=DEPLOY))
        install_agent(ctx)

        call = runner.find("wings configure")[0]
        assert call.cwd == "/etc/pterodactyl"
        assert call.cmd[0] == "/usr/local/bin/wings"
        assert runner.ran("systemctl restart wings")
        assert ctx.values["wings_configured"] is True

    def test_deploy_failure(self, make_context, runner):
        runner.set_failure("wings configure", stderr="invalid token")
        with pytest.raises(ExternalToolError):
            install_agent(make_context(InstallPlan(target="agent", agent_deploy_command=DEPLOY)))


# ── Firewall ─────────────────────────────────────────────────────────


class TestFirewall:
    @pytest.mark.parametrize(
        "target, remote, ports",
        [
            ("panel", True, [80, 443, 3306]),
            ("panel", False, [80, 443]),
            ("agent", True, [2022, 8080]),
            ("both", True, [80, 443, 2022, 3306, 8080]),
        ],
    )
    def test_ports(self, config, target, remote, ports):
        cfg = config.model_copy(update={"database": DatabaseConfig(remote_access=remote)})
        assert firewall_ports(InstallPlan(target=target), cfg) == ports

    def test_ufw_and_fail2ban(self, make_context, runner, fs, panel_plan):
        ctx = make_context(panel_plan)
        configure_firewall(ctx)
        assert runner.ran("ufw allow 22/tcp")
        assert runner.ran("ufw allow 3306/tcp")
        assert runner.ran("ufw --force enable")
        assert runner.ran("apt-get -y install fail2ban")
        assert "banaction = ufw" in fs.read_text("/etc/fail2ban/jail.local")
        assert ctx.values["open_ports"] == [22, 80, 443, 3306]

    def test_firewalld_on_rocky(self, make_context, runner, fs):
        configure_firewall(make_context(InstallPlan(target="agent"), profile=ROCKY))
        assert runner.ran("firewall-cmd --permanent --add-port=8080/tcp")
        assert runner.ran("dnf -y install epel-release")
        assert "firewallcmd-rich-rules" in fs.read_text("/etc/fail2ban/jail.local")

    def test_disabled(self, make_context, runner, panel_plan):
        ctx = make_context(panel_plan, firewall=FirewallConfig(enabled=False))
        assert configure_firewall(ctx).status == "skipped"
        assert runner.call_count == 0
        assert "open_ports" not in ctx.values

    def test_without_fail2ban(self, make_context, runner, panel_plan):
        configure_firewall(make_context(panel_plan, firewall=FirewallConfig(fail2ban=False)))
        assert not runner.ran("fail2ban")


# ── phpMyAdmin ───────────────────────────────────────────────────────


class TestPhpMyAdmin:
    def test_requires_panel(self, make_context, runner):
        with pytest.raises(PreconditionError, match="install the panel"):
            install_phpmyadmin(make_context(InstallPlan(target="phpmyadmin")))
        assert runner.call_count == 0

    def test_installs(self, make_context, runner, fs):
        fs.write_text(f"{INSTALL_DIR}/artisan", "#!/usr/bin/env php\n")
        fs.write_text(f"{INSTALL_DIR}/public/phpmyadmin/stale.php", "old")
        ctx = make_context(InstallPlan(target="phpmyadmin"))
        result = install_phpmyadmin(ctx)

        target = f"{INSTALL_DIR}/public/phpmyadmin"
        assert fs.exists(f"{target}/index.php")
        assert not fs.exists(f"{target}/stale.php")
        assert fs.resolve(f"{target}/tmp").is_dir()
        config = fs.read_text(f"{target}/config.inc.php")
        assert "$cfg['Servers'][$i]['host'] = '127.0.0.1';" in config
        assert runner.ran(f"chown -R www-data:www-data {target}")
        assert result.metadata["files"] == 2
        assert ctx.values["phpmyadmin_version"] == "5.2.2"
