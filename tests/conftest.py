"""
Shared test fixtures and configuration.

Nothing here touches the real host: commands go to ``MockRunner``,
files go to a ``FilesystemAdapter`` rooted in ``tmp_path`` and
downloads are served from memory by ``MockFetcher``.
"""

import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from provisioner.adapters.mock import MockFetcher, MockRunner
from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.config.loader import AuditConfig, ProvisionConfig
from provisioner.core.context import ProvisionContext
from provisioner.core.models.host import HostProfile
from provisioner.core.models.plan import InstallPlan
from provisioner.core.services.credentials import build_credentials
from provisioner.core.services.detection.network import PUBLIC_IP_URL
from provisioner.core.services.generators.phpmyadmin import PHPMYADMIN_DOWNLOAD
from provisioner.core.services.releases import PANEL_ARCHIVE, WINGS_BINARY_URL

PUBLIC_IP = "203.0.113.10"

# (distro, version, codename) for every supported release
SUPPORTED_HOSTS = [
    ("ubuntu", "18.04", "bionic"),
    ("ubuntu", "20.04", "focal"),
    ("ubuntu", "22.04", "jammy"),
    ("ubuntu", "24.04", "noble"),
    ("debian", "10", "buster"),
    ("debian", "11", "bullseye"),
    ("debian", "12", "bookworm"),
    ("rhel", "8", ""),
    ("centos", "8", ""),
    ("rocky", "8", ""),
    ("almalinux", "8", ""),
]


def make_profile(distro: str = "ubuntu", version: str = "22.04", codename: str = "jammy", **kwargs) -> HostProfile:
    family = "debian" if distro in ("ubuntu", "debian") else "rhel"
    return HostProfile(family=family, distro_id=distro, version=version, codename=codename, **kwargs)


def os_release(distro: str, version: str, codename: str = "") -> str:
    lines = [f"ID={distro}", f'VERSION_ID="{version}"']
    if codename:
        lines.append(f"VERSION_CODENAME={codename}")
    return "\n".join(lines) + "\n"


def panel_tarball() -> bytes:
    """A minimal panel release: artisan plus the writable directories."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in [
            ("artisan", b"#!/usr/bin/env php\n"),
            ("public/index.php", b"<?php\n"),
            ("storage/logs/.gitignore", b"*\n"),
            ("bootstrap/cache/.gitignore", b"*\n"),
        ]:
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def phpmyadmin_zip(version: str) -> bytes:
    buf = io.BytesIO()
    prefix = f"phpMyAdmin-{version}-all-languages/"
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(prefix + "index.php", "<?php\n")
        zf.writestr(prefix + "libraries/classes/Config.php", "<?php\n")
    return buf.getvalue()


class RecordingReporter:
    """Reporter that keeps everything it was told."""

    def __init__(self):
        self.steps: list[str] = []
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def step(self, name: str, label: str) -> None:
        self.steps.append(name)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """Scratch directory standing in for ``/``."""
    root = tmp_path / "host"
    (root / "etc").mkdir(parents=True)
    (root / "etc" / "os-release").write_text(os_release("ubuntu", "22.04", "jammy"))
    (root / "etc" / "timezone").write_text("Europe/Paris\n")
    return root


@pytest.fixture
def fs(host_root: Path) -> FilesystemAdapter:
    return FilesystemAdapter(root=host_root)


@pytest.fixture
def runner() -> MockRunner:
    """Mock runner on a host where no tool is preinstalled."""
    return MockRunner(available=())


@pytest.fixture
def config(tmp_path: Path) -> ProvisionConfig:
    return ProvisionConfig(audit=AuditConfig(path=str(tmp_path / "audit.ndjson")))


@pytest.fixture
def fetcher(config: ProvisionConfig) -> MockFetcher:
    f = MockFetcher()
    f.add(PANEL_ARCHIVE.format(tag=config.versions.panel), panel_tarball())
    for arch in ("amd64", "arm64"):
        f.add(WINGS_BINARY_URL.format(tag=config.versions.wings, arch=arch), b"\x7fELF wings")
    version = config.versions.phpmyadmin
    f.add(PHPMYADMIN_DOWNLOAD.format(version=version), phpmyadmin_zip(version))
    f.add(PUBLIC_IP_URL, PUBLIC_IP + "\n")
    return f


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def make_context(runner, fs, fetcher, config, reporter):
    """Build a context with profile, plan and (for panel plans) credentials fixed."""

    def _make(plan: InstallPlan, profile: HostProfile | None = None, **config_updates) -> ProvisionContext:
        cfg = config.model_copy(update=config_updates) if config_updates else config
        ctx = ProvisionContext(runner=runner, fs=fs, fetcher=fetcher, config=cfg, reporter=reporter)
        ctx.set_profile(profile or make_profile())
        ctx.set_plan(plan)
        if plan.installs_panel:
            ctx.set_credentials(build_credentials(cfg, admin_email=plan.email or "admin@example.com"))
        return ctx

    return _make


@pytest.fixture
def panel_plan() -> InstallPlan:
    return InstallPlan(
        target="panel",
        webserver="nginx",
        domain="panel.example.com",
        email="admin@example.com",
        tls=False,
    )
