"""
Provisioning context — the one object threaded through every step.

Holds the tool bindings (runner, filesystem, fetcher), the loaded
configuration, the operator reporter, and the run's facts:

    profile      set once while Profiling, read-only afterwards
    plan         set once while Planning, read-only afterwards
    credentials  set once, by the first step that needs them
    values       free-form results later steps depend on

Nothing in the provisioner keeps module-level state; whatever a step
needs from an earlier one travels here.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from provisioner.adapters.base import CommandResult, CommandRunner
from provisioner.adapters.os_family import OSAdapter, select_adapter
from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.errors import DependencyInstallError, ProvisionError
from provisioner.core.models.credentials import Credentials
from provisioner.core.models.host import HostProfile
from provisioner.core.models.plan import InstallPlan

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    """Operator-facing output with three severities plus step headers."""

    def step(self, name: str, label: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogReporter:
    """Reporter that only logs.  Used when nobody is watching."""

    def step(self, name: str, label: str) -> None:
        logger.info("==> %s", label)

    def info(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)


class Fetcher(Protocol):
    def fetch(self, url: str, *, headers: dict[str, str] | None = None): ...

    def fetch_json(self, url: str): ...


@dataclass
class ProvisionContext:
    """Accumulated state of one provisioning run."""

    runner: CommandRunner
    fs: FilesystemAdapter
    fetcher: Fetcher
    config: ProvisionConfig = field(default_factory=ProvisionConfig)
    reporter: Reporter = field(default_factory=LogReporter)
    values: dict[str, Any] = field(default_factory=dict)

    _profile: HostProfile | None = field(default=None, init=False, repr=False)
    _plan: InstallPlan | None = field(default=None, init=False, repr=False)
    _credentials: Credentials | None = field(default=None, init=False, repr=False)
    _adapter: OSAdapter | None = field(default=None, init=False, repr=False)

    # ── Set-once facts ──────────────────────────────────────────

    @property
    def has_profile(self) -> bool:
        return self._profile is not None

    @property
    def has_plan(self) -> bool:
        return self._plan is not None

    @property
    def profile(self) -> HostProfile:
        if self._profile is None:
            raise RuntimeError("Host profile has not been resolved yet")
        return self._profile

    def set_profile(self, profile: HostProfile) -> None:
        if self._profile is not None:
            raise RuntimeError("Host profile is already fixed for this run")
        self._profile = profile
        self._adapter = select_adapter(profile, php_version=self.config.panel.php_version)
        logger.debug("Host profile fixed: %s → %r", profile.label, self._adapter)

    @property
    def plan(self) -> InstallPlan:
        if self._plan is None:
            raise RuntimeError("Install plan has not been resolved yet")
        return self._plan

    def set_plan(self, plan: InstallPlan) -> None:
        if self._plan is not None:
            raise RuntimeError("Install plan is already fixed for this run")
        self._plan = plan
        logger.debug("Install plan fixed: %s", plan.model_dump())

    @property
    def credentials(self) -> Credentials:
        if self._credentials is None:
            raise RuntimeError("Credentials have not been generated yet")
        return self._credentials

    def set_credentials(self, credentials: Credentials) -> None:
        if self._credentials is not None:
            raise RuntimeError("Credentials are already fixed for this run")
        self._credentials = credentials

    @property
    def adapter(self) -> OSAdapter:
        if self._adapter is None:
            raise RuntimeError("No OS adapter before the host profile is resolved")
        return self._adapter

    # ── Command helpers ─────────────────────────────────────────

    def secrets(self) -> list[str]:
        """Every secret value that must never appear in displayed output."""
        if self._credentials is None:
            return []
        return self._credentials.secret_values()

    def run(
        self,
        cmd: list[str],
        *,
        error: type[ProvisionError] = DependencyInstallError,
        input: str | None = None,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        secrets: list[str] | None = None,
    ) -> CommandResult:
        """Run ``cmd``; raise ``error`` with the tool's output if it fails."""
        result = self.runner.run(
            cmd,
            input=input,
            cwd=cwd,
            env=env,
            secrets=[*self.secrets(), *(secrets or [])],
        )
        if not result.ok:
            raise error(
                f"Command failed: {result.command}",
                exit_code=result.returncode,
                output=result.output,
            )
        return result

    def run_all(self, commands: list[list[str]], **kwargs: Any) -> None:
        for cmd in commands:
            self.run(cmd, **kwargs)

    def install(self, packages: list[str]) -> CommandResult:
        """Install ``packages`` with the host's package manager."""
        return self.run(
            self.adapter.install_command(packages),
            env=self.adapter.package_env,
            error=DependencyInstallError,
        )
