"""
Install use case — the full provisioning run behind ``provisioner install``.

Wires the adapters into a context, fixes the host profile, asks the
caller for the plan (and, for panel targets, the administrator's
identity), generates credentials once, runs the steps and appends the
run to the audit ledger.

Prompting stays in the UI layer: the use case receives callbacks that
are only invoked after the host has passed its precondition checks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from provisioner.adapters.base import CommandRunner
from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.context import Fetcher, LogReporter, ProvisionContext, Reporter
from provisioner.core.engine.executor import RunReport, execute_run, write_audit_entry
from provisioner.core.models.host import HostProfile
from provisioner.core.models.plan import InstallPlan
from provisioner.core.persistence.audit import AuditWriter
from provisioner.core.services.credentials import build_credentials
from provisioner.core.services.detection import detect_host, run_preflight
from provisioner.core.services.steps import build_steps
from provisioner.core.services.summary import credentials_payload, render_summary

logger = logging.getLogger(__name__)


@dataclass
class AdminIdentity:
    """Panel administrator as entered by the operator."""

    username: str = "admin"
    first_name: str = "Admin"
    last_name: str = "User"
    password: str | None = None     # None = generate


@dataclass
class InstallResult:
    """Result of an install run."""

    report: RunReport | None = None
    audit_written: bool = False
    credentials: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.report is not None and self.report.ok

    def to_dict(self) -> dict:
        result: dict = {"audit_written": self.audit_written}
        if self.report:
            result["report"] = self.report.to_dict()
            if self.report.ok:
                result["summary"] = self.report.summary
                result["credentials"] = self.credentials
        return result


def run_install(
    resolve_plan: Callable[[HostProfile], InstallPlan],
    *,
    runner: CommandRunner,
    fs: FilesystemAdapter,
    fetcher: Fetcher,
    config: ProvisionConfig | None = None,
    reporter: Reporter | None = None,
    resolve_admin: Callable[[InstallPlan], AdminIdentity] | None = None,
    audit_path: Path | str | None = None,
    check_root: bool = True,
    machine: str | None = None,
    kernel: str | None = None,
    euid: int | None = None,
    run_id: str | None = None,
) -> InstallResult:
    """Provision this host according to the operator's plan.

    Args:
        resolve_plan: Produces the plan once the host profile is known.
        runner: Command runner for every external tool.
        fs: Filesystem adapter (rooted at ``/`` in production).
        fetcher: HTTP fetcher for releases and the public IP.
        config: Provisioner configuration (defaults if None).
        reporter: Operator output (log-only if None).
        resolve_admin: Produces the administrator identity for panel
            targets.  Defaults to ``AdminIdentity()``.
        audit_path: Override for the audit ledger location.
        check_root: Enforce the privilege gate.
        machine: Override for ``uname -m``.
        kernel: Override for ``uname -r``.
        euid: Override for the effective user id.
        run_id: Fixed run id (generated if None).

    Returns:
        InstallResult whose report is DONE or FAILED.
    """
    config = config or ProvisionConfig()
    ctx = ProvisionContext(
        runner=runner,
        fs=fs,
        fetcher=fetcher,
        config=config,
        reporter=reporter or LogReporter(),
    )

    def _profile() -> HostProfile:
        profile = detect_host(fs, machine=machine, euid=euid, check_root=check_root)
        preflight = run_preflight(runner, kernel)
        ctx.values["virtualization"] = preflight.virtualization
        for warning in preflight.warnings:
            ctx.reporter.warning(warning)
        return profile

    def _plan(profile: HostProfile) -> InstallPlan:
        plan = resolve_plan(profile)
        if plan.installs_panel:
            admin = resolve_admin(plan) if resolve_admin else AdminIdentity()
            ctx.set_credentials(
                build_credentials(
                    config,
                    admin_email=plan.email,
                    admin_username=admin.username,
                    admin_first_name=admin.first_name,
                    admin_last_name=admin.last_name,
                    admin_password=admin.password,
                    existing_env=fs.read_text(f"{config.panel.install_dir}/.env"),
                )
            )
        logger.info("Plan: %s (%s)", plan.target, plan.webserver if plan.needs_webserver else "no web server")
        return plan

    report = execute_run(
        ctx,
        resolve_profile=_profile,
        resolve_plan=_plan,
        build_steps=build_steps,
        summarize=render_summary,
        run_id=run_id,
    )

    writer = AuditWriter(audit_path or config.audit.path)
    written = write_audit_entry(report, ctx, writer)
    credentials = credentials_payload(ctx) if report.ok else {}
    return InstallResult(report=report, audit_written=written, credentials=credentials)
