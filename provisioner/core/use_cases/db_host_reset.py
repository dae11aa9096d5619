"""
Database host reset — new password for the remote ``admin@'%'`` user.

Operators use this when the database-host credentials printed at
install time were lost.  The user is created if it is missing, MariaDB
is (re)bound to all interfaces, and the new details are returned for
the operator to paste into the panel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import SecretStr

from provisioner.adapters.base import CommandRunner
from provisioner.adapters.shell.filesystem import FilesystemAdapter
from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.context import Fetcher, LogReporter, ProvisionContext, Reporter
from provisioner.core.engine.executor import (
    RunPhase,
    RunReport,
    Step,
    generate_run_id,
    run_steps,
    write_audit_entry,
)
from provisioner.core.errors import CredentialError, ExternalToolError, ProvisionError
from provisioner.core.models.step import StepResult
from provisioner.core.persistence.audit import AuditWriter
from provisioner.core.services.credentials import generate_password
from provisioner.core.services.detection import detect_host, public_ip
from provisioner.core.services.generators.database import admin_password_reset_sql
from provisioner.core.services.generators.units import generate_mariadb_bind

logger = logging.getLogger(__name__)

STEP = "db-host-reset"


@dataclass
class DbHostResetResult:
    """New database-host details."""

    report: RunReport = field(default_factory=RunReport)
    host: str | None = None
    port: int = 3306
    user: str = ""
    password: SecretStr = field(default_factory=lambda: SecretStr(""))
    audit_written: bool = False

    @property
    def ok(self) -> bool:
        return self.report.ok

    def to_dict(self) -> dict:
        result: dict = {
            "report": self.report.to_dict(),
            "audit_written": self.audit_written,
        }
        if self.ok:
            result["host"] = self.host
            result["port"] = self.port
            result["user"] = self.user
            result["password"] = self.password.get_secret_value()
        return result


def reset_database_host(
    *,
    runner: CommandRunner,
    fs: FilesystemAdapter,
    fetcher: Fetcher,
    config: ProvisionConfig | None = None,
    reporter: Reporter | None = None,
    audit_path: Path | str | None = None,
    check_root: bool = True,
    machine: str | None = None,
    euid: int | None = None,
) -> DbHostResetResult:
    """Reset the database-host user's password and report the new details."""
    config = config or ProvisionConfig()
    ctx = ProvisionContext(
        runner=runner,
        fs=fs,
        fetcher=fetcher,
        config=config,
        reporter=reporter or LogReporter(),
    )
    db = config.database
    result = DbHostResetResult(
        report=RunReport(run_id=generate_run_id()),
        port=db.port,
        user=db.admin_user,
        password=SecretStr(generate_password(config.credentials.password_length)),
    )
    report = result.report

    report.advance(RunPhase.PROFILING)
    try:
        ctx.set_profile(detect_host(fs, machine=machine, euid=euid, check_root=check_root))
    except ProvisionError as e:
        ctx.reporter.error(str(e))
        report.fail("profile", e)
        result.audit_written = write_audit_entry(report, ctx, AuditWriter(audit_path or config.audit.path), STEP)
        return result

    def _reset(ctx: ProvisionContext) -> StepResult:
        password = result.password.get_secret_value()
        ctx.run(
            ["mysql", "-u", "root"],
            input=admin_password_reset_sql(db.admin_user, password),
            error=CredentialError,
            secrets=[password],
        )
        ctx.fs.write_generated(generate_mariadb_bind(ctx.adapter.mariadb_conf_dir))
        ctx.run(["systemctl", "restart", "mariadb"], error=ExternalToolError)
        result.host = public_ip(ctx.fetcher)
        return StepResult.success(STEP, f"Password reset for {db.admin_user}@'%'")

    run_steps([Step(STEP, "Resetting the database host user", _reset)], ctx, report)
    if report.phase != RunPhase.FAILED:
        report.advance(RunPhase.SUMMARIZED)
        report.advance(RunPhase.DONE)

    result.audit_written = write_audit_entry(report, ctx, AuditWriter(audit_path or config.audit.path), STEP)
    return result
