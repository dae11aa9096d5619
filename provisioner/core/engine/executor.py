"""
Engine executor — the central provisioning loop.

The engine takes a context, fixes the host profile and the install
plan, then runs the ordered steps for that plan one at a time, stopping
at the first failure.  Nothing is rolled back: whatever the completed
steps installed stays installed.

Flow:
    NotStarted → Profiling → Planning → Provisioning → Summarized → Done
                      ↘            ↘            ↘
                                 Failed(step, cause)
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from provisioner.core.context import ProvisionContext
from provisioner.core.errors import CertificateError, ExitStatus, ProvisionError
from provisioner.core.models.host import HostProfile
from provisioner.core.models.plan import InstallPlan
from provisioner.core.models.step import StepResult
from provisioner.core.persistence.audit import AuditEntry, AuditWriter, StepOutcome

logger = logging.getLogger(__name__)


class RunPhase(str, Enum):
    NOT_STARTED = "not_started"
    PROFILING = "profiling"
    PLANNING = "planning"
    PROVISIONING = "provisioning"
    SUMMARIZED = "summarized"
    DONE = "done"
    FAILED = "failed"


_TERMINAL = (RunPhase.DONE, RunPhase.FAILED)


@dataclass
class Step:
    """One named provisioning step.

    ``action`` mutates the host through the context.  It returns a
    ``StepResult`` (or None for a plain success) and raises a
    ``ProvisionError`` subclass to stop the run.
    """

    name: str
    label: str
    action: Callable[[ProvisionContext], StepResult | None]


@dataclass
class RunReport:
    """Everything that happened during one run."""

    run_id: str = ""
    phase: RunPhase = RunPhase.NOT_STARTED
    results: list[StepResult] = field(default_factory=list)
    failed_step: str | None = None
    error: ProvisionError | None = None
    summary: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.phase == RunPhase.DONE

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == "skipped")

    @property
    def warnings(self) -> list[str]:
        return [r.warning for r in self.results if r.warning]

    @property
    def steps_run(self) -> list[str]:
        return [r.step for r in self.results]

    @property
    def exit_status(self) -> ExitStatus:
        if self.error is None:
            return ExitStatus.OK
        return self.error.status

    def advance(self, phase: RunPhase) -> None:
        if self.phase in _TERMINAL:
            raise RuntimeError(f"Run already finished ({self.phase.value})")
        logger.debug("Run %s: %s → %s", self.run_id, self.phase.value, phase.value)
        self.phase = phase

    def fail(self, step: str, error: ProvisionError) -> None:
        error.step = error.step or step
        self.failed_step = step
        self.error = error
        self.advance(RunPhase.FAILED)

    def to_dict(self) -> dict:
        result: dict = {
            "run_id": self.run_id,
            "phase": self.phase.value,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "steps": [r.model_dump(mode="json") for r in self.results],
        }
        if self.error is not None:
            result["failed_step"] = self.failed_step
            result["error"] = str(self.error)
            result["error_kind"] = self.error.kind
        return result


def run_steps(
    steps: list[Step],
    ctx: ProvisionContext,
    report: RunReport | None = None,
) -> RunReport:
    """Execute ``steps`` in order, stopping at the first failure.

    A ``CertificateError`` is the one failure that does not stop the
    run: the step is recorded as skipped with a warning.

    Args:
        steps: Ordered steps.
        ctx: Context with profile and plan already fixed.
        report: Report to append to (a new one is created if None).

    Returns:
        The report, in phase PROVISIONING on success or FAILED.
    """
    if report is None:
        report = RunReport(run_id=generate_run_id())
    if report.phase != RunPhase.PROVISIONING:
        report.advance(RunPhase.PROVISIONING)

    for step in steps:
        ctx.reporter.step(step.name, step.label)
        start = time.monotonic()

        try:
            result = step.action(ctx) or StepResult.success(step.name)
            if result.failed:
                raise ProvisionError(result.message, step=step.name, exit_code=result.exit_code)
        except CertificateError as e:
            ctx.reporter.warning(str(e))
            result = StepResult.skip(step.name, e.message, warning=e.message, exit_code=e.exit_code)
        except ProvisionError as e:
            _record_failure(report, ctx, step, e, start)
            return report
        except Exception as e:
            logger.debug("Unexpected failure in step %s", step.name, exc_info=True)
            wrapped = ProvisionError(f"Unexpected error: {e}", step=step.name)
            _record_failure(report, ctx, step, wrapped, start)
            return report

        result.duration_ms = _elapsed_ms(start)
        report.results.append(result)

        marker = "✓" if result.ok else "⊘"
        logger.info("%s %s → %s", marker, step.name, result.status)

    return report


def _record_failure(
    report: RunReport,
    ctx: ProvisionContext,
    step: Step,
    error: ProvisionError,
    start: float,
) -> None:
    report.results.append(
        StepResult.failure(
            step.name,
            error.message,
            exit_code=error.exit_code,
            duration_ms=_elapsed_ms(start),
        )
    )
    report.fail(step.name, error)

    ctx.reporter.error(f"Step '{step.name}' failed: {error}")
    if error.output:
        ctx.reporter.error(error.output)
    logger.info("✗ %s → failed (%s)", step.name, error.kind)


def execute_run(
    ctx: ProvisionContext,
    *,
    resolve_profile: Callable[[], HostProfile],
    resolve_plan: Callable[[HostProfile], InstallPlan],
    build_steps: Callable[[InstallPlan], list[Step]],
    summarize: Callable[[ProvisionContext, RunReport], str],
    run_id: str | None = None,
) -> RunReport:
    """Drive a whole run through every phase.

    Profile and plan are resolved and fixed on the context before the
    first step is built, so no step can see them change.

    Returns:
        RunReport in phase DONE or FAILED.
    """
    report = RunReport(run_id=run_id or generate_run_id())
    start = time.monotonic()

    # ── Profiling ───────────────────────────────────────────────
    report.advance(RunPhase.PROFILING)
    try:
        ctx.set_profile(resolve_profile())
    except ProvisionError as e:
        ctx.reporter.error(str(e))
        report.fail("profile", e)
        report.duration_ms = _elapsed_ms(start)
        return report

    # ── Planning ────────────────────────────────────────────────
    report.advance(RunPhase.PLANNING)
    try:
        ctx.set_plan(resolve_plan(ctx.profile))
    except ProvisionError as e:
        ctx.reporter.error(str(e))
        report.fail("plan", e)
        report.duration_ms = _elapsed_ms(start)
        return report

    # ── Provisioning ────────────────────────────────────────────
    run_steps(build_steps(ctx.plan), ctx, report)
    if report.phase == RunPhase.FAILED:
        report.duration_ms = _elapsed_ms(start)
        return report

    # ── Summary ─────────────────────────────────────────────────
    report.summary = summarize(ctx, report)
    report.advance(RunPhase.SUMMARIZED)
    report.advance(RunPhase.DONE)
    report.duration_ms = _elapsed_ms(start)
    return report


def write_audit_entry(
    report: RunReport,
    ctx: ProvisionContext,
    writer: AuditWriter,
    operation: str = "install",
) -> bool:
    """Record a finished run in the audit ledger."""
    plan = ctx.plan if ctx.has_plan else None
    profile = ctx.profile if ctx.has_profile else None
    entry = AuditEntry(
        run_id=report.run_id,
        operation=operation,
        target=plan.target if plan else "",
        webserver=plan.webserver if plan and plan.needs_webserver else "",
        domain=plan.domain if plan else "",
        host=profile.label if profile else "",
        virtualization=ctx.values.get("virtualization", ""),
        phase=report.phase.value,
        failed_step=report.failed_step,
        error=str(report.error) if report.error else None,
        steps=[
            StepOutcome(
                step=r.step,
                status=r.status,
                exit_code=r.exit_code,
                duration_ms=r.duration_ms,
                warning=r.warning,
            )
            for r in report.results
        ],
        duration_ms=report.duration_ms,
    )
    return writer.write(entry)


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
