"""Baseline step — refresh package metadata, upgrade, install base tools."""

from __future__ import annotations

from provisioner.core.context import ProvisionContext
from provisioner.core.models.step import StepResult

STEP = "baseline"


def update_system(ctx: ProvisionContext) -> StepResult:
    adapter = ctx.adapter
    ctx.run_all(adapter.baseline_commands(), env=adapter.package_env)
    ctx.install(adapter.base_packages)
    return StepResult.success(STEP, f"{adapter.package_manager} packages up to date")
