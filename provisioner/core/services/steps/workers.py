"""Workers step — panel queue worker unit and scheduler cron entry."""

from __future__ import annotations

from provisioner.core.context import ProvisionContext
from provisioner.core.errors import ExternalToolError
from provisioner.core.models.step import StepResult
from provisioner.core.services.generators.units import (
    generate_pteroq_service,
    generate_scheduler_cron,
)

STEP = "workers"


def install_workers(ctx: ProvisionContext) -> StepResult:
    adapter = ctx.adapter
    install_dir = ctx.config.panel.install_dir
    user = adapter.run_as_user(ctx.plan.webserver)

    unit = generate_pteroq_service(install_dir, user, adapter.redis_service)
    ctx.fs.write_generated(unit)
    ctx.fs.write_generated(generate_scheduler_cron(install_dir))

    ctx.run_all(
        [
            ["systemctl", "daemon-reload"],
            ["systemctl", "enable", "--now", "pteroq.service"],
            ["systemctl", "restart", adapter.cron_service],
        ],
        error=ExternalToolError,
    )
    return StepResult.success(STEP, f"pteroq.service running as {user}", metadata={"unit": unit.path})
