"""Engine — the fail-fast step loop and run phases."""

from provisioner.core.engine.executor import (
    RunPhase,
    RunReport,
    Step,
    execute_run,
    generate_run_id,
    run_steps,
    write_audit_entry,
)

__all__ = [
    "RunPhase",
    "RunReport",
    "Step",
    "execute_run",
    "generate_run_id",
    "run_steps",
    "write_audit_entry",
]
