"""
StepResult model — the outcome of one provisioning step.

Modeled on the adapter Receipt: a step's outcome is data, built through
``success`` / ``skip`` / ``failure`` constructors.  Results are kept in
memory for sequencing and the audit ledger; they never carry secrets.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class StepResult(BaseModel):
    """Outcome of a single step."""

    step: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    exit_code: int | None = None        # underlying tool exit code, if any
    message: str = ""
    warning: str | None = None
    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, message: str = "", **kwargs: Any) -> StepResult:
        return cls(step=step, status="ok", message=message, **kwargs)

    @classmethod
    def skip(cls, step: str, reason: str = "", **kwargs: Any) -> StepResult:
        return cls(step=step, status="skipped", message=reason, **kwargs)

    @classmethod
    def failure(
        cls,
        step: str,
        message: str,
        exit_code: int | None = None,
        **kwargs: Any,
    ) -> StepResult:
        return cls(
            step=step,
            status="failed",
            message=message,
            exit_code=exit_code,
            **kwargs,
        )
