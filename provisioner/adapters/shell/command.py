"""
Shell command runner — the single place where ``subprocess.run`` is called.

Every package install, service change and external tool invocation the
provisioner performs goes through here, so logging, secret masking and
error capture are handled once.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from collections.abc import Iterable, Mapping

from provisioner.adapters.base import CommandResult, CommandRunner
from provisioner.core.observability.logging_config import mask_secrets

logger = logging.getLogger(__name__)

# Keep error output bounded; package managers can be very chatty.
_OUTPUT_TAIL = 4000


class ShellRunner(CommandRunner):
    """Execute commands on the local host and capture their output."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self, program: str) -> bool:
        return shutil.which(program) is not None

    def run(
        self,
        cmd: list[str],
        *,
        input: str | None = None,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: int | None = None,
        secrets: Iterable[str] = (),
    ) -> CommandResult:
        secrets = tuple(secrets)
        display = mask_secrets(shlex.join(cmd), secrets)

        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        logger.debug("Executing: %s (cwd=%s)", display, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                input=input,
                cwd=cwd,
                env=full_env,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                command=display,
                returncode=124,
                stderr=f"Command timed out after {timeout}s",
            )
        except OSError as e:
            # Missing binary, bad cwd, permission denied on exec
            return CommandResult(
                command=display,
                returncode=127,
                stderr=f"Command execution error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = mask_secrets(result.stdout[-_OUTPUT_TAIL:] if result.stdout else "", secrets)
        stderr = mask_secrets(result.stderr[-_OUTPUT_TAIL:] if result.stderr else "", secrets)

        if result.returncode != 0:
            logger.debug("Command failed (exit %d): %s", result.returncode, display)

        return CommandResult(
            command=display,
            returncode=result.returncode,
            stdout=stdout,
            stderr=stderr,
            duration_ms=elapsed_ms,
        )
