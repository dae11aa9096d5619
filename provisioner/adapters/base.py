"""
Adapter base — the contract between provisioning steps and host tools.

Steps never call ``subprocess`` or ``urllib`` themselves.  They talk to
a ``CommandRunner`` (and the filesystem / HTTP adapters), which makes
every side effect observable and swappable for a mock in tests.

Runners NEVER raise for a failed command: the failure is captured in
the ``CommandResult`` and the calling step decides which typed error it
means.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from pydantic import BaseModel


class CommandResult(BaseModel):
    """Outcome of one external command."""

    command: str                    # display form, secrets masked
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Most useful output for an error message: stderr, else stdout."""
        return (self.stderr or self.stdout).strip()


class CommandRunner(ABC):
    """Abstract base class for command execution.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, is_available, run
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g. 'shell', 'mock')."""

    @abstractmethod
    def is_available(self, program: str) -> bool:
        """Whether ``program`` can be found on this host.  Never raises."""

    @abstractmethod
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
        """Run ``cmd`` and return its result.

        Args:
            cmd: Argument vector.
            input: Text piped to stdin (used for SQL, never logged).
            cwd: Working directory.
            env: Extra environment variables merged over the current ones.
            timeout: Seconds before giving up.  None waits indefinitely.
            secrets: Values masked wherever the command is displayed.

        MUST never raise.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
