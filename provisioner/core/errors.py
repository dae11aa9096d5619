"""
Error taxonomy — one exception class per failure concern.

Adapters never raise for a failed tool: they hand back a
``CommandResult``.  Steps look at the result and raise the typed error
for their concern, carrying the step name, the tool's exit code and its
output verbatim.  The engine turns the first error into ``Failed`` and
stops; ``CertificateError`` is the one error that only warns.
"""

from __future__ import annotations

from enum import IntEnum


class ExitStatus(IntEnum):
    """Process exit statuses of the ``provisioner`` CLI."""

    OK = 0
    UNEXPECTED = 1
    PRECONDITION = 2
    CONFIG = 3
    DEPENDENCY_INSTALL = 10
    CREDENTIALS = 11
    ARTIFACT_FETCH = 12
    EXTERNAL_TOOL = 13
    CONFIG_RENDER = 14
    INTERRUPTED = 130


class ProvisionError(Exception):
    """Base class for every failure raised by a provisioning step."""

    status: ExitStatus = ExitStatus.UNEXPECTED
    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        step: str = "",
        exit_code: int | None = None,
        output: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.exit_code = exit_code
        self.output = output

    def __str__(self) -> str:
        parts = [self.message]
        if self.exit_code is not None:
            parts.append(f"(exit {self.exit_code})")
        return " ".join(parts)


class PreconditionError(ProvisionError):
    """Unsupported OS/version/architecture, missing privileges, bad menu input."""

    status = ExitStatus.PRECONDITION
    kind = "precondition"


class DependencyInstallError(ProvisionError):
    """The package manager (or a repository setup command) exited nonzero."""

    status = ExitStatus.DEPENDENCY_INSTALL
    kind = "dependency"


class CredentialError(ProvisionError):
    """Credentials could not be generated or applied to the database."""

    status = ExitStatus.CREDENTIALS
    kind = "credentials"


class ArtifactFetchError(ProvisionError):
    """A release download or archive unpack failed."""

    status = ExitStatus.ARTIFACT_FETCH
    kind = "fetch"


class ExternalToolError(ProvisionError):
    """An external CLI (artisan, composer, systemctl, ...) exited nonzero."""

    status = ExitStatus.EXTERNAL_TOOL
    kind = "external"


class ConfigRenderError(ProvisionError):
    """A template rendered incompletely or with invalid values."""

    status = ExitStatus.CONFIG_RENDER
    kind = "render"


class CertificateError(ProvisionError):
    """ACME issuance failed.  Reported as a warning, never fatal."""

    status = ExitStatus.OK
    kind = "certificate"
