"""
Agent step — Wings binary, its systemd unit, and the optional auto-deploy.

The operator can paste the panel's "Auto Deploy" command
(``cd /etc/pterodactyl && sudo wings configure --panel-url ... --token
... --node N``).  It is parsed, never handed to a shell.  Wings is only
started once a node configuration exists.
"""

from __future__ import annotations

import shlex

from provisioner.core.context import ProvisionContext
from provisioner.core.errors import ExternalToolError, PreconditionError
from provisioner.core.models.step import StepResult
from provisioner.core.services.generators.units import (
    WINGS_BINARY,
    WINGS_CONFIG,
    WINGS_CONFIG_DIR,
    generate_wings_service,
)
from provisioner.core.services.releases import (
    WINGS_BINARY_URL,
    WINGS_REPO,
    download,
    resolve_version,
)

STEP = "agent"


def parse_deploy_command(text: str) -> list[str]:
    """Turn a pasted auto-deploy command into an argv for ``wings configure``.

    Raises:
        PreconditionError: If the text is not a ``wings configure`` call.
    """
    try:
        argv = shlex.split(text)
    except ValueError as e:
        raise PreconditionError(f"Cannot parse the auto-deploy command: {e}") from e

    if "&&" in argv:
        argv = argv[len(argv) - argv[::-1].index("&&"):]
    if argv and argv[0] == "sudo":
        argv = argv[1:]

    if len(argv) < 2 or argv[0] not in ("wings", WINGS_BINARY) or argv[1] != "configure":
        raise PreconditionError("The auto-deploy command must be a 'wings configure ...' command")
    return [WINGS_BINARY, *argv[1:]]


def deploy_token(argv: list[str]) -> str | None:
    """Value of ``--token`` in a parsed deploy command."""
    for i, arg in enumerate(argv):
        if arg.startswith("--token="):
            return arg.split("=", 1)[1]
        if arg == "--token" and i + 1 < len(argv):
            return argv[i + 1]
    return None


def install_agent(ctx: ProvisionContext) -> StepResult:
    plan = ctx.plan
    tag = resolve_version(ctx.fetcher, WINGS_REPO, ctx.config.versions.wings)
    binary = download(ctx.fetcher, WINGS_BINARY_URL.format(tag=tag, arch=ctx.profile.arch))

    ctx.fs.mkdir(WINGS_CONFIG_DIR)
    ctx.fs.write_bytes(WINGS_BINARY, binary, mode=0o755)
    ctx.fs.write_generated(generate_wings_service())
    ctx.run(["systemctl", "daemon-reload"], error=ExternalToolError)
    ctx.run(["systemctl", "enable", "wings"], error=ExternalToolError)
    ctx.values["wings_version"] = tag

    if plan.agent_deploy_command:
        argv = parse_deploy_command(plan.agent_deploy_command)
        token = deploy_token(argv)
        ctx.run(
            argv,
            cwd=WINGS_CONFIG_DIR,
            error=ExternalToolError,
            secrets=[token] if token else None,
        )

    configured = ctx.fs.exists(WINGS_CONFIG)
    ctx.values["wings_configured"] = configured
    if configured:
        ctx.run(["systemctl", "restart", "wings"], error=ExternalToolError)
        message = f"Wings {tag} installed and running"
    else:
        message = f"Wings {tag} installed; start it after configuring the node"

    return StepResult.success(STEP, message, metadata={"version": tag, "configured": configured})
