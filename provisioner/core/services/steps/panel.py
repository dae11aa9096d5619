"""
Panel steps — fetch the release, render ``.env``, run the panel's own setup.

The panel's ``artisan`` commands are opaque: their exit code is the
only thing looked at, and their output is passed to the operator
verbatim on failure.
"""

from __future__ import annotations

import logging

from provisioner.core.context import ProvisionContext
from provisioner.core.errors import ArtifactFetchError, ExternalToolError
from provisioner.core.models.step import StepResult
from provisioner.core.services.generators.database import sql_literal
from provisioner.core.services.generators.env_file import generate_panel_env
from provisioner.core.services.releases import (
    PANEL_ARCHIVE,
    PANEL_REPO,
    download,
    extract_tarball,
    resolve_version,
)

logger = logging.getLogger(__name__)

COMPOSER_ENV = {"COMPOSER_ALLOW_SUPERUSER": "1"}


# ── Fetch ───────────────────────────────────────────────────────


def fetch_panel(ctx: ProvisionContext) -> StepResult:
    install_dir = ctx.config.panel.install_dir
    tag = resolve_version(ctx.fetcher, PANEL_REPO, ctx.config.versions.panel)
    data = download(ctx.fetcher, PANEL_ARCHIVE.format(tag=tag))

    members = extract_tarball(data, ctx.fs.resolve(install_dir))
    if not ctx.fs.exists(f"{install_dir}/artisan"):
        raise ArtifactFetchError(f"Release {tag} did not unpack a panel into {install_dir}")

    ctx.run(
        ["chmod", "-R", "755", f"{install_dir}/storage", f"{install_dir}/bootstrap/cache"],
        error=ExternalToolError,
    )
    ctx.values["panel_version"] = tag
    return StepResult.success(
        "panel-fetch",
        f"Panel {tag} unpacked into {install_dir}",
        metadata={"version": tag, "files": members},
    )


# ── Environment ─────────────────────────────────────────────────


def render_environment(ctx: ProvisionContext) -> StepResult:
    env_file = generate_panel_env(ctx.plan, ctx.credentials, ctx.config, ctx.profile.timezone)
    ctx.fs.write_generated(env_file)
    return StepResult.success("panel-env", f"Wrote {env_file.path}", metadata={"path": env_file.path})


# ── Setup ───────────────────────────────────────────────────────


def setup_panel(ctx: ProvisionContext) -> StepResult:
    install_dir = ctx.config.panel.install_dir
    creds = ctx.credentials
    user = ctx.adapter.run_as_user(ctx.plan.webserver)

    ctx.run(
        ["composer", "install", "--no-dev", "--optimize-autoloader", "--no-interaction"],
        cwd=install_dir,
        env=COMPOSER_ENV,
        error=ExternalToolError,
    )
    ctx.run(["php", "artisan", "migrate", "--seed", "--force"], cwd=install_dir, error=ExternalToolError)

    created = not admin_exists(ctx)
    if created:
        ctx.run(
            [
                "php", "artisan", "p:user:make",
                f"--email={creds.admin_email}",
                f"--username={creds.admin_username}",
                f"--name-first={creds.admin_first_name}",
                f"--name-last={creds.admin_last_name}",
                f"--password={creds.admin_password.get_secret_value()}",
                "--admin=1",
                "--no-interaction",
            ],
            cwd=install_dir,
            error=ExternalToolError,
        )
    else:
        ctx.reporter.warning(
            f"A panel user with email {creds.admin_email} already exists; its password was left unchanged"
        )
    ctx.values["admin_created"] = created

    ctx.run(["chown", "-R", f"{user}:{user}", install_dir], error=ExternalToolError)
    ctx.run_all(ctx.adapter.selinux_commands(install_dir), error=ExternalToolError)

    return StepResult.success(
        "panel-setup",
        "Panel migrated and administrator ready",
        metadata={"admin_created": created},
    )


def admin_exists(ctx: ProvisionContext) -> bool:
    """Whether the panel database already has a user with the admin email."""
    creds = ctx.credentials
    query = (
        f"SELECT COUNT(*) FROM `{creds.database_name}`.users "
        f"WHERE email = {sql_literal(creds.admin_email)};"
    )
    result = ctx.runner.run(["mysql", "-u", "root", "-N", "-B"], input=query, secrets=ctx.secrets())
    if not result.ok:
        logger.debug("Admin lookup failed, assuming no admin: %s", result.output)
        return False
    return result.stdout.strip() not in ("", "0")
