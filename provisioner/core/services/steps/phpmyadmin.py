"""
phpMyAdmin step — install or update the copy served from the panel.

Lives under ``<panel>/public/phpmyadmin``, so the panel must already
be installed.  An existing copy is replaced wholesale.
"""

from __future__ import annotations

from provisioner.core.context import ProvisionContext
from provisioner.core.errors import ExternalToolError, PreconditionError
from provisioner.core.models.step import StepResult
from provisioner.core.services.credentials import generate_password
from provisioner.core.services.generators.phpmyadmin import (
    PHPMYADMIN_DOWNLOAD,
    generate_phpmyadmin_config,
    phpmyadmin_path,
)
from provisioner.core.services.releases import download, extract_zip

STEP = "phpmyadmin"

# sodium secretbox key size used for cookie encryption
BLOWFISH_SECRET_LENGTH = 32


def install_phpmyadmin(ctx: ProvisionContext) -> StepResult:
    install_dir = ctx.config.panel.install_dir
    if not ctx.fs.exists(f"{install_dir}/artisan"):
        raise PreconditionError(
            f"No panel found in {install_dir}; install the panel before phpMyAdmin"
        )

    version = ctx.config.versions.phpmyadmin
    data = download(ctx.fetcher, PHPMYADMIN_DOWNLOAD.format(version=version))

    target = phpmyadmin_path(install_dir)
    ctx.fs.remove_tree(target)
    files = extract_zip(
        data,
        ctx.fs.resolve(target),
        strip_prefix=f"phpMyAdmin-{version}-all-languages/",
    )
    ctx.fs.mkdir(f"{target}/tmp")

    db = ctx.config.database
    ctx.fs.write_generated(
        generate_phpmyadmin_config(
            install_dir,
            generate_password(BLOWFISH_SECRET_LENGTH),
            db_host=db.host,
            db_port=db.port,
        )
    )

    user = ctx.adapter.run_as_user(ctx.plan.webserver)
    ctx.run(["chown", "-R", f"{user}:{user}", target], error=ExternalToolError)
    ctx.run_all(ctx.adapter.selinux_commands(install_dir), error=ExternalToolError)

    ctx.values["phpmyadmin_version"] = version
    return StepResult.success(
        STEP,
        f"phpMyAdmin {version} installed in {target}",
        metadata={"version": version, "files": files},
    )
