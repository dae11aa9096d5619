"""
Database step — schema, grant-scoped user, remote host user, hardening.

The SQL is piped on stdin so no password appears in the process list.
"""

from __future__ import annotations

from provisioner.core.context import ProvisionContext
from provisioner.core.errors import CredentialError, ExternalToolError
from provisioner.core.models.step import StepResult
from provisioner.core.services.detection.network import public_ip
from provisioner.core.services.generators.database import panel_database_sql
from provisioner.core.services.generators.units import generate_mariadb_bind

STEP = "database"


def bootstrap_database(ctx: ProvisionContext) -> StepResult:
    creds = ctx.credentials
    db_config = ctx.config.database

    sql = panel_database_sql(
        creds,
        grant_host=db_config.host,
        remote_access=db_config.remote_access,
    )
    ctx.run(["mysql", "-u", "root"], input=sql, error=CredentialError)

    if db_config.remote_access:
        ctx.fs.write_generated(generate_mariadb_bind(ctx.adapter.mariadb_conf_dir))
        ctx.run(["systemctl", "restart", "mariadb"], error=ExternalToolError)
        ctx.values["public_ip"] = public_ip(ctx.fetcher)

    return StepResult.success(
        STEP,
        f"Database '{creds.database_name}' ready for {creds.database_user}@{db_config.host}",
        metadata={
            "database": creds.database_name,
            "user": f"{creds.database_user}@{db_config.host}",
            "remote_access": db_config.remote_access,
        },
    )
