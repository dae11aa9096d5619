"""
Web server step — PHP-FPM pool, panel vhost, enable and (re)start.

With TLS requested the vhost already points at the Let's Encrypt
files, which do not exist yet; the web server is then left for the
certificate step to restart once they do.
"""

from __future__ import annotations

from provisioner.core.context import ProvisionContext
from provisioner.core.errors import ExternalToolError
from provisioner.core.models.step import StepResult
from provisioner.core.services.generators.webserver import generate_php_fpm_pool, generate_vhost

STEP = "webserver"


def configure_webserver(ctx: ProvisionContext) -> StepResult:
    plan = ctx.plan
    adapter = ctx.adapter
    install_dir = ctx.config.panel.install_dir

    pool = generate_php_fpm_pool(plan, adapter)
    if pool is not None:
        user = adapter.run_as_user(plan.webserver)
        ctx.fs.write_generated(pool)
        ctx.run(["chown", "-R", f"{user}:{user}", "/var/lib/php/session"], error=ExternalToolError)
        ctx.run(["systemctl", "restart", adapter.php_fpm_service], error=ExternalToolError)

    for path in adapter.default_site_paths(plan.webserver):
        ctx.fs.remove(path)

    vhost = generate_vhost(plan, adapter, install_dir)
    ctx.fs.write_generated(vhost)
    link = adapter.vhost_enabled_link(plan.webserver)
    if link:
        ctx.fs.symlink(vhost.path, link)
    ctx.run_all(adapter.webserver_module_commands(plan.webserver), error=ExternalToolError)

    service = adapter.webserver_service(plan.webserver)
    ctx.run(["systemctl", "enable", service], error=ExternalToolError)
    if plan.tls:
        message = f"{vhost.path} written; {service} restarts once the certificate is issued"
    else:
        ctx.run(["systemctl", "restart", service], error=ExternalToolError)
        message = f"{vhost.path} written and {service} restarted"

    return StepResult.success(STEP, message, metadata={"vhost": vhost.path, "service": service})
