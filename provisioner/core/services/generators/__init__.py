"""Generators — render every file the provisioner writes to the host."""

from provisioner.core.services.generators.database import (
    admin_password_reset_sql,
    panel_database_sql,
)
from provisioner.core.services.generators.env_file import generate_panel_env, panel_url
from provisioner.core.services.generators.phpmyadmin import generate_phpmyadmin_config
from provisioner.core.services.generators.units import (
    generate_certbot_cron,
    generate_fail2ban_jail,
    generate_mariadb_bind,
    generate_pteroq_service,
    generate_scheduler_cron,
    generate_wings_service,
)
from provisioner.core.services.generators.webserver import (
    generate_php_fpm_pool,
    generate_vhost,
)

__all__ = [
    "admin_password_reset_sql",
    "generate_certbot_cron",
    "generate_fail2ban_jail",
    "generate_mariadb_bind",
    "generate_panel_env",
    "generate_php_fpm_pool",
    "generate_phpmyadmin_config",
    "generate_pteroq_service",
    "generate_scheduler_cron",
    "generate_vhost",
    "generate_wings_service",
    "panel_url",
]
