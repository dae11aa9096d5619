"""
Panel environment generator — the ``.env`` the panel boots from.

Replaces the panel's interactive ``p:environment:setup`` /
``p:environment:database`` wizards: every value they would ask for is
known up front, so the whole file is rendered in one pass and the
database password in it is the exact value granted in MariaDB.
"""

from __future__ import annotations

from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.models.credentials import Credentials
from provisioner.core.models.plan import InstallPlan
from provisioner.core.models.template import GeneratedFile
from provisioner.core.services.rendering import env_value, render

_PANEL_ENV = """\
APP_ENV=production
APP_DEBUG=false
APP_KEY={{app_key}}
APP_THEME=pterodactyl
APP_TIMEZONE={{timezone}}
APP_URL={{app_url}}
APP_LOCALE=en
APP_ENVIRONMENT_ONLY=false
APP_SERVICE_AUTHOR={{admin_email}}

HASHIDS_SALT={{hashids_salt}}
HASHIDS_LENGTH=8

LOG_CHANNEL=daily
LOG_DEPRECATIONS_CHANNEL=null
LOG_LEVEL=info

DB_CONNECTION=mysql
DB_HOST={{db_host}}
DB_PORT={{db_port}}
DB_DATABASE={{db_name}}
DB_USERNAME={{db_user}}
DB_PASSWORD={{db_password}}

REDIS_HOST={{redis_host}}
REDIS_PASSWORD=null
REDIS_PORT={{redis_port}}

CACHE_DRIVER={{cache}}
QUEUE_CONNECTION={{queue}}
SESSION_DRIVER={{session}}
SESSION_SECURE_COOKIE={{secure_cookie}}

MAIL_MAILER={{mail_driver}}
MAIL_HOST=smtp.example.com
MAIL_PORT=25
MAIL_USERNAME=
MAIL_PASSWORD=
MAIL_ENCRYPTION=tls
MAIL_FROM_ADDRESS={{mail_from}}
MAIL_FROM_NAME="Pterodactyl Panel"

TRUSTED_PROXIES=*
PTERODACTYL_TELEMETRY_ENABLED=false
"""


def panel_url(plan: InstallPlan) -> str:
    scheme = "https" if plan.tls else "http"
    return f"{scheme}://{plan.domain}"


def generate_panel_env(
    plan: InstallPlan,
    credentials: Credentials,
    config: ProvisionConfig,
    timezone: str,
) -> GeneratedFile:
    """Render ``<install_dir>/.env`` for the panel."""
    panel = config.panel
    path = f"{panel.install_dir}/.env"
    values = {
        "app_key": credentials.app_key.get_secret_value(),
        "timezone": panel.timezone or timezone,
        "app_url": panel_url(plan),
        "admin_email": env_value(credentials.admin_email),
        "hashids_salt": credentials.hashids_salt.get_secret_value(),
        "db_host": config.database.host,
        "db_port": config.database.port,
        "db_name": credentials.database_name,
        "db_user": credentials.database_user,
        "db_password": env_value(credentials.database_password.get_secret_value()),
        "redis_host": panel.redis_host,
        "redis_port": panel.redis_port,
        "cache": panel.cache,
        "queue": panel.queue,
        "session": panel.session,
        "secure_cookie": "true" if plan.tls else "false",
        "mail_driver": panel.mail_driver,
        "mail_from": env_value(panel.mail_from or credentials.admin_email),
    }
    return GeneratedFile(
        path=path,
        content=render(_PANEL_ENV, values, name=path),
        mode=0o640,
        reason="Panel environment",
    )
