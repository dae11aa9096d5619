"""
Credential generation — passwords, the application key and salts.

Everything is drawn from ``secrets``.  Passwords use a strictly
alphanumeric alphabet: they end up inside SQL string literals, a
dotenv file and a shell-free argv, and must survive all three
unquoted.

Credentials are built exactly once per run.  On a re-run the panel's
existing ``APP_KEY`` and ``HASHIDS_SALT`` are kept, because replacing
them would make every encrypted value and every public ID in the
panel database unreadable.
"""

from __future__ import annotations

import base64
import logging
import secrets
import string

from pydantic import SecretStr

from provisioner.core.config.loader import ProvisionConfig
from provisioner.core.errors import CredentialError
from provisioner.core.models.credentials import Credentials

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits

# Laravel's AES-256-CBC key size
APP_KEY_BYTES = 32
HASHIDS_SALT_LENGTH = 20


def generate_password(length: int = 32) -> str:
    """Random alphanumeric string of exactly ``length`` characters."""
    if length < 1:
        raise CredentialError(f"Password length must be positive, got {length}")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def generate_app_key() -> str:
    """Laravel application key: ``base64:`` + 32 random bytes."""
    return "base64:" + base64.b64encode(secrets.token_bytes(APP_KEY_BYTES)).decode("ascii")


def parse_env(text: str) -> dict[str, str]:
    """Parse a dotenv file into a dict.  Comments and blank lines are skipped."""
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value
    return values


def build_credentials(
    config: ProvisionConfig,
    *,
    admin_email: str,
    admin_username: str = "admin",
    admin_first_name: str = "Admin",
    admin_last_name: str = "User",
    admin_password: str | None = None,
    existing_env: str | None = None,
) -> Credentials:
    """Generate every secret the run needs, reusing what must survive.

    Args:
        config: Provides database names and the password length.
        admin_email: Panel administrator email.
        admin_username: Panel administrator username.
        admin_first_name: Administrator first name.
        admin_last_name: Administrator last name.
        admin_password: Operator-chosen password, or None to generate one.
        existing_env: Content of an existing panel ``.env``, if any.

    Returns:
        Frozen Credentials.

    Raises:
        CredentialError: If the operator's input cannot be used.
    """
    if not admin_email:
        raise CredentialError("An administrator email is required")

    length = config.credentials.password_length
    if admin_password is not None and len(admin_password) < 8:
        raise CredentialError("The administrator password must be at least 8 characters")

    previous = parse_env(existing_env) if existing_env else {}
    app_key = previous.get("APP_KEY") or generate_app_key()
    salt = previous.get("HASHIDS_SALT") or generate_password(HASHIDS_SALT_LENGTH)
    if previous.get("APP_KEY"):
        logger.info("Reusing APP_KEY and HASHIDS_SALT from the existing panel environment")

    return Credentials(
        database_name=config.database.name,
        database_user=config.database.user,
        database_password=SecretStr(generate_password(length)),
        database_admin_user=config.database.admin_user,
        database_admin_password=SecretStr(generate_password(length)),
        database_root_password=SecretStr(generate_password(length)),
        admin_email=admin_email,
        admin_username=admin_username,
        admin_first_name=admin_first_name,
        admin_last_name=admin_last_name,
        admin_password=SecretStr(admin_password or generate_password(length)),
        app_key=SecretStr(app_key),
        hashids_salt=SecretStr(salt),
    )
