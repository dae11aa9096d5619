"""
Credentials model — every secret the run writes somewhere.

All secret values are ``SecretStr``: they render as ``**********`` in
reprs, logs and ``model_dump()``.  The only places that call
``get_secret_value()`` are the sinks: the SQL sent to MariaDB, the
rendered panel ``.env``, the ``p:user:make`` call and the operator
summary.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, SecretStr


class Credentials(BaseModel):
    """Database, admin and application secrets for one run."""

    model_config = ConfigDict(frozen=True)

    # Panel database
    database_name: str = "panel"
    database_user: str = "pterodactyl"
    database_password: SecretStr = SecretStr("")

    # Remote database host (MariaDB admin with grant option)
    database_admin_user: str = "admin"
    database_admin_password: SecretStr = SecretStr("")
    database_root_password: SecretStr = SecretStr("")

    # Panel administrator
    admin_email: str = ""
    admin_username: str = "admin"
    admin_first_name: str = "Admin"
    admin_last_name: str = "User"
    admin_password: SecretStr = SecretStr("")

    # Application secrets
    app_key: SecretStr = SecretStr("")
    hashids_salt: SecretStr = SecretStr("")

    def secret_values(self) -> list[str]:
        """All non-empty secret strings, for masking in log output."""
        values = [
            self.database_password,
            self.database_admin_password,
            self.database_root_password,
            self.admin_password,
            self.app_key,
            self.hashids_salt,
        ]
        return [v.get_secret_value() for v in values if v.get_secret_value()]
