"""
Database bootstrap SQL — schema, grants and the secure-installation steps.

Statements are idempotent: users are created if absent and their
password is then set explicitly, so a re-run always leaves MariaDB
holding the password that was just written to the panel ``.env``.

The root account keeps unix-socket authentication (``mysql -u root``
as the OS root user keeps working) and additionally gets a password
for network clients such as phpMyAdmin.
"""

from __future__ import annotations

from provisioner.core.models.credentials import Credentials


def sql_literal(value: str) -> str:
    """Quote ``value`` as a MariaDB string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _account(user: str, host: str) -> str:
    return f"{sql_literal(user)}@{sql_literal(host)}"


def _ensure_user(user: str, host: str, password: str) -> list[str]:
    account = _account(user, host)
    return [
        f"CREATE USER IF NOT EXISTS {account} IDENTIFIED BY {sql_literal(password)};",
        f"ALTER USER {account} IDENTIFIED BY {sql_literal(password)};",
    ]


def panel_database_sql(
    credentials: Credentials,
    *,
    grant_host: str = "127.0.0.1",
    remote_access: bool = True,
) -> str:
    """Full bootstrap script piped to ``mysql -u root``.

    Args:
        credentials: Database names and passwords.
        grant_host: Host part of the panel user (matches ``DB_HOST``).
        remote_access: Also create the ``admin@'%'`` database-host user.
    """
    db = f"`{credentials.database_name}`"
    root_password = credentials.database_root_password.get_secret_value()

    statements = [
        "DROP DATABASE IF EXISTS test;",
        f"CREATE DATABASE IF NOT EXISTS {db};",
        *_ensure_user(
            credentials.database_user,
            grant_host,
            credentials.database_password.get_secret_value(),
        ),
        f"GRANT ALL PRIVILEGES ON {db}.* TO {_account(credentials.database_user, grant_host)};",
    ]

    if remote_access:
        admin = _account(credentials.database_admin_user, "%")
        statements += _ensure_user(
            credentials.database_admin_user,
            "%",
            credentials.database_admin_password.get_secret_value(),
        )
        statements.append(f"GRANT ALL PRIVILEGES ON *.* TO {admin} WITH GRANT OPTION;")

    statements += [
        "ALTER USER 'root'@'localhost' IDENTIFIED VIA unix_socket "
        f"OR mysql_native_password USING PASSWORD({sql_literal(root_password)});",
        "DROP USER IF EXISTS ''@'localhost';",
        "DROP USER IF EXISTS ''@'%';",
        "DROP USER IF EXISTS 'root'@'%';",
        "DELETE FROM mysql.db WHERE Db='test' OR Db='test\\\\_%';",
        "FLUSH PRIVILEGES;",
    ]
    return "\n".join(statements) + "\n"


def admin_password_reset_sql(user: str, password: str) -> str:
    """Reset the remote database-host user's password."""
    return "\n".join([
        *_ensure_user(user, "%", password),
        f"GRANT ALL PRIVILEGES ON *.* TO {_account(user, '%')} WITH GRANT OPTION;",
        "FLUSH PRIVILEGES;",
    ]) + "\n"
