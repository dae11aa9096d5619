"""
Configuration loader — reads provisioner.yml into a validated model.

The file is optional: every setting has a default matching what the
installer has always done.  It reads YAML, validates against Pydantic
schemas, and returns a typed ``ProvisionConfig``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "provisioner.yml"

# System-wide location checked after the working directory
SYSTEM_CONFIG = Path("/etc/provisioner") / CONFIG_FILE


class ConfigError(Exception):
    """Raised when provisioner configuration is invalid or unreadable."""


# ── Schema ──────────────────────────────────────────────────────


class VersionsConfig(BaseModel):
    panel: str = "v1.11.11"
    wings: str = "v1.11.13"
    phpmyadmin: str = "5.2.2"


class PanelConfig(BaseModel):
    install_dir: str = "/var/www/pterodactyl"
    timezone: str | None = None         # None = host timezone
    cache: Literal["redis", "memcached", "file"] = "redis"
    session: Literal["database", "redis", "file", "cookie"] = "database"
    queue: Literal["redis", "database", "sync"] = "redis"
    redis_host: str = "127.0.0.1"
    redis_port: int = 6379
    mail_driver: Literal["mail", "smtp", "sendmail", "log"] = "mail"
    mail_from: str | None = None        # None = admin email
    php_version: str = "8.2"


class DatabaseConfig(BaseModel):
    name: str = Field(default="panel", pattern=r"^[A-Za-z0-9_]{1,64}$")
    user: str = Field(default="pterodactyl", pattern=r"^[A-Za-z0-9_]{1,32}$")
    host: str = "127.0.0.1"
    port: int = 3306
    admin_user: str = Field(default="admin", pattern=r"^[A-Za-z0-9_]{1,32}$")
    remote_access: bool = True


class CredentialsConfig(BaseModel):
    password_length: int = Field(default=32, ge=16, le=128)


class FirewallConfig(BaseModel):
    enabled: bool = True
    ssh_port: int = 22
    fail2ban: bool = True


class TLSConfig(BaseModel):
    enabled: bool = True


class AuditConfig(BaseModel):
    path: str = "/var/log/provisioner/audit.ndjson"


class ProvisionConfig(BaseModel):
    """Top-level provisioner configuration."""

    versions: VersionsConfig = Field(default_factory=VersionsConfig)
    panel: PanelConfig = Field(default_factory=PanelConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    firewall: FirewallConfig = Field(default_factory=FirewallConfig)
    tls: TLSConfig = Field(default_factory=TLSConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)


# ── Loading ─────────────────────────────────────────────────────


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Look for provisioner.yml in the given directory, then system-wide.

    Args:
        start_dir: Directory to check first (default: cwd).

    Returns:
        Path to the config file, or None if there is none.
    """
    candidate = (start_dir or Path.cwd()) / CONFIG_FILE
    if candidate.is_file():
        return candidate
    if SYSTEM_CONFIG.is_file():
        return SYSTEM_CONFIG
    return None


def load_config(path: Path | None = None) -> ProvisionConfig:
    """Load and validate provisioner configuration.

    Args:
        path: Explicit path to a config file.  If None, searches the
            usual locations and falls back to defaults.

    Returns:
        Validated ProvisionConfig.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return ProvisionConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading provisioner config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return ProvisionConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = ProvisionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid provisioner configuration: {e}") from e

    logger.info("Loaded config from %s", path)
    return config
