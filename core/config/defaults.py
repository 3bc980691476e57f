# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for registration names, deadlines, session, pool
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for the connector. These can be overridden via environment
variables; connection-string parameters override them per connection.

Precedence, lowest first:
    dataclass defaults < environment variables < connection-string params

Token lifetime and mint attempts are not read from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class ConnectorDefaults:
    """
    Defaults for registration and token minting.

    The driver and TLS profile names are the stable lookup keys the rest of
    the process uses.
    """
    driver_name: str = "mysql-aws-iam"
    tls_profile: str = "aws-rds"

    # Sent in the connection string, replaced by a minted token before use
    password_placeholder: str = "#OVERRIDE#"
    override_password: bool = True

    # Token minting
    max_auth_token_attempts: int = 2
    token_lifetime_secs: int = 900  # rds-db presigned URL maximum

    # None = bundle shipped in infrastructure/certs
    ca_bundle_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ConnectorDefaults":
        """Create from environment variables."""
        return cls(
            driver_name=os.getenv("RDS_IAM_DRIVER_NAME", "mysql-aws-iam"),
            tls_profile=os.getenv("RDS_IAM_TLS_PROFILE", "aws-rds"),
            override_password=_env_bool("RDS_IAM_OVERRIDE_PASSWORD", True),
            ca_bundle_path=os.getenv("RDS_CA_BUNDLE_PATH") or None,
        )


@dataclass(frozen=True)
class TimeoutDefaults:
    """
    Deadlines applied to the network handshake.

    Used when the connection string leaves timeout/readTimeout/writeTimeout
    unset. The IAM signing call has no deadline of its own.
    """
    connect_secs: float = 10.0
    read_secs: float = 10.0
    write_secs: float = 10.0

    @classmethod
    def from_env(cls) -> "TimeoutDefaults":
        """Create from environment variables."""
        return cls(
            connect_secs=float(os.getenv("DB_CONNECT_TIMEOUT_SECONDS", 10.0)),
            read_secs=float(os.getenv("DB_READ_TIMEOUT_SECONDS", 10.0)),
            write_secs=float(os.getenv("DB_WRITE_TIMEOUT_SECONDS", 10.0)),
        )


@dataclass(frozen=True)
class SessionDefaults:
    """
    Connection options written into the connection string main.py builds.
    """
    collation: str = "utf8mb4_general_ci"
    loc: str = "UTC"
    max_allowed_packet: int = 4 << 20  # 4 MiB
    allow_cleartext_passwords: bool = True  # IAM tokens use mysql_clear_password
    allow_native_passwords: bool = True
    check_conn_liveness: bool = True
    parse_time: bool = True

    @classmethod
    def from_env(cls) -> "SessionDefaults":
        """Create from environment variables."""
        return cls(
            collation=os.getenv("DB_COLLATION", "utf8mb4_general_ci"),
            loc=os.getenv("DB_TIMEZONE", "UTC"),
            max_allowed_packet=int(os.getenv("DB_MAX_ALLOWED_PACKET", 4 << 20)),
        )


@dataclass(frozen=True)
class PoolDefaults:
    """
    Pool sizing handed to SQLAlchemy by repositories.database.
    """
    max_idle: int = 10
    max_open: int = 15
    max_lifetime_secs: int = 600  # 10 minutes, below the 15 minute token window

    @classmethod
    def from_env(cls) -> "PoolDefaults":
        """Create from environment variables."""
        return cls(
            max_idle=int(os.getenv("DB_POOL_MAX_IDLE", 10)),
            max_open=int(os.getenv("DB_POOL_MAX_OPEN", 15)),
            max_lifetime_secs=int(os.getenv("DB_POOL_MAX_LIFETIME_SECONDS", 600)),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    connector: ConnectorDefaults = field(default_factory=ConnectorDefaults)
    timeouts: TimeoutDefaults = field(default_factory=TimeoutDefaults)
    session: SessionDefaults = field(default_factory=SessionDefaults)
    pool: PoolDefaults = field(default_factory=PoolDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            connector=ConnectorDefaults.from_env(),
            timeouts=TimeoutDefaults.from_env(),
            session=SessionDefaults.from_env(),
            pool=PoolDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ConnectorDefaults",
    "TimeoutDefaults",
    "SessionDefaults",
    "PoolDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
