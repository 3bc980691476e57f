# ============================================================================
# PROCESS ENVIRONMENT
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - Environment-based configuration
# PURPOSE: Database endpoint and AWS settings read at startup
# CREATED: 19 OCT 2026
# ============================================================================
"""
Process Environment

Loads the database endpoint from environment variables:

    DB_HOSTNAME=<instance>.<id>.<region>.rds.amazonaws.com[:3306]
    DB_USERNAME=<IAM-enabled database user>
    DB_NAME=<database>

AWS settings are optional; boto3's own chain applies when they are unset:

    AWS_REGION / AWS_DEFAULT_REGION
    AWS_PROFILE
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from core.config.defaults import ConnectorDefaults, SessionDefaults, TimeoutDefaults
from core.models.mysql_config import MySQLConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseEnvironment:
    """Endpoint and identity settings for one database."""

    hostname: str = ""
    username: str = ""
    db_name: str = ""
    aws_region: Optional[str] = None
    aws_profile: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DatabaseEnvironment":
        """Load configuration from environment variables."""
        env = cls(
            hostname=os.environ.get("DB_HOSTNAME", ""),
            username=os.environ.get("DB_USERNAME", ""),
            db_name=os.environ.get("DB_NAME", ""),
            aws_region=os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or None,
            aws_profile=os.environ.get("AWS_PROFILE") or None,
        )
        logger.info(f"Loaded environment: host={env.hostname} user={env.username} db={env.db_name}")
        return env

    def missing(self) -> list:
        """Names of required variables that are unset."""
        required = {
            "DB_HOSTNAME": self.hostname,
            "DB_USERNAME": self.username,
            "DB_NAME": self.db_name,
        }
        return [name for name, value in required.items() if not value]

    def to_config(
        self,
        connector: Optional[ConnectorDefaults] = None,
        session: Optional[SessionDefaults] = None,
        timeouts: Optional[TimeoutDefaults] = None,
    ) -> MySQLConfig:
        """
        Build the connection config for this endpoint.

        The password is the override placeholder; the opener replaces it with
        a minted token before the handshake.
        """
        connector = connector or ConnectorDefaults()
        session = session or SessionDefaults()
        timeouts = timeouts or TimeoutDefaults()

        return MySQLConfig(
            user=self.username,
            password=connector.password_placeholder,
            net="tcp",
            addr=self.hostname if ":" in self.hostname else f"{self.hostname}:3306",
            db_name=self.db_name,
            collation=session.collation,
            loc=session.loc,
            max_allowed_packet=session.max_allowed_packet,
            tls_config=connector.tls_profile,
            timeout=timeouts.connect_secs,
            read_timeout=timeouts.read_secs,
            write_timeout=timeouts.write_secs,
            allow_cleartext_passwords=session.allow_cleartext_passwords,
            allow_native_passwords=session.allow_native_passwords,
            check_conn_liveness=session.check_conn_liveness,
            parse_time=session.parse_time,
        )


__all__ = ["DatabaseEnvironment"]
