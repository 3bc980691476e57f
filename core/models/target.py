# ============================================================================
# CONNECTION TARGET MODEL
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core model - What to connect to, and as whom
# PURPOSE: Immutable per-attempt identity of the database endpoint
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: ConnectionTarget
# DEPENDENCIES: pydantic
# ============================================================================
"""
Connection Target

The resolved {host, port, database, user, region} tuple for one open
attempt. The token minter signs over `endpoint` and `user`.
"""

from pydantic import BaseModel, ConfigDict

from core.models.mysql_config import MySQLConfig


class ConnectionTarget(BaseModel):
    """Database endpoint and principal for a single connection attempt."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int
    database: str = ""
    user: str = ""
    region: str = ""

    @property
    def endpoint(self) -> str:
        """host:port as used in the signed token request."""
        return f"{self.host}:{self.port}"

    @classmethod
    def from_config(cls, config: MySQLConfig, region: str = "") -> "ConnectionTarget":
        """Build a target from a parsed connection string."""
        return cls(
            host=config.host,
            port=config.port,
            database=config.db_name,
            user=config.user,
            region=region,
        )


__all__ = ["ConnectionTarget"]
