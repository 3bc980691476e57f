# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Model exports
# PURPOSE: Central export point for connector value objects
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models for data parsed from configuration (MySQLConfig,
ConnectionTarget, OpenAttempt) and frozen dataclasses for secret-bearing
values (CredentialSnapshot, AuthToken).
"""

from core.models.mysql_config import MySQLConfig
from core.models.target import ConnectionTarget
from core.models.credentials import CredentialSnapshot, AuthToken
from core.models.attempt import OpenAttempt

__all__ = [
    # Connection string
    "MySQLConfig",
    "ConnectionTarget",
    # Credentials
    "CredentialSnapshot",
    "AuthToken",
    # Lifecycle
    "OpenAttempt",
]
