# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the connector.
"""

from core.config.defaults import (
    ConnectorDefaults,
    TimeoutDefaults,
    SessionDefaults,
    PoolDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)
from core.config.environment import DatabaseEnvironment

__all__ = [
    "ConnectorDefaults",
    "TimeoutDefaults",
    "SessionDefaults",
    "PoolDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
    "DatabaseEnvironment",
]
