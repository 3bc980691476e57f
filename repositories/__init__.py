# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - Database access layer
# PURPOSE: Pooled database access through the IAM driver
# CREATED: 19 OCT 2026
# ============================================================================
"""
Repositories Module

Provides pooled database access for the connector. Uses SQLAlchemy's
QueuePool with the registered IAM driver as connection creator.

Usage:
    from repositories import create_connector_engine, fetch_all

    engine = create_connector_engine(registry, dsn)
    rows = fetch_all(engine, "SELECT 1 AS ok")
"""

from .database import (
    create_connector_engine,
    connection_creator,
    engine_kwargs,
    ping,
    fetch_all,
    dispose,
)

__all__ = [
    "create_connector_engine",
    "connection_creator",
    "engine_kwargs",
    "ping",
    "fetch_all",
    "dispose",
]
