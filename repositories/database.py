# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Repository - Pooled access through the IAM driver
# PURPOSE: SQLAlchemy engine whose every new connection mints a token
# CREATED: 19 OCT 2026
# ============================================================================
"""
Database Connection Pool

SQLAlchemy QueuePool over the registered IAM driver. The pool never sees a
password: its creator calls registry.open(driver_name, dsn), so each new
physical connection gets a freshly minted token. Connections are recycled
before the token validity window matters for reconnects.

Usage:
    from repositories.database import create_connector_engine, ping

    engine = create_connector_engine(registry, dsn)
    ping(engine)
    rows = fetch_all(engine, "SELECT NOW() AS now")
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from core.config.defaults import ConnectorDefaults, PoolDefaults
from core.dsn import parse_dsn, redact_dsn
from infrastructure.registry import ConnectorRegistry

logger = logging.getLogger(__name__)

# Dialect only; connections come from the creator
ENGINE_URL = "mysql+pymysql://"


def connection_creator(
    registry: ConnectorRegistry,
    dsn: str,
    driver_name: str,
) -> Callable[[], Any]:
    """Zero-argument factory the pool calls for each new physical connection."""
    # Unknown driver names fail here, not on first checkout
    registry.driver(driver_name)

    def create() -> Any:
        return registry.open(driver_name, dsn)

    return create


def engine_kwargs(pool: PoolDefaults, check_conn_liveness: bool = True) -> Dict[str, Any]:
    """
    Pool configuration for create_engine.

    max_idle maps to pool_size, max_open to pool_size + max_overflow, and
    max_lifetime to pool_recycle.
    """
    return {
        "poolclass": QueuePool,
        "pool_size": pool.max_idle,
        "max_overflow": max(pool.max_open - pool.max_idle, 0),
        "pool_recycle": pool.max_lifetime_secs,
        "pool_pre_ping": check_conn_liveness,
    }


def create_connector_engine(
    registry: ConnectorRegistry,
    dsn: str,
    driver_name: str = ConnectorDefaults.driver_name,
    pool: Optional[PoolDefaults] = None,
) -> Engine:
    """
    Create a pooled engine that opens connections through the IAM driver.

    Args:
        registry: Process registry holding the driver.
        dsn: Connection string handed to the opener.
        driver_name: Registered driver to open through.
        pool: Pool sizing (default: PoolDefaults.from_env()).

    Raises:
        ParseError: If the connection string is malformed.
        UnknownDriverError: If driver_name is not registered.
    """
    pool = pool or PoolDefaults.from_env()
    config = parse_dsn(dsn)
    creator = connection_creator(registry, dsn, driver_name)
    kwargs = engine_kwargs(pool, check_conn_liveness=config.check_conn_liveness)

    engine = create_engine(ENGINE_URL, creator=creator, **kwargs)
    logger.info(
        f"Engine created for {redact_dsn(dsn)} via {driver_name} "
        f"(idle={pool.max_idle}, open={pool.max_open}, lifetime={pool.max_lifetime_secs}s)"
    )
    return engine


def ping(engine: Engine) -> float:
    """
    Check out a connection and run SELECT 1.

    Returns:
        Round trip time in seconds.

    Raises:
        Whatever opening or querying raised, unchanged.
    """
    start = time.monotonic()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    elapsed = time.monotonic() - start
    logger.info(f"Database ping ok in {elapsed * 1000:.1f} ms")
    return elapsed


def fetch_all(engine: Engine, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Run a query and return its rows as dicts."""
    with engine.connect() as conn:
        result = conn.execute(text(sql), params or {})
        return [dict(row) for row in result.mappings()]


def dispose(engine: Engine) -> None:
    """Close pooled connections."""
    engine.dispose()
    logger.info("Connection pool closed")


__all__ = [
    "ENGINE_URL",
    "connection_creator",
    "engine_kwargs",
    "create_connector_engine",
    "ping",
    "fetch_all",
    "dispose",
]
