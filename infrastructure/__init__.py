# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - Trust store, token minting, handshake, wiring
# PURPOSE: Everything that touches certificates, AWS or the network
# CREATED: 19 OCT 2026
# ============================================================================
"""
Infrastructure module for the RDS IAM connector.

Provides:
- load_ca_bundle / build_trust_bundle: pinned TLS verification pool
- TokenMinter: bounded-retry IAM auth token generation
- ConnectionOpener: per-connection token + handshake
- build_registry: immutable driver and transport profile tables

Usage:
    from infrastructure import build_registry, load_ca_bundle
    from infrastructure.auth import BotoCredentialsProvider

    provider = BotoCredentialsProvider.from_environment()
    registry = build_registry(load_ca_bundle(), provider.region, provider)
    conn = registry.open("mysql-aws-iam", dsn)
"""

from infrastructure.tls import (
    TrustBundle,
    TransportProfile,
    load_ca_bundle,
    build_trust_bundle,
)
from infrastructure.retry import retry_call
from infrastructure.auth import (
    BotoCredentialsProvider,
    StaticCredentialsProvider,
    TokenMinter,
)
from infrastructure.mysql import PyMySQLHandshake
from infrastructure.opener import ConnectionOpener
from infrastructure.registry import (
    ConnectorRegistry,
    DriverRegistration,
    build_registry,
)

__all__ = [
    # TLS
    'TrustBundle',
    'TransportProfile',
    'load_ca_bundle',
    'build_trust_bundle',
    # Retry
    'retry_call',
    # Auth
    'BotoCredentialsProvider',
    'StaticCredentialsProvider',
    'TokenMinter',
    # Connect
    'PyMySQLHandshake',
    'ConnectionOpener',
    # Registry
    'ConnectorRegistry',
    'DriverRegistration',
    'build_registry',
]
