# ============================================================================
# CONNECTOR REGISTRY
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - Startup wiring
# PURPOSE: Bind trust bundle and opener under stable names, once
# CREATED: 19 OCT 2026
# ============================================================================
"""
Connector Registry

Built once at process start and passed to whatever creates the pool. Both
lookup tables are read-only views; the registry itself is frozen, so there is
no module-level mutable state and no re-registration.

    registry = build_registry(load_ca_bundle(), "us-east-1", provider)
    conn = registry.open("mysql-aws-iam", dsn)

If the certificate bundle is invalid, build_registry raises before any
profile exists.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from core.config.defaults import ConnectorDefaults, TimeoutDefaults
from core.contracts import CredentialsProvider, Handshake
from core.errors import UnknownDriverError, UnknownTransportProfileError
from core.logging import log_checkpoint
from core.models.attempt import OpenAttempt
from infrastructure.auth.rds_auth import TokenMinter
from infrastructure.opener import ConnectionOpener
from infrastructure.tls import TransportProfile, build_trust_bundle

logger = logging.getLogger(__name__)

_CONNECTOR_DEFAULTS = ConnectorDefaults()


@dataclass(frozen=True)
class DriverRegistration:
    """Opener bound to its override flag, region and credential provider."""
    name: str
    opener: ConnectionOpener
    override_password: bool
    region: str
    credentials: CredentialsProvider


@dataclass(frozen=True)
class ConnectorRegistry:
    """Read-only name -> profile and name -> driver tables."""
    profiles: Mapping[str, TransportProfile]
    drivers: Mapping[str, DriverRegistration]

    def transport_profile(self, name: str) -> TransportProfile:
        """Look up a TLS transport profile by name."""
        try:
            return self.profiles[name]
        except KeyError:
            raise UnknownTransportProfileError(f"no transport profile registered as {name!r}") from None

    def driver(self, name: str) -> DriverRegistration:
        """Look up a driver registration by name."""
        try:
            return self.drivers[name]
        except KeyError:
            raise UnknownDriverError(f"no driver registered as {name!r}") from None

    def open(self, driver_name: str, dsn: str) -> Any:
        """Open a connection through the named driver."""
        return self.driver(driver_name).opener.open(dsn)


def build_registry(
    pem: bytes,
    region: str,
    credentials: CredentialsProvider,
    *,
    override_password: bool = True,
    driver_name: str = _CONNECTOR_DEFAULTS.driver_name,
    profile_name: str = _CONNECTOR_DEFAULTS.tls_profile,
    minter: Optional[TokenMinter] = None,
    handshake: Optional[Handshake] = None,
    timeouts: Optional[TimeoutDefaults] = None,
    on_attempt: Optional[Callable[[OpenAttempt], None]] = None,
) -> ConnectorRegistry:
    """
    Build the process-wide registry.

    Args:
        pem: Certificate bundle for the pinned transport profile.
        region: AWS region tokens are signed for.
        credentials: AWS credentials provider.
        override_password: Replace configured passwords with minted tokens.
        driver_name: Name the opener is registered under.
        profile_name: Name the trust bundle is registered under.
        minter: Token minter override (tests, custom signers).
        handshake: Network layer override.
        timeouts: Handshake deadlines for connection strings that set none.
        on_attempt: Observer for finished open attempts.

    Raises:
        InvalidCertificateData: If the bundle is empty or malformed.
    """
    bundle = build_trust_bundle(pem)
    profiles = MappingProxyType({profile_name: TransportProfile(name=profile_name, bundle=bundle)})

    opener = ConnectionOpener(
        profiles=profiles,
        override_password=override_password,
        region=region,
        credentials=credentials,
        minter=minter,
        handshake=handshake,
        timeouts=timeouts,
        driver_name=driver_name,
        on_attempt=on_attempt,
    )
    registration = DriverRegistration(
        name=driver_name,
        opener=opener,
        override_password=override_password,
        region=region,
        credentials=credentials,
    )

    logger.info(f"Registered driver {driver_name!r} with transport profile {profile_name!r}")
    log_checkpoint("registry_built", {
        "driver": driver_name,
        "transport_profile": profile_name,
        "certificates": bundle.certificate_count,
        "override_password": override_password,
        "region": region or None,
    })

    return ConnectorRegistry(
        profiles=profiles,
        drivers=MappingProxyType({driver_name: registration}),
    )


__all__ = ["DriverRegistration", "ConnectorRegistry", "build_registry"]
