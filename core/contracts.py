# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Foundation - Open-state enum and collaborator protocols
# PURPOSE: Define the seams between opener, minter, provider and handshake
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: OpenState, CredentialsProvider, TokenSigner, Handshake
# DEPENDENCIES: enum, typing
# ============================================================================
"""
Base contracts for the RDS IAM connector.

The opener talks to three collaborators, each expressed as a Protocol so
tests and alternative deployments can substitute their own:

- CredentialsProvider: current AWS credentials (refresh is its own concern)
- TokenSigner: turns endpoint + region + user + credentials into a token
- Handshake: performs the network/TLS connect with resolved parameters
"""

import ssl
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from core.models.credentials import CredentialSnapshot
    from core.models.mysql_config import MySQLConfig


# ============================================================================
# STATUS ENUMS
# ============================================================================

class OpenState(str, Enum):
    """
    Lifecycle of a single open() call.

    State transitions:
        UNOPENED -> PARAMETERS_RESOLVED -> CREDENTIAL_RESOLVED
                 -> HANDSHAKE_IN_FLIGHT -> OPEN
        any non-terminal state -> FAILED
    """
    UNOPENED = "unopened"
    PARAMETERS_RESOLVED = "parameters_resolved"
    CREDENTIAL_RESOLVED = "credential_resolved"
    HANDSHAKE_IN_FLIGHT = "handshake_in_flight"
    OPEN = "open"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (OpenState.OPEN, OpenState.FAILED)


# ============================================================================
# COLLABORATOR PROTOCOLS
# ============================================================================

@runtime_checkable
class CredentialsProvider(Protocol):
    """Source of current AWS credentials."""

    def get_credentials(self) -> "CredentialSnapshot":
        """Return the credentials valid right now (refreshing if needed)."""


@runtime_checkable
class TokenSigner(Protocol):
    """Signing call producing an IAM database authentication token."""

    def __call__(
        self,
        endpoint: str,
        region: str,
        user: str,
        credentials: "CredentialSnapshot",
    ) -> str:
        ...


@runtime_checkable
class Handshake(Protocol):
    """Network layer that turns resolved parameters into a live connection."""

    def connect(self, config: "MySQLConfig", ssl_context: Optional[ssl.SSLContext]) -> Any:
        """Open the connection; errors propagate unchanged."""


__all__ = [
    "OpenState",
    "CredentialsProvider",
    "TokenSigner",
    "Handshake",
]
