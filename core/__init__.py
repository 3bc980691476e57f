# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core module initialization
# PURPOSE: Export contracts, models, errors and the connection string codec
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import OpenState, CredentialsProvider, TokenSigner, Handshake
from core.models import (
    MySQLConfig,
    ConnectionTarget,
    CredentialSnapshot,
    AuthToken,
    OpenAttempt,
)
from core.dsn import parse_dsn, format_dsn, redact_dsn
from core.errors import (
    ConnectorError,
    InvalidCertificateData,
    ParseError,
    AuthTokenFailure,
    CredentialsUnavailable,
    NETWORK_ERRORS,
)

__all__ = [
    # Enums
    "OpenState",
    # Protocols
    "CredentialsProvider",
    "TokenSigner",
    "Handshake",
    # Models
    "MySQLConfig",
    "ConnectionTarget",
    "CredentialSnapshot",
    "AuthToken",
    "OpenAttempt",
    # Codec
    "parse_dsn",
    "format_dsn",
    "redact_dsn",
    # Errors
    "ConnectorError",
    "InvalidCertificateData",
    "ParseError",
    "AuthTokenFailure",
    "CredentialsUnavailable",
    "NETWORK_ERRORS",
]
