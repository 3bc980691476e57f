# ============================================================================
# CONNECTOR ERRORS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - Error taxonomy
# PURPOSE: Exceptions raised by the trust store, token minter and opener
# CREATED: 19 OCT 2026
# ============================================================================
"""
Connector Errors

Every failure raised by this package derives from ConnectorError:

    InvalidCertificateData      startup, fatal: no trust pool can be built
    ParseError                  malformed connection string, no network attempt
    AuthTokenFailure            all token mint attempts exhausted, no handshake
    RetryExhausted              raised by the retry policy, wrapped by the minter
    CredentialsUnavailable      AWS credential chain resolved nothing
    UnknownDriverError          registry lookup by driver name failed
    UnknownTransportProfileError registry lookup by TLS profile name failed

Network and handshake failures are NOT wrapped. PyMySQL raises them and they
reach the caller unchanged; NETWORK_ERRORS lists what to catch.
"""

from typing import Optional

import pymysql


class ConnectorError(Exception):
    """Base class for connector failures."""


class InvalidCertificateData(ConnectorError, ValueError):
    """Certificate bundle is empty or contains data that is not a PEM certificate."""


class ParseError(ConnectorError, ValueError):
    """Connection string could not be parsed."""


class RetryExhausted(ConnectorError):
    """Every attempt of a retried operation failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Operation failed after {attempts} attempt(s): "
            f"{type(last_error).__name__}: {last_error}"
        )


class AuthTokenFailure(ConnectorError):
    """IAM authentication token could not be generated."""

    def __init__(self, message: str, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message)


class CredentialsUnavailable(ConnectorError):
    """No AWS credentials could be resolved."""


class UnknownDriverError(ConnectorError, KeyError):
    """No driver is registered under the requested name."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class UnknownTransportProfileError(ConnectorError, KeyError):
    """No TLS transport profile is registered under the requested name."""

    def __str__(self) -> str:
        return Exception.__str__(self)


# Transport-layer failures surfaced verbatim by the opener
NETWORK_ERRORS = (pymysql.err.MySQLError, OSError)


__all__ = [
    "ConnectorError",
    "InvalidCertificateData",
    "ParseError",
    "RetryExhausted",
    "AuthTokenFailure",
    "CredentialsUnavailable",
    "UnknownDriverError",
    "UnknownTransportProfileError",
    "NETWORK_ERRORS",
]
