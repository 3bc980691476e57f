# ============================================================================
# CONNECTION OPENER
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - Credential-refreshing connection factory
# PURPOSE: Open one physical connection with a freshly minted IAM token
# CREATED: 19 OCT 2026
# ============================================================================
"""
Connection Opener

The "open a new physical connection" contract the pool layer calls. Every
call:

    1. parses the connection string and resolves its TLS profile
    2. mints a token and substitutes it for the password (override mode),
       or keeps the configured password (override off)
    3. applies connect/read/write deadlines
    4. performs the PyMySQL handshake

Parse and mint failures abort before any network activity. Handshake errors
reach the caller unchanged; retrying them is the pool's decision.

The opener holds only immutable collaborators and is safe to call from many
pool threads at once. Each call gets its own OpenAttempt record.
"""

import logging
import ssl
from typing import Any, Callable, Mapping, Optional

from core.contracts import CredentialsProvider, Handshake
from core.config.defaults import TimeoutDefaults
from core.dsn import parse_dsn
from core.errors import ParseError
from core.logging import log_checkpoint, log_context
from core.models.attempt import OpenAttempt
from core.models.mysql_config import (
    MySQLConfig,
    TLS_DISABLED,
    TLS_PREFERRED,
    TLS_SKIP_VERIFY,
    TLS_SYSTEM,
)
from core.models.target import ConnectionTarget
from infrastructure.auth.rds_auth import TokenMinter
from infrastructure.mysql import PyMySQLHandshake
from infrastructure.tls import TransportProfile, system_trust_context, unverified_context

logger = logging.getLogger(__name__)


class ConnectionOpener:
    """
    Opens MySQL connections authenticated with IAM tokens.

    Args:
        profiles: Transport profiles by name, referenced by the tls param.
        override_password: Replace the configured password with a minted token.
        region: AWS region the tokens are signed for.
        credentials: Provider consulted on every mint.
        minter: Token minter (default: TokenMinter with the botocore signer).
        handshake: Network layer (default: PyMySQLHandshake).
        timeouts: Deadlines for connection strings that set none.
        driver_name: Name this opener is registered under (log context).
        on_attempt: Called with every finished OpenAttempt, success or not.
    """

    def __init__(
        self,
        profiles: Mapping[str, TransportProfile],
        override_password: bool,
        region: str,
        credentials: CredentialsProvider,
        minter: Optional[TokenMinter] = None,
        handshake: Optional[Handshake] = None,
        timeouts: Optional[TimeoutDefaults] = None,
        driver_name: str = "",
        on_attempt: Optional[Callable[[OpenAttempt], None]] = None,
    ):
        self.profiles = profiles
        self.override_password = override_password
        self.region = region
        self.credentials = credentials
        self.minter = minter or TokenMinter()
        self.handshake = handshake or PyMySQLHandshake()
        self.timeouts = timeouts or TimeoutDefaults()
        self.driver_name = driver_name
        self.on_attempt = on_attempt

    def open(self, dsn: str) -> Any:
        """
        Open one physical connection.

        Args:
            dsn: go-sql-driver style connection string.

        Returns:
            Live PyMySQL connection.

        Raises:
            ParseError: Malformed connection string or unknown TLS profile.
            AuthTokenFailure: Token minting exhausted its attempts.
            pymysql.err.MySQLError / OSError: Handshake failure, unchanged.
        """
        attempt = OpenAttempt(driver=self.driver_name)
        with log_context(driver=self.driver_name or None, attempt_id=attempt.attempt_id):
            try:
                connection = self._open(dsn, attempt)
            except Exception as e:
                attempt.mark_failed(f"{type(e).__name__}: {e}")
                logger.warning(f"Open failed in {attempt.history[-2].value}: {type(e).__name__}: {e}")
                log_checkpoint("connection_failed", {
                    "failed_in": attempt.history[-2].value,
                    "error_type": type(e).__name__,
                    "duration_seconds": attempt.duration_seconds,
                })
                self._notify(attempt)
                raise

            log_checkpoint("connection_opened", {
                "token_minted": attempt.token_minted,
                "duration_seconds": attempt.duration_seconds,
            })
            self._notify(attempt)
            return connection

    def _open(self, dsn: str, attempt: OpenAttempt) -> Any:
        config = parse_dsn(dsn)
        ssl_context = self.resolve_tls(config.tls_config)
        target = ConnectionTarget.from_config(config, region=self.region)
        attempt.mark_parameters_resolved(target)

        with log_context(host=target.endpoint, user=target.user, database=target.database):
            if self.override_password:
                token = self.minter.mint(target, self.region, self.credentials)
                config = config.with_password(token.value)
            attempt.mark_credential_resolved(token_minted=self.override_password)

            config = self.apply_deadlines(config)
            attempt.mark_handshake_started()
            connection = self.handshake.connect(config, ssl_context)
            logger.info(f"Connection open to {target.endpoint} as {target.user}")
            attempt.mark_open()
            return connection

    def resolve_tls(self, tls: str) -> Optional[ssl.SSLContext]:
        """
        SSL context for a tls parameter value.

        Raises:
            ParseError: If the value names no registered transport profile.
        """
        if tls in TLS_DISABLED:
            return None
        if tls == TLS_SYSTEM:
            return system_trust_context()
        if tls in (TLS_SKIP_VERIFY, TLS_PREFERRED):
            return unverified_context()
        profile = self.profiles.get(tls)
        if profile is None:
            raise ParseError(f"invalid value / unknown config name: {tls}")
        return profile.ssl_context

    def apply_deadlines(self, config: MySQLConfig) -> MySQLConfig:
        """Fill unset connect/read/write deadlines from the defaults."""
        updates = {}
        if not config.timeout:
            updates["timeout"] = self.timeouts.connect_secs
        if not config.read_timeout:
            updates["read_timeout"] = self.timeouts.read_secs
        if not config.write_timeout:
            updates["write_timeout"] = self.timeouts.write_secs
        return config.model_copy(update=updates) if updates else config

    def _notify(self, attempt: OpenAttempt) -> None:
        if self.on_attempt is not None:
            self.on_attempt(attempt)


__all__ = ["ConnectionOpener"]
