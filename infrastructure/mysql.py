# ============================================================================
# MYSQL HANDSHAKE
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - PyMySQL network/TLS connect
# PURPOSE: Turn a resolved MySQLConfig into a live PyMySQL connection
# CREATED: 19 OCT 2026
# ============================================================================
"""
MySQL Handshake

Maps the connection-string options onto PyMySQL:

    collation           -> charset + collation
    maxAllowedPacket    -> max_allowed_packet
    timeout / read / write -> connect_timeout / read_timeout / write_timeout
    parseTime + loc     -> DATE/DATETIME/TIMESTAMP decoders
    allowCleartextPasswords / allowNativePasswords -> auth plugin guards
    tls                 -> ssl context, plaintext refused unless "preferred"
    other params        -> "SET name=value, ..." init command

Errors from PyMySQL are raised unchanged. Nothing here retries.

Usage:
    from infrastructure.mysql import PyMySQLHandshake

    conn = PyMySQLHandshake().connect(config, ssl_context)
"""

import datetime
import logging
import ssl
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo

import pymysql
from pymysql import converters, err
from pymysql.constants import CLIENT, CR, FIELD_TYPE

from core.models.mysql_config import MySQLConfig

logger = logging.getLogger(__name__)

_NATIVE_PLUGINS = ("", "mysql_native_password")
_TIME_FIELDS = (FIELD_TYPE.DATE, FIELD_TYPE.DATETIME, FIELD_TYPE.TIMESTAMP)


# ============================================================================
# CONNECTION GUARDS
# ============================================================================

class GuardedConnection(pymysql.connections.Connection):
    """
    PyMySQL connection that checks the server greeting before authenticating.

    PyMySQL silently continues in plaintext when the server does not offer
    TLS. With require_tls set, the handshake fails instead, before the
    password (an IAM token) is written to the socket.
    """

    def __init__(self, *args, require_tls: bool = False, allow_native_passwords: bool = True, **kwargs):
        # Set before super().__init__, which connects immediately
        self.require_tls = require_tls
        self.allow_native_passwords = allow_native_passwords
        super().__init__(*args, **kwargs)

    def _request_authentication(self):
        if self.require_tls and not self.server_capabilities & CLIENT.SSL:
            raise err.OperationalError(
                CR.CR_SSL_CONNECTION_ERROR,
                f"TLS required but server {self.host} does not support it; credentials not sent",
            )
        if not self.allow_native_passwords and self._auth_plugin_name in _NATIVE_PLUGINS:
            raise err.OperationalError(
                CR.CR_AUTH_PLUGIN_CANNOT_LOAD,
                "mysql_native_password requested by server but allowNativePasswords=false",
            )
        super()._request_authentication()


def _refusing_plugin(plugin_name: str, option: str) -> type:
    """Auth plugin handler that rejects a server's auth-switch request."""

    class _Refuse:
        def __init__(self, con):
            self.con = con

        def authenticate(self, pkt):
            raise err.OperationalError(
                CR.CR_AUTH_PLUGIN_CANNOT_LOAD,
                f"{plugin_name} requested by server but {option}=false",
            )

    _Refuse.__name__ = f"Refuse_{plugin_name}"
    return _Refuse


# ============================================================================
# DECODERS
# ============================================================================

def _zone(loc: str) -> Optional[datetime.tzinfo]:
    """tzinfo for a loc value; None for Local (naive local time)."""
    if loc in ("", "Local"):
        return None
    if loc == "UTC":
        return datetime.timezone.utc
    return ZoneInfo(loc)


def _datetime_in(zone: datetime.tzinfo) -> Callable[[Any], Any]:
    def convert(value):
        parsed = converters.convert_datetime(value)
        if isinstance(parsed, datetime.datetime):
            return parsed.replace(tzinfo=zone)
        # zero dates come back as the raw string
        return parsed
    return convert


def build_converters(config: MySQLConfig) -> Dict[Any, Any]:
    """
    Decoder table for parseTime/loc.

    parseTime=false leaves temporal columns as strings. parseTime=true
    decodes them; with a named loc, DATETIME/TIMESTAMP become aware
    datetimes in that zone.
    """
    conv = dict(converters.conversions)
    if not config.parse_time:
        for field_type in _TIME_FIELDS:
            conv[field_type] = converters.through
        return conv

    zone = _zone(config.loc)
    if zone is not None:
        conv[FIELD_TYPE.DATETIME] = _datetime_in(zone)
        conv[FIELD_TYPE.TIMESTAMP] = _datetime_in(zone)
    return conv


def build_init_command(params: Dict[str, str]) -> Optional[str]:
    """SET statement for session system variables, in key order."""
    if not params:
        return None
    assignments = ", ".join(f"{name}={value}" for name, value in sorted(params.items()))
    return f"SET {assignments}"


# ============================================================================
# HANDSHAKE
# ============================================================================

class PyMySQLHandshake:
    """Network layer used by the opener: one call, one physical connection."""

    connection_class = GuardedConnection

    def build_connect_kwargs(
        self,
        config: MySQLConfig,
        ssl_context: Optional[ssl.SSLContext],
    ) -> Dict[str, Any]:
        """
        Keyword arguments for the connection class.

        Args:
            config: Resolved connection config (password already final).
            ssl_context: Verification context, or None for plaintext.
        """
        kwargs: Dict[str, Any] = {
            "user": config.user,
            "password": config.password,
            "database": config.db_name or None,
            "charset": config.charset,
            "collation": config.collation,
            "max_allowed_packet": config.max_allowed_packet,
            "conv": build_converters(config),
            "init_command": build_init_command(config.params),
            "ssl": ssl_context,
            "require_tls": ssl_context is not None and config.tls_required,
            "allow_native_passwords": config.allow_native_passwords,
        }

        if config.net == "unix":
            kwargs["unix_socket"] = config.addr
        else:
            kwargs["host"] = config.host
            kwargs["port"] = config.port

        # PyMySQL rejects zero deadlines; unset means its own default
        if config.timeout > 0:
            kwargs["connect_timeout"] = config.timeout
        if config.read_timeout > 0:
            kwargs["read_timeout"] = config.read_timeout
        if config.write_timeout > 0:
            kwargs["write_timeout"] = config.write_timeout

        plugin_map = {}
        if not config.allow_cleartext_passwords:
            plugin_map["mysql_clear_password"] = _refusing_plugin(
                "mysql_clear_password", "allowCleartextPasswords"
            )
        if not config.allow_native_passwords:
            plugin_map["mysql_native_password"] = _refusing_plugin(
                "mysql_native_password", "allowNativePasswords"
            )
        if plugin_map:
            kwargs["auth_plugin_map"] = plugin_map

        return kwargs

    def connect(self, config: MySQLConfig, ssl_context: Optional[ssl.SSLContext]) -> Any:
        """
        Perform the handshake.

        Raises:
            pymysql.err.MySQLError: Handshake or authentication failure,
                unchanged.
        """
        kwargs = self.build_connect_kwargs(config, ssl_context)
        logger.debug(
            f"Connecting to {config.net}({config.addr}) as {config.user} "
            f"tls={'on' if ssl_context is not None else 'off'}"
        )
        return self.connection_class(**kwargs)


__all__ = [
    "GuardedConnection",
    "PyMySQLHandshake",
    "build_converters",
    "build_init_command",
]
