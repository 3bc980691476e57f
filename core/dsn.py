# ============================================================================
# CONNECTION STRING CODEC
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - DSN parsing and formatting
# PURPOSE: Read and write go-sql-driver style MySQL connection strings
# CREATED: 19 OCT 2026
# ============================================================================
"""
Connection String Codec

Format:
    [user[:password]@][net[(addr)]]/dbname[?param1=value1&paramN=valueN]

Examples:
    user:#OVERRIDE#@tcp(db.example.com:3306)/mydb?tls=aws-rds&parseTime=true
    app@unix(/var/run/mysqld/mysqld.sock)/app
    /mydb                                   (127.0.0.1:3306, no user)

Parsing rules:
- The last '/' separates the database name; it is required.
- The last '@' before it ends the user info, so passwords may contain '@'.
- The first ':' in the user info separates user from password.
- Param values are query-unescaped. Unknown params become system variables.

Durations use Go syntax (10s, 1m30s, 500ms, 1h).

Usage:
    from core.dsn import parse_dsn, format_dsn

    config = parse_dsn("user:pw@tcp(db:3306)/mydb?timeout=5s")
    assert format_dsn(config) == "user:pw@tcp(db:3306)/mydb?timeout=5s"
"""

import re
from typing import Callable, Dict, List, Tuple
from urllib.parse import quote, quote_plus, unquote, unquote_plus
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.errors import ParseError
from core.models.mysql_config import (
    DEFAULT_COLLATION,
    DEFAULT_LOC,
    DEFAULT_MAX_ALLOWED_PACKET,
    DEFAULT_NET,
    DEFAULT_PORT,
    DEFAULT_TCP_ADDR,
    DEFAULT_UNIX_ADDR,
    MySQLConfig,
)


# ============================================================================
# SCALAR HELPERS
# ============================================================================

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_TRUE_VALUES = ("1", "true", "TRUE", "True")
_FALSE_VALUES = ("0", "false", "FALSE", "False")


def parse_duration(text: str) -> float:
    """
    Parse a Go duration string into seconds.

    Raises:
        ParseError: If the text is not a valid non-negative duration.
    """
    if text == "0":
        return 0.0
    if not text:
        raise ParseError("invalid duration: empty value")

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise ParseError(f"invalid duration: {text!r}")
    return total


def format_duration(seconds: float) -> str:
    """Format seconds the way Go's time.Duration prints them."""
    if seconds <= 0:
        return "0s"
    if seconds < 1:
        millis = seconds * 1000
        if millis >= 1:
            return f"{_trim(millis)}ms"
        return f"{_trim(seconds * 1e6)}µs"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{int(hours)}h{int(minutes)}m{_trim(secs)}s"
    if minutes:
        return f"{int(minutes)}m{_trim(secs)}s"
    return f"{_trim(secs)}s"


def _trim(value: float) -> str:
    text = f"{value:.9f}".rstrip("0").rstrip(".")
    return text or "0"


def _parse_bool(key: str, value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ParseError(f"invalid bool value: {key}={value}")


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ParseError(f"invalid integer value: {key}={value}") from None


def _parse_loc(key: str, value: str) -> str:
    if value in ("", "Local", "UTC"):
        return value or DEFAULT_LOC
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ParseError(f"invalid time zone: {key}={value}") from None
    return value


def _parse_tls(key: str, value: str) -> str:
    lowered = value.lower()
    if lowered in ("true", "false", "skip-verify", "preferred"):
        return lowered
    if value in ("1", "0"):
        return "true" if value == "1" else "false"
    return value


# Param name -> (MySQLConfig field, value parser)
_PARAM_FIELDS: Dict[str, Tuple[str, Callable[[str, str], object]]] = {
    "allowCleartextPasswords": ("allow_cleartext_passwords", _parse_bool),
    "allowNativePasswords": ("allow_native_passwords", _parse_bool),
    "checkConnLiveness": ("check_conn_liveness", _parse_bool),
    "collation": ("collation", lambda key, value: value),
    "loc": ("loc", _parse_loc),
    "maxAllowedPacket": ("max_allowed_packet", _parse_int),
    "parseTime": ("parse_time", _parse_bool),
    "readTimeout": ("read_timeout", lambda key, value: parse_duration(value)),
    "timeout": ("timeout", lambda key, value: parse_duration(value)),
    "tls": ("tls_config", _parse_tls),
    "writeTimeout": ("write_timeout", lambda key, value: parse_duration(value)),
}


# ============================================================================
# PARSE
# ============================================================================

def parse_dsn(dsn: str) -> MySQLConfig:
    """
    Parse a connection string into a MySQLConfig.

    An empty string yields a config with every option at its default.

    Raises:
        ParseError: If the string is malformed or a parameter value is invalid.
    """
    if not dsn:
        return MySQLConfig()

    slash = dsn.rfind("/")
    if slash < 0:
        raise ParseError("invalid DSN: missing the slash separating the database name")

    fields: Dict[str, object] = {}
    head = dsn[:slash]

    if head:
        at = head.rfind("@")
        if at >= 0:
            user, sep, password = head[:at].partition(":")
            fields["user"] = user
            if sep:
                fields["password"] = password
        net_addr = head[at + 1:]

        paren = net_addr.find("(")
        if paren >= 0:
            if not net_addr.endswith(")"):
                raise ParseError("invalid DSN: network address not terminated (missing closing brace)")
            fields["net"] = net_addr[:paren]
            fields["addr"] = net_addr[paren + 1:-1]
        elif net_addr:
            fields["net"] = net_addr

    db_part, _, query = dsn[slash + 1:].partition("?")
    try:
        fields["db_name"] = unquote(db_part, errors="strict")
    except UnicodeDecodeError:
        raise ParseError(f"invalid database name: {db_part!r}") from None

    params: Dict[str, str] = {}
    if query:
        for pair in query.split("&"):
            key, sep, raw = pair.partition("=")
            if not sep:
                continue
            try:
                value = unquote_plus(raw, errors="strict")
            except UnicodeDecodeError:
                raise ParseError(f"invalid value for param {key}") from None
            if key in _PARAM_FIELDS:
                field_name, parser = _PARAM_FIELDS[key]
                fields[field_name] = parser(key, value)
            else:
                params[key] = value
    fields["params"] = params

    net = fields.get("net") or DEFAULT_NET
    fields["net"] = net
    fields["addr"] = _normalize_addr(net, str(fields.get("addr") or ""))

    return MySQLConfig(**fields)


def _normalize_addr(net: str, addr: str) -> str:
    if net == "unix":
        return addr or DEFAULT_UNIX_ADDR
    if not addr:
        return DEFAULT_TCP_ADDR
    if addr.startswith("["):
        return addr if "]:" in addr else f"{addr}:{DEFAULT_PORT}"
    colons = addr.count(":")
    if colons == 0:
        return f"{addr}:{DEFAULT_PORT}"
    if colons > 1:
        # bare IPv6 literal
        return f"[{addr}]:{DEFAULT_PORT}"
    return addr


# ============================================================================
# FORMAT
# ============================================================================

def format_dsn(config: MySQLConfig) -> str:
    """
    Format a MySQLConfig as a connection string.

    Only options that differ from their defaults are written, sorted by name.
    """
    parts: List[str] = []

    if config.user or config.password:
        parts.append(config.user)
        if config.password:
            parts.append(":" + config.password)
        parts.append("@")

    if config.net:
        parts.append(config.net)
        if config.addr:
            parts.append(f"({config.addr})")

    parts.append("/" + quote(config.db_name, safe=""))

    options = _non_default_options(config)
    options.extend((key, quote_plus(value)) for key, value in config.params.items())
    if options:
        options.sort()
        parts.append("?" + "&".join(f"{key}={value}" for key, value in options))

    return "".join(parts)


def _non_default_options(config: MySQLConfig) -> List[Tuple[str, str]]:
    options: List[Tuple[str, str]] = []
    if config.allow_cleartext_passwords:
        options.append(("allowCleartextPasswords", "true"))
    if not config.allow_native_passwords:
        options.append(("allowNativePasswords", "false"))
    if not config.check_conn_liveness:
        options.append(("checkConnLiveness", "false"))
    if config.collation != DEFAULT_COLLATION:
        options.append(("collation", config.collation))
    if config.loc != DEFAULT_LOC:
        options.append(("loc", quote_plus(config.loc)))
    if config.max_allowed_packet != DEFAULT_MAX_ALLOWED_PACKET:
        options.append(("maxAllowedPacket", str(config.max_allowed_packet)))
    if config.parse_time:
        options.append(("parseTime", "true"))
    if config.read_timeout > 0:
        options.append(("readTimeout", format_duration(config.read_timeout)))
    if config.timeout > 0:
        options.append(("timeout", format_duration(config.timeout)))
    if config.tls_config:
        options.append(("tls", quote_plus(config.tls_config)))
    if config.write_timeout > 0:
        options.append(("writeTimeout", format_duration(config.write_timeout)))
    return options


def redact_dsn(dsn: str) -> str:
    """Replace the password of a connection string with '***' for logging."""
    slash = dsn.rfind("/")
    head = dsn[:slash] if slash >= 0 else dsn
    at = head.rfind("@")
    if at < 0:
        return dsn
    user, sep, _ = head[:at].partition(":")
    if not sep:
        return dsn
    return f"{user}:***{dsn[at:]}"


__all__ = [
    "parse_dsn",
    "format_dsn",
    "redact_dsn",
    "parse_duration",
    "format_duration",
]
