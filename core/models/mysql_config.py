# ============================================================================
# MYSQL CONNECTION CONFIG MODEL
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core model - Parsed connection string
# PURPOSE: Typed view of a go-sql-driver style MySQL DSN
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: MySQLConfig, DEFAULT_* constants
# DEPENDENCIES: pydantic
# ============================================================================
"""
MySQL Connection Config

MySQLConfig is what core.dsn.parse_dsn produces and core.dsn.format_dsn
consumes. It is frozen: the opener derives a new instance (model_copy) when
it substitutes a token for the password or fills in missing deadlines.

Durations are stored as float seconds; 0 means "not set".
"""

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_NET = "tcp"
DEFAULT_PORT = 3306
DEFAULT_TCP_ADDR = f"127.0.0.1:{DEFAULT_PORT}"
DEFAULT_UNIX_ADDR = "/tmp/mysql.sock"
DEFAULT_COLLATION = "utf8mb4_general_ci"
DEFAULT_LOC = "UTC"
DEFAULT_MAX_ALLOWED_PACKET = 64 << 20  # 64 MiB

# Values of the tls parameter that are modes rather than profile names
TLS_DISABLED = ("", "false")
TLS_SYSTEM = "true"
TLS_SKIP_VERIFY = "skip-verify"
TLS_PREFERRED = "preferred"


class MySQLConfig(BaseModel):
    """
    Parsed MySQL connection string.

    Field names follow Python conventions; core.dsn maps them to the
    camelCase parameter names of the connection string.
    """

    model_config = ConfigDict(frozen=True)

    user: str = ""
    password: str = Field(default="", repr=False)
    net: str = DEFAULT_NET
    addr: str = DEFAULT_TCP_ADDR
    db_name: str = ""

    collation: str = DEFAULT_COLLATION
    loc: str = DEFAULT_LOC
    max_allowed_packet: int = DEFAULT_MAX_ALLOWED_PACKET
    tls_config: str = ""

    timeout: float = 0.0
    read_timeout: float = 0.0
    write_timeout: float = 0.0

    allow_cleartext_passwords: bool = False
    allow_native_passwords: bool = True
    check_conn_liveness: bool = True
    parse_time: bool = False

    # Unrecognized parameters, sent to the server as system variables
    params: Dict[str, str] = Field(default_factory=dict)

    @property
    def host(self) -> str:
        """Host part of addr (socket path for unix sockets)."""
        return self._split_addr()[0]

    @property
    def port(self) -> int:
        """Port part of addr (DEFAULT_PORT for unix sockets)."""
        return self._split_addr()[1]

    @property
    def charset(self) -> str:
        """Character set implied by the collation (utf8mb4_general_ci -> utf8mb4)."""
        return self.collation.split("_", 1)[0]

    @property
    def tls_required(self) -> bool:
        """True when credentials must never travel without TLS."""
        return self.tls_config not in TLS_DISABLED and self.tls_config != TLS_PREFERRED

    def with_password(self, password: str) -> "MySQLConfig":
        """Return a copy with the password replaced."""
        return self.model_copy(update={"password": password})

    def _split_addr(self) -> Tuple[str, int]:
        if self.net == "unix":
            return self.addr, DEFAULT_PORT
        addr = self.addr
        if addr.startswith("["):
            host, _, rest = addr[1:].partition("]")
            port = rest[1:] if rest.startswith(":") else ""
        else:
            host, _, port = addr.rpartition(":")
            if not host:
                host, port = addr, ""
        return host, int(port) if port.isdigit() else DEFAULT_PORT


__all__ = [
    "MySQLConfig",
    "DEFAULT_NET",
    "DEFAULT_PORT",
    "DEFAULT_TCP_ADDR",
    "DEFAULT_UNIX_ADDR",
    "DEFAULT_COLLATION",
    "DEFAULT_LOC",
    "DEFAULT_MAX_ALLOWED_PACKET",
    "TLS_DISABLED",
    "TLS_SYSTEM",
    "TLS_SKIP_VERIFY",
    "TLS_PREFERRED",
]
