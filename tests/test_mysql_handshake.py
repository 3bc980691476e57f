# ============================================================================
# MYSQL HANDSHAKE TESTS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Tests - Connection option mapping onto PyMySQL
# PURPOSE: Verify connect kwargs, decoders, auth guards without a server
# CREATED: 19 OCT 2026
# ============================================================================
"""
MySQL Handshake Tests

Covers:
1. Address, credentials, charset/collation and deadlines as PyMySQL kwargs
2. TLS required vs preferred
3. parseTime/loc decoders
4. Session variables as an init command
5. Auth plugin guards and the TLS-before-credentials check

No MySQL server is needed: the connection class is replaced or its
authentication step is called directly.

Run with:
    pytest tests/test_mysql_handshake.py -v
"""

import datetime
import ssl
from unittest.mock import MagicMock, patch

import pymysql
import pytest
from pymysql import converters
from pymysql.constants import CR, FIELD_TYPE

from core.dsn import parse_dsn
from infrastructure.mysql import (
    GuardedConnection,
    PyMySQLHandshake,
    build_converters,
    build_init_command,
)


@pytest.fixture
def handshake():
    return PyMySQLHandshake()


@pytest.fixture
def context():
    return ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)


# ============================================================================
# CONNECT KWARGS
# ============================================================================

class TestConnectKwargs:
    def test_tcp_target(self, handshake):
        config = parse_dsn("iam:tok-123@tcp(db.example.com:3307)/mydb")
        kwargs = handshake.build_connect_kwargs(config, None)

        assert kwargs["host"] == "db.example.com"
        assert kwargs["port"] == 3307
        assert kwargs["user"] == "iam"
        assert kwargs["password"] == "tok-123"
        assert kwargs["database"] == "mydb"
        assert "unix_socket" not in kwargs

    def test_no_database(self, handshake):
        kwargs = handshake.build_connect_kwargs(parse_dsn("u@tcp(h:3306)/"), None)
        assert kwargs["database"] is None

    def test_unix_socket(self, handshake):
        config = parse_dsn("u@unix(/var/run/mysqld/mysqld.sock)/db")
        kwargs = handshake.build_connect_kwargs(config, None)

        assert kwargs["unix_socket"] == "/var/run/mysqld/mysqld.sock"
        assert "host" not in kwargs

    def test_charset_from_collation(self, handshake):
        config = parse_dsn("u@tcp(h:3306)/db?collation=latin1_swedish_ci")
        kwargs = handshake.build_connect_kwargs(config, None)
        assert kwargs["charset"] == "latin1"
        assert kwargs["collation"] == "latin1_swedish_ci"

    def test_max_allowed_packet(self, handshake):
        config = parse_dsn("u@tcp(h:3306)/db?maxAllowedPacket=4194304")
        assert handshake.build_connect_kwargs(config, None)["max_allowed_packet"] == 4194304

    def test_deadlines(self, handshake):
        config = parse_dsn("u@tcp(h:3306)/db?timeout=5s&readTimeout=30s&writeTimeout=1m")
        kwargs = handshake.build_connect_kwargs(config, None)
        assert kwargs["connect_timeout"] == 5
        assert kwargs["read_timeout"] == 30
        assert kwargs["write_timeout"] == 60

    def test_unset_deadlines_omitted(self, handshake):
        kwargs = handshake.build_connect_kwargs(parse_dsn("u@tcp(h:3306)/db"), None)
        assert "connect_timeout" not in kwargs
        assert "read_timeout" not in kwargs
        assert "write_timeout" not in kwargs

    def test_connect_uses_connection_class(self, handshake):
        handshake.connection_class = MagicMock()
        config = parse_dsn("u:tok@tcp(h:3306)/db")

        connection = handshake.connect(config, None)

        assert connection is handshake.connection_class.return_value
        assert handshake.connection_class.call_args.kwargs["password"] == "tok"


class TestTlsKwargs:
    def test_profile_requires_tls(self, handshake, context):
        kwargs = handshake.build_connect_kwargs(parse_dsn("u@tcp(h:3306)/db?tls=aws-rds"), context)
        assert kwargs["ssl"] is context
        assert kwargs["require_tls"] is True

    def test_preferred_allows_plaintext(self, handshake, context):
        kwargs = handshake.build_connect_kwargs(parse_dsn("u@tcp(h:3306)/db?tls=preferred"), context)
        assert kwargs["ssl"] is context
        assert kwargs["require_tls"] is False

    def test_disabled(self, handshake):
        kwargs = handshake.build_connect_kwargs(parse_dsn("u@tcp(h:3306)/db"), None)
        assert kwargs["ssl"] is None
        assert kwargs["require_tls"] is False


# ============================================================================
# DECODERS & INIT COMMAND
# ============================================================================

class TestConverters:
    def test_parse_time_off_keeps_strings(self):
        conv = build_converters(parse_dsn("u@tcp(h:3306)/db"))
        for field_type in (FIELD_TYPE.DATE, FIELD_TYPE.DATETIME, FIELD_TYPE.TIMESTAMP):
            assert conv[field_type] is converters.through

    def test_parse_time_utc(self):
        conv = build_converters(parse_dsn("u@tcp(h:3306)/db?parseTime=true"))
        value = conv[FIELD_TYPE.DATETIME]("2026-10-19 08:30:00")
        assert value == datetime.datetime(2026, 10, 19, 8, 30, tzinfo=datetime.timezone.utc)

    def test_parse_time_zero_date_passes_through(self):
        conv = build_converters(parse_dsn("u@tcp(h:3306)/db?parseTime=true"))
        assert conv[FIELD_TYPE.TIMESTAMP]("0000-00-00 00:00:00") == "0000-00-00 00:00:00"

    def test_parse_time_local_is_naive(self):
        conv = build_converters(parse_dsn("u@tcp(h:3306)/db?parseTime=true&loc=Local"))
        assert conv[FIELD_TYPE.DATETIME] is converters.conversions[FIELD_TYPE.DATETIME]

    def test_date_column_decoded(self):
        conv = build_converters(parse_dsn("u@tcp(h:3306)/db?parseTime=true"))
        assert conv[FIELD_TYPE.DATE]("2026-10-19") == datetime.date(2026, 10, 19)

    def test_global_table_untouched(self):
        original = converters.conversions[FIELD_TYPE.DATETIME]
        build_converters(parse_dsn("u@tcp(h:3306)/db"))
        assert converters.conversions[FIELD_TYPE.DATETIME] is original


class TestInitCommand:
    def test_no_params(self):
        assert build_init_command({}) is None

    def test_sorted_assignments(self):
        assert build_init_command({"sql_mode": "'TRADITIONAL'", "autocommit": "1"}) == (
            "SET autocommit=1, sql_mode='TRADITIONAL'"
        )

    def test_from_connection_string(self, handshake):
        config = parse_dsn("u@tcp(h:3306)/db?time_zone=%27%2B00%3A00%27")
        assert handshake.build_connect_kwargs(config, None)["init_command"] == "SET time_zone='+00:00'"


# ============================================================================
# AUTH GUARDS
# ============================================================================

class TestAuthPluginGuards:
    def test_cleartext_refused_by_default(self, handshake):
        kwargs = handshake.build_connect_kwargs(parse_dsn("u@tcp(h:3306)/db"), None)
        refuse = kwargs["auth_plugin_map"]["mysql_clear_password"](MagicMock())

        with pytest.raises(pymysql.err.OperationalError) as excinfo:
            refuse.authenticate(b"\x00")

        assert excinfo.value.args[0] == CR.CR_AUTH_PLUGIN_CANNOT_LOAD

    def test_cleartext_allowed(self, handshake):
        kwargs = handshake.build_connect_kwargs(parse_dsn("u@tcp(h:3306)/db?allowCleartextPasswords=true"), None)
        assert "auth_plugin_map" not in kwargs

    def test_native_refused(self, handshake):
        config = parse_dsn("u@tcp(h:3306)/db?allowCleartextPasswords=true&allowNativePasswords=false")
        kwargs = handshake.build_connect_kwargs(config, None)
        assert set(kwargs["auth_plugin_map"]) == {"mysql_native_password"}
        assert kwargs["allow_native_passwords"] is False


def _bare_connection(**attrs):
    """GuardedConnection without running __init__ (no socket)."""
    conn = GuardedConnection.__new__(GuardedConnection)
    defaults = {
        "require_tls": False,
        "allow_native_passwords": True,
        "server_capabilities": 0,
        "host": "db.example.com",
        "_auth_plugin_name": "mysql_clear_password",
    }
    defaults.update(attrs)
    for name, value in defaults.items():
        setattr(conn, name, value)
    return conn


class TestGuardedConnection:
    def test_refuses_plaintext_server_when_tls_required(self):
        conn = _bare_connection(require_tls=True, server_capabilities=0)

        with patch.object(pymysql.connections.Connection, "_request_authentication") as parent:
            with pytest.raises(pymysql.err.OperationalError) as excinfo:
                conn._request_authentication()

        assert excinfo.value.args[0] == CR.CR_SSL_CONNECTION_ERROR
        parent.assert_not_called()

    def test_tls_server_proceeds(self):
        conn = _bare_connection(require_tls=True, server_capabilities=pymysql.constants.CLIENT.SSL)

        with patch.object(pymysql.connections.Connection, "_request_authentication") as parent:
            conn._request_authentication()

        parent.assert_called_once()

    def test_plaintext_allowed_when_not_required(self):
        conn = _bare_connection(require_tls=False, server_capabilities=0)

        with patch.object(pymysql.connections.Connection, "_request_authentication") as parent:
            conn._request_authentication()

        parent.assert_called_once()

    def test_native_initial_plugin_refused(self):
        conn = _bare_connection(allow_native_passwords=False, _auth_plugin_name="mysql_native_password")

        with patch.object(pymysql.connections.Connection, "_request_authentication") as parent:
            with pytest.raises(pymysql.err.OperationalError) as excinfo:
                conn._request_authentication()

        assert excinfo.value.args[0] == CR.CR_AUTH_PLUGIN_CANNOT_LOAD
        parent.assert_not_called()
