#!/usr/bin/env python3
# ============================================================================
# RDS IAM CONNECTOR - MAIN ENTRY POINT
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - Command line entry point
# PURPOSE: Wire registry and pool from the environment, ping, optionally query
# CREATED: 19 OCT 2026
# ============================================================================
"""
RDS IAM Connector Main Entry Point

1. Loads DB_* endpoint settings and the AWS default configuration
2. Builds the trust bundle and registers the IAM driver
3. Creates a pooled engine over the driver and pings the database
4. With --query, prints the result rows as JSON lines

Exit codes:
    0  ping (and query) succeeded
    1  configuration or certificate bundle error
    2  database unreachable or authentication failed

Usage:
    DB_HOSTNAME=mydb.abc123.us-east-1.rds.amazonaws.com \\
    DB_USERNAME=iam_user DB_NAME=app AWS_REGION=us-east-1 \\
        python main.py --query "SELECT NOW() AS now"
"""

import argparse
import json
import os
import sys

from botocore.exceptions import BotoCoreError
from sqlalchemy.exc import SQLAlchemyError

from __version__ import __version__, EPOCH
from core.config import DatabaseEnvironment, get_defaults
from core.dsn import format_dsn, redact_dsn
from core.errors import NETWORK_ERRORS, ConnectorError, InvalidCertificateData, ParseError
from core.logging import configure_logging, get_logger, ComponentType
from infrastructure.auth import BotoCredentialsProvider, TokenMinter
from infrastructure.registry import build_registry
from infrastructure.tls import load_ca_bundle
from repositories.database import create_connector_engine, dispose, fetch_all, ping

logger = get_logger(__name__, ComponentType.CLI)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_DATABASE = 2

# Creator errors arrive either wrapped by SQLAlchemy or unchanged
DATABASE_ERRORS = (ConnectorError, SQLAlchemyError) + NETWORK_ERRORS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Connect to MySQL on RDS with IAM authentication tokens",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --query "SELECT NOW() AS now"
  %(prog)s --dsn "app:#OVERRIDE#@tcp(db.example.com:3306)/app?tls=aws-rds"
        """,
    )
    parser.add_argument(
        "--query", "-q",
        help="SQL to run after the ping; rows are printed as JSON lines",
    )
    parser.add_argument(
        "--dsn", "-d",
        help="Connection string to use instead of one built from DB_* variables",
    )
    parser.add_argument(
        "--ca-bundle",
        default=None,
        help="PEM bundle to trust (default: RDS_CA_BUNDLE_PATH or the shipped bundle)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Log level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit structured JSON logs (also LOG_FORMAT=json)",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, json_output=args.json_logs)
    logger.info(f"Starting RDS IAM connector v{__version__} (Epoch {EPOCH})")

    defaults = get_defaults()
    env = DatabaseEnvironment.from_env()

    if args.dsn:
        dsn = args.dsn
    else:
        missing = env.missing()
        if missing:
            logger.error(f"Missing environment variables: {', '.join(missing)}")
            return EXIT_CONFIG
        dsn = format_dsn(env.to_config(defaults.connector, defaults.session, defaults.timeouts))

    try:
        provider = BotoCredentialsProvider.from_environment(
            profile_name=env.aws_profile,
            region_name=env.aws_region,
        )
    except BotoCoreError as e:
        logger.error(f"Cannot load AWS configuration: {e}")
        return EXIT_CONFIG

    minter = TokenMinter(
        max_attempts=defaults.connector.max_auth_token_attempts,
        token_lifetime_secs=defaults.connector.token_lifetime_secs,
    )

    try:
        pem = load_ca_bundle(args.ca_bundle or defaults.connector.ca_bundle_path)
        registry = build_registry(
            pem,
            provider.region,
            provider,
            override_password=defaults.connector.override_password,
            driver_name=defaults.connector.driver_name,
            profile_name=defaults.connector.tls_profile,
            minter=minter,
            timeouts=defaults.timeouts,
        )
    except InvalidCertificateData as e:
        logger.error(f"Cannot build trust store: {e}")
        return EXIT_CONFIG

    logger.info(f"Connection string: {redact_dsn(dsn)}")

    try:
        engine = create_connector_engine(
            registry,
            dsn,
            driver_name=defaults.connector.driver_name,
            pool=defaults.pool,
        )
    except ParseError as e:
        logger.error(f"Invalid connection string: {e}")
        return EXIT_CONFIG

    try:
        try:
            ping(engine)
        except DATABASE_ERRORS as e:
            logger.error(f"Database ping failed: {type(e).__name__}: {e}")
            return EXIT_DATABASE

        if args.query:
            try:
                rows = fetch_all(engine, args.query)
            except DATABASE_ERRORS as e:
                logger.error(f"Query failed: {type(e).__name__}: {e}")
                return EXIT_DATABASE
            for row in rows:
                print(json.dumps(row, default=str))
            logger.info(f"{len(rows)} row(s)")
    finally:
        dispose(engine)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
