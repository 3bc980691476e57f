# ============================================================================
# AWS CREDENTIAL PROVIDERS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - Credential capability adapters
# PURPOSE: Expose current AWS credentials through get_credentials()
# CREATED: 19 OCT 2026
# ============================================================================
"""
AWS Credential Providers

The connector consumes credentials through a single capability:

    provider.get_credentials() -> CredentialSnapshot

Refresh and expiry belong to the provider. BotoCredentialsProvider delegates
to the boto3 default chain (environment, shared config/profile, web identity
/ IRSA, container and instance metadata); botocore's RefreshableCredentials
refreshes under its own lock. Nothing here caches a snapshot.

Usage:
    from infrastructure.auth import BotoCredentialsProvider

    provider = BotoCredentialsProvider.from_environment(region_name="us-east-1")
    snapshot = provider.get_credentials()
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError

from core.errors import CredentialsUnavailable
from core.models.credentials import CredentialSnapshot

logger = logging.getLogger(__name__)


class BotoCredentialsProvider:
    """
    Credential provider backed by a boto3 session.

    The botocore credentials object is resolved once (it owns refresh);
    every get_credentials() call takes a fresh frozen copy from it.
    """

    def __init__(self, session: Optional[boto3.Session] = None):
        self._session = session or boto3.Session()
        self._credentials = None
        self._lock = threading.Lock()

    @classmethod
    def from_environment(
        cls,
        profile_name: Optional[str] = None,
        region_name: Optional[str] = None,
    ) -> "BotoCredentialsProvider":
        """Load the AWS default configuration (profile, region, credential chain)."""
        session = boto3.Session(profile_name=profile_name, region_name=region_name)
        logger.info(
            f"AWS session loaded: region={session.region_name or '<unset>'} "
            f"profile={session.profile_name}"
        )
        return cls(session)

    @property
    def region(self) -> str:
        """Region configured for the session ('' when none is set)."""
        return self._session.region_name or ""

    def get_credentials(self) -> CredentialSnapshot:
        """
        Return the credentials valid right now.

        Raises:
            CredentialsUnavailable: If the default chain finds no credentials
                or refreshing them fails.
        """
        credentials = self._resolve()
        try:
            frozen = credentials.get_frozen_credentials()
        except BotoCoreError as e:
            raise CredentialsUnavailable(f"AWS credential refresh failed: {e}") from e

        # botocore keeps the refresh deadline private; absent for static keys
        expiry = getattr(credentials, "_expiry_time", None)
        if isinstance(expiry, datetime) and expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)

        return CredentialSnapshot(
            access_key=frozen.access_key,
            secret_key=frozen.secret_key,
            token=frozen.token,
            expiry=expiry if isinstance(expiry, datetime) else None,
        )

    def _resolve(self):
        if self._credentials is None:
            with self._lock:
                if self._credentials is None:
                    try:
                        credentials = self._session.get_credentials()
                    except BotoCoreError as e:
                        raise CredentialsUnavailable(f"AWS credential chain failed: {e}") from e
                    if credentials is None:
                        raise CredentialsUnavailable(
                            "No AWS credentials found. Configure the environment, "
                            "a shared profile, or an instance/task role."
                        )
                    logger.info(f"AWS credentials resolved via {credentials.method}")
                    self._credentials = credentials
        return self._credentials


class StaticCredentialsProvider:
    """Fixed credentials (local development and tests)."""

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        token: Optional[str] = None,
        expiry: Optional[datetime] = None,
    ):
        self._snapshot = CredentialSnapshot(
            access_key=access_key,
            secret_key=secret_key,
            token=token,
            expiry=expiry,
        )

    def get_credentials(self) -> CredentialSnapshot:
        return self._snapshot


__all__ = ["BotoCredentialsProvider", "StaticCredentialsProvider"]
