# ============================================================================
# CREDENTIAL & TOKEN MODELS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core model - AWS credentials and IAM auth tokens
# PURPOSE: Value objects passed between provider, minter and opener
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: CredentialSnapshot, AuthToken
# DEPENDENCIES: dataclasses
# ============================================================================
"""
Credential and token value objects.

Neither object is cached by the connector. A CredentialSnapshot is fetched
from the provider for every mint, and an AuthToken is used as the password
of exactly one connection. Secret material is kept out of repr().
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class CredentialSnapshot:
    """AWS credentials as of one get_credentials() call."""
    access_key: str
    secret_key: str = field(repr=False)
    token: Optional[str] = field(default=None, repr=False)
    expiry: Optional[datetime] = None

    def seconds_remaining(self, now: Optional[datetime] = None) -> Optional[float]:
        """Seconds until expiry, or None when the provider reports no expiry."""
        if self.expiry is None:
            return None
        now = now or datetime.now(timezone.utc)
        return (self.expiry - now).total_seconds()


@dataclass(frozen=True)
class AuthToken:
    """Short-lived IAM database authentication token."""
    value: str = field(repr=False)
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the token validity window has passed."""
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def __str__(self) -> str:
        return f"AuthToken(expires_at={self.expires_at.isoformat()})"


__all__ = ["CredentialSnapshot", "AuthToken"]
