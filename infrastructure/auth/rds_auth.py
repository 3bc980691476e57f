# ============================================================================
# RDS IAM AUTHENTICATION
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - IAM database auth token minting
# PURPOSE: Sign a fresh RDS auth token for every new physical connection
# CREATED: 19 OCT 2026
# ============================================================================
"""
RDS IAM authentication for the connector.

Mints short-lived IAM database authentication tokens. A token is a SigV4
presigned URL (service "rds-db") with its scheme removed, valid for 15
minutes, used once as the MySQL password.

Authentication Flow:
-------------------
1. Opener needs a new physical connection -> TokenMinter.mint() called
2. Credentials provider returns the current AWS credential snapshot
3. Signer presigns GET https://host:port/?Action=connect&DBUser=user
4. On failure, one more attempt (2 total), no backoff
5. Token returned to the opener, never cached

Tokens are scoped to the exact endpoint and user they were signed for, so
every call re-signs.

Usage:
------
```python
from infrastructure.auth import TokenMinter, BotoCredentialsProvider

provider = BotoCredentialsProvider.from_environment()
token = TokenMinter().mint(target, "us-east-1", provider)
```
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from botocore.auth import SigV4QueryAuth
from botocore.awsrequest import AWSRequest
from botocore.credentials import ReadOnlyCredentials

from core.contracts import CredentialsProvider, TokenSigner
from core.errors import AuthTokenFailure, RetryExhausted
from core.models.credentials import AuthToken, CredentialSnapshot
from core.models.target import ConnectionTarget
from infrastructure.retry import retry_call

logger = logging.getLogger(__name__)

# SigV4 service name for IAM database authentication
RDS_SIGNING_NAME = "rds-db"

# RDS accepts a token for 15 minutes after signing
TOKEN_LIFETIME_SECS = 900

# Total signing attempts per mint, first one included
MAX_AUTH_TOKEN_ATTEMPTS = 2


def sign_rds_auth_token(
    endpoint: str,
    region: str,
    user: str,
    credentials: CredentialSnapshot,
    expires_in: int = TOKEN_LIFETIME_SECS,
) -> str:
    """
    Presign an RDS IAM authentication token.

    Produces the same string as boto3's rds.generate_db_auth_token, but
    from an explicit credential snapshot rather than a client.

    Args:
        endpoint: host:port of the database endpoint.
        region: AWS region the database lives in.
        user: Database user the token authenticates.
        credentials: Current AWS credentials.
        expires_in: Token validity in seconds.

    Returns:
        host:port/?Action=connect&DBUser=...&X-Amz-... (no scheme).
    """
    request = AWSRequest(
        method="GET",
        url=f"https://{endpoint}/",
        params={"Action": "connect", "DBUser": user},
    )
    signer = SigV4QueryAuth(
        ReadOnlyCredentials(credentials.access_key, credentials.secret_key, credentials.token),
        RDS_SIGNING_NAME,
        region,
        expires=expires_in,
    )
    # add_auth folds the params into request.url alongside the X-Amz-* fields
    signer.add_auth(request)
    return request.url[len("https://"):]


class TokenMinter:
    """
    Bounded-retry IAM token generation.

    Holds no state between calls: credentials are fetched from the provider
    on every attempt and tokens are never cached.
    """

    def __init__(
        self,
        signer: TokenSigner = sign_rds_auth_token,
        max_attempts: int = MAX_AUTH_TOKEN_ATTEMPTS,
        token_lifetime_secs: int = TOKEN_LIFETIME_SECS,
    ):
        self.signer = signer
        self.max_attempts = max_attempts
        self.token_lifetime_secs = token_lifetime_secs

    def mint(
        self,
        target: ConnectionTarget,
        region: str,
        credentials: CredentialsProvider,
    ) -> AuthToken:
        """
        Generate a fresh authentication token for `target`.

        Empty region or user are passed through; rejecting them is the
        signer's job.

        Raises:
            AuthTokenFailure: Every attempt failed. Chained to the last error.
        """
        used: Optional[CredentialSnapshot] = None

        def attempt() -> str:
            nonlocal used
            snapshot = credentials.get_credentials()
            used = snapshot
            return self.signer(target.endpoint, region, target.user, snapshot)

        def on_failure(attempt_number: int, error: Exception) -> None:
            logger.warning(
                f"Auth token attempt {attempt_number}/{self.max_attempts} failed "
                f"for {target.user}@{target.endpoint}: {type(error).__name__}: {error}"
            )

        try:
            value = retry_call(attempt, self.max_attempts, on_failure=on_failure)
        except RetryExhausted as e:
            logger.error(
                f"Auth token generation failed after {e.attempts} attempt(s) "
                f"for {target.user}@{target.endpoint} region={region or '<unset>'}"
            )
            raise AuthTokenFailure(
                f"failed to generate auth token for {target.user}@{target.endpoint}: "
                f"{type(e.last_error).__name__}: {e.last_error}",
                attempts=e.attempts,
            ) from e.last_error

        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + timedelta(seconds=self.token_lifetime_secs)
        remaining = used.seconds_remaining(issued_at)
        if remaining is not None and remaining < self.token_lifetime_secs:
            logger.info(
                f"AWS credentials expire in {remaining:.0f}s, before the "
                f"{self.token_lifetime_secs}s token window for {target.user}@{target.endpoint}"
            )
            expires_at = used.expiry

        logger.debug(
            f"Auth token minted for {target.user}@{target.endpoint}, "
            f"expires {expires_at.isoformat()}"
        )
        return AuthToken(value=value, issued_at=issued_at, expires_at=expires_at)


__all__ = [
    "RDS_SIGNING_NAME",
    "TOKEN_LIFETIME_SECS",
    "MAX_AUTH_TOKEN_ATTEMPTS",
    "sign_rds_auth_token",
    "TokenMinter",
]
