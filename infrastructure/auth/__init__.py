# ============================================================================
# AUTHENTICATION MODULE
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# PURPOSE: AWS credentials and RDS IAM token minting
# CREATED: 19 OCT 2026
# ============================================================================
"""
Authentication module for the RDS IAM connector.

Provides:
- Credential providers (boto3 default chain, static keys)
- IAM database auth token signing and bounded-retry minting

Usage:
    from infrastructure.auth import BotoCredentialsProvider, TokenMinter

    provider = BotoCredentialsProvider.from_environment()
    token = TokenMinter().mint(target, provider.region, provider)
"""

from infrastructure.auth.credentials import (
    BotoCredentialsProvider,
    StaticCredentialsProvider,
)
from infrastructure.auth.rds_auth import (
    MAX_AUTH_TOKEN_ATTEMPTS,
    RDS_SIGNING_NAME,
    TOKEN_LIFETIME_SECS,
    TokenMinter,
    sign_rds_auth_token,
)

__all__ = [
    'BotoCredentialsProvider',
    'StaticCredentialsProvider',
    'TokenMinter',
    'sign_rds_auth_token',
    'RDS_SIGNING_NAME',
    'TOKEN_LIFETIME_SECS',
    'MAX_AUTH_TOKEN_ATTEMPTS',
]
