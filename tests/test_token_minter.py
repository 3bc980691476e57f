# ============================================================================
# TOKEN MINTER TESTS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Tests - IAM auth token signing and bounded retry
# PURPOSE: Verify token shape, retry bound, no caching, credential providers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Token Minter Tests

Covers:
1. sign_rds_auth_token produces an rds-db SigV4 presigned URL without scheme
2. TokenMinter retry interleavings (2 attempts, no backoff)
3. AuthTokenFailure chaining and attempt count
4. Fresh credentials and a fresh signature on every mint
5. Token expiry bounded by credential expiry
6. BotoCredentialsProvider snapshotting

Run with:
    pytest tests/test_token_minter.py -v
"""

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from botocore.credentials import ReadOnlyCredentials
from botocore.exceptions import NoCredentialsError

from core.errors import AuthTokenFailure, CredentialsUnavailable
from core.models import ConnectionTarget, CredentialSnapshot
from infrastructure.auth import (
    BotoCredentialsProvider,
    StaticCredentialsProvider,
    TokenMinter,
    sign_rds_auth_token,
)


# ============================================================================
# FIXTURES
# ============================================================================

class CountingProvider:
    """Credentials provider that counts get_credentials() calls."""

    def __init__(self, snapshot=None, errors=()):
        self.snapshot = snapshot or CredentialSnapshot("AKIDEXAMPLE", "secret")
        self.errors = list(errors)
        self.calls = 0

    def get_credentials(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.snapshot


class ScriptedSigner:
    """Signer returning/raising scripted outcomes and recording its arguments."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, endpoint, region, user, credentials):
        self.calls.append((endpoint, region, user, credentials))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def target():
    return ConnectionTarget(host="db.example.com", port=3306, database="mydb", user="iam_user")


# ============================================================================
# SIGNER
# ============================================================================

class TestSignRdsAuthToken:
    """Test the botocore presigned token."""

    def test_token_shape(self):
        token = sign_rds_auth_token(
            "db.example.com:3306",
            "us-east-1",
            "iam_user",
            CredentialSnapshot("AKIDEXAMPLE", "secret"),
        )
        assert token.startswith("db.example.com:3306/?Action=connect&DBUser=iam_user&")
        assert "X-Amz-Algorithm=AWS4-HMAC-SHA256" in token
        assert "X-Amz-Credential=AKIDEXAMPLE%2F" in token
        assert "%2Fus-east-1%2Frds-db%2Faws4_request" in token
        assert "X-Amz-Expires=900" in token
        assert "X-Amz-Signature=" in token
        assert "X-Amz-Security-Token" not in token
        assert not token.startswith("https://")

    def test_session_token_included(self):
        token = sign_rds_auth_token(
            "db.example.com:3306",
            "eu-west-1",
            "iam_user",
            CredentialSnapshot("ASIAEXAMPLE", "secret", token="session-token"),
        )
        assert "X-Amz-Security-Token=session-token" in token

    def test_custom_expiry(self):
        token = sign_rds_auth_token(
            "db:3306", "us-east-1", "u", CredentialSnapshot("AK", "SK"), expires_in=60,
        )
        assert "X-Amz-Expires=60" in token


# ============================================================================
# MINTER RETRY
# ============================================================================

class TestTokenMinterRetry:
    """Test the bounded retry around the signer."""

    def test_first_attempt_success(self, target):
        signer = ScriptedSigner("tok-1")
        provider = CountingProvider()

        token = TokenMinter(signer=signer).mint(target, "us-east-1", provider)

        assert token.value == "tok-1"
        assert len(signer.calls) == 1
        assert provider.calls == 1
        assert signer.calls[0] == ("db.example.com:3306", "us-east-1", "iam_user", provider.snapshot)

    def test_fail_then_succeed(self, target):
        signer = ScriptedSigner(RuntimeError("throttled"), "tok-2")
        provider = CountingProvider()

        token = TokenMinter(signer=signer).mint(target, "us-east-1", provider)

        assert token.value == "tok-2"
        assert len(signer.calls) == 2
        assert provider.calls == 2

    def test_both_attempts_fail(self, target):
        last = RuntimeError("bad region")
        signer = ScriptedSigner(RuntimeError("first"), last, "never")

        with pytest.raises(AuthTokenFailure) as excinfo:
            TokenMinter(signer=signer).mint(target, "us-east-1", CountingProvider())

        assert len(signer.calls) == 2
        assert excinfo.value.attempts == 2
        assert excinfo.value.__cause__ is last
        assert "iam_user@db.example.com:3306" in str(excinfo.value)

    def test_credentials_failure_counts_as_attempt(self, target):
        signer = ScriptedSigner("tok-after-refresh")
        provider = CountingProvider(errors=[CredentialsUnavailable("expired")])

        token = TokenMinter(signer=signer).mint(target, "us-east-1", provider)

        assert token.value == "tok-after-refresh"
        assert provider.calls == 2
        assert len(signer.calls) == 1

    def test_credentials_unavailable_on_every_attempt(self, target):
        signer = ScriptedSigner()
        provider = CountingProvider(errors=[CredentialsUnavailable("none"), CredentialsUnavailable("none")])

        with pytest.raises(AuthTokenFailure) as excinfo:
            TokenMinter(signer=signer).mint(target, "us-east-1", provider)

        assert isinstance(excinfo.value.__cause__, CredentialsUnavailable)
        assert signer.calls == []

    def test_empty_region_and_user_still_signed(self):
        signer = ScriptedSigner("tok")
        target = ConnectionTarget(host="db", port=3306)

        TokenMinter(signer=signer).mint(target, "", CountingProvider())

        endpoint, region, user, _ = signer.calls[0]
        assert (endpoint, region, user) == ("db:3306", "", "")

    def test_custom_attempt_bound(self, target):
        signer = ScriptedSigner(*[RuntimeError("x")] * 3)
        with pytest.raises(AuthTokenFailure) as excinfo:
            TokenMinter(signer=signer, max_attempts=3).mint(target, "us-east-1", CountingProvider())
        assert excinfo.value.attempts == 3


# ============================================================================
# NO CACHING & EXPIRY
# ============================================================================

class TestTokenMinterFreshness:
    def test_every_mint_resigns(self, target):
        signer = ScriptedSigner("tok-a", "tok-b")
        provider = CountingProvider()
        minter = TokenMinter(signer=signer)

        first = minter.mint(target, "us-east-1", provider)
        second = minter.mint(target, "us-east-1", provider)

        assert (first.value, second.value) == ("tok-a", "tok-b")
        assert provider.calls == 2

    def test_expiry_is_token_lifetime(self, target):
        token = TokenMinter(signer=ScriptedSigner("tok")).mint(target, "us-east-1", CountingProvider())
        assert token.expires_at - token.issued_at == timedelta(seconds=900)
        assert not token.is_expired()

    def test_expiry_bounded_by_credentials(self, target):
        soon = datetime.now(timezone.utc) + timedelta(minutes=2)
        provider = CountingProvider(CredentialSnapshot("AK", "SK", token="t", expiry=soon))

        token = TokenMinter(signer=ScriptedSigner("tok")).mint(target, "us-east-1", provider)

        assert token.expires_at == soon

    def test_short_lived_credentials_logged(self, target, caplog):
        soon = datetime.now(timezone.utc) + timedelta(minutes=2)
        provider = CountingProvider(CredentialSnapshot("AK", "SK", token="t", expiry=soon))

        with caplog.at_level(logging.INFO, logger="infrastructure.auth.rds_auth"):
            TokenMinter(signer=ScriptedSigner("tok")).mint(target, "us-east-1", provider)

        assert any("before the 900s token window" in r.getMessage() for r in caplog.records)

    def test_long_lived_credentials_keep_token_window(self, target):
        later = datetime.now(timezone.utc) + timedelta(hours=1)
        provider = CountingProvider(CredentialSnapshot("AK", "SK", token="t", expiry=later))

        token = TokenMinter(signer=ScriptedSigner("tok")).mint(target, "us-east-1", provider)

        assert token.expires_at - token.issued_at == timedelta(seconds=900)

    def test_token_value_not_in_repr(self, target):
        token = TokenMinter(signer=ScriptedSigner("super-secret")).mint(target, "us-east-1", CountingProvider())
        assert "super-secret" not in repr(token)
        assert "super-secret" not in str(token)

    def test_real_signer_with_static_credentials(self, target):
        provider = StaticCredentialsProvider("AKIDEXAMPLE", "secret")
        token = TokenMinter().mint(target, "us-east-1", provider)
        assert token.value.startswith("db.example.com:3306/?Action=connect&DBUser=iam_user&")


# ============================================================================
# BOTO CREDENTIALS PROVIDER
# ============================================================================

class TestBotoCredentialsProvider:
    """Test snapshotting botocore credentials."""

    def _session(self, credentials, region="us-east-1"):
        session = MagicMock()
        session.region_name = region
        session.get_credentials.return_value = credentials
        return session

    def _credentials(self, expiry=None):
        credentials = MagicMock()
        credentials.method = "assume-role"
        credentials.get_frozen_credentials.return_value = ReadOnlyCredentials("AK", "SK", "TOK")
        credentials._expiry_time = expiry
        return credentials

    def test_snapshot_fields(self):
        expiry = datetime(2030, 1, 1, tzinfo=timezone.utc)
        provider = BotoCredentialsProvider(self._session(self._credentials(expiry)))

        snapshot = provider.get_credentials()

        assert snapshot.access_key == "AK"
        assert snapshot.secret_key == "SK"
        assert snapshot.token == "TOK"
        assert snapshot.expiry == expiry

    def test_naive_expiry_treated_as_utc(self):
        provider = BotoCredentialsProvider(self._session(self._credentials(datetime(2030, 1, 1))))
        assert provider.get_credentials().expiry == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_static_keys_have_no_expiry(self):
        provider = BotoCredentialsProvider(self._session(self._credentials(None)))
        assert provider.get_credentials().expiry is None

    def test_chain_resolved_once_snapshot_taken_every_call(self):
        credentials = self._credentials()
        session = self._session(credentials)
        provider = BotoCredentialsProvider(session)

        provider.get_credentials()
        provider.get_credentials()

        assert session.get_credentials.call_count == 1
        assert credentials.get_frozen_credentials.call_count == 2

    def test_no_credentials(self):
        provider = BotoCredentialsProvider(self._session(None))
        with pytest.raises(CredentialsUnavailable, match="No AWS credentials"):
            provider.get_credentials()

    def test_refresh_failure(self):
        credentials = self._credentials()
        credentials.get_frozen_credentials.side_effect = NoCredentialsError()
        provider = BotoCredentialsProvider(self._session(credentials))
        with pytest.raises(CredentialsUnavailable, match="refresh failed"):
            provider.get_credentials()

    def test_region(self):
        assert BotoCredentialsProvider(self._session(None, region="eu-west-1")).region == "eu-west-1"
        assert BotoCredentialsProvider(self._session(None, region=None)).region == ""

    def test_secret_not_in_snapshot_repr(self):
        provider = BotoCredentialsProvider(self._session(self._credentials()))
        text = repr(provider.get_credentials())
        assert "SK" not in text
        assert "TOK" not in text
