# ============================================================================
# TRUST STORE LOADER
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - Pinned certificate trust chain
# PURPOSE: Build the TLS verification pool once at startup
# CREATED: 19 OCT 2026
# ============================================================================
"""
Trust Store Loader

Builds the certificate verification pool every connection is checked
against. The pool contains only the certificates of the bundle; the system
trust store is never loaded into it.

The default bundle ships in infrastructure/certs and holds the Amazon Root
CA 1-4 certificates (the chain RDS Proxy endpoints present). Direct RDS
instance endpoints are signed by the RDS CAs; point RDS_CA_BUNDLE_PATH at the
RDS global bundle for those:

    https://truststore.pki.rds.amazonaws.com/global/global-bundle.pem

Usage:
    from infrastructure.tls import build_trust_bundle, load_ca_bundle

    bundle = build_trust_bundle(load_ca_bundle())
    profile = TransportProfile(name="aws-rds", bundle=bundle)
"""

import hashlib
import logging
import re
import ssl
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from core.errors import InvalidCertificateData

logger = logging.getLogger(__name__)

CERTS_DIR = Path(__file__).parent / "certs"
EMBEDDED_BUNDLE = CERTS_DIR / "amazon-root-ca-bundle.pem"

_PEM_BLOCK = re.compile(
    rb"-----BEGIN CERTIFICATE-----\s*(.*?)\s*-----END CERTIFICATE-----",
    re.DOTALL,
)


@dataclass(frozen=True)
class TrustBundle:
    """
    Verification pool built from a PEM bundle.

    `context` is shared by every connection and must not be modified.
    """
    certificate_count: int
    fingerprint: str
    context: ssl.SSLContext = field(repr=False, compare=False)


@dataclass(frozen=True)
class TransportProfile:
    """A trust bundle registered under a stable name."""
    name: str
    bundle: TrustBundle

    @property
    def ssl_context(self) -> ssl.SSLContext:
        return self.bundle.context


def load_ca_bundle(path: Optional[str] = None) -> bytes:
    """
    Read the certificate bundle.

    Args:
        path: Bundle file to use instead of the embedded one.

    Raises:
        InvalidCertificateData: If the file cannot be read.
    """
    bundle_path = Path(path) if path else EMBEDDED_BUNDLE
    try:
        data = bundle_path.read_bytes()
    except OSError as e:
        raise InvalidCertificateData(f"Cannot read certificate bundle {bundle_path}: {e}") from e
    logger.debug(f"Read certificate bundle {bundle_path} ({len(data)} bytes)")
    return data


def build_trust_bundle(pem: bytes) -> TrustBundle:
    """
    Parse PEM certificates into a TLS client verification pool.

    Every certificate in the bundle must load. One bad block fails the whole
    bundle.

    Args:
        pem: One or more PEM-encoded certificates.

    Returns:
        TrustBundle with a TLS 1.2+ client context that requires a valid
        certificate and checks the hostname.

    Raises:
        InvalidCertificateData: If the bundle is empty or any certificate is
            malformed.
    """
    if not pem or not pem.strip():
        raise InvalidCertificateData("Certificate bundle is empty")

    blocks = _PEM_BLOCK.findall(pem)
    if not blocks:
        raise InvalidCertificateData("Certificate bundle contains no PEM certificates")

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED

    for index, body in enumerate(blocks, start=1):
        block = b"-----BEGIN CERTIFICATE-----\n" + body + b"\n-----END CERTIFICATE-----\n"
        try:
            context.load_verify_locations(cadata=block.decode("ascii"))
        except (ssl.SSLError, ValueError) as e:
            raise InvalidCertificateData(
                f"Certificate {index} of {len(blocks)} in bundle is malformed: {e}"
            ) from e

    fingerprint = hashlib.sha256(pem).hexdigest()
    logger.info(f"Trust bundle built: {len(blocks)} certificate(s), sha256={fingerprint[:16]}")

    return TrustBundle(
        certificate_count=len(blocks),
        fingerprint=fingerprint,
        context=context,
    )


@lru_cache(maxsize=None)
def system_trust_context() -> ssl.SSLContext:
    """Context verifying against the system trust store (tls=true)."""
    return ssl.create_default_context(ssl.Purpose.SERVER_AUTH)


@lru_cache(maxsize=None)
def unverified_context() -> ssl.SSLContext:
    """Encrypting context that skips certificate checks (tls=skip-verify/preferred)."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


__all__ = [
    "TrustBundle",
    "TransportProfile",
    "EMBEDDED_BUNDLE",
    "load_ca_bundle",
    "build_trust_bundle",
    "system_trust_context",
    "unverified_context",
]
