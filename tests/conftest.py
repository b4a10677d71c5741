"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.x509.oid import NameOID

from certhealth.models import CertificateRecord, HealthThresholds

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for classification."""
    return NOW


@pytest.fixture
def thresholds() -> HealthThresholds:
    """Default thresholds."""
    return HealthThresholds()


@pytest.fixture
def make_record():
    """Factory for certificate records relative to NOW."""

    def _make(
        days_left: float = 365,
        signature_algorithm: str = "sha256RSA",
        key_size: int | None = 2048,
        **overrides,
    ) -> CertificateRecord:
        values = dict(
            subject="CN=example.test",
            thumbprint="A" * 40,
            not_before=NOW - timedelta(days=30),
            not_after=NOW + timedelta(days=days_left),
            signature_algorithm=signature_algorithm,
            key_size=key_size,
            source_location="/certs/example.pem",
        )
        values.update(overrides)
        return CertificateRecord(**values)

    return _make


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP384R1())


@pytest.fixture(scope="session")
def ed25519_key() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def make_cert(rsa_key):
    """Factory for self-signed certificates."""

    def _make(
        common_name: str = "example.test",
        key=None,
        algorithm=hashes.SHA256(),
        days_left: int = 365,
    ) -> x509.Certificate:
        key = key or rsa_key
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        now = datetime.now(timezone.utc)
        return (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(days=1))
            .not_valid_after(now + timedelta(days=days_left))
            .sign(key, algorithm)
        )

    return _make
