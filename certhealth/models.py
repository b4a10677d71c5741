"""Pydantic models for certhealth records and reports."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Health verdict for a single axis."""
    OK = "OK"
    WARNING = "Warning"
    CRITICAL = "Critical"
    UNKNOWN = "Unknown"

    def __lt__(self, other: "HealthStatus") -> bool:
        """Compare health levels (CRITICAL > WARNING > UNKNOWN > OK)."""
        order = {
            HealthStatus.OK: 0,
            HealthStatus.UNKNOWN: 1,
            HealthStatus.WARNING: 2,
            HealthStatus.CRITICAL: 3,
        }
        return order[self] < order[other]

    def __le__(self, other: "HealthStatus") -> bool:
        return self == other or self < other

    def __gt__(self, other: "HealthStatus") -> bool:
        return not self <= other

    def __ge__(self, other: "HealthStatus") -> bool:
        return not self < other


class CertificateRecord(BaseModel):
    """Normalized certificate attributes produced by a source."""
    model_config = ConfigDict(frozen=True)

    subject: str = Field(description="Certificate subject (RFC 4514)")
    thumbprint: str = Field(description="Upper-case hex SHA-1 fingerprint")
    not_before: datetime = Field(description="Start of the validity period")
    not_after: datetime = Field(description="End of the validity period")
    signature_algorithm: str = Field(description="Signature algorithm name, e.g. sha256RSA")
    key_size: int | None = Field(default=None, description="Public key size in bits, None if unknown")
    source_location: str = Field(description="File or store path the certificate was read from")
    issuer: str | None = Field(default=None, description="Certificate issuer (RFC 4514)")


class HealthThresholds(BaseModel):
    """Thresholds used to classify certificate health.

    Callers are expected to keep ``critical_days < warning_days`` and
    ``critical_key_size < warning_key_size``; neither is enforced.
    Algorithm names are matched exactly, so they must use the same
    vocabulary the sources produce (``sha1RSA``, ``md5RSA``, ...).
    """
    model_config = ConfigDict(frozen=True)

    warning_days: int = Field(default=60, description="Warn when expiring within this many days")
    critical_days: int = Field(default=30, description="Critical when expiring within this many days")
    warning_algorithms: frozenset[str] = Field(
        default=frozenset({"sha1RSA"}),
        description="Deprecated signature algorithms",
    )
    critical_algorithms: frozenset[str] = Field(
        default=frozenset({"md5RSA"}),
        description="Vulnerable signature algorithms",
    )
    critical_key_size: int = Field(default=1024, description="Key sizes below this are critical")
    warning_key_size: int = Field(default=2048, description="Key sizes below this are a warning")


class CertificateHealthReport(CertificateRecord):
    """A certificate record with a verdict and message for each health axis."""
    validity_period_status: HealthStatus
    validity_period_message: str
    algorithm_status: HealthStatus
    algorithm_message: str
    key_size_status: HealthStatus
    key_size_message: str

    def axes(self) -> list[tuple[str, HealthStatus, str]]:
        """Return ``(axis name, status, message)`` for each axis."""
        return [
            ("Validity Period", self.validity_period_status, self.validity_period_message),
            ("Algorithm", self.algorithm_status, self.algorithm_message),
            ("Key Size", self.key_size_status, self.key_size_message),
        ]


class SourceFailure(BaseModel):
    """A certificate source that could not be read."""
    model_config = ConfigDict(frozen=True)

    location: str = Field(description="Path that failed to load")
    error: str = Field(description="Human-readable error message")
