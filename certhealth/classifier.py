"""Certificate health classification.

Each axis is classified independently from a single record and a set of
thresholds. Nothing here performs I/O, so the functions are safe to call
concurrently across many records.
"""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from .models import (
    CertificateHealthReport,
    CertificateRecord,
    HealthStatus,
    HealthThresholds,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
ONE_MICROSECOND = timedelta(microseconds=1)
MICROSECONDS_PER_DAY = ONE_DAY // ONE_MICROSECOND


def _ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def whole_days(delta: timedelta) -> int:
    """Convert a timedelta to whole days, truncating toward zero."""
    return int(delta / ONE_DAY)


def classify_validity_period(
    not_after: datetime,
    thresholds: HealthThresholds,
    now: datetime,
) -> tuple[HealthStatus, str]:
    """Classify how close a certificate is to expiring.

    Conditions are checked from least to most severe and the first match
    wins. Inverted thresholds are not corrected.

    Args:
        not_after: End of the validity period.
        thresholds: Day thresholds to apply.
        now: Reference time for the evaluation.

    Returns:
        Tuple of (status, message).
    """
    remaining = _ensure_aware(not_after) - _ensure_aware(now)
    days = whole_days(remaining)
    # Compare in integer microseconds; thresholds may exceed the datetime range
    remaining_us = remaining // ONE_MICROSECOND

    if remaining_us > thresholds.warning_days * MICROSECONDS_PER_DAY:
        return HealthStatus.OK, f"Expires in {days} days"
    if remaining_us > thresholds.critical_days * MICROSECONDS_PER_DAY:
        return HealthStatus.WARNING, f"Expiring in {days} days"
    if remaining_us > 0:
        return HealthStatus.CRITICAL, f"Expiring in {days} days"
    return HealthStatus.CRITICAL, f"Expired {abs(days)} days ago"


def classify_algorithm(
    signature_algorithm: str,
    thresholds: HealthThresholds,
) -> tuple[HealthStatus, str]:
    """Classify a signature algorithm by exact membership in the configured sets.

    Critical is checked before warning. Names found in neither set are OK.
    """
    if signature_algorithm in thresholds.critical_algorithms:
        return HealthStatus.CRITICAL, f"Signature algorithm {signature_algorithm} is vulnerable"
    if signature_algorithm in thresholds.warning_algorithms:
        return HealthStatus.WARNING, f"Signature algorithm {signature_algorithm} is deprecated"
    return HealthStatus.OK, f"Signature algorithm {signature_algorithm} is acceptable"


def classify_key_size(
    key_size: int | None,
    thresholds: HealthThresholds,
) -> tuple[HealthStatus, str]:
    """Classify a public key size in bits."""
    if key_size is None:
        return HealthStatus.UNKNOWN, "Key size is unknown"
    if key_size < thresholds.critical_key_size:
        return (
            HealthStatus.CRITICAL,
            f"Key size {key_size} bits is below the critical threshold of "
            f"{thresholds.critical_key_size} bits",
        )
    if key_size < thresholds.warning_key_size:
        return (
            HealthStatus.WARNING,
            f"Key size {key_size} bits is below the recommended "
            f"{thresholds.warning_key_size} bits",
        )
    return (
        HealthStatus.OK,
        f"Key size {key_size} bits meets the recommended "
        f"{thresholds.warning_key_size} bits",
    )


def classify(
    record: CertificateRecord,
    thresholds: HealthThresholds,
    now: datetime,
) -> CertificateHealthReport:
    """Classify a certificate record on all three health axes.

    Args:
        record: Certificate attributes to classify.
        thresholds: Thresholds to apply.
        now: Reference time. Use the same value for every record in a batch.

    Returns:
        Health report carrying the record fields plus one verdict per axis.
    """
    validity_status, validity_message = classify_validity_period(
        record.not_after, thresholds, now
    )
    algorithm_status, algorithm_message = classify_algorithm(
        record.signature_algorithm, thresholds
    )
    key_status, key_message = classify_key_size(record.key_size, thresholds)

    return CertificateHealthReport(
        **record.model_dump(include=set(CertificateRecord.model_fields)),
        validity_period_status=validity_status,
        validity_period_message=validity_message,
        algorithm_status=algorithm_status,
        algorithm_message=algorithm_message,
        key_size_status=key_status,
        key_size_message=key_message,
    )


def classify_all(
    records: Iterable[CertificateRecord],
    thresholds: HealthThresholds,
    now: datetime | None = None,
    workers: int = 1,
) -> list[CertificateHealthReport]:
    """Classify a batch of records against one reference time.

    Args:
        records: Records to classify.
        thresholds: Thresholds to apply to every record.
        now: Reference time. Captured once for the batch if None.
        workers: Number of threads to fan the work out over.

    Returns:
        Reports in the same order as the input records.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    records = list(records)
    logger.debug("Classifying %d certificates with %d worker(s)", len(records), workers)

    if workers <= 1 or len(records) <= 1:
        return [classify(record, thresholds, now) for record in records]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        # map() yields results in input order
        return list(executor.map(lambda record: classify(record, thresholds, now), records))
