"""Certificate sources: load certificate files and stores into records."""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.serialization import pkcs7
from cryptography.x509.oid import SignatureAlgorithmOID

from .config import DEFAULT_FILE_TYPES
from .models import CertificateRecord, SourceFailure

logger = logging.getLogger(__name__)

PEM_MARKER = b"-----BEGIN"
PKCS7_SUFFIXES = {".p7b", ".p7c"}

# Signature OIDs mapped to the <hash><KeyType> names used in thresholds
SIGNATURE_ALGORITHM_NAMES = {
    SignatureAlgorithmOID.RSA_WITH_MD5: "md5RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA1: "sha1RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA224: "sha224RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA256: "sha256RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA384: "sha384RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA512: "sha512RSA",
    SignatureAlgorithmOID.RSASSA_PSS: "RSASSA-PSS",
    SignatureAlgorithmOID.ECDSA_WITH_SHA1: "sha1ECDSA",
    SignatureAlgorithmOID.ECDSA_WITH_SHA224: "sha224ECDSA",
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "sha256ECDSA",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "sha384ECDSA",
    SignatureAlgorithmOID.ECDSA_WITH_SHA512: "sha512ECDSA",
    SignatureAlgorithmOID.DSA_WITH_SHA1: "sha1DSA",
    SignatureAlgorithmOID.DSA_WITH_SHA224: "sha224DSA",
    SignatureAlgorithmOID.DSA_WITH_SHA256: "sha256DSA",
    SignatureAlgorithmOID.ED25519: "Ed25519",
    SignatureAlgorithmOID.ED448: "Ed448",
}


class CertificateLoadError(Exception):
    """Raised when a certificate file cannot be parsed."""

    def __init__(self, location: str, message: str) -> None:
        super().__init__(f"{location}: {message}")
        self.location = location
        self.message = message


@dataclass
class GatherResult:
    """Records gathered from all sources, plus what was skipped."""
    records: list[CertificateRecord] = field(default_factory=list)
    failures: list[SourceFailure] = field(default_factory=list)
    excluded: int = 0


def normalize_thumbprint(thumbprint: str) -> str:
    """Normalize a thumbprint for comparison (upper-case, no separators)."""
    return thumbprint.strip().replace(":", "").replace(" ", "").upper()


def signature_algorithm_name(cert: x509.Certificate) -> str:
    """Get the signature algorithm name, falling back to the dotted OID."""
    oid = cert.signature_algorithm_oid
    return SIGNATURE_ALGORITHM_NAMES.get(oid, oid.dotted_string)


def public_key_size(cert: x509.Certificate) -> int | None:
    """Get the public key size in bits, or None if it cannot be determined."""
    try:
        public_key = cert.public_key()
    except (ValueError, UnsupportedAlgorithm):
        return None
    return getattr(public_key, "key_size", None)


def certificate_to_record(cert: x509.Certificate, source_location: str) -> CertificateRecord:
    """Convert a parsed certificate into a normalized record.

    Args:
        cert: Parsed X.509 certificate.
        source_location: Path the certificate was read from.

    Returns:
        Certificate record for the classifier.
    """
    return CertificateRecord(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        thumbprint=cert.fingerprint(hashes.SHA1()).hex().upper(),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        signature_algorithm=signature_algorithm_name(cert),
        key_size=public_key_size(cert),
        source_location=source_location,
    )


def parse_certificates(data: bytes, location: str) -> list[x509.Certificate]:
    """Parse every certificate in a PEM, DER or PKCS#7 blob.

    Args:
        data: Raw file contents.
        location: Source path, used for PKCS#7 detection and error messages.

    Returns:
        Parsed certificates (a PEM bundle may hold several).

    Raises:
        CertificateLoadError: If no certificate could be parsed.
    """
    is_pem = PEM_MARKER in data
    try:
        if Path(location).suffix.lower() in PKCS7_SUFFIXES or b"-----BEGIN PKCS7" in data:
            if is_pem:
                certs = pkcs7.load_pem_pkcs7_certificates(data)
            else:
                certs = pkcs7.load_der_pkcs7_certificates(data)
        elif is_pem:
            certs = x509.load_pem_x509_certificates(data)
        else:
            certs = [x509.load_der_x509_certificate(data)]
    except (ValueError, UnsupportedAlgorithm) as e:
        raise CertificateLoadError(location, f"could not parse certificate: {e}") from e

    if not certs:
        raise CertificateLoadError(location, "no certificates found")
    return certs


def load_certificate_file(path: Path) -> list[CertificateRecord]:
    """Load all certificates from a single file.

    Raises:
        CertificateLoadError: If the file cannot be read or parsed.
    """
    location = str(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise CertificateLoadError(location, f"could not read file: {e.strerror or e}") from e

    records = []
    for cert in parse_certificates(data, location):
        # Some fields are only decoded on first access
        try:
            records.append(certificate_to_record(cert, location))
        except (ValueError, UnsupportedAlgorithm) as e:
            raise CertificateLoadError(location, f"could not decode certificate: {e}") from e
    return records


def iter_certificate_files(
    paths: Iterable[str | Path],
    recurse: bool = False,
    file_types: Iterable[str] = DEFAULT_FILE_TYPES,
) -> Iterator[Path]:
    """Yield certificate files under the given paths.

    Files given directly are yielded whatever their extension. Directories
    are filtered by extension and only walked recursively with ``recurse``.
    Missing paths are yielded as-is so the loader reports them.
    """
    suffixes = {_normalize_suffix(t) for t in file_types}

    for base in paths:
        p = Path(base).expanduser()
        if p.is_dir():
            candidates = p.rglob("*") if recurse else p.iterdir()
            for f in sorted(candidates):
                if f.is_file() and f.suffix.lower() in suffixes:
                    yield f
        else:
            yield p


def iter_store_files(store: str | Path) -> Iterator[Path]:
    """Yield every file in a certificate store.

    A store is either a bundle file or a flat directory of certificates
    (e.g. /etc/ssl/certs). Store files are not filtered by extension.
    """
    p = Path(store).expanduser()
    if p.is_dir():
        for f in sorted(p.iterdir()):
            if f.is_file():
                yield f
    else:
        yield p


def gather_records(
    paths: Iterable[str | Path] = (),
    stores: Iterable[str | Path] = (),
    recurse: bool = False,
    file_types: Iterable[str] = DEFAULT_FILE_TYPES,
    excluded_thumbprints: Iterable[str] = (),
) -> GatherResult:
    """Gather certificate records from files and stores.

    A certificate that fails to load is recorded as a failure and skipped;
    it never stops the rest of the run. Excluded thumbprints are dropped
    here, before any classification.

    Args:
        paths: Files or directories to inspect.
        stores: Certificate stores (bundle files or directories).
        recurse: Walk directories under ``paths`` recursively.
        file_types: Extensions selected when walking directories.
        excluded_thumbprints: Thumbprints to skip.

    Returns:
        Gathered records, failures and the number of excluded certificates.
    """
    excluded = {normalize_thumbprint(t) for t in excluded_thumbprints}
    result = GatherResult()
    seen_files: set[Path] = set()

    listings = [(p, iter_certificate_files([p], recurse, file_types)) for p in paths]
    listings += [(s, iter_store_files(s)) for s in stores]

    files: list[Path] = []
    for location, listing in listings:
        try:
            files.extend(listing)
        except OSError as e:
            message = f"could not list directory: {e.strerror or e}"
            logger.warning("Skipping %s: %s", location, message)
            result.failures.append(SourceFailure(location=str(location), error=message))

    for path in files:
        key = path.resolve()
        if key in seen_files:
            continue
        seen_files.add(key)

        try:
            records = load_certificate_file(path)
        except CertificateLoadError as e:
            logger.warning("Skipping %s: %s", e.location, e.message)
            result.failures.append(SourceFailure(location=e.location, error=e.message))
            continue

        for record in records:
            if normalize_thumbprint(record.thumbprint) in excluded:
                logger.debug("Excluding %s (%s)", record.subject, record.thumbprint)
                result.excluded += 1
                continue
            result.records.append(record)

    logger.debug(
        "Gathered %d certificates (%d failed, %d excluded)",
        len(result.records),
        len(result.failures),
        result.excluded,
    )
    return result


def _normalize_suffix(file_type: str) -> str:
    file_type = file_type.strip().lower().lstrip("*")
    return file_type if file_type.startswith(".") else f".{file_type}"
