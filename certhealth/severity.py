"""Severity helpers for rolling up and displaying health verdicts."""

from collections.abc import Iterable

from .models import CertificateHealthReport, HealthStatus


def worst_status(statuses: Iterable[HealthStatus]) -> HealthStatus:
    """Return the most severe status, or OK if there are none."""
    overall = HealthStatus.OK
    for status in statuses:
        if status > overall:
            overall = status
    return overall


def report_status(report: CertificateHealthReport) -> HealthStatus:
    """Roll a report's three axes up into a single worst-of status.

    The classifier keeps axes independent; this rollup exists for
    reporters that need one verdict per certificate.
    """
    return worst_status(status for _, status, _ in report.axes())


def overall_status(reports: Iterable[CertificateHealthReport]) -> HealthStatus:
    """Return the worst rolled-up status across a batch of reports."""
    return worst_status(report_status(report) for report in reports)


def get_status_emoji(status: HealthStatus) -> str:
    """Get an emoji representation for a health status.

    Args:
        status: Health status.

    Returns:
        Emoji string.
    """
    return {
        HealthStatus.CRITICAL: "🔴",
        HealthStatus.WARNING: "🟡",
        HealthStatus.UNKNOWN: "⚪",
        HealthStatus.OK: "🟢",
    }.get(status, "⚪")


def get_status_color(status: HealthStatus) -> str:
    """Get a Rich color name for a health status.

    Args:
        status: Health status.

    Returns:
        Rich color name.
    """
    return {
        HealthStatus.CRITICAL: "red",
        HealthStatus.WARNING: "yellow",
        HealthStatus.UNKNOWN: "blue",
        HealthStatus.OK: "green",
    }.get(status, "white")


def status_from_name(name: str) -> HealthStatus:
    """Parse a status name case-insensitively (``"warning"`` -> WARNING).

    Raises:
        ValueError: If the name is not a known status.
    """
    for status in HealthStatus:
        if status.value.lower() == name.strip().lower():
            return status
    raise ValueError(f"Unknown health status: {name!r}")
