"""Webhook alerting for Slack, Discord, and other services."""

import logging
from datetime import datetime, timezone

import httpx

from ..config import AlertingConfig
from ..models import CertificateHealthReport, HealthStatus
from ..severity import overall_status, report_status

logger = logging.getLogger(__name__)


def alertable_reports(
    reports: list[CertificateHealthReport],
    config: AlertingConfig,
) -> list[CertificateHealthReport]:
    """Return the reports whose rolled-up status meets the alert threshold."""
    return [r for r in reports if config.should_alert(report_status(r))]


def build_webhook_payload(
    reports: list[CertificateHealthReport],
    generated_at: datetime | None = None,
) -> dict:
    """Build a Slack-compatible payload describing unhealthy certificates.

    The raw reports are included under ``certhealth`` for non-Slack
    receivers.
    """
    if generated_at is None:
        generated_at = datetime.now(timezone.utc)
    status = overall_status(reports)

    return {
        "text": f"🔐 certhealth: {len(reports)} certificate(s) need attention",
        "attachments": [
            {
                "color": _status_to_color(status),
                "title": "Certificate health",
                "fields": [
                    {
                        "title": "Severity",
                        "value": status.value.upper(),
                        "short": True,
                    },
                    {
                        "title": "Generated At",
                        "value": generated_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
                        "short": True,
                    },
                ],
                "text": _format_report_summary(reports),
            }
        ],
        "certhealth": {
            "tool": "certhealth",
            "severity": status.value,
            "generated_at": generated_at.isoformat(),
            "reports": [r.model_dump(mode="json") for r in reports],
        },
    }


def send_webhook_alert(
    reports: list[CertificateHealthReport],
    config: AlertingConfig,
    timeout: float = 30.0,
    transport: httpx.BaseTransport | None = None,
) -> bool:
    """Send one webhook alert covering every report at or above min_severity.

    Args:
        reports: Health reports from a run.
        config: Alerting configuration.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (used by tests).

    Returns:
        True if an alert was sent successfully, False otherwise.
    """
    if not config.enabled or not config.webhook.enabled:
        return False

    if not config.webhook.url:
        return False

    to_alert = alertable_reports(reports, config)
    if not to_alert:
        return False

    payload = build_webhook_payload(to_alert)

    try:
        with httpx.Client(transport=transport) as client:
            response = client.post(
                config.webhook.url,
                json=payload,
                headers=config.webhook.headers,
                timeout=timeout,
            )
            response.raise_for_status()
            return True

    except httpx.HTTPError as e:
        logger.warning("Webhook alert to %s failed: %s", config.webhook.url, e)
        return False


def _status_to_color(status: HealthStatus) -> str:
    """Convert a status to a Slack attachment color."""
    return {
        HealthStatus.CRITICAL: "danger",
        HealthStatus.WARNING: "warning",
        HealthStatus.UNKNOWN: "#3498db",
        HealthStatus.OK: "good",
    }.get(status, "#808080")


def _format_report_summary(reports: list[CertificateHealthReport]) -> str:
    """Format health reports for a Slack message."""
    lines = []
    for report in reports:
        lines.append(f"*{report.subject}* ({report.source_location})")
        for name, status, message in report.axes():
            if status != HealthStatus.OK:
                lines.append(f"• {name}: {status.value}, {message}")
    return "\n".join(lines)
