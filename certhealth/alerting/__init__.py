"""Alerting for unhealthy certificates."""

from .webhook import build_webhook_payload, send_webhook_alert

__all__ = ["build_webhook_payload", "send_webhook_alert"]
