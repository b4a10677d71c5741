"""Configuration loader for certhealth."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .models import HealthStatus, HealthThresholds
from .severity import status_from_name

DEFAULT_FILE_TYPES = [".cer", ".crt", ".pem", ".der", ".p7b"]

_DEFAULT_THRESHOLDS = HealthThresholds()


class ThresholdConfig(BaseModel):
    """Threshold section of the configuration file."""
    warning_days: int = _DEFAULT_THRESHOLDS.warning_days
    critical_days: int = _DEFAULT_THRESHOLDS.critical_days
    warning_algorithms: list[str] = Field(
        default_factory=lambda: sorted(_DEFAULT_THRESHOLDS.warning_algorithms)
    )
    critical_algorithms: list[str] = Field(
        default_factory=lambda: sorted(_DEFAULT_THRESHOLDS.critical_algorithms)
    )
    critical_key_size: int = _DEFAULT_THRESHOLDS.critical_key_size
    warning_key_size: int = _DEFAULT_THRESHOLDS.warning_key_size


class WebhookConfig(BaseModel):
    """Webhook alerting configuration."""
    enabled: bool = False
    url: str = ""
    headers: dict[str, str] = Field(default_factory=dict)


class AlertingConfig(BaseModel):
    """Alerting configuration."""
    enabled: bool = False
    min_severity: str = "warning"
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)

    @field_validator("min_severity")
    @classmethod
    def _known_severity(cls, value: str) -> str:
        status_from_name(value)
        return value

    def should_alert(self, status: HealthStatus) -> bool:
        """Check if an alert should be sent for the given status."""
        if not self.enabled:
            return False
        return status >= status_from_name(self.min_severity)


class Config(BaseModel):
    """Complete certhealth configuration."""
    paths: list[str] = Field(default_factory=list)
    stores: list[str] = Field(default_factory=list)
    recurse: bool = False
    certificate_file_types: list[str] = Field(default_factory=lambda: list(DEFAULT_FILE_TYPES))
    excluded_thumbprints: list[str] = Field(default_factory=list)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    alerting: AlertingConfig = Field(default_factory=AlertingConfig)

    def health_thresholds(self, **overrides: Any) -> HealthThresholds:
        """Resolve the threshold section into a HealthThresholds.

        Args:
            **overrides: Field values that replace the configured ones.
                ``None`` values are ignored.

        Returns:
            Immutable thresholds for the classifier.
        """
        values = self.thresholds.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return HealthThresholds.model_validate(values)


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} patterns with environment variables."""
    if isinstance(value, str):
        pattern = r'\$\{(\w+)\}'
        matches = re.findall(pattern, value)
        for match in matches:
            env_val = os.environ.get(match, "")
            value = value.replace(f"${{{match}}}", env_val)
        return value
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    Args:
        path: Path to configuration file. If None, returns default config.

    Returns:
        Loaded configuration object.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If the contents do not match the schema.
    """
    if path is None:
        return Config()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    raw_config = substitute_env_vars(raw_config)

    return Config.model_validate(raw_config)


def generate_example_config() -> str:
    """Generate example configuration YAML content."""
    return """# certhealth configuration

# Certificate files or directories to inspect
paths:
  - /etc/nginx/ssl

# Certificate stores (bundle files or hashed directories)
stores: []

recurse: false

certificate_file_types:
  - ".cer"
  - ".crt"
  - ".pem"
  - ".der"
  - ".p7b"

# Upper-case hex SHA-1 thumbprints to skip
excluded_thumbprints: []

thresholds:
  warning_days: 60
  critical_days: 30
  warning_algorithms:
    - "sha1RSA"
  critical_algorithms:
    - "md5RSA"
  critical_key_size: 1024
  warning_key_size: 2048

alerting:
  enabled: false
  min_severity: warning

  webhook:
    enabled: false
    url: "https://hooks.slack.com/services/YOUR/WEBHOOK/URL"
    # headers:
    #   Authorization: "Bearer ${WEBHOOK_TOKEN}"
"""
