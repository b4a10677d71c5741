"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from certhealth.config import (
    AlertingConfig,
    Config,
    ThresholdConfig,
    generate_example_config,
    load_config,
    substitute_env_vars,
)
from certhealth.models import HealthStatus, HealthThresholds


def test_defaults_resolve_to_default_thresholds():
    assert load_config(None).health_thresholds() == HealthThresholds()


def test_default_thresholds_match_documented_values():
    t = HealthThresholds()
    assert (t.warning_days, t.critical_days) == (60, 30)
    assert t.warning_algorithms == frozenset({"sha1RSA"})
    assert t.critical_algorithms == frozenset({"md5RSA"})
    assert (t.critical_key_size, t.warning_key_size) == (1024, 2048)


def test_threshold_section_defaults_follow_health_thresholds():
    section = ThresholdConfig().model_dump()
    defaults = HealthThresholds()
    assert set(section) == set(HealthThresholds.model_fields)
    for name, value in section.items():
        expected = getattr(defaults, name)
        assert (frozenset(value) if isinstance(value, list) else value) == expected


def test_load_yaml(tmp_path):
    path = tmp_path / "certhealth.yaml"
    path.write_text(
        """
paths: [/etc/ssl/private]
recurse: true
excluded_thumbprints: [ABCDEF]
thresholds:
  warning_days: 90
  critical_days: 14
  warning_algorithms: [sha1RSA, sha1ECDSA]
"""
    )
    config = load_config(path)
    thresholds = config.health_thresholds()

    assert config.paths == ["/etc/ssl/private"]
    assert config.recurse is True
    assert config.excluded_thumbprints == ["ABCDEF"]
    assert thresholds.warning_days == 90
    assert thresholds.critical_days == 14
    assert thresholds.warning_algorithms == frozenset({"sha1RSA", "sha1ECDSA"})
    assert thresholds.critical_algorithms == frozenset({"md5RSA"})


def test_overrides_replace_config_values():
    config = Config()
    thresholds = config.health_thresholds(warning_days=10, critical_days=None, critical_algorithms=["md2RSA"])
    assert thresholds.warning_days == 10
    assert thresholds.critical_days == 30
    assert thresholds.critical_algorithms == frozenset({"md2RSA"})


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("thresholds: [unclosed")
    with pytest.raises(yaml.YAMLError):
        load_config(path)


def test_invalid_schema(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("thresholds:\n  warning_days: soon\n")
    with pytest.raises(ValidationError):
        load_config(path)


def test_env_substitution(monkeypatch):
    monkeypatch.setenv("HOOK_TOKEN", "s3cret")
    value = {"headers": {"Authorization": "Bearer ${HOOK_TOKEN}"}, "list": ["${MISSING_VAR}"]}
    assert substitute_env_vars(value) == {
        "headers": {"Authorization": "Bearer s3cret"},
        "list": [""],
    }


def test_example_config_is_loadable(tmp_path):
    path = tmp_path / "example.yaml"
    path.write_text(generate_example_config())
    config = load_config(path)
    assert config.health_thresholds() == HealthThresholds()
    assert config.alerting.enabled is False


class TestAlertingConfig:
    def test_disabled_never_alerts(self):
        assert AlertingConfig(enabled=False).should_alert(HealthStatus.CRITICAL) is False

    def test_min_severity(self):
        config = AlertingConfig(enabled=True, min_severity="warning")
        assert config.should_alert(HealthStatus.CRITICAL)
        assert config.should_alert(HealthStatus.WARNING)
        assert not config.should_alert(HealthStatus.UNKNOWN)
        assert not config.should_alert(HealthStatus.OK)

    def test_unknown_min_severity_rejected(self):
        with pytest.raises(ValidationError):
            AlertingConfig(min_severity="severe")
