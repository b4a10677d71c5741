"""Tests for severity rollup helpers."""

import pytest

from certhealth.classifier import classify
from certhealth.models import HealthStatus
from certhealth.severity import (
    get_status_color,
    overall_status,
    report_status,
    status_from_name,
    worst_status,
)


def test_ordering():
    assert HealthStatus.OK < HealthStatus.UNKNOWN < HealthStatus.WARNING < HealthStatus.CRITICAL
    assert HealthStatus.CRITICAL >= HealthStatus.CRITICAL


def test_worst_status():
    assert worst_status([]) == HealthStatus.OK
    assert worst_status([HealthStatus.OK, HealthStatus.UNKNOWN]) == HealthStatus.UNKNOWN
    assert worst_status([HealthStatus.WARNING, HealthStatus.CRITICAL, HealthStatus.OK]) == HealthStatus.CRITICAL


def test_report_rollup(make_record, thresholds, now):
    healthy = classify(make_record(), thresholds, now)
    weak_key = classify(make_record(key_size=1000), thresholds, now)

    assert report_status(healthy) == HealthStatus.OK
    assert report_status(weak_key) == HealthStatus.CRITICAL
    assert overall_status([healthy, weak_key]) == HealthStatus.CRITICAL
    assert overall_status([]) == HealthStatus.OK


def test_status_from_name():
    assert status_from_name(" WARNING ") == HealthStatus.WARNING
    assert status_from_name("ok") == HealthStatus.OK
    with pytest.raises(ValueError):
        status_from_name("bad")


def test_colors():
    assert get_status_color(HealthStatus.CRITICAL) == "red"
    assert get_status_color(HealthStatus.OK) == "green"
