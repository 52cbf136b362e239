# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from sqlguard.config import DetectionSettings
from sqlguard.detection import DetectionEngine
from sqlguard.errors import ValidationError
from sqlguard.models import ScanReport, ScanType, VulnerabilityClass
from sqlguard.scan import ScanAggregator

MIXED = "'; DROP TABLE users; <script>alert('xss')</script>"


@pytest.fixture
def aggregator():
    return ScanAggregator(DetectionEngine(settings=DetectionSettings()))


def test_comprehensive_scan_reports_every_class(aggregator):
    report = aggregator.scan(MIXED)

    assert report.scan_type is ScanType.COMPREHENSIVE
    assert set(report.class_scores) == set(VulnerabilityClass)
    assert report.class_scores[VulnerabilityClass.SQL_INJECTION] == 68
    assert report.class_scores[VulnerabilityClass.XSS] == 25
    assert report.class_scores[VulnerabilityClass.INPUT_VALIDATION] == 5
    assert report.aggregate_risk_score == 78
    assert set(report.classes_found) == set(VulnerabilityClass)
    assert "Use a Content Security Policy (CSP)" in report.recommendations


def test_single_class_scan_ignores_other_classes(aggregator):
    report = aggregator.scan(MIXED, "xss")
    assert set(report.class_scores) == {VulnerabilityClass.XSS}
    assert report.aggregate_risk_score == 25
    assert [finding.pattern_id for finding in report.findings] == ["xss-script-tag"]


def test_no_boost_for_a_single_class(aggregator):
    report = aggregator.scan("../../etc/passwd", ScanType.COMPREHENSIVE)
    assert report.classes_found == (VulnerabilityClass.INPUT_VALIDATION,)
    assert report.aggregate_risk_score == report.class_scores[VulnerabilityClass.INPUT_VALIDATION] == 25


def test_clean_payload_scores_zero(aggregator):
    report = aggregator.scan("hello world")
    assert report.findings == ()
    assert report.aggregate_risk_score == 0
    assert report.recommendations == ()


def test_boost_is_configurable():
    aggregator = ScanAggregator(DetectionEngine(settings=DetectionSettings(multi_class_boost=0)))
    assert aggregator.scan(MIXED).aggregate_risk_score == 68


def test_scan_type_aliases_and_validation(aggregator):
    assert aggregator.scan("x", "sql-injection").scan_type is ScanType.SQL_INJECTION
    assert aggregator.scan("x", None).scan_type is ScanType.COMPREHENSIVE
    with pytest.raises(ValidationError):
        aggregator.scan("x", "csrf")
    with pytest.raises(ValidationError):
        aggregator.scan(b"bytes")


def test_report_round_trips_through_mapping(aggregator):
    report = aggregator.scan(MIXED)
    rebuilt = ScanReport.from_mapping(report.to_dict())
    assert rebuilt.aggregate_risk_score == report.aggregate_risk_score
    assert rebuilt.class_scores == report.class_scores
    assert rebuilt.findings == report.findings
