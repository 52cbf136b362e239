# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from sqlguard.errors import ValidationError
from sqlguard.log import preview
from sqlguard.models import (
    CombinedScanReport,
    Dialect,
    RemoteFailure,
    ScanType,
    SemanticVerdict,
    ServiceHealth,
    Severity,
    VerdictSource,
    VulnerabilityClass,
    parse_dialect,
    parse_scan_type,
    parse_severity,
    unwrap_payload,
)
from sqlguard.utils import OrderedSet, merge_unique


def test_semantic_verdict_scales_percentages_and_clamps():
    assert SemanticVerdict.from_payload({"confidence": 87}).confidence == pytest.approx(0.87)
    assert SemanticVerdict.from_payload({"confidence": "0.4"}).confidence == pytest.approx(0.4)
    assert SemanticVerdict.from_payload({"confidence": 250}).confidence == 1.0
    assert SemanticVerdict.from_payload({"confidence": -1}).confidence == 0.0


@pytest.mark.parametrize("payload", [{}, {"confidence": None}, {"confidence": True}, {"confidence": "high"}, ["x"]])
def test_semantic_verdict_rejects_unusable_payloads(payload):
    with pytest.raises(ValueError):
        SemanticVerdict.from_payload(payload)


def test_semantic_verdict_reads_alternate_keys():
    verdict = SemanticVerdict.from_payload(
        {"data": {"confidence": 0.8, "isVulnerable": 1, "vulnerabilities": ["union"], "recommendations": ["a", "", "b"]}}
    )
    assert verdict.is_vulnerable is True
    assert verdict.findings == ({"description": "union"},)
    assert verdict.recommendations == ("a", "b")


def test_unwrap_payload_only_strips_mapping_envelopes():
    assert unwrap_payload({"data": {"x": 1}}) == {"x": 1}
    assert unwrap_payload({"data": [1, 2]}) == {"data": [1, 2]}
    assert unwrap_payload([1]) == [1]


def test_scan_report_partial_flag():
    both_ok = CombinedScanReport(scan_type=ScanType.COMPREHENSIVE, source=VerdictSource.COMBINED, overall_risk="LOW")
    one_failed = CombinedScanReport(
        scan_type=ScanType.COMPREHENSIVE,
        source=VerdictSource.STATIC,
        overall_risk="LOW",
        semantic_failure=RemoteFailure(kind="timeout"),
    )
    assert both_ok.partial is False
    assert one_failed.partial is True
    assert one_failed.to_dict()["semantic_failure"] == {"kind": "timeout", "message": ""}


def test_service_health_overall_status():
    assert ServiceHealth().overall_status == "unknown"
    assert ServiceHealth({"a": {"status": "healthy"}}).overall_status == "healthy"
    assert ServiceHealth({"a": {"status": "healthy"}, "b": {"status": "unhealthy"}}).overall_status == "degraded"
    assert ServiceHealth({"b": {"status": "unhealthy"}}).overall_status == "unhealthy"


def test_enum_parsers():
    assert parse_dialect("MariaDB") is Dialect.MYSQL
    assert parse_dialect("") is None
    assert parse_dialect(None) is None
    assert parse_scan_type("Input-Validation") is ScanType.INPUT_VALIDATION
    assert ScanType.COMPREHENSIVE.classes == tuple(VulnerabilityClass)
    assert parse_severity("HIGH") is Severity.HIGH
    assert Severity.CRITICAL.rank > Severity.LOW.rank
    with pytest.raises(ValidationError):
        parse_severity("urgent")


def test_ordered_set_and_merge_unique():
    items = OrderedSet(["b", "a", "b"])
    assert items.to_list() == ["b", "a"]
    assert items.add("a") is False
    assert items.add_many(["c", "a", "d"]) == 2
    assert "c" in items
    assert len(items) == 4
    assert merge_unique(["x", "y"], ("y", "z"), []) == ("x", "y", "z")


def test_preview_flattens_and_truncates():
    assert preview(None) == ""
    assert preview("SELECT\n  1") == "SELECT 1"
    shortened = preview("x" * 200, limit=20)
    assert len(shortened) == 20
    assert shortened.endswith("...")
