# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed data models used across SqlGuard."""

from .combined import (
    CombinedScanReport,
    CombinedVerdict,
    FileAnalysisReport,
    RemoteFailure,
    SearchResult,
    SemanticVerdict,
    ServiceHealth,
    VerdictSource,
    unwrap_payload,
)
from .knowledge import CodeExample, KnowledgeItem, VulnerableExample
from .pattern import DetectionRule, SecurityPattern
from .scan import Finding, ScanReport
from .types import (
    ALL_DIALECTS,
    Dialect,
    ScanType,
    Severity,
    VulnerabilityClass,
    parse_dialect,
    parse_scan_type,
    parse_severity,
)
from .verdict import AnalysisVerdict, PatternRef, RewriteResult, RiskFactor

__all__ = [
    "ALL_DIALECTS",
    "AnalysisVerdict",
    "CodeExample",
    "CombinedScanReport",
    "CombinedVerdict",
    "DetectionRule",
    "Dialect",
    "FileAnalysisReport",
    "Finding",
    "KnowledgeItem",
    "PatternRef",
    "RemoteFailure",
    "RewriteResult",
    "RiskFactor",
    "ScanReport",
    "ScanType",
    "SearchResult",
    "SecurityPattern",
    "SemanticVerdict",
    "ServiceHealth",
    "Severity",
    "VerdictSource",
    "VulnerabilityClass",
    "VulnerableExample",
    "parse_dialect",
    "parse_scan_type",
    "parse_severity",
    "unwrap_payload",
]
