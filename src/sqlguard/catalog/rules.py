# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Calibration rules mapping pattern sets to confidence and false-positive rates."""

from __future__ import annotations

from typing import Final

from ..models.pattern import DetectionRule
from ..models.types import Dialect

_TIME_BASED = frozenset(
    {"sqli-time-mysql", "sqli-time-postgresql", "sqli-time-mssql", "sqli-time-oracle", "sqli-time-sqlite"}
)
_COMMENTS = frozenset({"sqli-comment-line", "sqli-comment-block", "sqli-comment-hash"})

BUILTIN_RULES: Final[tuple[DetectionRule, ...]] = (
    DetectionRule(
        id="rule-001",
        name="SQL keyword abuse",
        pattern_ids=frozenset({"sqli-stacked-queries", "sqli-destructive-ddl"}),
        confidence_weight=0.9,
        false_positive_rate=0.05,
        description="Statement chaining and destructive DDL",
    ),
    DetectionRule(
        id="rule-002",
        name="Quote manipulation",
        pattern_ids=frozenset({"sqli-tautology-string", "sqli-tautology-numeric", "sqli-boolean-blind", "sqli-quote-comment"}),
        confidence_weight=0.9,
        false_positive_rate=0.05,
        description="Broken string literals and always-true predicates",
    ),
    DetectionRule(
        id="rule-003",
        name="Comment injection",
        pattern_ids=_COMMENTS,
        confidence_weight=0.7,
        false_positive_rate=0.2,
        description="Comment sequences that can truncate statements",
    ),
    DetectionRule(
        id="rule-004",
        name="Function-based probing",
        pattern_ids=frozenset({"sqli-function-abuse", "sqli-hex-obfuscation"}),
        confidence_weight=0.85,
        false_positive_rate=0.1,
    ),
    DetectionRule(
        id="rule-005",
        name="UNION-based extraction",
        pattern_ids=frozenset({"sqli-union-based"}),
        confidence_weight=0.95,
        false_positive_rate=0.02,
    ),
    DetectionRule(
        id="rule-006",
        name="Time-based blind",
        pattern_ids=_TIME_BASED,
        confidence_weight=0.95,
        false_positive_rate=0.05,
    ),
    DetectionRule(
        id="rule-007",
        name="Error-based extraction",
        pattern_ids=frozenset({"sqli-error-xml"}),
        confidence_weight=0.85,
        false_positive_rate=0.1,
    ),
    DetectionRule(
        id="rule-008",
        name="Type conversion probes",
        pattern_ids=frozenset({"sqli-error-conversion"}),
        confidence_weight=0.6,
        false_positive_rate=0.3,
        description="CAST/CONVERT appear in plenty of legitimate queries",
    ),
    DetectionRule(
        id="rule-009",
        name="Privileged operations",
        pattern_ids=frozenset(
            {
                "sqli-dynamic-exec",
                "sqli-file-mysql",
                "sqli-file-postgresql",
                "sqli-cmd-mssql",
                "sqli-oracle-out-of-band",
                "sqli-sqlite-attach",
            }
        ),
        confidence_weight=0.95,
        false_positive_rate=0.02,
    ),
    DetectionRule(
        id="rule-010",
        name="Reconnaissance",
        pattern_ids=frozenset({"sqli-schema-enumeration", "sqli-version-fingerprint"}),
        confidence_weight=0.8,
        false_positive_rate=0.1,
    ),
    DetectionRule(
        id="rule-011",
        name="Comment injection (MySQL)",
        pattern_ids=_COMMENTS,
        confidence_weight=0.8,
        false_positive_rate=0.15,
        dialect=Dialect.MYSQL,
        description="MySQL executes /*! ... */ comments and treats # as a comment",
    ),
    DetectionRule(
        id="rule-012",
        name="Comment injection (SQLite)",
        pattern_ids=_COMMENTS,
        confidence_weight=0.5,
        false_positive_rate=0.3,
        dialect=Dialect.SQLITE,
        description="Embedded SQLite deployments rarely receive raw comment payloads",
    ),
    DetectionRule(
        id="rule-013",
        name="Dynamic SQL (SQL Server)",
        pattern_ids=frozenset({"sqli-dynamic-exec"}),
        confidence_weight=1.0,
        false_positive_rate=0.01,
        dialect=Dialect.MSSQL,
    ),
)

__all__ = ["BUILTIN_RULES"]
