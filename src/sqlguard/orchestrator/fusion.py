# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Builders that merge static and semantic results into caller-facing records."""

from __future__ import annotations

from ..models.combined import (
    CombinedScanReport,
    CombinedVerdict,
    RemoteFailure,
    RiskLabel,
    SemanticVerdict,
    VerdictSource,
)
from ..models.scan import ScanReport
from ..models.types import ScanType
from ..models.verdict import AnalysisVerdict
from ..remote.outcome import RemoteCallOutcome
from ..utils.ordered import merge_unique

HIGH_RISK_SCORE = 70
MEDIUM_RISK_SCORE = 40


def failure_from_outcome(outcome: RemoteCallOutcome) -> RemoteFailure:
    return RemoteFailure(kind=outcome.kind.value, message=outcome.message)


def overall_risk(score: float) -> RiskLabel:
    if score >= HIGH_RISK_SCORE:
        return "HIGH"
    if score >= MEDIUM_RISK_SCORE:
        return "MEDIUM"
    return "LOW"


def static_verdict(
    verdict: AnalysisVerdict,
    *,
    elapsed_ms: int = 0,
    escalated: bool = False,
    reasons: tuple[str, ...] = (),
    failure: RemoteFailure | None = None,
) -> CombinedVerdict:
    return CombinedVerdict(
        source=VerdictSource.STATIC,
        confidence=verdict.confidence,
        static_verdict=verdict,
        recommendations=verdict.recommendations,
        elapsed_ms=elapsed_ms,
        escalated=escalated,
        escalation_reasons=reasons,
        failure=failure,
    )


def build_combined_verdict(
    verdict: AnalysisVerdict,
    semantic: SemanticVerdict,
    *,
    elapsed_ms: int = 0,
    reasons: tuple[str, ...] = (),
) -> CombinedVerdict:
    """Confidence is the larger of the two; recommendations are an ordered union."""
    return CombinedVerdict(
        source=VerdictSource.COMBINED,
        confidence=max(verdict.confidence, semantic.confidence),
        static_verdict=verdict,
        semantic_verdict=semantic,
        recommendations=merge_unique(verdict.recommendations, semantic.recommendations),
        elapsed_ms=elapsed_ms,
        escalated=True,
        escalation_reasons=reasons,
    )


def build_scan_report(
    scan_type: ScanType,
    *,
    static_report: ScanReport | None,
    semantic: SemanticVerdict | None,
    static_failure: RemoteFailure | None = None,
    semantic_failure: RemoteFailure | None = None,
    elapsed_ms: int = 0,
) -> CombinedScanReport:
    if static_report is not None and semantic is not None:
        source = VerdictSource.COMBINED
    elif semantic is not None:
        source = VerdictSource.SEMANTIC
    else:
        source = VerdictSource.STATIC

    score = float(static_report.aggregate_risk_score) if static_report is not None else 0.0
    if semantic is not None and semantic.is_vulnerable:
        score = max(score, semantic.confidence * 100)

    return CombinedScanReport(
        scan_type=scan_type,
        source=source,
        overall_risk=overall_risk(score),
        static_report=static_report,
        semantic_report=semantic,
        static_failure=static_failure,
        semantic_failure=semantic_failure,
        recommendations=merge_unique(
            static_report.recommendations if static_report is not None else (),
            semantic.recommendations if semantic is not None else (),
        ),
        elapsed_ms=elapsed_ms,
    )
