# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Static-first orchestration with semantic escalation."""

from .engine import AnalysisOrchestrator, RequestClock
from .fusion import build_combined_verdict, build_scan_report, overall_risk, static_verdict
from .policy import EscalationDecision, EscalationPolicy

__all__ = [
    "AnalysisOrchestrator",
    "EscalationDecision",
    "EscalationPolicy",
    "RequestClock",
    "build_combined_verdict",
    "build_scan_report",
    "overall_risk",
    "static_verdict",
]
