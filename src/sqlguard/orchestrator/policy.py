# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""When a static verdict needs a second opinion."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import OrchestratorSettings
from ..models.verdict import AnalysisVerdict

REASON_VULNERABLE = "static_vulnerable"
REASON_LOW_CONFIDENCE = "low_confidence"
REASON_COMPLEX = "complex_pattern_mix"
REASON_ENGINE_ERROR = "static_engine_error"


@dataclass(frozen=True)
class EscalationDecision:
    escalate: bool
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class EscalationPolicy:
    high_confidence_threshold: float = 0.85
    complex_pattern_count: int = 2

    @classmethod
    def from_settings(cls, settings: OrchestratorSettings) -> EscalationPolicy:
        return cls(
            high_confidence_threshold=settings.high_confidence_threshold,
            complex_pattern_count=settings.complex_pattern_count,
        )

    def decide(self, verdict: AnalysisVerdict) -> EscalationDecision:
        reasons: list[str] = []
        if verdict.is_vulnerable:
            reasons.append(REASON_VULNERABLE)
        if verdict.confidence < self.high_confidence_threshold:
            reasons.append(REASON_LOW_CONFIDENCE)
        if len(verdict.matched_patterns) > self.complex_pattern_count:
            reasons.append(REASON_COMPLEX)
        if verdict.engine_error:
            reasons.append(REASON_ENGINE_ERROR)
        return EscalationDecision(escalate=bool(reasons), reasons=tuple(reasons))

    def should_escalate(self, verdict: AnalysisVerdict) -> bool:
        return self.decide(verdict).escalate
