# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclasses produced by the detection engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .types import Dialect, Severity, parse_dialect, parse_severity


@dataclass(frozen=True)
class PatternRef:
    id: str
    name: str
    severity: Severity
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "severity": self.severity.value, "category": self.category}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PatternRef:
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or data.get("id") or ""),
            severity=parse_severity(data.get("severity") or "low"),
            category=str(data.get("category") or ""),
        )


@dataclass(frozen=True)
class RiskFactor:
    """One occurrence of a matched pattern."""

    pattern_id: str
    severity: Severity
    description: str
    evidence: str
    span: tuple[int, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern_id": self.pattern_id,
            "severity": self.severity.value,
            "description": self.description,
            "evidence": self.evidence,
            "span": list(self.span),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RiskFactor:
        raw_span = data.get("span") or (0, 0)
        try:
            start, end = (int(raw_span[0]), int(raw_span[1]))
        except (TypeError, ValueError, IndexError):
            start, end = 0, 0
        return cls(
            pattern_id=str(data.get("pattern_id") or ""),
            severity=parse_severity(data.get("severity") or "low"),
            description=str(data.get("description") or ""),
            evidence=str(data.get("evidence") or ""),
            span=(start, end),
        )


@dataclass(frozen=True)
class AnalysisVerdict:
    """Deterministic verdict for a single piece of SQL text."""

    is_vulnerable: bool
    score: int
    matched_patterns: tuple[PatternRef, ...] = ()
    risk_factors: tuple[RiskFactor, ...] = ()
    recommendations: tuple[str, ...] = ()
    secure_rewrite: str | None = None
    dialect: Dialect | None = None
    truncated: bool = False
    engine_error: str | None = None

    @property
    def confidence(self) -> float:
        """Certainty of the verdict as returned (vulnerable or safe)."""
        ratio = max(0, min(100, self.score)) / 100.0
        return ratio if self.is_vulnerable else 1.0 - ratio

    @property
    def highest_severity(self) -> Severity | None:
        if not self.matched_patterns:
            return None
        return max((ref.severity for ref in self.matched_patterns), key=lambda sev: sev.rank)

    @classmethod
    def empty(cls, *, dialect: Dialect | None = None, engine_error: str | None = None) -> AnalysisVerdict:
        return cls(is_vulnerable=False, score=0, dialect=dialect, engine_error=engine_error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_vulnerable": self.is_vulnerable,
            "score": self.score,
            "confidence": round(self.confidence, 4),
            "matched_patterns": [ref.to_dict() for ref in self.matched_patterns],
            "risk_factors": [factor.to_dict() for factor in self.risk_factors],
            "recommendations": list(self.recommendations),
            "secure_rewrite": self.secure_rewrite,
            "dialect": self.dialect.value if self.dialect else None,
            "truncated": self.truncated,
            "engine_error": self.engine_error,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AnalysisVerdict:
        """Rebuild a verdict from a JSON payload (remote detection API)."""
        score = data.get("score", data.get("vulnerability_score", 0))
        try:
            score_value = max(0, min(100, int(round(float(score)))))
        except (TypeError, ValueError):
            score_value = 0
        patterns = [
            PatternRef.from_mapping(item) if isinstance(item, Mapping) else PatternRef(str(item), str(item), Severity.LOW, "")
            for item in data.get("matched_patterns") or data.get("detected_patterns") or []
        ]
        factors = [RiskFactor.from_mapping(item) for item in data.get("risk_factors") or [] if isinstance(item, Mapping)]
        return cls(
            is_vulnerable=bool(data.get("is_vulnerable")),
            score=score_value,
            matched_patterns=tuple(patterns),
            risk_factors=tuple(factors),
            recommendations=tuple(str(item) for item in data.get("recommendations") or []),
            secure_rewrite=data.get("secure_rewrite") or data.get("secure_query"),
            dialect=parse_dialect(data.get("dialect") or data.get("database_type")),
            truncated=bool(data.get("truncated", False)),
            engine_error=data.get("engine_error"),
        )


ParameterValue = str | int | Decimal


@dataclass(frozen=True)
class RewriteResult:
    original: str
    secure: str
    parameters: dict[str, ParameterValue] = field(default_factory=dict)
    explanation: str = ""

    @property
    def rewritten(self) -> bool:
        return self.secure != self.original

    def to_dict(self) -> dict[str, Any]:
        return {
            "original": self.original,
            "secure": self.secure,
            "parameters": {key: (str(value) if isinstance(value, Decimal) else value) for key, value in self.parameters.items()},
            "explanation": self.explanation,
            "rewritten": self.rewritten,
        }
