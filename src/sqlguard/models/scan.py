# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclasses for multi-class security scans."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .types import ScanType, Severity, VulnerabilityClass, parse_scan_type, parse_severity


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Finding:
    vulnerability_class: VulnerabilityClass
    pattern_id: str
    severity: Severity
    description: str
    evidence: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "vulnerability_class": self.vulnerability_class.value,
            "pattern_id": self.pattern_id,
            "severity": self.severity.value,
            "description": self.description,
            "evidence": self.evidence,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Finding:
        raw_class = str(data.get("vulnerability_class") or data.get("type") or VulnerabilityClass.SQL_INJECTION.value)
        try:
            vuln_class = VulnerabilityClass(raw_class.lower())
        except ValueError:
            vuln_class = VulnerabilityClass.SQL_INJECTION
        return cls(
            vulnerability_class=vuln_class,
            pattern_id=str(data.get("pattern_id") or ""),
            severity=parse_severity(data.get("severity") or "low"),
            description=str(data.get("description") or ""),
            evidence=str(data.get("evidence") or ""),
        )


@dataclass(frozen=True)
class ScanReport:
    scan_type: ScanType
    findings: tuple[Finding, ...] = ()
    aggregate_risk_score: int = 0
    class_scores: dict[VulnerabilityClass, int] = field(default_factory=dict)
    recommendations: tuple[str, ...] = ()
    timestamp: str = field(default_factory=_utcnow)

    @property
    def classes_found(self) -> tuple[VulnerabilityClass, ...]:
        seen: list[VulnerabilityClass] = []
        for finding in self.findings:
            if finding.vulnerability_class not in seen:
                seen.append(finding.vulnerability_class)
        return tuple(seen)

    def findings_for(self, vulnerability_class: VulnerabilityClass) -> list[Finding]:
        return [finding for finding in self.findings if finding.vulnerability_class is vulnerability_class]

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_type": self.scan_type.value,
            "findings": [finding.to_dict() for finding in self.findings],
            "aggregate_risk_score": self.aggregate_risk_score,
            "class_scores": {cls.value: score for cls, score in self.class_scores.items()},
            "recommendations": list(self.recommendations),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ScanReport:
        raw_scores = data.get("class_scores") or {}
        class_scores: dict[VulnerabilityClass, int] = {}
        if isinstance(raw_scores, Mapping):
            for key, value in raw_scores.items():
                try:
                    class_scores[VulnerabilityClass(str(key))] = int(value)
                except (TypeError, ValueError):
                    continue
        score = data.get("aggregate_risk_score", data.get("risk_score", 0))
        try:
            score_value = max(0, min(100, int(score)))
        except (TypeError, ValueError):
            score_value = 0
        return cls(
            scan_type=parse_scan_type(data.get("scan_type")),
            findings=tuple(Finding.from_mapping(item) for item in data.get("findings") or [] if isinstance(item, Mapping)),
            aggregate_risk_score=score_value,
            class_scores=class_scores,
            recommendations=tuple(str(item) for item in data.get("recommendations") or []),
            timestamp=str(data.get("timestamp") or _utcnow()),
        )
