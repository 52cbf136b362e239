# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Scan aggregator: SQL injection plus adjacent web vulnerability classes."""

from __future__ import annotations

import logging

from ..config import DetectionSettings
from ..detection.engine import DetectionEngine
from ..detection.matching import PatternMatch, match_patterns
from ..detection.recommendations import class_recommendations
from ..detection.scoring import clamp_score, severity_total
from ..errors import ValidationError
from ..log import preview
from ..models.scan import Finding, ScanReport
from ..models.types import ScanType, VulnerabilityClass, parse_scan_type
from ..utils.ordered import OrderedSet

logger = logging.getLogger(__name__)


class ScanAggregator:
    """Runs one or more vulnerability classes over a payload and merges the results."""

    def __init__(self, detection_engine: DetectionEngine | None = None):
        self.detection_engine = detection_engine or DetectionEngine()

    @property
    def settings(self) -> DetectionSettings:
        return self.detection_engine.settings

    def scan(self, payload: str, scan_type: ScanType | str | None = ScanType.COMPREHENSIVE) -> ScanReport:
        if payload is not None and not isinstance(payload, str):
            raise ValidationError("payload must be a string")
        kind = parse_scan_type(scan_type)
        text = payload or ""
        if len(text) > self.settings.max_input_length:
            text = text[: self.settings.max_input_length]

        findings: list[Finding] = []
        class_scores: dict[VulnerabilityClass, int] = {}
        recommendations = OrderedSet()
        for vulnerability_class in kind.classes:
            class_findings, class_score = self._scan_class(vulnerability_class, text)
            class_scores[vulnerability_class] = class_score
            findings.extend(class_findings)
            if class_findings:
                recommendations.add_many(class_recommendations(vulnerability_class))

        classes_found = {finding.vulnerability_class for finding in findings}
        aggregate = max(class_scores.values(), default=0)
        if len(classes_found) > 1:
            aggregate += self.settings.multi_class_boost
        report = ScanReport(
            scan_type=kind,
            findings=tuple(findings),
            aggregate_risk_score=clamp_score(aggregate),
            class_scores=class_scores,
            recommendations=recommendations.to_tuple(),
        )
        logger.debug(
            "Scan %s of %r: aggregate=%d classes=%s",
            kind.value,
            preview(text),
            report.aggregate_risk_score,
            sorted(cls.value for cls in classes_found),
        )
        return report

    def _scan_class(self, vulnerability_class: VulnerabilityClass, text: str) -> tuple[list[Finding], int]:
        if vulnerability_class is VulnerabilityClass.SQL_INJECTION:
            verdict = self.detection_engine.analyze(text)
            first_evidence: dict[str, str] = {}
            for factor in verdict.risk_factors:
                first_evidence.setdefault(factor.pattern_id, factor.evidence)
            findings = [
                Finding(
                    vulnerability_class=vulnerability_class,
                    pattern_id=ref.id,
                    severity=ref.severity,
                    description=ref.name,
                    evidence=first_evidence.get(ref.id, ""),
                )
                for ref in verdict.matched_patterns
            ]
            return findings, verdict.score

        patterns = self.detection_engine.catalog.for_class(vulnerability_class)
        matches = match_patterns(
            text,
            patterns,
            max_occurrences=1,
            max_evidence_length=self.settings.max_evidence_length,
        )
        return [self._finding(vulnerability_class, match) for match in matches], severity_total(matches)

    @staticmethod
    def _finding(vulnerability_class: VulnerabilityClass, match: PatternMatch) -> Finding:
        return Finding(
            vulnerability_class=vulnerability_class,
            pattern_id=match.pattern.id,
            severity=match.pattern.severity,
            description=match.pattern.name,
            evidence=match.occurrences[0].evidence,
        )
