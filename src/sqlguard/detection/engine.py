# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Pattern-based SQL injection detection engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from ..catalog import PatternCatalog, default_catalog
from ..config import DetectionSettings, load_detection_settings
from ..errors import EngineComputeError, ValidationError
from ..log import preview
from ..models.types import Dialect, VulnerabilityClass, parse_dialect
from ..models.verdict import AnalysisVerdict, ParameterValue, PatternRef, RewriteResult, RiskFactor
from .matching import PatternMatch, match_patterns
from .recommendations import sql_recommendations
from .rewrite import PlaceholderStyle, generate_secure_rewrite
from .scoring import score_matches

logger = logging.getLogger(__name__)


class DetectionEngine:
    """
    Turns raw SQL text into a deterministic AnalysisVerdict.

    The engine is pure: identical (text, dialect, catalog, settings) always yield an
    identical verdict, and it never touches the network.
    """

    def __init__(self, catalog: PatternCatalog | None = None, settings: DetectionSettings | None = None):
        self.catalog = catalog or default_catalog()
        self.settings = settings or load_detection_settings()

    def analyze(self, text: str, dialect: Dialect | str | None = None) -> AnalysisVerdict:
        if text is not None and not isinstance(text, str):
            raise ValidationError("query must be a string")
        target = parse_dialect(dialect)
        if not text or not text.strip():
            return AnalysisVerdict.empty(dialect=target)

        truncated = len(text) > self.settings.max_input_length
        subject = text[: self.settings.max_input_length] if truncated else text
        if truncated:
            logger.debug("Input truncated from %d to %d chars", len(text), self.settings.max_input_length)

        try:
            return self._analyze(subject, target, truncated)
        except EngineComputeError as exc:
            logger.exception("Detection failed for %r", preview(subject))
            return AnalysisVerdict.empty(dialect=target, engine_error=str(exc))

    def match(self, text: str, dialect: Dialect | None = None) -> list[PatternMatch]:
        """Raw SQL-injection pattern matches for ``text``."""
        patterns = self.catalog.for_class(VulnerabilityClass.SQL_INJECTION, dialect)
        return match_patterns(
            text,
            patterns,
            max_occurrences=self.settings.max_occurrences_per_pattern,
            max_evidence_length=self.settings.max_evidence_length,
        )

    def _analyze(self, text: str, dialect: Dialect | None, truncated: bool) -> AnalysisVerdict:
        try:
            return self._build_verdict(text, dialect, truncated)
        except Exception as exc:  # noqa: BLE001
            raise EngineComputeError(f"{type(exc).__name__}: {exc}") from exc

    def _build_verdict(self, text: str, dialect: Dialect | None, truncated: bool) -> AnalysisVerdict:
        matches = self.match(text, dialect)
        score, breakdown = score_matches(matches, lambda pattern_id: self.catalog.rule_for(pattern_id, dialect))
        is_vulnerable = bool(matches) and score > self.settings.vulnerability_score_threshold

        refs = tuple(
            PatternRef(
                id=match.pattern.id,
                name=match.pattern.name,
                severity=match.pattern.severity,
                category=match.pattern.category,
            )
            for match in matches
        )
        factors = tuple(
            RiskFactor(
                pattern_id=match.pattern.id,
                severity=match.pattern.severity,
                description=match.pattern.description,
                evidence=occurrence.evidence,
                span=(occurrence.start, occurrence.end),
            )
            for match in matches
            for occurrence in match.occurrences
        )

        secure_rewrite = None
        if is_vulnerable:
            rewrite = generate_secure_rewrite(text)
            if rewrite.rewritten:
                secure_rewrite = rewrite.secure

        logger.debug(
            "Analyzed %r: score=%d vulnerable=%s patterns=%s contributions=%s",
            preview(text),
            score,
            is_vulnerable,
            [ref.id for ref in refs],
            breakdown["contributions"],
        )
        return AnalysisVerdict(
            is_vulnerable=is_vulnerable,
            score=score,
            matched_patterns=refs,
            risk_factors=factors,
            recommendations=sql_recommendations(matches, dialect, is_vulnerable),
            secure_rewrite=secure_rewrite,
            dialect=dialect,
            truncated=truncated,
        )

    def batch_analyze(self, queries: Iterable[str], dialect: Dialect | str | None = None) -> list[AnalysisVerdict]:
        """Analyze each query independently, preserving order."""
        target = parse_dialect(dialect)
        return [self.analyze(query, target) for query in queries]

    def generate_secure_rewrite(
        self,
        text: str,
        parameters: Mapping[str, ParameterValue] | None = None,
        *,
        style: PlaceholderStyle = "named",
    ) -> RewriteResult:
        return generate_secure_rewrite(text, parameters, style=style)
