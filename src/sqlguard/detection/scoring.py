# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Risk scoring for matched patterns."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Final

from ..models.pattern import DetectionRule, SecurityPattern
from ..models.types import Severity
from .matching import PatternMatch

SEVERITY_POINTS: Final[dict[Severity, int]] = {
    Severity.CRITICAL: 40,
    Severity.HIGH: 25,
    Severity.MEDIUM: 12,
    Severity.LOW: 5,
}

MAX_SCORE: Final = 100


def clamp_score(value: float) -> int:
    return max(0, min(MAX_SCORE, int(round(value))))


def pattern_points(pattern: SecurityPattern, rule: DetectionRule | None) -> float:
    """Severity points scaled by the rule's weight and discounted by its false-positive rate."""
    base = SEVERITY_POINTS[pattern.severity]
    if rule is None:
        return float(base)
    return base * rule.effective_weight


def score_matches(
    matches: Iterable[PatternMatch],
    rule_lookup: Callable[[str], DetectionRule | None] | None = None,
) -> tuple[int, dict[str, Any]]:
    """
    Sum per-pattern contributions once per pattern and clamp to 0..100.

    ``rule_lookup`` is a callable ``pattern_id -> DetectionRule | None``; without one
    every pattern counts its raw severity points.
    """
    total = 0.0
    contributions: dict[str, float] = {}
    rules_applied: dict[str, str] = {}
    for match in matches:
        pattern = match.pattern
        if pattern.id in contributions:
            continue
        rule = rule_lookup(pattern.id) if rule_lookup is not None else None
        points = pattern_points(pattern, rule)
        contributions[pattern.id] = round(points, 3)
        if rule is not None:
            rules_applied[pattern.id] = rule.id
        total += points

    breakdown = {
        "contributions": contributions,
        "rules": rules_applied,
        "raw_total": round(total, 3),
    }
    return clamp_score(total), breakdown


def severity_total(matches: Iterable[PatternMatch]) -> int:
    """Unweighted severity sum, clamped; used for classes without calibration rules."""
    seen: set[str] = set()
    total = 0
    for match in matches:
        if match.pattern.id in seen:
            continue
        seen.add(match.pattern.id)
        total += SEVERITY_POINTS[match.pattern.severity]
    return clamp_score(total)
