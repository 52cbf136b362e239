# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Deterministic SQL injection detection."""

from .engine import DetectionEngine
from .matching import Occurrence, PatternMatch, match_patterns
from .rewrite import generate_secure_rewrite, render_literal, substitute_parameters
from .scoring import SEVERITY_POINTS, clamp_score, score_matches, severity_total

__all__ = [
    "DetectionEngine",
    "Occurrence",
    "PatternMatch",
    "SEVERITY_POINTS",
    "clamp_score",
    "generate_secure_rewrite",
    "match_patterns",
    "render_literal",
    "score_matches",
    "severity_total",
    "substitute_parameters",
]
