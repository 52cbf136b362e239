# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Catalog records: security patterns and their calibration rules."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .types import Dialect, Severity, VulnerabilityClass


@dataclass(frozen=True)
class SecurityPattern:
    """A named lexical signature for one attack technique."""

    id: str
    name: str
    description: str
    matcher: re.Pattern[str]
    severity: Severity
    category: str
    vulnerability_class: VulnerabilityClass = VulnerabilityClass.SQL_INJECTION
    dialects: frozenset[Dialect] = frozenset()
    examples: tuple[str, ...] = ()
    mitigation: str = ""

    def supports(self, dialect: Dialect | None) -> bool:
        return dialect is None or dialect in self.dialects

    def matches_term(self, term: str) -> bool:
        needle = term.lower()
        haystacks = (self.name, self.description, *self.examples)
        return any(needle in value.lower() for value in haystacks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "pattern": self.matcher.pattern,
            "severity": self.severity.value,
            "category": self.category,
            "vulnerability_class": self.vulnerability_class.value,
            "dialects": sorted(d.value for d in self.dialects),
            "examples": list(self.examples),
            "mitigation": self.mitigation,
        }


@dataclass(frozen=True)
class DetectionRule:
    """Calibration applied to a set of patterns, optionally for one dialect."""

    id: str
    name: str
    pattern_ids: frozenset[str]
    confidence_weight: float
    false_positive_rate: float
    dialect: Dialect | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_weight <= 1.0:
            raise ValueError(f"{self.id}: confidence_weight must be within [0, 1]")
        if not 0.0 <= self.false_positive_rate <= 1.0:
            raise ValueError(f"{self.id}: false_positive_rate must be within [0, 1]")

    @property
    def effective_weight(self) -> float:
        return self.confidence_weight * (1.0 - self.false_positive_rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "pattern_ids": sorted(self.pattern_ids),
            "dialect": self.dialect.value if self.dialect else None,
            "confidence_weight": self.confidence_weight,
            "false_positive_rate": self.false_positive_rate,
            "description": self.description,
        }
