# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Educational catalog records: best-practice guides and worked vulnerable examples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _contains(term: str, values: tuple[str, ...]) -> bool:
    needle = term.lower()
    return any(needle in value.lower() for value in values)


@dataclass(frozen=True)
class CodeExample:
    language: str
    vulnerable_code: str
    secure_code: str
    explanation: str
    framework: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "framework": self.framework,
            "vulnerable_code": self.vulnerable_code,
            "secure_code": self.secure_code,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class KnowledgeItem:
    """Guidance for one security topic."""

    id: str
    category: str
    title: str
    description: str
    best_practices: tuple[str, ...] = ()
    code_examples: tuple[CodeExample, ...] = ()
    references: tuple[str, ...] = ()

    def matches_term(self, term: str) -> bool:
        return _contains(term, (self.category, self.title, self.description, *self.best_practices))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "best_practices": list(self.best_practices),
            "code_examples": [example.to_dict() for example in self.code_examples],
            "references": list(self.references),
        }


@dataclass(frozen=True)
class VulnerableExample:
    """A vulnerable snippet, how it is exploited and how it is fixed."""

    id: str
    title: str
    description: str
    vulnerability_type: str
    code: str
    exploitation_scenario: str
    fix: str
    prevention_measures: tuple[str, ...] = ()

    def matches_term(self, term: str) -> bool:
        return _contains(
            term,
            (self.title, self.description, self.vulnerability_type, self.exploitation_scenario, *self.prevention_measures),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "vulnerability_type": self.vulnerability_type,
            "code": self.code,
            "exploitation_scenario": self.exploitation_scenario,
            "fix": self.fix,
            "prevention_measures": list(self.prevention_measures),
        }
