# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Read-only catalog of security patterns and their calibration rules."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from functools import lru_cache
from typing import Any

from ..errors import ValidationError
from ..models.knowledge import KnowledgeItem, VulnerableExample
from ..models.pattern import DetectionRule, SecurityPattern
from ..models.types import Dialect, Severity, VulnerabilityClass, parse_dialect, parse_severity
from .knowledge import BUILTIN_EXAMPLES, BUILTIN_KNOWLEDGE
from .patterns import BUILTIN_PATTERNS
from .rules import BUILTIN_RULES

KNOWLEDGE_CONTEXTS = ("all", "patterns", "knowledge", "examples", "rules")


class PatternCatalog:
    """
    Immutable set of SecurityPattern and DetectionRule records, plus the best-practice
    guides and vulnerable examples served by knowledge-base searches.

    Built once and shared by reference; there is no mutation API. Reloading means
    constructing a new catalog and handing it to new engines.
    """

    def __init__(
        self,
        patterns: Iterable[SecurityPattern],
        rules: Iterable[DetectionRule] = (),
        *,
        knowledge: Iterable[KnowledgeItem] = (),
        examples: Iterable[VulnerableExample] = (),
    ):
        self._patterns: tuple[SecurityPattern, ...] = tuple(patterns)
        self._rules: tuple[DetectionRule, ...] = tuple(rules)
        self._knowledge: tuple[KnowledgeItem, ...] = tuple(knowledge)
        self._examples: tuple[VulnerableExample, ...] = tuple(examples)
        self._by_id: dict[str, SecurityPattern] = {}
        for pattern in self._patterns:
            if pattern.id in self._by_id:
                raise ValueError(f"Duplicate pattern id: {pattern.id}")
            self._by_id[pattern.id] = pattern

        self._rule_index: dict[tuple[str, Dialect | None], DetectionRule] = {}
        for rule in self._rules:
            for pattern_id in rule.pattern_ids:
                if pattern_id not in self._by_id:
                    raise ValueError(f"Rule {rule.id} references unknown pattern {pattern_id}")
                key = (pattern_id, rule.dialect)
                if key in self._rule_index:
                    raise ValueError(f"Pattern {pattern_id} is calibrated twice for dialect {rule.dialect}")
                self._rule_index[key] = rule

    def __len__(self) -> int:
        return len(self._patterns)

    def load(self) -> list[SecurityPattern]:
        return list(self._patterns)

    def by_dialect(self, dialect: Dialect | str) -> list[SecurityPattern]:
        target = parse_dialect(dialect)
        if target is None:
            return []
        return [pattern for pattern in self._patterns if target in pattern.dialects]

    def by_id(self, pattern_id: str) -> SecurityPattern | None:
        return self._by_id.get(pattern_id)

    def by_severity(self, severity: Severity | str) -> list[SecurityPattern]:
        target = parse_severity(severity)
        return [pattern for pattern in self._patterns if pattern.severity is target]

    def for_class(self, vulnerability_class: VulnerabilityClass, dialect: Dialect | None = None) -> list[SecurityPattern]:
        """Patterns of one vulnerability class, narrowed to ``dialect`` when given."""
        return [
            pattern
            for pattern in self._patterns
            if pattern.vulnerability_class is vulnerability_class
            and (dialect is None or not pattern.dialects or dialect in pattern.dialects)
        ]

    def search(self, term: str) -> list[SecurityPattern]:
        """Case-insensitive substring search over name, description and examples."""
        needle = (term or "").strip()
        if not needle:
            return []
        return [pattern for pattern in self._patterns if pattern.matches_term(needle)]

    def categories(self) -> list[str]:
        seen: dict[str, None] = {}
        for pattern in self._patterns:
            seen.setdefault(pattern.category, None)
        return list(seen)

    def rules(self) -> list[DetectionRule]:
        return list(self._rules)

    def rules_by_dialect(self, dialect: Dialect | str) -> list[DetectionRule]:
        """Rules that apply to ``dialect``: dialect-specific ones plus the generic ones."""
        target = parse_dialect(dialect)
        return [rule for rule in self._rules if rule.dialect is None or rule.dialect is target]

    def rule_for(self, pattern_id: str, dialect: Dialect | None = None) -> DetectionRule | None:
        if dialect is not None:
            specific = self._rule_index.get((pattern_id, dialect))
            if specific is not None:
                return specific
        return self._rule_index.get((pattern_id, None))

    def knowledge(self) -> list[KnowledgeItem]:
        return list(self._knowledge)

    def knowledge_by_category(self, category: str) -> list[KnowledgeItem]:
        """Guides whose category equals ``category``, ignoring case."""
        wanted = (category or "").strip().lower()
        return [item for item in self._knowledge if item.category.lower() == wanted]

    def knowledge_by_id(self, item_id: str) -> KnowledgeItem | None:
        return next((item for item in self._knowledge if item.id == item_id), None)

    def examples(self) -> list[VulnerableExample]:
        return list(self._examples)

    def example_by_id(self, example_id: str) -> VulnerableExample | None:
        return next((example for example in self._examples if example.id == example_id), None)

    def search_knowledge_base(self, term: str, context_type: str = "all") -> list[dict[str, Any]]:
        """
        Offline knowledge-base search.

        Results are tagged with a ``type`` and ordered patterns, knowledge, examples, rules.
        ``context_type`` narrows the search to one of those kinds.
        """
        context = (context_type or "all").strip().lower()
        if context not in KNOWLEDGE_CONTEXTS:
            raise ValidationError(f"Unsupported knowledge context: {context_type!r}")
        needle = (term or "").strip()
        if not needle:
            return []

        def wanted(kind: str) -> bool:
            return context in ("all", kind)

        results: list[dict[str, Any]] = []
        if wanted("patterns"):
            results.extend({"type": "pattern", **pattern.to_dict()} for pattern in self.search(needle))
        if wanted("knowledge"):
            results.extend({"type": "knowledge", **item.to_dict()} for item in self._knowledge if item.matches_term(needle))
        if wanted("examples"):
            results.extend(
                {"type": "example", **example.to_dict()} for example in self._examples if example.matches_term(needle)
            )
        if wanted("rules"):
            lowered = needle.lower()
            results.extend(
                {"type": "rule", **rule.to_dict()}
                for rule in self._rules
                if lowered in rule.name.lower() or lowered in rule.description.lower()
            )
        return results

    def summary(self) -> dict[str, Any]:
        """Counts per severity, class and dialect plus the mean rule weight."""
        severity_counts = Counter(pattern.severity.value for pattern in self._patterns)
        class_counts = Counter(pattern.vulnerability_class.value for pattern in self._patterns)
        dialect_counts = Counter(dialect.value for pattern in self._patterns for dialect in pattern.dialects)
        weights = [rule.confidence_weight for rule in self._rules]
        return {
            "total_patterns": len(self._patterns),
            "total_rules": len(self._rules),
            "severity_distribution": {sev.value: severity_counts.get(sev.value, 0) for sev in Severity},
            "class_distribution": dict(class_counts),
            "dialect_support": {dialect.value: dialect_counts.get(dialect.value, 0) for dialect in Dialect},
            "average_rule_confidence": round(sum(weights) / len(weights), 4) if weights else 0.0,
            "total_knowledge_items": len(self._knowledge),
            "total_examples": len(self._examples),
        }


@lru_cache(maxsize=1)
def default_catalog() -> PatternCatalog:
    """Process-wide catalog built from the built-in tables."""
    return PatternCatalog(BUILTIN_PATTERNS, BUILTIN_RULES, knowledge=BUILTIN_KNOWLEDGE, examples=BUILTIN_EXAMPLES)
