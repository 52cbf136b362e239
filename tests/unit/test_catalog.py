# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import re

import pytest

from sqlguard.catalog import BUILTIN_EXAMPLES, BUILTIN_KNOWLEDGE, BUILTIN_PATTERNS, BUILTIN_RULES, PatternCatalog, default_catalog
from sqlguard.errors import ValidationError
from sqlguard.models import DetectionRule, Dialect, SecurityPattern, Severity, VulnerabilityClass


def _pattern(pattern_id: str, **overrides) -> SecurityPattern:
    fields = {
        "id": pattern_id,
        "name": pattern_id,
        "description": "test pattern",
        "matcher": re.compile("x"),
        "severity": Severity.LOW,
        "category": "test",
        "vulnerability_class": VulnerabilityClass.SQL_INJECTION,
        "dialects": frozenset({Dialect.MYSQL}),
    }
    fields.update(overrides)
    return SecurityPattern(**fields)


def test_default_catalog_is_shared_and_complete():
    catalog = default_catalog()
    assert catalog is default_catalog()
    assert len(catalog) == len(BUILTIN_PATTERNS)
    assert len(catalog.rules()) == len(BUILTIN_RULES)
    ids = [pattern.id for pattern in catalog.load()]
    assert len(ids) == len(set(ids))


def test_every_sql_pattern_supports_at_least_one_dialect():
    catalog = default_catalog()
    for pattern in catalog.for_class(VulnerabilityClass.SQL_INJECTION):
        assert pattern.dialects, pattern.id


def test_by_dialect_filters_specific_patterns():
    catalog = default_catalog()
    mysql_ids = {pattern.id for pattern in catalog.by_dialect("mysql")}
    mssql_ids = {pattern.id for pattern in catalog.by_dialect(Dialect.MSSQL)}

    assert "sqli-time-mysql" in mysql_ids
    assert "sqli-time-mysql" not in mssql_ids
    assert "sqli-cmd-mssql" in mssql_ids
    assert "sqli-union-based" in mysql_ids and "sqli-union-based" in mssql_ids
    # non-SQL classes carry no dialect
    assert not any(pattern_id.startswith("xss-") for pattern_id in mysql_ids)


def test_by_dialect_accepts_aliases_and_rejects_unknown():
    catalog = default_catalog()
    assert catalog.by_dialect("postgres") == catalog.by_dialect(Dialect.POSTGRESQL)
    with pytest.raises(ValidationError):
        catalog.by_dialect("db2")


def test_by_id_and_by_severity():
    catalog = default_catalog()
    pattern = catalog.by_id("sqli-union-based")
    assert pattern is not None
    assert pattern.severity is Severity.HIGH
    assert catalog.by_id("missing") is None

    critical = catalog.by_severity("critical")
    assert critical
    assert all(item.severity is Severity.CRITICAL for item in critical)


def test_search_is_case_insensitive_over_name_and_examples():
    catalog = default_catalog()
    lower = [pattern.id for pattern in catalog.search("union")]
    upper = [pattern.id for pattern in catalog.search("UNION")]
    assert lower == upper
    assert lower[0] == "sqli-union-based"
    assert catalog.search("   ") == []
    assert catalog.search("nothing-like-this") == []


def test_for_class_includes_dialect_less_patterns():
    catalog = default_catalog()
    xss = catalog.for_class(VulnerabilityClass.XSS, Dialect.MYSQL)
    assert {pattern.id for pattern in xss} >= {"xss-script-tag", "xss-event-handler"}


def test_rule_for_prefers_dialect_specific_rule():
    catalog = default_catalog()
    generic = catalog.rule_for("sqli-comment-line")
    mysql = catalog.rule_for("sqli-comment-line", Dialect.MYSQL)
    oracle = catalog.rule_for("sqli-comment-line", Dialect.ORACLE)

    assert generic is not None and generic.dialect is None
    assert mysql is not None and mysql.dialect is Dialect.MYSQL
    assert oracle is generic


def test_rules_by_dialect_includes_generic_rules():
    catalog = default_catalog()
    rules = catalog.rules_by_dialect("mssql")
    dialects = {rule.dialect for rule in rules}
    assert dialects == {None, Dialect.MSSQL}


def test_summary_counts_match_catalog():
    summary = default_catalog().summary()
    assert summary["total_patterns"] == len(BUILTIN_PATTERNS)
    assert summary["total_rules"] == len(BUILTIN_RULES)
    assert sum(summary["severity_distribution"].values()) == len(BUILTIN_PATTERNS)
    assert 0.0 < summary["average_rule_confidence"] <= 1.0
    assert set(summary["dialect_support"]) == {dialect.value for dialect in Dialect}
    assert summary["total_knowledge_items"] == len(BUILTIN_KNOWLEDGE)
    assert summary["total_examples"] == len(BUILTIN_EXAMPLES)


def test_catalog_rejects_duplicate_ids():
    with pytest.raises(ValueError, match="Duplicate"):
        PatternCatalog([_pattern("p1"), _pattern("p1")])


def test_catalog_rejects_unknown_rule_reference():
    rule = DetectionRule(id="r1", name="r1", pattern_ids=frozenset({"missing"}), confidence_weight=0.5, false_positive_rate=0.1)
    with pytest.raises(ValueError, match="unknown pattern"):
        PatternCatalog([_pattern("p1")], [rule])


def test_detection_rule_validates_ranges():
    with pytest.raises(ValueError):
        DetectionRule(id="r1", name="r1", pattern_ids=frozenset({"p1"}), confidence_weight=1.5, false_positive_rate=0.1)
    rule = DetectionRule(id="r2", name="r2", pattern_ids=frozenset({"p1"}), confidence_weight=0.8, false_positive_rate=0.25)
    assert rule.effective_weight == pytest.approx(0.6)


def test_pattern_to_dict_is_json_friendly():
    data = default_catalog().by_id("sqli-time-mysql").to_dict()
    assert data["dialects"] == ["mysql"]
    assert data["severity"] == "high"
    assert isinstance(data["pattern"], str)


def test_knowledge_and_examples_are_loaded_read_only():
    catalog = default_catalog()
    assert [item.id for item in catalog.knowledge()] == ["sk-001", "sk-002", "sk-003"]
    assert [example.id for example in catalog.examples()] == ["ve-001", "ve-002", "ve-003"]
    assert catalog.knowledge_by_id("sk-003").category == "Access Control"
    assert catalog.example_by_id("ve-001").vulnerability_type == "SQL Injection - Authentication Bypass"
    assert catalog.knowledge_by_id("sk-999") is None

    items = catalog.knowledge()
    items.clear()
    assert len(catalog.knowledge()) == 3


def test_knowledge_by_category_ignores_case():
    catalog = default_catalog()
    assert [item.id for item in catalog.knowledge_by_category("parameterized queries")] == ["sk-002"]
    assert catalog.knowledge_by_category("Input Validation")[0].best_practices[0] == "Implement whitelist-based validation"
    assert catalog.knowledge_by_category("network security") == []


def test_knowledge_search_covers_guides_and_examples():
    catalog = default_catalog()
    results = catalog.search_knowledge_base("prepared statements")
    assert results[0]["type"] == "knowledge"
    assert results[0]["id"] == "sk-002"
    assert results[0]["code_examples"][0]["language"] == "python"

    mixed = catalog.search_knowledge_base("union")
    assert mixed[0]["type"] == "pattern"
    assert "ve-002" in {r["id"] for r in mixed if r["type"] == "example"}


def test_knowledge_search_narrows_by_context():
    catalog = default_catalog()
    assert [r["id"] for r in catalog.search_knowledge_base("union", "examples")] == ["ve-002"]
    rules = catalog.search_knowledge_base("union", "RULES")
    assert rules and all(r["type"] == "rule" for r in rules)
    assert "rule-005" in {r["id"] for r in rules}
    assert catalog.search_knowledge_base("  ", "knowledge") == []
    with pytest.raises(ValidationError):
        catalog.search_knowledge_base("union", "files")
