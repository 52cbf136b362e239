# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import re
import unittest

import pytest

from sqlguard.catalog import PatternCatalog
from sqlguard.config import DetectionSettings
from sqlguard.detection import DetectionEngine
from sqlguard.detection.recommendations import DIALECT_GUIDANCE, PARAMETERIZE
from sqlguard.errors import EngineComputeError, ValidationError
from sqlguard.models import ALL_DIALECTS, AnalysisVerdict, Dialect, SecurityPattern, Severity

TAUTOLOGY = "SELECT * FROM users WHERE id = '1' OR '1'='1'"
UNION = "SELECT name FROM products WHERE id = 1 UNION SELECT password FROM users"
WAITFOR = "1; WAITFOR DELAY '00:00:05'"
SAFE = "SELECT * FROM users WHERE id = ?"


class ExplodingMatcher:
    pattern = "boom"

    def finditer(self, text):  # noqa: ARG002
        raise RuntimeError("matcher exploded")


def _engine(**overrides) -> DetectionEngine:
    return DetectionEngine(settings=DetectionSettings(**overrides))


class TestCanonicalQueries(unittest.TestCase):
    def setUp(self):
        self.engine = _engine()

    def test_string_tautology_is_vulnerable(self):
        verdict = self.engine.analyze(TAUTOLOGY)
        ids = [ref.id for ref in verdict.matched_patterns]

        self.assertTrue(verdict.is_vulnerable)
        self.assertEqual(verdict.score, 43)
        self.assertIn("sqli-tautology-string", ids)
        self.assertIn("sqli-tautology-numeric", ids)
        self.assertAlmostEqual(verdict.confidence, 0.43)
        self.assertEqual(verdict.recommendations[0], PARAMETERIZE)
        self.assertIsNotNone(verdict.secure_rewrite)
        self.assertIn(":param_1", verdict.secure_rewrite)

    def test_union_select_is_vulnerable(self):
        verdict = self.engine.analyze(UNION)
        self.assertTrue(verdict.is_vulnerable)
        self.assertEqual(verdict.score, 23)
        self.assertEqual([ref.id for ref in verdict.matched_patterns], ["sqli-union-based"])
        self.assertEqual(verdict.highest_severity, Severity.HIGH)

    def test_parameterized_query_is_safe(self):
        verdict = self.engine.analyze(SAFE)
        self.assertFalse(verdict.is_vulnerable)
        self.assertEqual(verdict.score, 0)
        self.assertEqual(verdict.matched_patterns, ())
        self.assertEqual(verdict.recommendations, ())
        self.assertEqual(verdict.confidence, 1.0)
        self.assertIsNone(verdict.secure_rewrite)


def test_dialect_specific_patterns_only_fire_for_their_dialect():
    engine = _engine()
    mssql = engine.analyze(WAITFOR, "mssql")
    mysql = engine.analyze(WAITFOR, Dialect.MYSQL)

    assert mssql.is_vulnerable is True
    assert mssql.score == 23
    assert [ref.id for ref in mssql.matched_patterns] == ["sqli-time-mssql"]
    assert DIALECT_GUIDANCE[Dialect.MSSQL] in mssql.recommendations
    assert mysql.matched_patterns == ()
    assert mysql.score == 0


def test_dialect_rule_changes_comment_weight():
    engine = _engine()
    text = "SELECT name FROM users -- list everyone"
    generic = engine.analyze(text)
    mysql = engine.analyze(text, "mysql")
    sqlite = engine.analyze(text, "sqlite")

    assert generic.score == 7
    assert mysql.score == 8
    assert sqlite.score == 4
    assert not generic.is_vulnerable


def test_score_is_bounded_and_idempotent():
    engine = _engine()
    hostile = "'; DROP TABLE users; -- ' OR '1'='1' UNION SELECT password FROM information_schema.tables /* x */"
    first = engine.analyze(hostile)
    second = engine.analyze(hostile)
    assert 0 <= first.score <= 100
    assert first == second
    assert first.score == 100


MONOTONE_PAYLOADS = (
    "1; DROP TABLE users",
    "' UNION ALL SELECT NULL,NULL--",
    "admin' OR '1'='1",
    "id=5 AND 7=7",
    "1 AND SLEEP(5)",
    "1; WAITFOR DELAY '00:00:05'",
    "EXEC xp_cmdshell 'whoami'",
)


@pytest.mark.parametrize("payload", MONOTONE_PAYLOADS)
def test_appending_a_payload_to_a_safe_query_never_lowers_the_score(payload):
    engine = _engine()
    base = engine.analyze(SAFE)
    extended = engine.analyze(f"{SAFE} {payload}")

    assert base.score == 0
    assert extended.matched_patterns
    assert extended.score >= base.score
    assert {ref.id for ref in base.matched_patterns} <= {ref.id for ref in extended.matched_patterns}


def test_adding_patterns_never_lowers_the_score():
    engine = _engine()
    base = engine.analyze("SELECT * FROM t WHERE name = 'x' OR 'a'='a'")
    extended = engine.analyze("SELECT * FROM t WHERE name = 'x' OR 'a'='a' UNION SELECT password FROM users")
    assert extended.score >= base.score
    assert {ref.id for ref in base.matched_patterns} <= {ref.id for ref in extended.matched_patterns}


def test_matches_are_ordered_by_position():
    verdict = _engine().analyze("x' -- then 1; DROP TABLE users")
    offsets = []
    for ref in verdict.matched_patterns:
        spans = [factor.span[0] for factor in verdict.risk_factors if factor.pattern_id == ref.id]
        offsets.append(min(spans))
    assert offsets == sorted(offsets)


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_input_returns_empty_verdict(text):
    verdict = _engine().analyze(text)
    assert verdict.is_vulnerable is False
    assert verdict.score == 0
    assert verdict.engine_error is None


def test_non_string_input_is_rejected():
    with pytest.raises(ValidationError):
        _engine().analyze(123)


def test_unknown_dialect_is_rejected():
    with pytest.raises(ValidationError):
        _engine().analyze(SAFE, "db2")


def test_long_input_is_truncated_before_matching():
    engine = _engine(max_input_length=20)
    text = "SELECT 1" + " " * 50 + "UNION SELECT password FROM users"
    verdict = engine.analyze(text)
    assert verdict.truncated is True
    assert verdict.matched_patterns == ()


def test_evidence_is_clipped():
    engine = _engine(max_evidence_length=12)
    verdict = engine.analyze("SELECT 1 -- " + "a" * 100)
    evidence = [factor.evidence for factor in verdict.risk_factors if factor.pattern_id == "sqli-comment-line"]
    assert evidence
    assert all(len(item) <= 12 for item in evidence)
    assert evidence[0].endswith("...")


def test_occurrences_are_capped_per_pattern():
    engine = _engine(max_occurrences_per_pattern=2)
    verdict = engine.analyze("a -- 1\nb -- 2\nc -- 3\nd -- 4")
    comment_factors = [factor for factor in verdict.risk_factors if factor.pattern_id == "sqli-comment-line"]
    assert len(comment_factors) == 2


def test_matcher_failure_becomes_engine_error(caplog):
    pattern = SecurityPattern(
        id="boom",
        name="boom",
        description="always fails",
        matcher=ExplodingMatcher(),
        severity=Severity.HIGH,
        category="test",
        dialects=ALL_DIALECTS,
    )
    engine = DetectionEngine(PatternCatalog([pattern]), DetectionSettings())
    verdict = engine.analyze("SELECT 1")

    assert verdict.is_vulnerable is False
    assert verdict.engine_error is not None
    assert "RuntimeError" in verdict.engine_error
    assert "Detection failed" in caplog.text
    record = next(r for r in caplog.records if r.getMessage().startswith("Detection failed"))
    assert record.exc_info[0] is EngineComputeError
    assert isinstance(record.exc_info[1].__cause__, RuntimeError)


def test_batch_analyze_preserves_order():
    engine = _engine()
    queries = [SAFE, TAUTOLOGY, UNION, WAITFOR]
    verdicts = engine.batch_analyze(queries)
    assert verdicts == [engine.analyze(query) for query in queries]
    assert [verdict.is_vulnerable for verdict in verdicts] == [False, True, True, True]


def test_batch_analyze_applies_the_dialect_to_every_query():
    engine = _engine()
    queries = [WAITFOR, TAUTOLOGY, SAFE]
    verdicts = engine.batch_analyze(queries, "mysql")
    assert verdicts == [engine.analyze(query, Dialect.MYSQL) for query in queries]
    assert all(verdict.dialect is Dialect.MYSQL for verdict in verdicts)
    assert verdicts[0].score == 0


def test_verdict_to_dict_round_trips_through_from_mapping():
    verdict = _engine().analyze(TAUTOLOGY, "postgresql")
    data = verdict.to_dict()
    assert data["dialect"] == "postgresql"
    assert data["matched_patterns"][0]["id"] == verdict.matched_patterns[0].id

    rebuilt = AnalysisVerdict.from_mapping(data)
    assert rebuilt.score == verdict.score
    assert rebuilt.matched_patterns == verdict.matched_patterns
    assert rebuilt.recommendations == verdict.recommendations


def test_custom_pattern_catalog_is_respected():
    pattern = SecurityPattern(
        id="custom-marker",
        name="Marker",
        description="custom marker",
        matcher=re.compile(r"\bEVIL\b", re.IGNORECASE),
        severity=Severity.CRITICAL,
        category="stacked_queries",
        dialects=ALL_DIALECTS,
    )
    engine = DetectionEngine(PatternCatalog([pattern]), DetectionSettings())
    verdict = engine.analyze("select evil from dual")
    assert verdict.score == 40
    assert verdict.is_vulnerable is True
