# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json

import pytest

from sqlguard.config import RemoteSettings
from sqlguard.http import HttpResponse, StubHttpClient
from sqlguard.models import AnalysisVerdict, Dialect, ScanReport, ScanType, SemanticVerdict
from sqlguard.remote import DetectionApiClient, OutcomeKind, ResilientRemoteClient, SemanticAnalyzerClient

SEMANTIC = "http://semantic.test"
DETECTION = "http://detection.test"


def _json(status: int, payload) -> HttpResponse:
    return HttpResponse.from_mapping({"status_code": status, "json": payload})


@pytest.fixture
def stub():
    return StubHttpClient()


@pytest.fixture
def remote(stub):
    return ResilientRemoteClient(stub, RemoteSettings(timeout=5.0, max_retries=1, backoff_base=0.0))


def test_semantic_analyze_sends_context_and_parses_envelope(stub, remote):
    stub.add(
        f"{SEMANTIC}/api/v1/rag/analyze-sql",
        _json(200, {"status": "success", "data": {"confidence": 87, "is_vulnerable": True, "recommendations": ["Use an ORM"]}}),
    )
    client = SemanticAnalyzerClient(remote, SEMANTIC + "/", api_key="secret")
    context = AnalysisVerdict(is_vulnerable=True, score=43)
    outcome = client.analyze("SELECT 1", context, Dialect.MYSQL)

    assert outcome.ok is True
    verdict = outcome.payload
    assert isinstance(verdict, SemanticVerdict)
    assert verdict.confidence == pytest.approx(0.87)
    assert verdict.is_vulnerable is True
    assert verdict.recommendations == ("Use an ORM",)

    sent = stub.requests[0]
    body = json.loads(sent.body)
    assert body["query"] == "SELECT 1"
    assert body["context"]["score"] == 43
    assert body["database_type"] == "mysql"
    assert sent.headers["Authorization"] == "Bearer secret"
    assert sent.headers["X-API-Key"] == "secret"


def test_semantic_payload_without_confidence_is_application_error(stub, remote):
    stub.add(f"{SEMANTIC}/api/v1/rag/analyze-sql", _json(200, {"data": {"analysis": "looks fine"}}))
    client = SemanticAnalyzerClient(remote, SEMANTIC)
    outcome = client.analyze("SELECT 1")

    assert outcome.kind is OutcomeKind.APPLICATION_ERROR
    assert "malformed payload" in outcome.message
    assert remote.breakers.snapshot(client.target).consecutive_failures == 0


def test_semantic_scan_posts_scan_type(stub, remote):
    stub.add(f"{SEMANTIC}/api/v1/rag/analyze-sql", _json(200, {"confidence": 0.4, "vulnerable": False}))
    outcome = SemanticAnalyzerClient(remote, SEMANTIC).scan("<b>hi</b>", ScanType.XSS)
    assert outcome.ok is True
    assert outcome.payload.is_vulnerable is False
    assert json.loads(stub.requests[0].body)["context"] == {"scan_type": "xss"}


def test_knowledge_search_parses_result_list(stub, remote):
    stub.add(
        f"{SEMANTIC}/api/v1/rag/semantic-search",
        _json(200, {"data": {"results": [{"content": "Use prepared statements", "score": 0.9}, "plain"]}}),
    )
    client = SemanticAnalyzerClient(remote, SEMANTIC)
    outcome = client.search_knowledge("prepared statements", "documentation", 3)

    assert outcome.ok is True
    assert outcome.payload == ({"content": "Use prepared statements", "score": 0.9}, {"content": "plain"})
    body = json.loads(stub.requests[0].body)
    assert body["context_type"] == "documentation"
    assert body["max_results"] == 3


def test_similar_pattern_search_rejects_non_list(stub, remote):
    stub.add(f"{SEMANTIC}/api/v1/rag/semantic-search", _json(200, {"data": {"results": "nope"}}))
    outcome = SemanticAnalyzerClient(remote, SEMANTIC).search_similar_patterns("' OR 1=1")
    assert outcome.kind is OutcomeKind.APPLICATION_ERROR
    assert json.loads(stub.requests[0].body)["search_type"] == "pattern_similarity"


def test_health_uses_get(stub, remote):
    stub.add(f"{SEMANTIC}/api/v1/health", _json(200, {"status": "ok"}))
    outcome = SemanticAnalyzerClient(remote, SEMANTIC).health()
    assert outcome.ok is True
    assert stub.requests[0].method == "GET"


def test_detection_api_analyze_query(stub, remote):
    stub.add(
        f"{DETECTION}/api/v1/detection/analyze-query",
        _json(
            200,
            {
                "success": True,
                "data": {
                    "is_vulnerable": True,
                    "vulnerability_score": 72.6,
                    "detected_patterns": [{"id": "sqli-union-based", "name": "UNION", "severity": "high"}],
                    "secure_query": "SELECT * FROM t WHERE id = :param_1",
                    "database_type": "postgresql",
                },
            },
        ),
    )
    outcome = DetectionApiClient(remote, DETECTION).analyze_query("SELECT 1", Dialect.POSTGRESQL)

    verdict = outcome.raise_for_outcome()
    assert verdict.is_vulnerable is True
    assert verdict.score == 73
    assert verdict.matched_patterns[0].id == "sqli-union-based"
    assert verdict.secure_rewrite.endswith(":param_1")
    assert verdict.dialect is Dialect.POSTGRESQL


def test_detection_api_security_scan_and_batch(stub, remote):
    stub.add(
        f"{DETECTION}/api/v1/detection/security-scan",
        _json(200, {"data": {"scan_type": "xss", "aggregate_risk_score": 25, "class_scores": {"xss": 25}}}),
    )
    stub.add(
        f"{DETECTION}/api/v1/detection/batch-analyze",
        _json(200, {"data": {"results": [{"is_vulnerable": False, "score": 0}, {"is_vulnerable": True, "score": 43}]}}),
    )
    client = DetectionApiClient(remote, DETECTION)

    report = client.security_scan("<script>", ScanType.XSS).raise_for_outcome()
    assert isinstance(report, ScanReport)
    assert report.aggregate_risk_score == 25

    verdicts = client.batch_analyze(["a", "b"]).raise_for_outcome()
    assert [verdict.score for verdict in verdicts] == [0, 43]
    assert json.loads(stub.requests[-1].body)["queries"] == ["a", "b"]
