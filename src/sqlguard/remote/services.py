# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed clients for the semantic analyzer and the remote detection API."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..models.combined import SemanticVerdict, unwrap_payload
from ..models.scan import ScanReport
from ..models.types import Dialect, ScanType
from ..models.verdict import AnalysisVerdict
from .client import RemoteRequest, ResilientRemoteClient
from .outcome import RemoteCallOutcome

logger = logging.getLogger(__name__)

SEMANTIC_TARGET = "semantic-analyzer"
DETECTION_TARGET = "detection-api"


class _ServiceClient:
    target: str

    def __init__(self, remote: ResilientRemoteClient, base_url: str, api_key: str | None = None, *, target: str | None = None):
        self.remote = remote
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        if target is not None:
            self.target = target

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}", "X-API-Key": self.api_key}

    def _call(self, method: str, path: str, payload: Any = None, *, timeout: float | None = None) -> RemoteCallOutcome:
        request = RemoteRequest(
            target=self.target,
            url=f"{self.base_url}{path}",
            method=method,
            payload=payload,
            headers=self._headers(),
        )
        return self.remote.call(request, timeout=timeout)

    @staticmethod
    def _parse(outcome: RemoteCallOutcome, parser: Callable[[Any], Any]) -> RemoteCallOutcome:
        """Replace a success payload with its parsed form, or downgrade to an application error."""
        if not outcome.ok:
            return outcome
        try:
            return outcome.with_payload(parser(outcome.payload))
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Malformed payload from %s: %s", outcome.target, exc)
            return RemoteCallOutcome.application_error(
                f"malformed payload: {exc}",
                target=outcome.target,
                status_code=outcome.status_code,
                payload=outcome.payload,
                attempts=outcome.attempts,
            )

    def health(self, *, timeout: float | None = None) -> RemoteCallOutcome:
        return self._call("GET", "/api/v1/health", timeout=timeout)


def _result_list(payload: Any) -> tuple[dict[str, Any], ...]:
    data = unwrap_payload(payload)
    if isinstance(data, Mapping):
        data = data.get("results", data.get("matches", []))
    if not isinstance(data, list):
        raise ValueError("expected a list of results")
    return tuple(dict(item) if isinstance(item, Mapping) else {"content": str(item)} for item in data)


class SemanticAnalyzerClient(_ServiceClient):
    """Client for the slower, model-backed semantic analyzer."""

    target = SEMANTIC_TARGET

    def analyze(
        self,
        query: str,
        context: AnalysisVerdict | None = None,
        dialect: Dialect | None = None,
        *,
        timeout: float | None = None,
    ) -> RemoteCallOutcome:
        payload = {
            "query": query,
            "context": context.to_dict() if context is not None else {},
            "useSemanticModel": True,
            "database_type": dialect.value if dialect else None,
        }
        outcome = self._call("POST", "/api/v1/rag/analyze-sql", payload, timeout=timeout)
        return self._parse(outcome, SemanticVerdict.from_payload)

    def scan(self, payload: str, scan_type: ScanType = ScanType.COMPREHENSIVE, *, timeout: float | None = None) -> RemoteCallOutcome:
        body = {"query": payload, "context": {"scan_type": scan_type.value}, "useSemanticModel": True}
        outcome = self._call("POST", "/api/v1/rag/analyze-sql", body, timeout=timeout)
        return self._parse(outcome, SemanticVerdict.from_payload)

    def search_knowledge(
        self,
        query: str,
        context_type: str = "all",
        max_results: int = 5,
        *,
        timeout: float | None = None,
    ) -> RemoteCallOutcome:
        body = {"query": query, "max_results": max_results, "include_scores": True, "context_type": context_type}
        outcome = self._call("POST", "/api/v1/rag/semantic-search", body, timeout=timeout)
        return self._parse(outcome, _result_list)

    def search_similar_patterns(self, pattern: str, max_results: int = 5, *, timeout: float | None = None) -> RemoteCallOutcome:
        body = {"query": pattern, "max_results": max_results, "include_scores": True, "search_type": "pattern_similarity"}
        outcome = self._call("POST", "/api/v1/rag/semantic-search", body, timeout=timeout)
        return self._parse(outcome, _result_list)

    def upload_file(self, file_name: str, content: str, file_type: str = "sql", *, timeout: float | None = None) -> RemoteCallOutcome:
        body = {"filename": file_name, "content": content, "file_type": file_type}
        return self._call("POST", "/api/v1/files/upload-text", body, timeout=timeout)


class DetectionApiClient(_ServiceClient):
    """Client for a detection engine deployed behind an HTTP API."""

    target = DETECTION_TARGET

    def analyze_query(self, query: str, dialect: Dialect | None = None, *, timeout: float | None = None) -> RemoteCallOutcome:
        body = {"query": query, "database_type": dialect.value if dialect else None}
        outcome = self._call("POST", "/api/v1/detection/analyze-query", body, timeout=timeout)
        return self._parse(outcome, lambda payload: AnalysisVerdict.from_mapping(unwrap_payload(payload)))

    def security_scan(
        self,
        payload: str,
        scan_type: ScanType = ScanType.COMPREHENSIVE,
        *,
        timeout: float | None = None,
    ) -> RemoteCallOutcome:
        body = {"payload": payload, "scan_type": scan_type.value}
        outcome = self._call("POST", "/api/v1/detection/security-scan", body, timeout=timeout)
        return self._parse(outcome, lambda data: ScanReport.from_mapping(unwrap_payload(data)))

    def batch_analyze(
        self,
        queries: Iterable[str],
        dialect: Dialect | None = None,
        *,
        timeout: float | None = None,
    ) -> RemoteCallOutcome:
        body = {"queries": list(queries), "database_type": dialect.value if dialect else None}
        outcome = self._call("POST", "/api/v1/detection/batch-analyze", body, timeout=timeout)
        return self._parse(outcome, lambda data: [AnalysisVerdict.from_mapping(item) for item in _result_list(data)])
