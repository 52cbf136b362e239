# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level SqlGuard facade for detection, scanning and orchestrated analysis."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from contextlib import suppress
from typing import Any

from .catalog import PatternCatalog, default_catalog
from .config import GuardSettings, load_settings
from .detection import DetectionEngine
from .detection.rewrite import PlaceholderStyle
from .http.client import HttpClient, create_default_http_client
from .models import (
    AnalysisVerdict,
    CombinedScanReport,
    CombinedVerdict,
    FileAnalysisReport,
    RewriteResult,
    ScanReport,
    ScanType,
    SearchResult,
    SecurityPattern,
    ServiceHealth,
)
from .models.types import Dialect, parse_dialect
from .models.verdict import ParameterValue
from .orchestrator import AnalysisOrchestrator
from .remote import DetectionApiClient, ResilientRemoteClient, SemanticAnalyzerClient
from .scan import ScanAggregator


class SqlGuard:
    """
    Convenience wrapper that wires one transport and breaker table across all services.

    Deterministic operations never touch the network. Orchestrated operations share the
    resilient client, so breaker state carries over between calls on the same instance.
    """

    def __init__(
        self,
        settings: GuardSettings | None = None,
        http_client: HttpClient | None = None,
        *,
        catalog: PatternCatalog | None = None,
    ):
        self.settings = settings or load_settings()
        self.http_client = http_client or create_default_http_client(self.settings.remote)
        self.catalog = catalog or default_catalog()
        self.detection_engine = DetectionEngine(self.catalog, self.settings.detection)
        self.scan_aggregator = ScanAggregator(self.detection_engine)
        self.remote = ResilientRemoteClient(self.http_client, self.settings.remote)
        self.semantic_client = SemanticAnalyzerClient(
            self.remote, self.settings.remote.semantic_url, self.settings.remote.semantic_api_key
        )
        self.detection_api = DetectionApiClient(
            self.remote, self.settings.remote.detection_url, self.settings.remote.detection_api_key
        )
        self.orchestrator = AnalysisOrchestrator(
            self.detection_engine,
            self.semantic_client,
            scan_aggregator=self.scan_aggregator,
            settings=self.settings.orchestrator,
        )

    def analyze_query(self, query: str, dialect: Dialect | str | None = None) -> AnalysisVerdict:
        return self.detection_engine.analyze(query, dialect)

    def security_scan(self, payload: str, scan_type: ScanType | str | None = ScanType.COMPREHENSIVE) -> ScanReport:
        return self.scan_aggregator.scan(payload, scan_type)

    def batch_analyze(self, queries: Iterable[str], dialect: Dialect | str | None = None) -> list[AnalysisVerdict]:
        return self.detection_engine.batch_analyze(queries, dialect)

    def generate_secure_rewrite(
        self,
        query: str,
        parameters: Mapping[str, ParameterValue] | None = None,
        *,
        style: PlaceholderStyle = "named",
    ) -> RewriteResult:
        return self.detection_engine.generate_secure_rewrite(query, parameters, style=style)

    def orchestrated_analyze(
        self,
        query: str,
        dialect: Dialect | str | None = None,
        deadline: float | None = None,
    ) -> CombinedVerdict:
        return self.orchestrator.orchestrated_analyze(query, dialect, deadline)

    def orchestrated_scan(
        self,
        payload: str,
        scan_type: ScanType | str | None = ScanType.COMPREHENSIVE,
        deadline: float | None = None,
    ) -> CombinedScanReport:
        return self.orchestrator.orchestrated_scan(payload, scan_type, deadline)

    def search_knowledge_base(
        self,
        query: str,
        context_type: str = "all",
        max_results: int = 5,
        deadline: float | None = None,
    ) -> SearchResult:
        return self.orchestrator.search_knowledge_base(query, context_type, max_results, deadline)

    def search_similar_patterns(self, pattern: str, k: int = 5, deadline: float | None = None) -> SearchResult:
        return self.orchestrator.search_similar_patterns(pattern, k, deadline)

    def analyze_file(
        self,
        file_name: str,
        content: str,
        file_type: str = "sql",
        dialect: Dialect | str | None = None,
        deadline: float | None = None,
    ) -> FileAnalysisReport:
        return self.orchestrator.analyze_file(file_name, content, file_type, dialect, deadline)

    def check_services_health(self, deadline: float | None = None) -> ServiceHealth:
        return self.orchestrator.check_services_health(deadline)

    def patterns(self, dialect: Dialect | str | None = None, search: str | None = None) -> list[SecurityPattern]:
        """Browse the catalog, optionally narrowed to a dialect and/or a search term."""
        target = parse_dialect(dialect)
        selected = self.catalog.by_dialect(target) if target is not None else self.catalog.load()
        if search:
            wanted = {pattern.id for pattern in self.catalog.search(search)}
            selected = [pattern for pattern in selected if pattern.id in wanted]
        return selected

    def circuit_stats(self) -> dict[str, dict[str, Any]]:
        return self.remote.circuit_stats()

    def close(self) -> None:
        self.orchestrator.close()
        with suppress(Exception):
            if hasattr(self.http_client, "close"):
                self.http_client.close()

    def __enter__(self) -> SqlGuard:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()
