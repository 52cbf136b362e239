# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Analysis orchestrator: static first, semantic on demand, fused under a deadline."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any

from ..catalog import KNOWLEDGE_CONTEXTS, PatternCatalog
from ..config import OrchestratorSettings, load_orchestrator_settings
from ..detection.engine import DetectionEngine
from ..errors import ValidationError
from ..log import preview
from ..models.combined import (
    CombinedScanReport,
    CombinedVerdict,
    FileAnalysisReport,
    RemoteFailure,
    SearchResult,
    ServiceHealth,
    VerdictSource,
)
from ..models.scan import ScanReport
from ..models.types import Dialect, ScanType, parse_dialect, parse_scan_type
from ..remote.outcome import RemoteCallOutcome
from ..remote.services import SEMANTIC_TARGET, SemanticAnalyzerClient
from ..scan.engine import ScanAggregator
from . import fusion
from .policy import EscalationPolicy

logger = logging.getLogger(__name__)

DEADLINE_EXCEEDED = "request deadline exceeded"
_MIN_WORKERS = 2


def _require_query(query: Any) -> None:
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("search query must be a non-empty string")


class RequestClock:
    """Tracks one request's deadline."""

    def __init__(self, budget: float):
        self.started = time.monotonic()
        self.deadline = self.started + max(0.0, budget)

    def remaining(self) -> float:
        return max(0.0, self.deadline - time.monotonic())

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


class AnalysisOrchestrator:
    """
    Decides per request whether the deterministic verdict is enough.

    Static analysis always runs first and locally. Escalations go to the semantic
    analyzer through the resilient client on a worker thread so the request deadline
    can be enforced; remote problems are recorded on the result instead of raised.
    """

    def __init__(
        self,
        detection_engine: DetectionEngine | None = None,
        semantic_client: SemanticAnalyzerClient | None = None,
        *,
        scan_aggregator: ScanAggregator | None = None,
        settings: OrchestratorSettings | None = None,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.settings = settings or load_orchestrator_settings()
        self.detection_engine = detection_engine or DetectionEngine()
        self.scan_aggregator = scan_aggregator or ScanAggregator(self.detection_engine)
        self.semantic_client = semantic_client
        self.policy = EscalationPolicy.from_settings(self.settings)
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(_MIN_WORKERS, self.settings.max_workers),
            thread_name_prefix="sqlguard-remote",
        )

    @property
    def catalog(self) -> PatternCatalog:
        return self.detection_engine.catalog

    def _clock(self, deadline: float | None) -> RequestClock:
        return RequestClock(self.settings.request_deadline if deadline is None else deadline)

    def _await_remote(self, call: Callable[..., RemoteCallOutcome], *args: Any, clock: RequestClock) -> RemoteCallOutcome:
        """Run a remote call on the worker pool and wait no longer than the request deadline."""
        if self.semantic_client is None:
            return RemoteCallOutcome.unavailable("semantic analyzer not configured", target=SEMANTIC_TARGET)
        remaining = clock.remaining()
        if remaining <= 0:
            return RemoteCallOutcome.timeout(DEADLINE_EXCEEDED, target=SEMANTIC_TARGET)
        future = self._executor.submit(call, *args, timeout=remaining)
        return self._collect(future, clock)

    @staticmethod
    def _collect(future: Future, clock: RequestClock) -> RemoteCallOutcome:
        try:
            return future.result(timeout=clock.remaining())
        except FutureTimeout:
            future.cancel()
            return RemoteCallOutcome.timeout(DEADLINE_EXCEEDED, target=SEMANTIC_TARGET)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Semantic call raised unexpectedly")
            return RemoteCallOutcome.unavailable(f"{type(exc).__name__}: {exc}", target=SEMANTIC_TARGET)

    def orchestrated_analyze(
        self,
        query: str,
        dialect: Dialect | str | None = None,
        deadline: float | None = None,
    ) -> CombinedVerdict:
        clock = self._clock(deadline)
        target = parse_dialect(dialect)
        verdict = self.detection_engine.analyze(query, target)
        decision = self.policy.decide(verdict)
        if not decision.escalate:
            return fusion.static_verdict(verdict, elapsed_ms=clock.elapsed_ms())

        logger.info("Escalating %r to semantic analysis: %s", preview(query), ", ".join(decision.reasons))
        outcome = self._await_remote(self.semantic_client.analyze if self.semantic_client else None, query, verdict, target, clock=clock)
        if not outcome.ok:
            logger.warning("Semantic analysis unavailable (%s: %s); returning static verdict", outcome.kind.value, outcome.message)
            return fusion.static_verdict(
                verdict,
                elapsed_ms=clock.elapsed_ms(),
                escalated=True,
                reasons=decision.reasons,
                failure=fusion.failure_from_outcome(outcome),
            )
        return fusion.build_combined_verdict(verdict, outcome.payload, elapsed_ms=clock.elapsed_ms(), reasons=decision.reasons)

    def orchestrated_scan(
        self,
        payload: str,
        scan_type: ScanType | str | None = ScanType.COMPREHENSIVE,
        deadline: float | None = None,
    ) -> CombinedScanReport:
        if payload is not None and not isinstance(payload, str):
            raise ValidationError("payload must be a string")
        kind = parse_scan_type(scan_type)
        clock = self._clock(deadline)

        if kind is not ScanType.COMPREHENSIVE:
            report = self.scan_aggregator.scan(payload, kind)
            return fusion.build_scan_report(kind, static_report=report, semantic=None, elapsed_ms=clock.elapsed_ms())

        static_future = self._executor.submit(self.scan_aggregator.scan, payload, kind)
        semantic_future: Future | None = None
        if self.semantic_client is not None and clock.remaining() > 0:
            semantic_future = self._executor.submit(self.semantic_client.scan, payload or "", kind, timeout=clock.remaining())
        pending = [future for future in (static_future, semantic_future) if future is not None]
        wait(pending, timeout=clock.remaining())

        static_report: ScanReport | None = None
        static_failure: RemoteFailure | None = None
        if static_future.done():
            try:
                static_report = static_future.result()
            except Exception as exc:  # noqa: BLE001
                logger.exception("Static scan failed")
                static_failure = RemoteFailure(kind="engine_error", message=f"{type(exc).__name__}: {exc}")
        else:
            static_future.cancel()
            static_failure = RemoteFailure(kind="timeout", message=DEADLINE_EXCEEDED)

        if semantic_future is None:
            outcome = (
                RemoteCallOutcome.unavailable("semantic analyzer not configured", target=SEMANTIC_TARGET)
                if self.semantic_client is None
                else RemoteCallOutcome.timeout(DEADLINE_EXCEEDED, target=SEMANTIC_TARGET)
            )
        elif semantic_future.done():
            outcome = self._collect(semantic_future, clock)
        else:
            semantic_future.cancel()
            outcome = RemoteCallOutcome.timeout(DEADLINE_EXCEEDED, target=SEMANTIC_TARGET)

        semantic = outcome.payload if outcome.ok else None
        semantic_failure = None if outcome.ok else fusion.failure_from_outcome(outcome)
        if semantic_failure is not None or static_failure is not None:
            logger.warning(
                "Comprehensive scan degraded: static=%s semantic=%s",
                static_failure.kind if static_failure else "ok",
                semantic_failure.kind if semantic_failure else "ok",
            )
        return fusion.build_scan_report(
            kind,
            static_report=static_report,
            semantic=semantic,
            static_failure=static_failure,
            semantic_failure=semantic_failure,
            elapsed_ms=clock.elapsed_ms(),
        )

    def _static_search(self, term: str, limit: int, search: Callable[[str], list[dict[str, Any]]]) -> tuple[dict[str, Any], ...]:
        """Search the whole term, then fall back to the union of its longer words."""
        matches = search(term)
        if not matches:
            seen: set[tuple[Any, Any]] = set()
            for word in term.split():
                if len(word) < 3:
                    continue
                for item in search(word):
                    key = (item.get("type"), item.get("id"))
                    if key not in seen:
                        seen.add(key)
                        matches.append(item)
        return tuple(matches[: max(0, limit)])

    def _pattern_search(self, term: str) -> list[dict[str, Any]]:
        return [pattern.to_dict() for pattern in self.catalog.search(term)]

    def _search(
        self,
        kind: str,
        query: str,
        call: Callable[..., RemoteCallOutcome] | None,
        args: tuple[Any, ...],
        limit: int,
        deadline: float | None,
        fallback: Callable[[str], list[dict[str, Any]]],
    ) -> SearchResult:
        clock = self._clock(deadline)
        outcome = self._await_remote(call, *args, clock=clock)
        if outcome.ok:
            return SearchResult(kind=kind, source=VerdictSource.SEMANTIC, query=query, results=tuple(outcome.payload)[:limit])
        logger.warning("Semantic %s search failed (%s); falling back to catalog search", kind, outcome.kind.value)
        return SearchResult(
            kind=kind,
            source=VerdictSource.STATIC,
            query=query,
            results=self._static_search(query, limit, fallback),
            failure=fusion.failure_from_outcome(outcome),
        )

    def search_knowledge_base(
        self,
        query: str,
        context_type: str = "all",
        max_results: int = 5,
        deadline: float | None = None,
    ) -> SearchResult:
        _require_query(query)
        context = (context_type or "all").strip().lower()
        if context not in KNOWLEDGE_CONTEXTS:
            raise ValidationError(f"Unsupported knowledge context: {context_type!r}")
        call = self.semantic_client.search_knowledge if self.semantic_client else None

        def fallback(term: str) -> list[dict[str, Any]]:
            return self.catalog.search_knowledge_base(term, context)

        return self._search("knowledge_base", query, call, (query, context, max_results), max_results, deadline, fallback)

    def search_similar_patterns(self, pattern: str, k: int = 5, deadline: float | None = None) -> SearchResult:
        _require_query(pattern)
        call = self.semantic_client.search_similar_patterns if self.semantic_client else None
        return self._search("pattern_similarity", pattern, call, (pattern, k), k, deadline, self._pattern_search)

    def analyze_file(
        self,
        file_name: str,
        content: str,
        file_type: str = "sql",
        dialect: Dialect | str | None = None,
        deadline: float | None = None,
    ) -> FileAnalysisReport:
        """Upload the file to the semantic service (best effort) and analyze its content."""
        if not isinstance(content, str):
            raise ValidationError("file content must be text")
        clock = self._clock(deadline)
        upload_future: Future | None = None
        if self.semantic_client is not None and clock.remaining() > 0:
            upload_future = self._executor.submit(
                self.semantic_client.upload_file, file_name, content, file_type, timeout=clock.remaining()
            )

        verdict = self.orchestrated_analyze(content, dialect, deadline=clock.remaining())

        if upload_future is None:
            upload = RemoteCallOutcome.unavailable("semantic analyzer not configured", target=SEMANTIC_TARGET)
        else:
            upload = self._collect(upload_future, clock)
        if not upload.ok:
            logger.warning("Upload of %s failed (%s); analysis is static-side only for storage", file_name, upload.kind.value)
        return FileAnalysisReport(
            file_name=file_name,
            file_type=file_type,
            verdict=verdict,
            uploaded=upload.ok,
            upload_failure=None if upload.ok else fusion.failure_from_outcome(upload),
            elapsed_ms=clock.elapsed_ms(),
        )

    def check_services_health(self, deadline: float | None = None) -> ServiceHealth:
        services: dict[str, dict[str, Any]] = {"detection-engine": {"status": "healthy", "mode": "local"}}
        clock = self._clock(deadline)
        call = self.semantic_client.health if self.semantic_client else None
        outcome = self._await_remote(call, clock=clock)
        entry: dict[str, Any] = {"status": "healthy" if outcome.ok else "unhealthy"}
        if self.semantic_client is not None:
            entry["circuit_state"] = self.semantic_client.remote.circuit_state(self.semantic_client.target).value
        if not outcome.ok:
            entry["message"] = outcome.message
        services[SEMANTIC_TARGET] = entry
        return ServiceHealth(services=services)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
