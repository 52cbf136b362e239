# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclasses for orchestrated (static + semantic) results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from .scan import ScanReport
from .types import ScanType
from .verdict import AnalysisVerdict

RiskLabel = Literal["LOW", "MEDIUM", "HIGH"]


class VerdictSource(str, Enum):
    STATIC = "static"
    SEMANTIC = "semantic"
    COMBINED = "combined"


def unwrap_payload(payload: Any) -> Any:
    """Strip the ``{"status": ..., "data": {...}}`` envelope remote services wrap results in."""
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
        return payload["data"]
    return payload


@dataclass(frozen=True)
class SemanticVerdict:
    confidence: float
    is_vulnerable: bool | None = None
    findings: tuple[dict[str, Any], ...] = ()
    recommendations: tuple[str, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_payload(cls, payload: Any) -> SemanticVerdict:
        """Parse an analyzer response; raises ValueError when it carries no usable confidence."""
        data = unwrap_payload(payload)
        if not isinstance(data, Mapping):
            raise ValueError("semantic payload is not an object")
        raw_confidence = data.get("confidence", data.get("semantic_confidence"))
        if isinstance(raw_confidence, bool) or raw_confidence is None:
            raise ValueError("semantic payload has no confidence")
        try:
            confidence = float(raw_confidence)
        except (TypeError, ValueError):
            raise ValueError(f"semantic confidence is not numeric: {raw_confidence!r}") from None
        if confidence > 1.0 and confidence <= 100.0:
            confidence /= 100.0
        confidence = max(0.0, min(1.0, confidence))

        raw_vulnerable = data.get("is_vulnerable", data.get("isVulnerable", data.get("vulnerable")))
        findings = data.get("findings") or data.get("vulnerabilities") or []
        recommendations = data.get("recommendations") or []
        return cls(
            confidence=confidence,
            is_vulnerable=None if raw_vulnerable is None else bool(raw_vulnerable),
            findings=tuple(dict(item) if isinstance(item, Mapping) else {"description": str(item)} for item in findings),
            recommendations=tuple(str(item) for item in recommendations if item),
            raw=dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence": round(self.confidence, 4),
            "is_vulnerable": self.is_vulnerable,
            "findings": [dict(item) for item in self.findings],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class RemoteFailure:
    """Why the semantic side did not contribute; an annotation, never raised."""

    kind: str
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class CombinedVerdict:
    source: VerdictSource
    confidence: float
    static_verdict: AnalysisVerdict
    semantic_verdict: SemanticVerdict | None = None
    recommendations: tuple[str, ...] = ()
    elapsed_ms: int = 0
    escalated: bool = False
    escalation_reasons: tuple[str, ...] = ()
    failure: RemoteFailure | None = None

    def __post_init__(self) -> None:
        if self.source is VerdictSource.COMBINED and self.semantic_verdict is None:
            raise ValueError("combined verdicts require a semantic verdict")

    @property
    def is_vulnerable(self) -> bool:
        if self.static_verdict.is_vulnerable:
            return True
        return bool(self.semantic_verdict and self.semantic_verdict.is_vulnerable)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "is_vulnerable": self.is_vulnerable,
            "confidence": round(self.confidence, 4),
            "static_verdict": self.static_verdict.to_dict(),
            "semantic_verdict": self.semantic_verdict.to_dict() if self.semantic_verdict else None,
            "recommendations": list(self.recommendations),
            "elapsed_ms": self.elapsed_ms,
            "escalated": self.escalated,
            "escalation_reasons": list(self.escalation_reasons),
            "failure": self.failure.to_dict() if self.failure else None,
        }


@dataclass(frozen=True)
class CombinedScanReport:
    scan_type: ScanType
    source: VerdictSource
    overall_risk: RiskLabel
    static_report: ScanReport | None = None
    semantic_report: SemanticVerdict | None = None
    static_failure: RemoteFailure | None = None
    semantic_failure: RemoteFailure | None = None
    recommendations: tuple[str, ...] = ()
    elapsed_ms: int = 0

    @property
    def partial(self) -> bool:
        return (self.static_failure is None) != (self.semantic_failure is None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_type": self.scan_type.value,
            "source": self.source.value,
            "overall_risk": self.overall_risk,
            "partial": self.partial,
            "static_report": self.static_report.to_dict() if self.static_report else None,
            "semantic_report": self.semantic_report.to_dict() if self.semantic_report else None,
            "static_failure": self.static_failure.to_dict() if self.static_failure else None,
            "semantic_failure": self.semantic_failure.to_dict() if self.semantic_failure else None,
            "recommendations": list(self.recommendations),
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass(frozen=True)
class SearchResult:
    kind: Literal["knowledge_base", "pattern_similarity"]
    source: VerdictSource
    query: str
    results: tuple[dict[str, Any], ...] = ()
    failure: RemoteFailure | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "source": self.source.value,
            "query": self.query,
            "results": [dict(item) for item in self.results],
            "failure": self.failure.to_dict() if self.failure else None,
        }


@dataclass(frozen=True)
class FileAnalysisReport:
    file_name: str
    file_type: str
    verdict: CombinedVerdict
    uploaded: bool = False
    upload_failure: RemoteFailure | None = None
    elapsed_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "file_type": self.file_type,
            "verdict": self.verdict.to_dict(),
            "uploaded": self.uploaded,
            "upload_failure": self.upload_failure.to_dict() if self.upload_failure else None,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass(frozen=True)
class ServiceHealth:
    services: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def overall_status(self) -> str:
        if not self.services:
            return "unknown"
        statuses = {entry.get("status") for entry in self.services.values()}
        if statuses == {"healthy"}:
            return "healthy"
        if "healthy" in statuses:
            return "degraded"
        return "unhealthy"

    def to_dict(self) -> dict[str, Any]:
        return {"overall_status": self.overall_status, "services": {name: dict(entry) for name, entry in self.services.items()}}
