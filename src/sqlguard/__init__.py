# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
SqlGuard package entrypoint.

This package provides a deterministic, pattern-based SQL injection detection engine,
a multi-class payload scanner and an orchestrator that escalates uncertain verdicts to
a remote semantic analyzer. Remote access goes through an injectable HTTP client with
retries, time budgets and per-target circuit breaking, and domain objects are modeled
with typed dataclasses.
"""

from .catalog import PatternCatalog, default_catalog
from .config import (
    DetectionSettings,
    GuardSettings,
    OrchestratorSettings,
    RemoteSettings,
    load_settings,
)
from .detection import DetectionEngine
from .errors import (
    EngineComputeError,
    RemoteApplicationError,
    RemoteError,
    RemoteTimeout,
    RemoteUnavailable,
    SqlGuardError,
    ValidationError,
)
from .http import HttpClient, HttpRequest, HttpResponse, HttpxClient, create_default_http_client
from .log import setup_logging
from .models import (
    AnalysisVerdict,
    CombinedScanReport,
    CombinedVerdict,
    Dialect,
    RewriteResult,
    ScanReport,
    ScanType,
    Severity,
    VulnerabilityClass,
)
from .orchestrator import AnalysisOrchestrator, EscalationPolicy
from .remote import CircuitBreakerTable, CircuitState, RemoteCallOutcome, ResilientRemoteClient
from .runtime import SqlGuard
from .scan import ScanAggregator
from .version import __version__

__all__ = [
    "AnalysisOrchestrator",
    "AnalysisVerdict",
    "CircuitBreakerTable",
    "CircuitState",
    "CombinedScanReport",
    "CombinedVerdict",
    "DetectionEngine",
    "DetectionSettings",
    "Dialect",
    "EngineComputeError",
    "EscalationPolicy",
    "GuardSettings",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpxClient",
    "OrchestratorSettings",
    "PatternCatalog",
    "RemoteApplicationError",
    "RemoteCallOutcome",
    "RemoteError",
    "RemoteSettings",
    "RemoteTimeout",
    "RemoteUnavailable",
    "ResilientRemoteClient",
    "RewriteResult",
    "ScanAggregator",
    "ScanReport",
    "ScanType",
    "Severity",
    "SqlGuard",
    "SqlGuardError",
    "ValidationError",
    "VulnerabilityClass",
    "create_default_http_client",
    "default_catalog",
    "load_settings",
    "setup_logging",
    "__version__",
]
