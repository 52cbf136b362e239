# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Resilient access to remote analyzers."""

from .breaker import CallPermission, CircuitBreakerTable, CircuitSnapshot, CircuitState, CircuitTicket
from .client import RemoteRequest, ResilientRemoteClient, RetryConfig
from .outcome import OutcomeKind, RemoteCallOutcome
from .services import DETECTION_TARGET, SEMANTIC_TARGET, DetectionApiClient, SemanticAnalyzerClient

__all__ = [
    "CallPermission",
    "CircuitBreakerTable",
    "CircuitSnapshot",
    "CircuitState",
    "CircuitTicket",
    "DETECTION_TARGET",
    "DetectionApiClient",
    "OutcomeKind",
    "RemoteCallOutcome",
    "RemoteRequest",
    "ResilientRemoteClient",
    "RetryConfig",
    "SEMANTIC_TARGET",
    "SemanticAnalyzerClient",
]
