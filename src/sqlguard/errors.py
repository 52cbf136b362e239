# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl as ssl_module
from enum import Enum

import httpx


class SqlGuardError(Exception):
    """Base class for every error raised by SqlGuard."""


class ValidationError(SqlGuardError, ValueError):
    """Malformed input rejected at the library boundary."""


class EngineComputeError(SqlGuardError):
    """Internal failure while matching or scoring; surfaced as a degraded verdict."""


class RemoteError(SqlGuardError):
    """A remote analyzer call did not produce a usable payload."""

    def __init__(self, message: str, *, target: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.target = target
        self.status_code = status_code


class RemoteTimeout(RemoteError):
    """The remote call exceeded its time budget."""


class RemoteUnavailable(RemoteError):
    """The target is unreachable or its circuit is open."""


class RemoteApplicationError(RemoteError):
    """The target answered with an error or an unusable payload."""


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, (httpx.TimeoutException, TimeoutError, socket.timeout)):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ssl_module.SSLError, ssl_module.CertificateError)):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, ConnectionError):
        return ErrorCategory.CONNECTION_ERROR

    if getattr(exc, "response", None) is not None:
        status = getattr(exc.response, "status_code", None)
        if status == 429:
            return ErrorCategory.RATE_LIMITED

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Remote analyzer timed out",
        ErrorCategory.RATE_LIMITED: "Remote analyzer is rate limiting requests",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.UNKNOWN_ERROR: "Network error during remote call",
        ErrorCategory.NONE: "No error",
    }
    return mapping.get(category or ErrorCategory.UNKNOWN_ERROR, "Network error during remote call")


__all__ = [
    "EngineComputeError",
    "ErrorCategory",
    "RemoteApplicationError",
    "RemoteError",
    "RemoteTimeout",
    "RemoteUnavailable",
    "SqlGuardError",
    "ValidationError",
    "categorize_exception",
    "error_category_to_reason",
]
