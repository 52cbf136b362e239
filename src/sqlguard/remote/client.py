# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Remote call wrapper with time budget, retries and per-target circuit breaking."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..config import RemoteSettings, load_remote_settings
from ..errors import ErrorCategory, categorize_exception, error_category_to_reason
from ..http.client import HttpClient, create_default_http_client
from ..http.models import HttpRequest, HttpResponse
from .breaker import CallPermission, CircuitBreakerTable, CircuitState
from .outcome import RemoteCallOutcome

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429})


@dataclass(frozen=True)
class RemoteRequest:
    """One logical call; ``target`` is the breaker key (usually a service name)."""

    target: str
    url: str
    method: str = "POST"
    payload: Any = None
    headers: Mapping[str, str] | None = None

    def to_http(self, timeout: float) -> HttpRequest:
        if self.payload is None and self.method.upper() == "GET":
            return HttpRequest(url=self.url, method="GET", headers=dict(self.headers or {}), timeout=timeout)
        return HttpRequest.for_json(self.url, self.payload, method=self.method, headers=self.headers, timeout=timeout)


@dataclass
class RetryConfig:
    """Retry policy derived from RemoteSettings; delay before retry n is ``backoff_base * 2**n``."""

    max_attempts: int = 3
    backoff_base: float = 0.5

    @classmethod
    def from_settings(cls, settings: RemoteSettings) -> RetryConfig:
        return cls(max_attempts=max(1, settings.max_retries), backoff_base=max(0.0, settings.backoff_base))

    def delay_for(self, retry_index: int) -> float:
        return self.backoff_base * (2**retry_index)


class ResilientRemoteClient:
    """
    Issues remote calls and always returns a RemoteCallOutcome.

    Failures count toward a target's breaker once per logical call, after retries are
    exhausted. Answers in the 4xx range show the target is reachable and count as success.
    """

    def __init__(
        self,
        http_client: HttpClient | None = None,
        settings: RemoteSettings | None = None,
        *,
        breakers: CircuitBreakerTable | None = None,
        retry_config: RetryConfig | None = None,
    ):
        self.settings = settings or load_remote_settings()
        self.http_client = http_client or create_default_http_client(self.settings)
        self.breakers = breakers or CircuitBreakerTable(self.settings.failure_threshold, self.settings.cooldown)
        self.retry_config = retry_config or RetryConfig.from_settings(self.settings)

    def call(self, request: RemoteRequest, *, timeout: float | None = None) -> RemoteCallOutcome:
        budget = self.settings.timeout if timeout is None else min(timeout, self.settings.timeout)
        target = request.target
        if budget <= 0:
            return RemoteCallOutcome.timeout("no time budget left for remote call", target=target)

        ticket = self.breakers.acquire(target)
        if ticket.permission is CallPermission.REJECT:
            logger.debug("Circuit open for %s; failing fast", target)
            return RemoteCallOutcome.unavailable(f"circuit open for {target}", target=target)

        deadline = time.monotonic() + budget
        max_attempts = 1 if ticket.permission is CallPermission.TRIAL else self.retry_config.max_attempts
        attempt = 0
        recorded = False
        last: RemoteCallOutcome | None = None
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                response = self._send(request.to_http(remaining))
                attempt += 1
                outcome, retryable = self._classify(target, response, attempt)
                if outcome.ok or not retryable:
                    self.breakers.record_success(target, ticket)
                    recorded = True
                    return outcome
                last = outcome
                logger.debug("Attempt %d/%d to %s failed: %s", attempt, max_attempts, target, outcome.message)

                if attempt >= max_attempts:
                    break
                if self.breakers.is_open(target):
                    break
                delay = self.retry_config.delay_for(attempt - 1)
                if time.monotonic() + delay >= deadline:
                    logger.debug("Skipping retry to %s: backoff would exceed the time budget", target)
                    break
                time.sleep(delay)

            self.breakers.record_failure(target, ticket)
            recorded = True
        finally:
            if not recorded:
                self.breakers.record_failure(target, ticket)

        if last is None:
            last = RemoteCallOutcome.timeout("time budget exhausted", target=target, attempts=attempt)
        logger.warning("Remote call to %s failed after %d attempt(s): %s", target, attempt, last.message or last.kind.value)
        return last

    def _send(self, request: HttpRequest) -> HttpResponse:
        try:
            return self.http_client.request(request)
        except Exception as exc:  # noqa: BLE001
            return HttpResponse(
                ok=False,
                url=request.url,
                error_message=str(exc) or type(exc).__name__,
                error_type=exc.__class__.__name__,
                error_category=categorize_exception(exc),
            )

    @staticmethod
    def _classify(target: str, response: HttpResponse, attempt: int) -> tuple[RemoteCallOutcome, bool]:
        if not response.ok or response.status_code is None:
            reason = error_category_to_reason(response.error_category)
            detail = f"{reason}: {response.error_message}" if response.error_message else reason
            if response.error_category is ErrorCategory.TIMEOUT:
                return RemoteCallOutcome.timeout(detail, target=target, attempts=attempt), True
            return RemoteCallOutcome.unavailable(detail, target=target, attempts=attempt), True

        status = response.status_code
        if status >= 500 or status in RETRYABLE_STATUS_CODES:
            return (
                RemoteCallOutcome.application_error(f"HTTP {status}", target=target, status_code=status, attempts=attempt),
                True,
            )
        if not 200 <= status < 300:
            return (
                RemoteCallOutcome.application_error(f"HTTP {status}", target=target, status_code=status, attempts=attempt),
                False,
            )
        try:
            payload = response.json() if (response.text or response.content) else None
        except ValueError as exc:
            return (
                RemoteCallOutcome.application_error(
                    f"malformed JSON response: {exc}", target=target, status_code=status, attempts=attempt
                ),
                False,
            )
        return RemoteCallOutcome.success(payload, target=target, status_code=status, attempts=attempt), False

    def circuit_state(self, target: str) -> CircuitState:
        return self.breakers.state(target)

    def circuit_stats(self) -> dict[str, dict[str, Any]]:
        return self.breakers.get_stats()

    def close(self) -> None:
        if hasattr(self.http_client, "close"):
            self.http_client.close()
