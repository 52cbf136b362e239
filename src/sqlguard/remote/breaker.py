# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-target circuit breakers.

States:
- CLOSED: calls pass through; consecutive failures are counted.
- OPEN: calls are rejected without touching the network until the cooldown elapses.
- HALF_OPEN: exactly one trial call is admitted; its outcome closes or re-opens the circuit.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CallPermission(str, Enum):
    ALLOW = "allow"
    TRIAL = "trial"
    REJECT = "reject"


@dataclass(frozen=True)
class CircuitTicket:
    """What ``acquire`` granted; results reported with a stale ticket are ignored."""

    target: str
    permission: CallPermission
    generation: int

    @property
    def admitted(self) -> bool:
        return self.permission is not CallPermission.REJECT


@dataclass
class CircuitSnapshot:
    state: CircuitState = CircuitState.CLOSED
    consecutive_failures: int = 0
    opened_at: float | None = None
    trial_in_flight: bool = False
    generation: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "opened_at": self.opened_at,
        }


class CircuitBreakerTable:
    """
    Thread-safe map of target identity to circuit state.

    Every state change starts a new generation. Calls report back with the ticket they were
    admitted under, so a call that was admitted before the circuit opened cannot close it
    again, and only the current trial decides a half-open circuit.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        cooldown: float = 30.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = max(1, failure_threshold)
        self.cooldown = max(0.0, cooldown)
        self._clock = clock
        self._lock = threading.Lock()
        self._circuits: dict[str, CircuitSnapshot] = {}

    def _circuit(self, target: str) -> CircuitSnapshot:
        circuit = self._circuits.get(target)
        if circuit is None:
            circuit = CircuitSnapshot()
            self._circuits[target] = circuit
        return circuit

    @staticmethod
    def _transition(circuit: CircuitSnapshot, state: CircuitState) -> None:
        circuit.state = state
        circuit.generation += 1

    def acquire(self, target: str) -> CircuitTicket:
        """Decide whether a call to ``target`` may proceed right now."""
        with self._lock:
            circuit = self._circuit(target)
            permission = self._permit(target, circuit)
            return CircuitTicket(target=target, permission=permission, generation=circuit.generation)

    def _permit(self, target: str, circuit: CircuitSnapshot) -> CallPermission:
        if circuit.state is CircuitState.CLOSED:
            return CallPermission.ALLOW
        if circuit.state is CircuitState.OPEN:
            opened_at = circuit.opened_at if circuit.opened_at is not None else self._clock()
            if self._clock() - opened_at < self.cooldown:
                return CallPermission.REJECT
            self._transition(circuit, CircuitState.HALF_OPEN)
            circuit.trial_in_flight = True
            logger.info("Circuit for %s half-open; admitting one trial call", target)
            return CallPermission.TRIAL
        if circuit.trial_in_flight:
            return CallPermission.REJECT
        circuit.trial_in_flight = True
        return CallPermission.TRIAL

    @staticmethod
    def _is_current(circuit: CircuitSnapshot, ticket: CircuitTicket | None) -> bool:
        if ticket is None:
            return True
        if ticket.generation != circuit.generation or not ticket.admitted:
            return False
        return circuit.state is CircuitState.CLOSED or ticket.permission is CallPermission.TRIAL

    def record_success(self, target: str, ticket: CircuitTicket | None = None) -> None:
        with self._lock:
            circuit = self._circuit(target)
            if not self._is_current(circuit, ticket):
                logger.debug("Ignoring stale success for %s", target)
                return
            if circuit.state is not CircuitState.CLOSED:
                logger.info("Circuit for %s closed after successful trial", target)
                self._transition(circuit, CircuitState.CLOSED)
            circuit.consecutive_failures = 0
            circuit.opened_at = None
            circuit.trial_in_flight = False

    def record_failure(self, target: str, ticket: CircuitTicket | None = None) -> None:
        with self._lock:
            circuit = self._circuit(target)
            if not self._is_current(circuit, ticket):
                logger.debug("Ignoring stale failure for %s", target)
                return
            circuit.consecutive_failures += 1
            if circuit.state is CircuitState.HALF_OPEN:
                self._transition(circuit, CircuitState.OPEN)
                circuit.opened_at = self._clock()
                circuit.trial_in_flight = False
                logger.warning("Circuit for %s re-opened: trial call failed", target)
            elif circuit.state is CircuitState.CLOSED and circuit.consecutive_failures >= self.failure_threshold:
                self._transition(circuit, CircuitState.OPEN)
                circuit.opened_at = self._clock()
                logger.warning(
                    "Circuit for %s opened after %d consecutive failures",
                    target,
                    circuit.consecutive_failures,
                )

    def is_open(self, target: str) -> bool:
        with self._lock:
            circuit = self._circuits.get(target)
            return circuit is not None and circuit.state is CircuitState.OPEN

    def state(self, target: str) -> CircuitState:
        with self._lock:
            circuit = self._circuits.get(target)
            return circuit.state if circuit is not None else CircuitState.CLOSED

    def snapshot(self, target: str) -> CircuitSnapshot:
        """Copy of the circuit for ``target``; mutating it has no effect."""
        with self._lock:
            circuit = self._circuits.get(target) or CircuitSnapshot()
            return CircuitSnapshot(
                state=circuit.state,
                consecutive_failures=circuit.consecutive_failures,
                opened_at=circuit.opened_at,
                trial_in_flight=circuit.trial_in_flight,
                generation=circuit.generation,
            )

    def get_stats(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {target: circuit.to_dict() for target, circuit in self._circuits.items()}

    def reset(self, target: str | None = None) -> None:
        with self._lock:
            if target is None:
                self._circuits.clear()
            else:
                self._circuits.pop(target, None)
