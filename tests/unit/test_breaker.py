# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from sqlguard.remote import CallPermission, CircuitBreakerTable, CircuitState


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def table(clock):
    return CircuitBreakerTable(failure_threshold=3, cooldown=30.0, clock=clock)


def test_circuit_opens_after_threshold_consecutive_failures(table):
    for _ in range(2):
        table.record_failure("svc")
    assert table.state("svc") is CircuitState.CLOSED
    table.record_failure("svc")
    assert table.state("svc") is CircuitState.OPEN
    assert table.is_open("svc") is True
    assert table.acquire("svc").permission is CallPermission.REJECT


def test_success_resets_the_failure_count(table):
    table.record_failure("svc")
    table.record_failure("svc")
    table.record_success("svc")
    table.record_failure("svc")
    assert table.state("svc") is CircuitState.CLOSED
    assert table.snapshot("svc").consecutive_failures == 1


def test_half_open_admits_exactly_one_trial(table, clock):
    for _ in range(3):
        table.record_failure("svc")
    clock.advance(29.9)
    assert table.acquire("svc").permission is CallPermission.REJECT

    clock.advance(0.2)
    assert table.acquire("svc").permission is CallPermission.TRIAL
    assert table.state("svc") is CircuitState.HALF_OPEN
    assert table.acquire("svc").permission is CallPermission.REJECT


def test_trial_success_closes_circuit(table, clock):
    for _ in range(3):
        table.record_failure("svc")
    clock.advance(31)
    assert table.acquire("svc").permission is CallPermission.TRIAL
    table.record_success("svc")
    assert table.state("svc") is CircuitState.CLOSED
    assert table.acquire("svc").permission is CallPermission.ALLOW


def test_trial_failure_reopens_with_fresh_cooldown(table, clock):
    for _ in range(3):
        table.record_failure("svc")
    clock.advance(31)
    assert table.acquire("svc").permission is CallPermission.TRIAL
    table.record_failure("svc")

    snapshot = table.snapshot("svc")
    assert snapshot.state is CircuitState.OPEN
    assert snapshot.opened_at == clock.now
    clock.advance(10)
    assert table.acquire("svc").permission is CallPermission.REJECT


def test_targets_are_independent(table):
    for _ in range(3):
        table.record_failure("a")
    assert table.state("a") is CircuitState.OPEN
    assert table.state("b") is CircuitState.CLOSED
    assert table.acquire("b").permission is CallPermission.ALLOW


def test_stats_and_reset(table):
    table.record_failure("a")
    table.acquire("b")
    stats = table.get_stats()
    assert stats["a"]["consecutive_failures"] == 1
    assert stats["b"]["state"] == "closed"

    table.reset("a")
    assert "a" not in table.get_stats()
    table.reset()
    assert table.get_stats() == {}


def test_snapshot_is_a_copy(table):
    table.record_failure("svc")
    snapshot = table.snapshot("svc")
    snapshot.consecutive_failures = 99
    assert table.snapshot("svc").consecutive_failures == 1


def test_late_success_from_before_opening_keeps_circuit_open(table, clock):
    early = table.acquire("svc")
    assert early.permission is CallPermission.ALLOW
    for _ in range(3):
        table.record_failure("svc", table.acquire("svc"))
    assert table.state("svc") is CircuitState.OPEN

    clock.advance(1)
    table.record_success("svc", early)
    assert table.state("svc") is CircuitState.OPEN
    assert table.acquire("svc").permission is CallPermission.REJECT


def test_late_failure_does_not_disturb_the_running_trial(table, clock):
    early = table.acquire("svc")
    for _ in range(3):
        table.record_failure("svc")
    clock.advance(31)
    trial = table.acquire("svc")
    assert trial.permission is CallPermission.TRIAL

    table.record_failure("svc", early)
    snapshot = table.snapshot("svc")
    assert snapshot.state is CircuitState.HALF_OPEN
    assert snapshot.trial_in_flight is True

    clock.advance(60)
    assert table.acquire("svc").permission is CallPermission.REJECT
    table.record_success("svc", trial)
    assert table.state("svc") is CircuitState.CLOSED


def test_rejected_ticket_results_are_ignored(table, clock):
    for _ in range(3):
        table.record_failure("svc")
    rejected = table.acquire("svc")
    assert rejected.admitted is False
    table.record_success("svc", rejected)
    assert table.state("svc") is CircuitState.OPEN
