# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tagged result of a remote call: success, timeout, unavailable or application error."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import RemoteApplicationError, RemoteError, RemoteTimeout, RemoteUnavailable


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    APPLICATION_ERROR = "application_error"


_ERROR_TYPES: dict[OutcomeKind, type[RemoteError]] = {
    OutcomeKind.TIMEOUT: RemoteTimeout,
    OutcomeKind.UNAVAILABLE: RemoteUnavailable,
    OutcomeKind.APPLICATION_ERROR: RemoteApplicationError,
}


@dataclass(frozen=True)
class RemoteCallOutcome:
    kind: OutcomeKind
    target: str = ""
    payload: Any = None
    message: str = ""
    status_code: int | None = None
    attempts: int = 0

    @classmethod
    def success(cls, payload: Any, *, target: str = "", status_code: int | None = 200, attempts: int = 1) -> RemoteCallOutcome:
        return cls(OutcomeKind.SUCCESS, target=target, payload=payload, status_code=status_code, attempts=attempts)

    @classmethod
    def timeout(cls, message: str = "remote call timed out", *, target: str = "", attempts: int = 0) -> RemoteCallOutcome:
        return cls(OutcomeKind.TIMEOUT, target=target, message=message, attempts=attempts)

    @classmethod
    def unavailable(cls, message: str = "remote target unavailable", *, target: str = "", attempts: int = 0) -> RemoteCallOutcome:
        return cls(OutcomeKind.UNAVAILABLE, target=target, message=message, attempts=attempts)

    @classmethod
    def application_error(
        cls,
        message: str,
        *,
        target: str = "",
        status_code: int | None = None,
        payload: Any = None,
        attempts: int = 0,
    ) -> RemoteCallOutcome:
        return cls(
            OutcomeKind.APPLICATION_ERROR,
            target=target,
            payload=payload,
            message=message,
            status_code=status_code,
            attempts=attempts,
        )

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    def with_payload(self, payload: Any) -> RemoteCallOutcome:
        return RemoteCallOutcome(
            self.kind,
            target=self.target,
            payload=payload,
            message=self.message,
            status_code=self.status_code,
            attempts=self.attempts,
        )

    def raise_for_outcome(self) -> Any:
        """Return the payload, or raise the RemoteError subclass matching the outcome."""
        if self.ok:
            return self.payload
        error_type = _ERROR_TYPES[self.kind]
        raise error_type(self.message or self.kind.value, target=self.target, status_code=self.status_code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "target": self.target,
            "message": self.message,
            "status_code": self.status_code,
            "attempts": self.attempts,
        }
