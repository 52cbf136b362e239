# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Enumerations shared by the catalog, engines and reports."""

from __future__ import annotations

from enum import Enum
from typing import Any

from ..errors import ValidationError


class Dialect(str, Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MSSQL = "mssql"
    ORACLE = "oracle"


ALL_DIALECTS: frozenset[Dialect] = frozenset(Dialect)

_DIALECT_ALIASES = {
    "postgres": Dialect.POSTGRESQL,
    "pg": Dialect.POSTGRESQL,
    "sqlserver": Dialect.MSSQL,
    "tsql": Dialect.MSSQL,
    "mariadb": Dialect.MYSQL,
}


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2, Severity.CRITICAL: 3}


class VulnerabilityClass(str, Enum):
    SQL_INJECTION = "sql_injection"
    XSS = "xss"
    INPUT_VALIDATION = "input_validation"


class ScanType(str, Enum):
    SQL_INJECTION = "sql_injection"
    XSS = "xss"
    INPUT_VALIDATION = "input_validation"
    COMPREHENSIVE = "comprehensive"

    @property
    def classes(self) -> tuple[VulnerabilityClass, ...]:
        if self is ScanType.COMPREHENSIVE:
            return tuple(VulnerabilityClass)
        return (VulnerabilityClass(self.value),)


def parse_dialect(value: Any) -> Dialect | None:
    """Normalize a dialect name; ``None``/empty means "all dialects"."""
    if value is None or isinstance(value, Dialect):
        return value
    raw = str(value).strip().lower()
    if not raw:
        return None
    if raw in _DIALECT_ALIASES:
        return _DIALECT_ALIASES[raw]
    try:
        return Dialect(raw)
    except ValueError:
        raise ValidationError(f"Unsupported dialect: {value!r}") from None


def parse_scan_type(value: Any) -> ScanType:
    if value is None:
        return ScanType.COMPREHENSIVE
    if isinstance(value, ScanType):
        return value
    raw = str(value).strip().lower().replace("-", "_")
    try:
        return ScanType(raw)
    except ValueError:
        raise ValidationError(f"Unsupported scan type: {value!r}") from None


def parse_severity(value: Any) -> Severity:
    if isinstance(value, Severity):
        return value
    try:
        return Severity(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unsupported severity: {value!r}") from None
