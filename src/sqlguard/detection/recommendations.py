# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Remediation text derived from matched pattern categories."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from ..models.types import Dialect, Severity, VulnerabilityClass
from ..utils.ordered import OrderedSet
from .matching import PatternMatch

PARAMETERIZE: Final = "Use parameterized queries or prepared statements"

CATEGORY_RECOMMENDATIONS: Final[dict[str, tuple[str, ...]]] = {
    "stacked_queries": (
        "Disable multi-statement execution in the database driver",
        "Grant the application account only the statements it needs",
    ),
    "destructive_operation": ("Revoke DROP/TRUNCATE privileges from application database users",),
    "union_based": ("Validate numeric inputs and allow-list selectable columns",),
    "boolean_based": ("Never concatenate user input into WHERE clauses",),
    "comment_injection": ("Reject or escape SQL comment sequences in user input",),
    "time_based": ("Enforce statement timeouts and alert on abnormal query latency",),
    "error_based": ("Suppress detailed database errors in client responses",),
    "function_abuse": ("Validate input length and character set before use",),
    "command_execution": ("Disable dynamic SQL execution of untrusted strings and OS command extensions",),
    "file_access": ("Remove file-system privileges from application database roles",),
    "schema_enumeration": ("Restrict access to system catalogs and version metadata",),
    "obfuscation": ("Normalize and validate input encoding before use",),
}

CLASS_RECOMMENDATIONS: Final[dict[VulnerabilityClass, tuple[str, ...]]] = {
    VulnerabilityClass.SQL_INJECTION: (
        PARAMETERIZE,
        "Validate and sanitize all user inputs",
        "Apply the principle of least privilege to database accounts",
    ),
    VulnerabilityClass.XSS: (
        "Implement output encoding/escaping",
        "Use a Content Security Policy (CSP)",
        "Validate and sanitize HTML input",
        "Use secure templating engines",
    ),
    VulnerabilityClass.INPUT_VALIDATION: (
        "Implement strict input validation",
        "Use allow-list based validation",
        "Sanitize file paths and names",
        "Implement proper access controls",
    ),
}

HIGH_RISK_RECOMMENDATIONS: Final[tuple[str, ...]] = (
    "Conduct an immediate security review of the affected code path",
    "Enable database audit logging",
)

DIALECT_GUIDANCE: Final[dict[Dialect, str]] = {
    Dialect.MYSQL: "Follow MySQL hardening guidance (secure_file_priv, no FILE privilege)",
    Dialect.POSTGRESQL: "Follow PostgreSQL hardening guidance (statement_timeout, restricted server-file roles)",
    Dialect.SQLITE: "Follow SQLite hardening guidance (read-only connections, extension loading disabled)",
    Dialect.MSSQL: "Follow SQL Server hardening guidance (xp_cmdshell disabled, no ad hoc distributed queries)",
    Dialect.ORACLE: "Follow Oracle hardening guidance (revoke EXECUTE on UTL_* and DBMS_* packages)",
}


def sql_recommendations(matches: Iterable[PatternMatch], dialect: Dialect | None, is_vulnerable: bool) -> tuple[str, ...]:
    """Deterministic remediation list for a SQL-injection analysis."""
    matches = list(matches)
    if not matches:
        return ()
    recommendations = OrderedSet([PARAMETERIZE])
    for match in matches:
        recommendations.add_many(CATEGORY_RECOMMENDATIONS.get(match.pattern.category, ()))
    if any(match.pattern.severity.rank >= Severity.HIGH.rank for match in matches):
        recommendations.add_many(HIGH_RISK_RECOMMENDATIONS)
    if is_vulnerable and dialect is not None:
        recommendations.add(DIALECT_GUIDANCE[dialect])
    return recommendations.to_tuple()


def class_recommendations(vulnerability_class: VulnerabilityClass) -> tuple[str, ...]:
    return CLASS_RECOMMENDATIONS.get(vulnerability_class, ())
