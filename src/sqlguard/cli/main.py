# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SqlGuard CLI."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ..config import load_settings
from ..errors import RemoteError, ValidationError
from ..log import setup_logging
from ..models.types import parse_dialect, parse_scan_type
from ..runtime import SqlGuard

CLI_TEXT_TRUNCATION_BYTES = 4096


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SqlGuard SQL injection detection and payload scanning")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of human-friendly summary",
    )
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification when talking to remote services",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a single SQL query")
    analyze.add_argument("query", help="SQL text to analyze")
    analyze.add_argument("--dialect", help="Database dialect (mysql, postgresql, sqlite, mssql, oracle)")
    route = analyze.add_mutually_exclusive_group()
    route.add_argument("--semantic", action="store_true", help="Escalate to the semantic analyzer when needed")
    route.add_argument("--remote", action="store_true", help="Send the query to the remote detection API")
    analyze.add_argument("--deadline", type=float, help="Request deadline in seconds for remote work")

    scan = sub.add_parser("scan", help="Scan a payload for SQL injection, XSS and input validation issues")
    scan.add_argument("payload", help="Payload text to scan")
    scan.add_argument("--type", dest="scan_type", default="comprehensive", help="Scan type (default: comprehensive)")
    scan.add_argument("--semantic", action="store_true", help="Fan out to the semantic analyzer as well")
    scan.add_argument("--deadline", type=float, help="Request deadline in seconds for remote work")

    rewrite = sub.add_parser("rewrite", help="Rewrite a query with bound parameters")
    rewrite.add_argument("query", help="SQL text to rewrite")
    rewrite.add_argument("--style", choices=("named", "numbered"), default="named", help="Placeholder style")

    batch = sub.add_parser("batch", help="Analyze queries read from a file, one per line ('-' for stdin)")
    batch.add_argument("source", help="Path to a file of queries, or '-'")
    batch.add_argument("--dialect", help="Database dialect applied to every query")

    patterns = sub.add_parser("patterns", help="Browse the built-in pattern catalog")
    patterns.add_argument("--dialect", help="Only patterns for this dialect")
    patterns.add_argument("--search", help="Case-insensitive search term")
    patterns.add_argument("--summary", action="store_true", help="Print catalog statistics instead of patterns")
    return parser


def _truncate_text_bytes(text: str, max_bytes: int) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= max_bytes:
        return text
    suffix = "...[truncated]"
    suffix_bytes = suffix.encode("utf-8")
    keep = max_bytes - len(suffix_bytes)
    if keep <= 0:
        return suffix_bytes[:max_bytes].decode("utf-8", errors="ignore")
    prefix = raw[:keep].decode("utf-8", errors="ignore")
    return prefix + suffix


def _truncate_for_cli(value: Any, *, max_bytes: int) -> Any:
    """Truncate long strings anywhere in a ``to_dict()`` tree for JSON output."""
    if isinstance(value, str):
        return _truncate_text_bytes(value, max_bytes)
    if isinstance(value, dict):
        return {key: _truncate_for_cli(item, max_bytes=max_bytes) for key, item in value.items()}
    if isinstance(value, list):
        return [_truncate_for_cli(item, max_bytes=max_bytes) for item in value]
    return value


def _as_payload(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, list):
        return [_as_payload(item) for item in data]
    return data


def _print_json(data: Any) -> None:
    payload = _as_payload(data)
    json.dump(
        _truncate_for_cli(payload, max_bytes=CLI_TEXT_TRUNCATION_BYTES),
        sys.stdout,
        indent=2,
        sort_keys=True,
        default=str,
    )
    sys.stdout.write("\n")


def _print_verdict(verdict: dict[str, Any], *, label: str = "Query") -> None:
    status = "VULNERABLE" if verdict.get("is_vulnerable") else "safe"
    print(f"[SqlGuard] {label}: {status} (score {verdict.get('score', 0)}/100, confidence {verdict.get('confidence', 0)})")
    patterns = [ref.get("id") for ref in verdict.get("matched_patterns") or []]
    if patterns:
        print(f"Patterns ({len(patterns)}): {', '.join(patterns)}")
    if verdict.get("secure_rewrite"):
        print(f"Secure rewrite: {verdict['secure_rewrite']}")
    if verdict.get("engine_error"):
        print(f"Engine error: {verdict['engine_error']}")
    for item in verdict.get("recommendations") or []:
        print(f"- {item}")


def _pretty_print(report: Any) -> None:
    payload = _as_payload(report)
    if isinstance(payload, list):
        for index, item in enumerate(payload, start=1):
            _pretty_print_mapping(item, label=f"Query {index}")
        return
    if not isinstance(payload, dict):
        print(payload)
        return
    _pretty_print_mapping(payload)


def _pretty_print_mapping(payload: dict[str, Any], *, label: str = "Query") -> None:
    if "static_verdict" in payload:
        print(f"[SqlGuard] Source: {payload.get('source')} (escalated: {payload.get('escalated')})")
        reasons = payload.get("escalation_reasons") or []
        if reasons:
            print(f"Escalation reasons: {', '.join(reasons)}")
        failure = payload.get("failure")
        if failure:
            print(f"Semantic analysis skipped: {failure.get('kind')} ({failure.get('message')})")
        _print_verdict(payload["static_verdict"], label=label)
        return

    if "overall_risk" in payload:
        print(f"[SqlGuard] Scan {payload.get('scan_type')}: {payload.get('overall_risk')} risk (source {payload.get('source')})")
        for side in ("static_failure", "semantic_failure"):
            failure = payload.get(side)
            if failure:
                print(f"{side.replace('_', ' ').capitalize()}: {failure.get('kind')} ({failure.get('message')})")
        if payload.get("static_report"):
            _print_scan(payload["static_report"])
        return

    if "aggregate_risk_score" in payload:
        _print_scan(payload)
        return

    if "secure" in payload and "parameters" in payload:
        print(f"[SqlGuard] {payload.get('explanation')}")
        print(f"Query: {payload.get('secure')}")
        for key, value in (payload.get("parameters") or {}).items():
            print(f"  {key} = {value!r}")
        return

    if "is_vulnerable" in payload:
        _print_verdict(payload, label=label)
        return

    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _print_scan(report: dict[str, Any]) -> None:
    print(f"Aggregate risk score: {report.get('aggregate_risk_score', 0)}/100")
    for name, score in (report.get("class_scores") or {}).items():
        print(f"  {name}: {score}")
    for finding in report.get("findings") or []:
        print(f"- [{finding.get('severity')}] {finding.get('pattern_id')}: {finding.get('evidence')}")
    for item in report.get("recommendations") or []:
        print(f"* {item}")


def _print_patterns(patterns: list[Any]) -> None:
    print(f"[SqlGuard] {len(patterns)} pattern(s)")
    for pattern in patterns:
        dialects = ", ".join(sorted(d.value for d in pattern.dialects)) or "any"
        print(f"- {pattern.id} [{pattern.severity.value}] {pattern.name} ({dialects})")


def _read_queries(source: str) -> list[str]:
    if source == "-":
        lines = sys.stdin.read().splitlines()
    else:
        with open(source, encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    return [line for line in lines if line.strip()]


def _run(guard: SqlGuard, args: argparse.Namespace) -> Any:
    if args.command == "analyze":
        if args.remote:
            outcome = guard.detection_api.analyze_query(args.query, parse_dialect(args.dialect), timeout=args.deadline)
            return outcome.raise_for_outcome()
        if args.semantic:
            return guard.orchestrated_analyze(args.query, args.dialect, deadline=args.deadline)
        return guard.analyze_query(args.query, args.dialect)
    if args.command == "scan":
        if args.semantic:
            return guard.orchestrated_scan(args.payload, args.scan_type, deadline=args.deadline)
        return guard.security_scan(args.payload, parse_scan_type(args.scan_type))
    if args.command == "rewrite":
        return guard.generate_secure_rewrite(args.query, style=args.style)
    if args.command == "batch":
        return guard.batch_analyze(_read_queries(args.source), args.dialect)
    if args.summary:
        return guard.catalog.summary()
    return guard.patterns(args.dialect, args.search)


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    if args.ignore_ssl_errors:
        settings.remote.verify_ssl = False

    try:
        with SqlGuard(settings) as guard:
            result = _run(guard, args)
    except ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except RemoteError as exc:
        print(f"remote error ({exc.target}): {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.command == "patterns" and not args.summary:
        if args.json:
            _print_json([pattern.to_dict() for pattern in result])
        else:
            _print_patterns(result)
        return 0

    if args.json:
        _print_json(result)
    else:
        _pretty_print(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
