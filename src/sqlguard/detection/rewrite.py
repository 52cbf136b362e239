# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Parameterized rewrites of SQL text.

Only literals that sit next to a comparison or assignment operator are lifted into
placeholders. Everything else, including statements an attacker appended, is left
byte-for-byte intact so the rewrite never changes what the query does beyond binding.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Final, Literal

from ..errors import ValidationError
from ..models.verdict import ParameterValue, RewriteResult

PlaceholderStyle = Literal["named", "numbered"]

# Identifiers and string literals are matched first so digits inside them are never lifted.
_TOKEN_RE: Final = re.compile(
    r"""(?P<string>'(?:[^']|'')*')"""
    r"""|(?P<ident>"(?:[^"]|"")*"|`[^`]*`|\[[^\]]*\])"""
    r"""|(?<![\w.$:])(?P<number>(?:0|[1-9]\d*)(?:\.\d+)?)(?![\w.])"""
)
_PLACEHOLDER_RE: Final = re.compile(r"(?P<string>'(?:[^']|'')*')|:(?P<named>[A-Za-z_]\w*)|\$(?P<numbered>\d+)")
_OPERATOR_BEFORE_RE: Final = re.compile(r"(?:<>|!=|<=|>=|=|<|>|\bLIKE)$", re.IGNORECASE)
_OPERATOR_AFTER_RE: Final = re.compile(r"^(?:<>|!=|<=|>=|=|<|>|LIKE\b)", re.IGNORECASE)
_ADJACENCY_WINDOW: Final = 64


def _is_adjacent_to_operator(text: str, start: int, end: int) -> bool:
    before = text[max(0, start - _ADJACENCY_WINDOW) : start].rstrip()
    after = text[end : end + _ADJACENCY_WINDOW].lstrip()
    return bool(_OPERATOR_BEFORE_RE.search(before) or _OPERATOR_AFTER_RE.match(after))


def _literal_value(token: str, kind: str) -> ParameterValue:
    if kind == "string":
        return token[1:-1].replace("''", "'")
    if "." in token:
        return Decimal(token)
    return int(token)


def render_literal(value: ParameterValue) -> str:
    """SQL literal text for a bound value."""
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


def _placeholders_in(text: str) -> set[str]:
    """Placeholder keys the text already uses outside string literals."""
    used: set[str] = set()
    for match in _PLACEHOLDER_RE.finditer(text):
        key = match.group("named") or match.group("numbered")
        if key:
            used.add(key)
    return used


def _next_key(taken: set[str], style: PlaceholderStyle, counter: int) -> tuple[str, int]:
    while True:
        key = f"param_{counter}" if style == "named" else str(counter)
        if key not in taken:
            return key, counter + 1
        counter += 1


def generate_secure_rewrite(
    text: str,
    parameters: Mapping[str, ParameterValue] | None = None,
    *,
    style: PlaceholderStyle = "named",
) -> RewriteResult:
    """
    Lift operator-adjacent literals into placeholders.

    ``style="named"`` produces ``:param_N`` placeholders, ``style="numbered"`` produces
    ``$N``. Existing ``parameters`` are kept and new keys continue their numbering, skipping
    any placeholder the text already contains.
    """
    if not isinstance(text, str):
        raise ValidationError("query must be a string")
    if style not in ("named", "numbered"):
        raise ValidationError(f"Unsupported placeholder style: {style!r}")

    bound: dict[str, ParameterValue] = dict(parameters or {})
    taken = _placeholders_in(text) | set(bound)
    counter = len(bound) + 1
    pieces: list[str] = []
    cursor = 0
    lifted = 0
    for token in _TOKEN_RE.finditer(text):
        kind = token.lastgroup
        if kind == "ident" or not _is_adjacent_to_operator(text, token.start(), token.end()):
            continue
        key, counter = _next_key(taken, style, counter)
        taken.add(key)
        bound[key] = _literal_value(token.group(0), kind or "string")
        pieces.append(text[cursor : token.start()])
        pieces.append(f":{key}" if style == "named" else f"${key}")
        cursor = token.end()
        lifted += 1

    if not lifted:
        return RewriteResult(
            original=text,
            secure=text,
            parameters=bound,
            explanation="No literal values next to comparison operators; query returned unchanged",
        )

    pieces.append(text[cursor:])
    noun = "value" if lifted == 1 else "values"
    return RewriteResult(
        original=text,
        secure="".join(pieces),
        parameters=bound,
        explanation=f"Replaced {lifted} literal {noun} with {style} placeholders; bind them through the driver",
    )


def substitute_parameters(secure: str, parameters: Mapping[str, ParameterValue]) -> str:
    """Render bound values back into their placeholders (inverse of the rewrite)."""

    def _replace(match: re.Match[str]) -> str:
        if match.group("string") is not None:
            return match.group(0)
        key = match.group("named") or match.group("numbered")
        if key in parameters:
            return render_literal(parameters[key])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, secure)
