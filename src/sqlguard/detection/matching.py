# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run pattern tables over text and collect bounded occurrence lists."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..models.pattern import SecurityPattern

EVIDENCE_ELLIPSIS = "..."


@dataclass(frozen=True)
class Occurrence:
    start: int
    end: int
    evidence: str


@dataclass(frozen=True)
class PatternMatch:
    pattern: SecurityPattern
    occurrences: tuple[Occurrence, ...] = field(default=())

    @property
    def first_offset(self) -> int:
        return self.occurrences[0].start if self.occurrences else 0


def clip_evidence(text: str, limit: int) -> str:
    if limit <= 0 or len(text) <= limit:
        return text
    keep = limit - len(EVIDENCE_ELLIPSIS)
    if keep <= 0:
        return text[:limit]
    return text[:keep] + EVIDENCE_ELLIPSIS


def match_patterns(
    text: str,
    patterns: Iterable[SecurityPattern],
    *,
    max_occurrences: int = 10,
    max_evidence_length: int = 200,
) -> list[PatternMatch]:
    """
    Return one PatternMatch per pattern that hits ``text``.

    Results are ordered by first occurrence (ties broken by catalog order), and each
    match keeps at most ``max_occurrences`` occurrences.
    """
    matches: list[tuple[int, int, PatternMatch]] = []
    for position, pattern in enumerate(patterns):
        occurrences: list[Occurrence] = []
        for hit in pattern.matcher.finditer(text):
            occurrences.append(
                Occurrence(start=hit.start(), end=hit.end(), evidence=clip_evidence(hit.group(0), max_evidence_length))
            )
            if len(occurrences) >= max_occurrences:
                break
        if occurrences:
            match = PatternMatch(pattern=pattern, occurrences=tuple(occurrences))
            matches.append((match.first_offset, position, match))
    matches.sort(key=lambda item: (item[0], item[1]))
    return [match for _, _, match in matches]
