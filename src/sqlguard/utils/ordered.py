# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Ordered, deduplicated collections for recommendation lists."""

from collections.abc import Iterable, Iterator


class OrderedSet:
    """Insertion-ordered set of strings; first occurrence wins."""

    def __init__(self, items: Iterable[str] = ()):
        self._items: list[str] = []
        self._seen: set[str] = set()
        self.add_many(items)

    def add(self, item: str) -> bool:
        if item not in self._seen:
            self._seen.add(item)
            self._items.append(item)
            return True
        return False

    def add_many(self, items: Iterable[str]) -> int:
        count = 0
        for item in items:
            if self.add(item):
                count += 1
        return count

    def __contains__(self, item: object) -> bool:
        return item in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"OrderedSet({self._items!r})"

    def to_list(self) -> list[str]:
        return list(self._items)

    def to_tuple(self) -> tuple[str, ...]:
        return tuple(self._items)


def merge_unique(*groups: Iterable[str]) -> tuple[str, ...]:
    """Union of several string sequences, keeping the first-seen order."""
    merged = OrderedSet()
    for group in groups:
        merged.add_many(group)
    return merged.to_tuple()
